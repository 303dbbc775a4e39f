"""
ln_escrow.types.result — InvocationResult container.

`InvocationResult` is what the executor returns for every request, successful
or not. A failed request has already been rolled back when this is produced.

Fields
------
* status : InvocationStatus — SUCCESS / FAILED
* tag    : Optional[int]    — decoded instruction tag (None if decoding failed)
* logs   : tuple[str, ...]  — program log lines in emission order
* error  : Optional[dict]   — `EscrowError.to_dict()` payload on failure
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .status import InvocationStatus


@dataclass(frozen=True)
class InvocationResult:
    status: InvocationStatus
    tag: Optional[int] = None
    logs: Tuple[str, ...] = field(default_factory=tuple)
    error: Optional[Dict[str, Any]] = None

    @property
    def is_success(self) -> bool:
        return self.status.is_success

    @property
    def error_code(self) -> Optional[str]:
        return None if self.error is None else self.error.get("code")

    @property
    def custom_code(self) -> Optional[int]:
        """Numeric program error code, when the failure was a program error."""
        return None if self.error is None else self.error.get("custom")

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "status": self.status.value,
            "tag": self.tag,
            "logs": list(self.logs),
        }
        if self.error is not None:
            out["error"] = dict(self.error)
        return out


__all__ = ["InvocationResult"]
