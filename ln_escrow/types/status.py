"""
ln_escrow.types.status — lifecycle and outcome enums.

EscrowStatus is persisted as one byte in the escrow record:
  - ACTIVE   (0): funds locked in the vault
  - CLAIMED  (1): terminal, preimage revealed, funds released to the recipient
  - REFUNDED (2): terminal, funds returned to the refund party after the timeout

InvocationStatus models the outcome of one request:
  - str(InvocationStatus.SUCCESS) -> "success"
  - InvocationStatus.SUCCESS.code -> "SUCCESS"
"""

from __future__ import annotations

from enum import Enum, IntEnum


class EscrowStatus(IntEnum):
    ACTIVE = 0
    CLAIMED = 1
    REFUNDED = 2

    @property
    def is_terminal(self) -> bool:
        return self is not EscrowStatus.ACTIVE

    def can_transition_to(self, other: "EscrowStatus") -> bool:
        """Active → {Claimed, Refunded} is the only legal move."""
        return self is EscrowStatus.ACTIVE and other.is_terminal


class InvocationStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def code(self) -> str:
        return self.value.upper()

    @property
    def is_success(self) -> bool:
        return self is InvocationStatus.SUCCESS

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


__all__ = ["EscrowStatus", "InvocationStatus"]
