"""
ln_escrow.types.context — request envelopes.

A request names its accounts positionally, each with the signer/writable flags
the host has already established (signatures are verified by the host before
the program runs). Handlers never trust an address just because it was named:
every one is re-derived or checked against already-validated data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from .pubkey import Pubkey, PubkeyLike


@dataclass(frozen=True)
class AccountMeta:
    pubkey: Pubkey
    is_signer: bool = False
    is_writable: bool = False

    @classmethod
    def signer(cls, key: PubkeyLike, *, writable: bool = False) -> "AccountMeta":
        return cls(Pubkey.coerce(key), is_signer=True, is_writable=writable)

    @classmethod
    def writable(cls, key: PubkeyLike) -> "AccountMeta":
        return cls(Pubkey.coerce(key), is_writable=True)

    @classmethod
    def readonly(cls, key: PubkeyLike) -> "AccountMeta":
        return cls(Pubkey.coerce(key))


@dataclass(frozen=True)
class Request:
    """One instruction: ordered account metas plus the opaque data buffer."""

    accounts: Tuple[AccountMeta, ...]
    data: bytes
    # Optional explicit clock (unix seconds); the executor falls back to its own.
    timestamp: Optional[int] = field(default=None)

    def __post_init__(self) -> None:
        object.__setattr__(self, "accounts", tuple(self.accounts))
        object.__setattr__(self, "data", bytes(self.data))

    @property
    def signers(self) -> frozenset:
        return frozenset(m.pubkey for m in self.accounts if m.is_signer)


__all__ = ["AccountMeta", "Request"]
