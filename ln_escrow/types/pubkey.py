"""
ln_escrow.types.pubkey — 32-byte identities.

`Pubkey` is an immutable `bytes` subclass so it can be used directly as a
mapping key, compared against raw 32-byte fields read from records, and fed to
hash functions without conversion. The text form is base58.
"""

from __future__ import annotations

from typing import Union

from ..constants import PUBKEY_LEN
from ..utils.bytes import BytesLike, b58decode, b58encode, from_hex, is_byteslike

PubkeyLike = Union["Pubkey", BytesLike, str]


class Pubkey(bytes):
    """A 32-byte identity (account address, signer, mint or program id)."""

    __slots__ = ()

    def __new__(cls, value: BytesLike = b"\x00" * PUBKEY_LEN) -> "Pubkey":
        if not is_byteslike(value):
            raise TypeError("Pubkey expects bytes-like; use Pubkey.from_string for text")
        raw = bytes(value)
        if len(raw) != PUBKEY_LEN:
            raise ValueError(f"pubkey must be {PUBKEY_LEN} bytes (got {len(raw)})")
        return super().__new__(cls, raw)

    @classmethod
    def from_string(cls, s: str) -> "Pubkey":
        """Parse base58, or hex when prefixed with 0x."""
        s = s.strip()
        if s.startswith(("0x", "0X")):
            return cls(from_hex(s))
        return cls(b58decode(s))

    @classmethod
    def coerce(cls, value: PubkeyLike) -> "Pubkey":
        if isinstance(value, Pubkey):
            return value
        if isinstance(value, str):
            return cls.from_string(value)
        return cls(value)

    @classmethod
    def default(cls) -> "Pubkey":
        return cls(b"\x00" * PUBKEY_LEN)

    def to_base58(self) -> str:
        return b58encode(self)

    def __str__(self) -> str:
        return self.to_base58()

    def __repr__(self) -> str:
        return f"Pubkey({self.to_base58()})"


__all__ = ["Pubkey", "PubkeyLike"]
