"""
ln_escrow.state.accounts — account records held by the record store.

An Account holds three fields:

- lamports: native balance backing the account (rent, payer funds)
- owner:    program allowed to write `data`
- data:     raw record bytes (empty for plain wallets)

Amounts are u64-bounded. This module has no storage concerns; see
`ln_escrow.state.store`.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..constants import U64_MAX
from ..errors import InsufficientFunds
from ..types.pubkey import Pubkey


def _ensure_u64(name: str, value: int) -> int:
    if not isinstance(value, int):
        raise TypeError(f"{name} must be int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    if value > U64_MAX:
        raise OverflowError(f"{name} exceeds u64")
    return value


@dataclass(slots=True)
class Account:
    """
    Invariants:
    - lamports is u64
    - owner is a 32-byte Pubkey
    """
    lamports: int = 0
    owner: Pubkey = Pubkey.default()
    data: bytes = b""

    def __post_init__(self) -> None:
        self.lamports = _ensure_u64("lamports", int(self.lamports))
        self.owner = Pubkey.coerce(self.owner)
        self.data = bytes(self.data)

    @property
    def data_is_empty(self) -> bool:
        return len(self.data) == 0

    def credit(self, amount: int) -> None:
        amt = _ensure_u64("amount", int(amount))
        self.lamports = _ensure_u64("lamports", self.lamports + amt)

    def debit(self, amount: int) -> None:
        """Decrease lamports by `amount`; raises InsufficientFunds if short."""
        amt = _ensure_u64("amount", int(amount))
        if self.lamports < amt:
            raise InsufficientFunds(required=amt, available=self.lamports)
        self.lamports -= amt

    def copy(self) -> "Account":
        return Account(lamports=self.lamports, owner=self.owner, data=self.data)

    def to_dict(self) -> dict:
        return {
            "lamports": self.lamports,
            "owner": str(self.owner),
            "data": self.data.hex(),
        }


__all__ = ["Account"]
