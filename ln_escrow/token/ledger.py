"""
ln_escrow.token.ledger — the external token ledger, seen through a narrow port.

The escrow program never stores token balances itself. It reads token accounts
(mint, owner, amount), asks for associated accounts to be created, and moves
balances, all through the `TokenLedger` protocol below. Authorization of a
transfer (who may move a source account's tokens) is enforced one level up, in
`ln_escrow.token.gateway`; the ledger itself only enforces balance and mint
consistency.

`InMemoryTokenLedger` is the reference implementation used by the executor and
the tests. It is journaled so it takes part in the request transaction
boundary.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, MutableMapping, Optional, Protocol, Tuple, runtime_checkable

from ..constants import U64_MAX
from ..errors import TokenError
from ..state.journal import Journal
from ..types.pubkey import Pubkey, PubkeyLike

log = logging.getLogger(__name__)


@dataclass(slots=True)
class TokenAccount:
    mint: Pubkey
    owner: Pubkey
    amount: int = 0

    def copy(self) -> "TokenAccount":
        return TokenAccount(mint=self.mint, owner=self.owner, amount=self.amount)

    def to_dict(self) -> dict:
        return {"mint": str(self.mint), "owner": str(self.owner), "amount": self.amount}


@runtime_checkable
class TokenLedger(Protocol):
    def get_account(self, address: Pubkey) -> Optional[TokenAccount]: ...

    def create_account(self, address: Pubkey, *, owner: Pubkey, mint: Pubkey) -> TokenAccount: ...

    def transfer(self, source: Pubkey, destination: Pubkey, amount: int) -> None: ...

    def checkpoint(self) -> int: ...

    def commit(self) -> None: ...

    def revert(self) -> None: ...


class InMemoryTokenLedger:
    """Journaled dict-backed ledger of token accounts."""

    def __init__(self, accounts: Optional[MutableMapping[Pubkey, TokenAccount]] = None) -> None:
        self._base: MutableMapping[Pubkey, TokenAccount] = {} if accounts is None else accounts
        self._journal: Journal[Pubkey, TokenAccount] = Journal(self._base, copy=TokenAccount.copy)

    # ---------------------------------------------------------------- txn

    def checkpoint(self) -> int:
        return self._journal.begin()

    def commit(self) -> None:
        self._journal.commit()
        if self._journal.depth() == 1:
            self._journal.flush()

    def revert(self) -> None:
        self._journal.revert()

    # ---------------------------------------------------------------- reads

    def get_account(self, address: PubkeyLike) -> Optional[TokenAccount]:
        return self._journal.get(Pubkey.coerce(address))

    def balance(self, address: PubkeyLike) -> int:
        acc = self.get_account(address)
        return 0 if acc is None else acc.amount

    def items(self) -> Iterator[Tuple[Pubkey, TokenAccount]]:
        return self._journal.items()

    def total_supply(self, mint: PubkeyLike) -> int:
        m = Pubkey.coerce(mint)
        return sum(acc.amount for _, acc in self.items() if acc.mint == m)

    # ---------------------------------------------------------------- writes

    def create_account(self, address: PubkeyLike, *, owner: PubkeyLike, mint: PubkeyLike) -> TokenAccount:
        addr = Pubkey.coerce(address)
        if self.get_account(addr) is not None:
            raise TokenError("token account already exists", data={"address": str(addr)})
        acc = TokenAccount(mint=Pubkey.coerce(mint), owner=Pubkey.coerce(owner), amount=0)
        self._journal.put(addr, acc)
        log.debug("token account %s created (owner=%s mint=%s)", addr, acc.owner, acc.mint)
        return acc

    def mint_to(self, address: PubkeyLike, amount: int) -> None:
        """Credit new supply (test/simulation funding)."""
        acc = self._journal.get_for_write(Pubkey.coerce(address))
        if acc is None:
            raise TokenError("unknown token account", data={"address": str(address)})
        if amount < 0 or acc.amount + amount > U64_MAX:
            raise TokenError("mint amount out of range")
        acc.amount += amount

    def transfer(self, source: PubkeyLike, destination: PubkeyLike, amount: int) -> None:
        src_key = Pubkey.coerce(source)
        dst_key = Pubkey.coerce(destination)
        if amount < 0 or amount > U64_MAX:
            raise TokenError("transfer amount out of range", data={"amount": amount})
        src = self._journal.get_for_write(src_key)
        dst = self._journal.get_for_write(dst_key)
        if src is None or dst is None:
            raise TokenError(
                "unknown token account",
                data={"source": str(src_key), "destination": str(dst_key)},
            )
        if src.mint != dst.mint:
            raise TokenError("mint mismatch between source and destination")
        if src.amount < amount:
            raise TokenError(
                "insufficient funds", data={"balance": src.amount, "amount": amount}
            )
        if src_key == dst_key:
            return
        if dst.amount + amount > U64_MAX:
            raise TokenError("destination balance overflow")
        src.amount -= amount
        dst.amount += amount


__all__ = ["TokenAccount", "TokenLedger", "InMemoryTokenLedger"]
