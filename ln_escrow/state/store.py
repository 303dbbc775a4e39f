"""
ln_escrow.state.store — the journaled record store.

AccountStore is the account-model ledger the escrow program runs against:
addresses map to `Account` records (lamports, owner, data). It enforces the
host rules a program relies on:

- only the owning program may write an account's data, and only at the size
  it was allocated with;
- a new account is funded from a payer with the rent-exempt minimum for its
  size and is created with zeroed data;
- an address whose data is non-empty is "occupied".

All writes are journaled (see `ln_escrow.state.journal`), so a request's record
changes can be committed or reverted as a unit.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, MutableMapping, Optional, Tuple

from ..errors import AlreadyInitialized, InvalidAccountData
from ..types.pubkey import Pubkey, PubkeyLike
from .accounts import Account
from .journal import Journal
from .rent import Rent

log = logging.getLogger(__name__)

SYSTEM_PROGRAM_ID = Pubkey.default()


class AccountStore:
    """
    In-memory, journaled account store.

    Parameters
    ----------
    accounts : Optional[MutableMapping[Pubkey, Account]]
        Base mapping (persisted view). A fresh dict is used if omitted.
    """

    def __init__(self, accounts: Optional[MutableMapping[Pubkey, Account]] = None) -> None:
        self._base: MutableMapping[Pubkey, Account] = {} if accounts is None else accounts
        self._journal: Journal[Pubkey, Account] = Journal(self._base, copy=Account.copy)

    # --------------------------------------------------------------------- #
    # Transaction participation
    # --------------------------------------------------------------------- #

    def checkpoint(self) -> int:
        return self._journal.begin()

    def commit(self) -> None:
        self._journal.commit()
        if self._journal.depth() == 1:
            self._journal.flush()

    def revert(self) -> None:
        self._journal.revert()

    # --------------------------------------------------------------------- #
    # Reads
    # --------------------------------------------------------------------- #

    def get(self, address: PubkeyLike) -> Optional[Account]:
        return self._journal.get(Pubkey.coerce(address))

    def lamports(self, address: PubkeyLike) -> int:
        acc = self.get(address)
        return 0 if acc is None else acc.lamports

    def data(self, address: PubkeyLike) -> bytes:
        acc = self.get(address)
        return b"" if acc is None else acc.data

    def data_is_empty(self, address: PubkeyLike) -> bool:
        return len(self.data(address)) == 0

    def owner(self, address: PubkeyLike) -> Optional[Pubkey]:
        acc = self.get(address)
        return None if acc is None else acc.owner

    def items(self) -> Iterator[Tuple[Pubkey, Account]]:
        return self._journal.items()

    def snapshot(self) -> Dict[Pubkey, Account]:
        """Detached copy of the visible state (for tests and tooling)."""
        return {k: v.copy() for k, v in self.items()}

    # --------------------------------------------------------------------- #
    # Writes
    # --------------------------------------------------------------------- #

    def airdrop(self, address: PubkeyLike, lamports: int) -> Account:
        """Credit native lamports, creating a system-owned wallet if needed."""
        addr = Pubkey.coerce(address)
        acc = self._journal.get_for_write(addr)
        if acc is None:
            acc = Account(lamports=0, owner=SYSTEM_PROGRAM_ID)
            self._journal.put(addr, acc)
        acc.credit(lamports)
        return acc

    def create_account(
        self,
        *,
        payer: PubkeyLike,
        address: PubkeyLike,
        space: int,
        owner: PubkeyLike,
        rent: Rent,
    ) -> Account:
        """
        Allocate `space` zeroed bytes at `address`, owned by `owner`, funded with
        the rent-exempt minimum taken from `payer`.

        Raises:
            AlreadyInitialized if the address already holds data.
            InsufficientFunds if the payer cannot cover the rent.
        """
        addr = Pubkey.coerce(address)
        payer_key = Pubkey.coerce(payer)
        if not self.data_is_empty(addr):
            raise AlreadyInitialized("account already in use")
        lamports = rent.minimum_balance(space)
        payer_acc = self._journal.get_for_write(payer_key)
        if payer_acc is None:
            payer_acc = Account(lamports=0, owner=SYSTEM_PROGRAM_ID)
        payer_acc.debit(lamports)
        self._journal.put(payer_key, payer_acc)

        target = self._journal.get_for_write(addr)
        if target is None:
            target = Account(lamports=0, owner=SYSTEM_PROGRAM_ID)
            self._journal.put(addr, target)
        target.credit(lamports)
        target.owner = Pubkey.coerce(owner)
        target.data = bytes(space)
        log.debug("allocated %d bytes at %s (rent %d)", space, addr, lamports)
        return target

    def write_data(self, address: PubkeyLike, data: bytes, *, program_id: PubkeyLike) -> None:
        """
        Overwrite an account's data on behalf of `program_id`.

        Raises:
            InvalidAccountData if the program does not own the account or the
            data does not fit the allocation.
        """
        addr = Pubkey.coerce(address)
        acc = self._journal.get_for_write(addr)
        if acc is None:
            raise InvalidAccountData("account does not exist", address=str(addr))
        if acc.owner != Pubkey.coerce(program_id):
            raise InvalidAccountData("account not owned by program", address=str(addr))
        if len(data) > len(acc.data):
            raise InvalidAccountData(
                "data exceeds allocation",
                address=str(addr),
                data={"allocated": len(acc.data), "size": len(data)},
            )
        acc.data = bytes(data) + acc.data[len(data):]


__all__ = ["AccountStore", "SYSTEM_PROGRAM_ID"]
