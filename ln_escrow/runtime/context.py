"""
ln_escrow.runtime.context — per-request invocation context handed to handlers.

Handlers consume the request's accounts positionally (`next_account`) and use
the context for everything else: the record store, the transfer gateway, the
clock, rent parameters and the program log.

Program log lines are kept on the context (they end up in the request's
InvocationResult, failed or not) and mirrored to the module logger at DEBUG.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence, TypeVar

from ..errors import EscrowError, InvalidAccountData, InvalidSigner, NotEnoughAccountKeys
from ..state.rent import Rent
from ..state.store import AccountStore
from ..token.gateway import TransferGateway
from ..types.context import AccountMeta
from ..types.pubkey import Pubkey

log = logging.getLogger(__name__)

E = TypeVar("E", bound=EscrowError)


@dataclass
class InvocationContext:
    program_id: Pubkey
    store: AccountStore
    gateway: TransferGateway
    accounts: Sequence[AccountMeta]
    timestamp: int
    rent: Rent = field(default_factory=Rent)
    logs: List[str] = field(default_factory=list)
    _cursor: int = field(default=0, init=False, repr=False)

    def next_account(self) -> AccountMeta:
        if self._cursor >= len(self.accounts):
            raise NotEnoughAccountKeys(
                data={"needed": self._cursor + 1, "provided": len(self.accounts)}
            )
        meta = self.accounts[self._cursor]
        self._cursor += 1
        return meta

    def msg(self, text: str) -> None:
        self.logs.append(text)
        log.debug("program log: %s", text)

    def fail(self, err: E) -> E:
        """Log the error's message to the program log and hand it back for raising."""
        self.msg(err.message)
        return err

    def assert_signer(self, meta: AccountMeta) -> None:
        if not meta.is_signer:
            raise self.fail(InvalidSigner(f"{meta.pubkey} must sign"))

    def assert_writable(self, meta: AccountMeta) -> None:
        if not meta.is_writable:
            raise self.fail(InvalidAccountData("account must be writable", address=str(meta.pubkey)))


__all__ = ["InvocationContext"]
