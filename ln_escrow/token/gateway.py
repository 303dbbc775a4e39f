"""
ln_escrow.token.gateway — the program's single path to the token ledger.

A TransferGateway is bound to one request: it knows which identities signed it
and which program is running, and it refuses any transfer whose source account
is not controlled by one of those.

Transfer authorization
----------------------
The source token account's owner must equal `authority`, and `authority` must
either have signed the request or be a derived address the program proves by
supplying the seeds (bump included) that produce it under its own program id.
That second form is how escrow vaults and fee vaults, which are owned by
derived addresses with no private key, are debited.

Every refusal raises `TokenError`; the executor rolls the whole request back.
"""

from __future__ import annotations

import logging
from typing import AbstractSet, Optional, Sequence, Type

from ..address.pda import InvalidSeeds, associated_token_address, create_program_address
from ..errors import EscrowError, InvalidTokenAccount, TokenError
from ..types.pubkey import Pubkey, PubkeyLike
from ..utils.bytes import BytesLike
from .ledger import TokenAccount, TokenLedger

log = logging.getLogger(__name__)


class TransferGateway:
    def __init__(
        self,
        ledger: TokenLedger,
        *,
        program_id: PubkeyLike,
        signers: AbstractSet[Pubkey] = frozenset(),
    ) -> None:
        self.ledger = ledger
        self.program_id = Pubkey.coerce(program_id)
        self.signers = frozenset(signers)

    # ---------------------------------------------------------------- reads

    def exists(self, address: PubkeyLike) -> bool:
        return self.ledger.get_account(Pubkey.coerce(address)) is not None

    def load(
        self,
        address: PubkeyLike,
        *,
        error: Type[EscrowError] = InvalidTokenAccount,
        message: Optional[str] = None,
    ) -> TokenAccount:
        """Token account at `address`, or raise `error` if there is none."""
        acc = self.ledger.get_account(Pubkey.coerce(address))
        if acc is None:
            raise error(message or f"no token account at {Pubkey.coerce(address)}")
        return acc

    # ---------------------------------------------------------------- writes

    def create_associated_account(
        self, address: PubkeyLike, *, owner: PubkeyLike, mint: PubkeyLike
    ) -> TokenAccount:
        """Create the canonical holding account of (owner, mint) at `address`."""
        addr = Pubkey.coerce(address)
        expected = associated_token_address(owner, mint)
        if addr != expected:
            raise TokenError(
                "address is not the associated token account",
                data={"address": str(addr), "expected": str(expected)},
            )
        acc = self.ledger.create_account(addr, owner=Pubkey.coerce(owner), mint=Pubkey.coerce(mint))
        log.debug("created associated token account %s", addr)
        return acc

    def transfer(
        self,
        source: PubkeyLike,
        destination: PubkeyLike,
        *,
        authority: PubkeyLike,
        amount: int,
        signer_seeds: Optional[Sequence[BytesLike]] = None,
    ) -> None:
        """
        Move `amount` from `source` to `destination` on behalf of `authority`.

        `signer_seeds` are the derivation seeds (bump last) when `authority` is
        one of this program's derived addresses rather than a request signer.
        """
        src_key = Pubkey.coerce(source)
        auth = Pubkey.coerce(authority)
        src = self.ledger.get_account(src_key)
        if src is None:
            raise TokenError("unknown source token account", data={"source": str(src_key)})
        if src.owner != auth:
            raise TokenError(
                "source owner does not match authority",
                data={"owner": str(src.owner), "authority": str(auth)},
            )
        self._authorize(auth, signer_seeds)
        self.ledger.transfer(src_key, Pubkey.coerce(destination), amount)
        log.debug("transfer %d %s -> %s", amount, src_key, Pubkey.coerce(destination))

    # ---------------------------------------------------------------- internal

    def _authorize(self, authority: Pubkey, signer_seeds: Optional[Sequence[BytesLike]]) -> None:
        if signer_seeds is None:
            if authority not in self.signers:
                raise TokenError("authority did not sign", data={"authority": str(authority)})
            return
        try:
            derived = create_program_address(signer_seeds, self.program_id)
        except InvalidSeeds as e:
            raise TokenError(f"invalid signer seeds: {e}") from e
        if derived != authority:
            raise TokenError(
                "signer seeds do not derive the authority",
                data={"authority": str(authority), "derived": str(derived)},
            )


__all__ = ["TransferGateway"]
