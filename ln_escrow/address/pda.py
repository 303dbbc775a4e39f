"""
ln_escrow.address.pda — program-derived addresses.

    create_program_address(seeds, program_id)
        = sha256(seed_0 || … || seed_n || program_id || "ProgramDerivedAddress")
        rejected when the digest is a valid ed25519 point (it would then have a
        private key, and a derived address must only be signable by the program)

    find_program_address(seeds, program_id) -> (address, bump)
        tries bump = 255, 254, …, 1 appended as a final one-byte seed and returns
        the first off-curve result

Seeds used by the escrow program:

    escrow          ("escrow", payment_hash)
    platform policy ("config",)                      global singleton
    trade policy    ("trade_config", fee_collector)

Token holding accounts are the canonical association of (owner, mint), derived
under the associated-token program with seeds (owner, token_program, mint).
"""

from __future__ import annotations

import hashlib
from functools import lru_cache
from typing import Final, Iterable, Optional, Sequence, Tuple

from ..constants import CONFIG_SEED, ESCROW_SEED, HASH_LEN, TRADE_CONFIG_SEED
from ..types.instruction import PolicyKind
from ..types.pubkey import Pubkey
from ..utils.bytes import BytesLike
from .curve import is_on_curve

MAX_SEED_LEN: Final[int] = 32
MAX_SEEDS: Final[int] = 16
PDA_MARKER: Final[bytes] = b"ProgramDerivedAddress"

# Deployed escrow program id; overridable via ln_escrow.config.
DEFAULT_PROGRAM_ID: Final[Pubkey] = Pubkey.from_string("4RS6xpspM1V2K7FKSqeSH6VVaZbtzHzhJqacwrz8gJrF")
TOKEN_PROGRAM_ID: Final[Pubkey] = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
ASSOCIATED_TOKEN_PROGRAM_ID: Final[Pubkey] = Pubkey.from_string(
    "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"
)


class InvalidSeeds(ValueError):
    """Seeds are malformed or hash to an on-curve point."""


def _normalize_seeds(seeds: Iterable[BytesLike]) -> Tuple[bytes, ...]:
    out = tuple(bytes(s) for s in seeds)
    if len(out) > MAX_SEEDS:
        raise InvalidSeeds(f"at most {MAX_SEEDS} seeds allowed (got {len(out)})")
    for s in out:
        if len(s) > MAX_SEED_LEN:
            raise InvalidSeeds(f"seed longer than {MAX_SEED_LEN} bytes")
    return out


def _digest(seeds: Sequence[bytes], program_id: bytes) -> bytes:
    h = hashlib.sha256()
    for s in seeds:
        h.update(s)
    h.update(program_id)
    h.update(PDA_MARKER)
    return h.digest()


def create_program_address(seeds: Iterable[BytesLike], program_id: BytesLike) -> Pubkey:
    """
    Address for an explicit seed list (bump included by the caller).

    Raises:
        InvalidSeeds if the seeds are malformed or the result lies on the curve.
    """
    norm = _normalize_seeds(seeds)
    digest = _digest(norm, bytes(program_id))
    if is_on_curve(digest):
        raise InvalidSeeds("derived address lies on the ed25519 curve")
    return Pubkey(digest)


def try_create_program_address(
    seeds: Iterable[BytesLike], program_id: BytesLike
) -> Optional[Pubkey]:
    try:
        return create_program_address(seeds, program_id)
    except InvalidSeeds:
        return None


@lru_cache(maxsize=4096)
def _find(seeds: Tuple[bytes, ...], program_id: bytes) -> Tuple[Pubkey, int]:
    if len(seeds) + 1 > MAX_SEEDS:
        raise InvalidSeeds("no room for the bump seed")
    for bump in range(255, 0, -1):
        digest = _digest(seeds + (bytes([bump]),), program_id)
        if not is_on_curve(digest):
            return Pubkey(digest), bump
    raise InvalidSeeds("unable to find a viable bump seed")  # pragma: no cover - astronomically unlikely


def find_program_address(
    seeds: Iterable[BytesLike], program_id: BytesLike
) -> Tuple[Pubkey, int]:
    """
    Deterministically derive `(address, bump)` for `seeds` under `program_id`.

    The same inputs always give the same pair, so any component can re-derive an
    address instead of trusting one handed to it.
    """
    return _find(_normalize_seeds(seeds), bytes(program_id))


# ----------------------------------------------------------------------------
# Escrow program seeds
# ----------------------------------------------------------------------------


def escrow_address(program_id: BytesLike, payment_hash: BytesLike) -> Tuple[Pubkey, int]:
    ph = bytes(payment_hash)
    if len(ph) != HASH_LEN:
        raise InvalidSeeds("payment hash must be 32 bytes")
    return find_program_address((ESCROW_SEED, ph), program_id)


def platform_policy_address(program_id: BytesLike) -> Tuple[Pubkey, int]:
    return find_program_address((CONFIG_SEED,), program_id)


def trade_policy_address(program_id: BytesLike, fee_collector: BytesLike) -> Tuple[Pubkey, int]:
    return find_program_address((TRADE_CONFIG_SEED, bytes(fee_collector)), program_id)


def policy_address(
    program_id: BytesLike, kind: PolicyKind, fee_collector: Optional[BytesLike] = None
) -> Tuple[Pubkey, int]:
    """Either policy's address; `fee_collector` keys trade policies only."""
    if kind is PolicyKind.PLATFORM:
        return platform_policy_address(program_id)
    if fee_collector is None:
        raise InvalidSeeds("trade policy address needs a fee collector")
    return trade_policy_address(program_id, fee_collector)


def associated_token_address(
    owner: BytesLike,
    mint: BytesLike,
    *,
    token_program_id: BytesLike = TOKEN_PROGRAM_ID,
    associated_program_id: BytesLike = ASSOCIATED_TOKEN_PROGRAM_ID,
) -> Pubkey:
    """Canonical token holding account for (owner, mint)."""
    addr, _ = find_program_address(
        (bytes(owner), bytes(token_program_id), bytes(mint)), associated_program_id
    )
    return addr


__all__ = [
    "MAX_SEED_LEN",
    "MAX_SEEDS",
    "PDA_MARKER",
    "DEFAULT_PROGRAM_ID",
    "TOKEN_PROGRAM_ID",
    "ASSOCIATED_TOKEN_PROGRAM_ID",
    "InvalidSeeds",
    "create_program_address",
    "try_create_program_address",
    "find_program_address",
    "escrow_address",
    "platform_policy_address",
    "trade_policy_address",
    "policy_address",
    "associated_token_address",
]
