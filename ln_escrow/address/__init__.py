"""
ln_escrow.address — deterministic address derivation and validation.

Pure, side-effect-free helpers shared by every handler:

  - create_program_address / find_program_address : seed → (address, bump)
  - escrow_address / platform_policy_address / trade_policy_address
  - associated_token_address : canonical token holding account of (owner, mint)
  - is_on_curve : ed25519 point test used to keep derived addresses keyless
"""

from .curve import is_on_curve
from .pda import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    DEFAULT_PROGRAM_ID,
    MAX_SEED_LEN,
    MAX_SEEDS,
    TOKEN_PROGRAM_ID,
    InvalidSeeds,
    associated_token_address,
    create_program_address,
    escrow_address,
    find_program_address,
    platform_policy_address,
    policy_address,
    trade_policy_address,
)

__all__ = [
    "is_on_curve",
    "ASSOCIATED_TOKEN_PROGRAM_ID",
    "DEFAULT_PROGRAM_ID",
    "MAX_SEED_LEN",
    "MAX_SEEDS",
    "TOKEN_PROGRAM_ID",
    "InvalidSeeds",
    "associated_token_address",
    "create_program_address",
    "escrow_address",
    "find_program_address",
    "platform_policy_address",
    "policy_address",
    "trade_policy_address",
]
