"""
ln_escrow.constants — protocol constants shared by every layer.

Values here are part of the on-ledger contract (seeds, layout versions, fee
cap) and must not change without a new record layout.
"""

from __future__ import annotations

from typing import Final

# Derived-address seed tags.
ESCROW_SEED: Final[bytes] = b"escrow"
CONFIG_SEED: Final[bytes] = b"config"
TRADE_CONFIG_SEED: Final[bytes] = b"trade_config"

# Fee rates are basis points (1/100 of a percent).
BPS_DENOMINATOR: Final[int] = 10_000
# 25% cap, applied to each policy and to the sum of both rates on one escrow.
MAX_FEE_BPS: Final[int] = 2_500

# Persisted layout versions (first byte of each record).
ESCROW_LAYOUT_VERSION: Final[int] = 3
POLICY_LAYOUT_VERSION: Final[int] = 1

# Integer widths used on the wire and in records.
U16_MAX: Final[int] = (1 << 16) - 1
U64_MAX: Final[int] = (1 << 64) - 1
I64_MIN: Final[int] = -(1 << 63)
I64_MAX: Final[int] = (1 << 63) - 1

PUBKEY_LEN: Final[int] = 32
HASH_LEN: Final[int] = 32

__all__ = [
    "ESCROW_SEED",
    "CONFIG_SEED",
    "TRADE_CONFIG_SEED",
    "BPS_DENOMINATOR",
    "MAX_FEE_BPS",
    "ESCROW_LAYOUT_VERSION",
    "POLICY_LAYOUT_VERSION",
    "U16_MAX",
    "U64_MAX",
    "I64_MIN",
    "I64_MAX",
    "PUBKEY_LEN",
    "HASH_LEN",
]
