"""
ln_escrow.runtime.fees — fee-split arithmetic.

Each fee is `amount * bps // 10_000`, computed at arbitrary precision and
floored, and must fit in a u64. The payer deposits `amount` plus both fees; the
recipient of a claim receives exactly `amount`.

    >>> split_fees(1_000_000, 100, 50)
    FeeSplit(net=1000000, platform_fee=10000, trade_fee=5000)
    >>> split_fees(1_000_000, 100, 50).total
    1015000
"""

from __future__ import annotations

from dataclasses import dataclass

from ..constants import BPS_DENOMINATOR, MAX_FEE_BPS, U64_MAX
from ..errors import FeeTooHigh, InvalidInstruction


def fee_amount(amount: int, bps: int) -> int:
    """Floor of `amount * bps / 10_000`; InvalidInstruction if it exceeds u64."""
    if amount < 0 or bps < 0:
        raise ValueError("amount and bps must be non-negative")
    fee = amount * bps // BPS_DENOMINATOR
    if fee > U64_MAX:
        raise InvalidInstruction("fee overflows u64")
    return fee


def check_rate(bps: int) -> int:
    if bps > MAX_FEE_BPS:
        raise FeeTooHigh(f"fee rate {bps} bps exceeds {MAX_FEE_BPS}")
    return bps


def check_combined_rate(platform_bps: int, trade_bps: int) -> int:
    total = platform_bps + trade_bps
    if total > MAX_FEE_BPS:
        raise FeeTooHigh(f"combined fee rate {total} bps exceeds {MAX_FEE_BPS}")
    return total


@dataclass(frozen=True)
class FeeSplit:
    net: int
    platform_fee: int
    trade_fee: int

    @property
    def total(self) -> int:
        return self.net + self.platform_fee + self.trade_fee


def split_fees(amount: int, platform_bps: int, trade_bps: int) -> FeeSplit:
    """
    Fees owed on a deposit of `amount`.

    Raises:
        InvalidInstruction if either fee or the total would not fit in a u64.
    """
    split = FeeSplit(
        net=amount,
        platform_fee=fee_amount(amount, platform_bps),
        trade_fee=fee_amount(amount, trade_bps),
    )
    if split.total > U64_MAX:
        raise InvalidInstruction("deposit total overflows u64")
    return split


__all__ = ["fee_amount", "check_rate", "check_combined_rate", "FeeSplit", "split_fees"]
