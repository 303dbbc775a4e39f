"""
ln_escrow.state.rent — rent-exempt minimum balance.

    minimum_balance(space) = (ACCOUNT_STORAGE_OVERHEAD + space)
                             * lamports_per_byte_year * exemption_threshold

New records are funded with exactly this amount from the payer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

ACCOUNT_STORAGE_OVERHEAD: Final[int] = 128
DEFAULT_LAMPORTS_PER_BYTE_YEAR: Final[int] = 3_480
DEFAULT_EXEMPTION_THRESHOLD: Final[float] = 2.0


@dataclass(frozen=True)
class Rent:
    lamports_per_byte_year: int = DEFAULT_LAMPORTS_PER_BYTE_YEAR
    exemption_threshold: float = DEFAULT_EXEMPTION_THRESHOLD

    def __post_init__(self) -> None:
        if self.lamports_per_byte_year < 0:
            raise ValueError("lamports_per_byte_year must be ≥ 0")
        if self.exemption_threshold < 0:
            raise ValueError("exemption_threshold must be ≥ 0")

    def minimum_balance(self, space: int) -> int:
        if space < 0:
            raise ValueError("space must be ≥ 0")
        bytes_total = ACCOUNT_STORAGE_OVERHEAD + space
        return int(bytes_total * self.lamports_per_byte_year * self.exemption_threshold)


__all__ = ["Rent", "ACCOUNT_STORAGE_OVERHEAD"]
