"""
ln_escrow.config — runtime configuration for the escrow program host.

Knobs:
  • Program id the escrow program runs under (derived addresses depend on it)
  • Rent parameters used to fund new records
  • Log level for the CLI

The fee cap is a protocol constant (`ln_escrow.constants.MAX_FEE_BPS`), not a
setting.

Environment variables (all optional):
  LN_ESCROW_PROGRAM_ID                -> base58 program id (default: deployed id)
  LN_ESCROW_LAMPORTS_PER_BYTE_YEAR    -> integer (default: 3480)
  LN_ESCROW_RENT_EXEMPTION_THRESHOLD  -> float (default: 2.0)
  LN_ESCROW_LOG_LEVEL                 -> logging level name (default: WARNING)

Programmatic usage:
    from ln_escrow.config import get_config
    cfg = get_config()
    executor = Executor(store, ledger, config=cfg)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Mapping, Optional, Union

from .address.pda import DEFAULT_PROGRAM_ID
from .state.rent import DEFAULT_EXEMPTION_THRESHOLD, DEFAULT_LAMPORTS_PER_BYTE_YEAR, Rent
from .types.pubkey import Pubkey

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _parse_log_level(value: Union[str, int]) -> str:
    if isinstance(value, int):
        name = logging.getLevelName(value)
        if name not in _LOG_LEVELS:
            raise ValueError(f"invalid log level: {value!r}")
        return name
    v = str(value).strip().upper()
    if v == "WARN":
        v = "WARNING"
    if v not in _LOG_LEVELS:
        raise ValueError(f"invalid log level: {value!r}")
    return v


# ------------------------------ dataclasses ---------------------------------


@dataclass(frozen=True)
class EscrowConfig:
    program_id: Pubkey = DEFAULT_PROGRAM_ID
    rent: Rent = Rent()
    log_level: str = "WARNING"

    @property
    def log_level_no(self) -> int:
        return logging.getLevelName(self.log_level)

    def to_dict(self) -> Dict[str, object]:
        return {
            "program_id": str(self.program_id),
            "rent": {
                "lamports_per_byte_year": self.rent.lamports_per_byte_year,
                "exemption_threshold": self.rent.exemption_threshold,
            },
            "log_level": self.log_level,
        }


# ------------------------------ loader --------------------------------------


def load_config(
    env: Optional[Mapping[str, str]] = None,
    *,
    overrides: Optional[Mapping[str, Union[str, int, float, Pubkey]]] = None,
) -> EscrowConfig:
    """
    Build an EscrowConfig from environment and optional overrides.

    Args:
        env: mapping to read variables from (default: os.environ)
        overrides: explicit field overrides; keys support:
          'program_id', 'lamports_per_byte_year', 'exemption_threshold', 'log_level'
    """
    env = os.environ if env is None else env
    overrides = dict(overrides or {})

    raw_pid = overrides.get("program_id", env.get("LN_ESCROW_PROGRAM_ID"))
    if raw_pid is None:
        program_id = DEFAULT_PROGRAM_ID
    elif isinstance(raw_pid, (bytes, bytearray)):
        program_id = Pubkey.coerce(raw_pid)
    else:
        program_id = Pubkey.from_string(str(raw_pid).strip())

    rent = Rent(
        lamports_per_byte_year=int(
            overrides.get(
                "lamports_per_byte_year",
                env.get("LN_ESCROW_LAMPORTS_PER_BYTE_YEAR", DEFAULT_LAMPORTS_PER_BYTE_YEAR),
            )
        ),
        exemption_threshold=float(
            overrides.get(
                "exemption_threshold",
                env.get("LN_ESCROW_RENT_EXEMPTION_THRESHOLD", DEFAULT_EXEMPTION_THRESHOLD),
            )
        ),
    )

    log_level = _parse_log_level(
        overrides.get("log_level", env.get("LN_ESCROW_LOG_LEVEL", "WARNING"))
    )

    return EscrowConfig(program_id=program_id, rent=rent, log_level=log_level)


@lru_cache(maxsize=1)
def get_config() -> EscrowConfig:
    """
    Cached global config. Suitable for application bootstraps and module-level consumers.
    """
    return load_config()


def summary(cfg: Optional[EscrowConfig] = None) -> str:
    """One-line summary of the active configuration."""
    cfg = cfg or get_config()
    return (
        "ln_escrow{"
        f"program={cfg.program_id}, "
        f"rent={cfg.rent.lamports_per_byte_year}x{cfg.rent.exemption_threshold:g}, "
        f"log={cfg.log_level}"
        "}"
    )


__all__ = ["EscrowConfig", "load_config", "get_config", "summary"]
