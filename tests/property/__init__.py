"""
tests.property package bootstrap.

Registers the Hypothesis profiles used by the property suites and selects one:
HYPOTHESIS_PROFILE wins, otherwise "ci" when the CI env var is truthy and
"dev" locally.

Usage in tests:
    from tests.property import st, given

    @given(st.integers(min_value=0))
    def test_something(n):
        ...
"""
from __future__ import annotations

import os
from typing import Final, Tuple

from hypothesis import HealthCheck, Verbosity, given, settings
from hypothesis import strategies as st

from ln_escrow.constants import MAX_FEE_BPS, U64_MAX
from ln_escrow.types.pubkey import Pubkey


def _hc(*items: HealthCheck) -> Tuple[HealthCheck, ...]:
    return items


settings.register_profile(
    "dev",
    settings(
        max_examples=100,
        deadline=None,
        suppress_health_check=_hc(HealthCheck.too_slow),
        verbosity=Verbosity.normal,
    ),
)

settings.register_profile(
    "ci",
    settings(
        max_examples=300,
        deadline=None,
        suppress_health_check=_hc(HealthCheck.too_slow),
        verbosity=Verbosity.verbose,
        derandomize=True,
    ),
)

settings.register_profile(
    "fast",
    settings(max_examples=25, deadline=None, suppress_health_check=_hc(HealthCheck.too_slow)),
)


def _env_truthy(name: str) -> bool:
    v = os.getenv(name)
    return (v or "").lower() not in ("", "0", "false", "no", "off")


_active: Final[str] = os.getenv("HYPOTHESIS_PROFILE") or ("ci" if _env_truthy("CI") else "dev")
settings.load_profile(_active)


# ---- shared strategies -------------------------------------------------------

u64 = st.integers(min_value=0, max_value=U64_MAX)
fee_bps = st.integers(min_value=0, max_value=MAX_FEE_BPS)
pubkeys = st.binary(min_size=32, max_size=32).map(Pubkey)
hashes = st.binary(min_size=32, max_size=32)


def active_profile() -> str:
    return _active


__all__ = ["st", "given", "active_profile", "u64", "fee_bps", "pubkeys", "hashes"]
