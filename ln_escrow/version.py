"""
ln_escrow.version — semantic version string and build metadata.

Usage:
    from ln_escrow.version import __version__, version_metadata
"""

from __future__ import annotations

from functools import lru_cache
from typing import Dict

from .constants import ESCROW_LAYOUT_VERSION, POLICY_LAYOUT_VERSION

# Bump this when making a tagged release. Use semver (major.minor.patch).
__version__ = "0.3.0"


@lru_cache(maxsize=1)
def version_metadata() -> Dict[str, str]:
    """
    Structured version info for logs / diagnostics.

    Keys:
        version          -> package version
        escrow_layout    -> persisted escrow record layout version
        policy_layout    -> persisted fee policy record layout version
    """
    return {
        "version": __version__,
        "escrow_layout": str(ESCROW_LAYOUT_VERSION),
        "policy_layout": str(POLICY_LAYOUT_VERSION),
    }


__all__ = ["__version__", "version_metadata"]
