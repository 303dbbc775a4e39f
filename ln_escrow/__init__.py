"""
ln_escrow — hash-locked token escrow with a two-way fee split.

The package hosts the escrow program (instruction decoder, derived-address
validation, fee policies, escrow lifecycle) together with the pieces needed to
run it deterministically in-process: a journaled record store, a token ledger
adapter and an executor that applies one request as an all-or-nothing unit.

Import-time cost is kept small; pull the executor or handlers from their
subpackages explicitly.
"""

from .version import __version__, version_metadata

__all__ = ["__version__", "version_metadata"]
