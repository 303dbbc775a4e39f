"""
ln_escrow.state — in-process record store.

  - accounts : Account record (lamports, owner, data)
  - journal  : nested copy-on-write checkpoints over any keyed mapping
  - rent     : rent-exempt minimum for a record of a given size
  - store    : AccountStore, the journaled record store the program runs against
"""

from .accounts import Account
from .journal import Journal
from .rent import Rent
from .store import AccountStore, SYSTEM_PROGRAM_ID

__all__ = ["Account", "Journal", "Rent", "AccountStore", "SYSTEM_PROGRAM_ID"]
