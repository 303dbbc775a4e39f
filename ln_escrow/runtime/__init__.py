"""
ln_escrow.runtime — handlers and the request boundary.

  - context     : InvocationContext (accounts cursor, program log, signer checks)
  - fees        : fee-split arithmetic
  - fee_policy  : platform / trade fee policy create, update, withdraw
  - escrow      : escrow create, claim, refund
  - dispatcher  : decoded instruction → handler
  - executor    : Executor, the all-or-nothing request boundary
"""

from .context import InvocationContext
from .executor import Executor

__all__ = ["InvocationContext", "Executor"]
