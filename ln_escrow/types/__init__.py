"""
ln_escrow.types — value types shared across the package.

  - pubkey       : Pubkey (32-byte identity, base58 text form)
  - status       : EscrowStatus, InvocationStatus
  - records      : EscrowRecord / FeePolicy fixed layouts
  - instruction  : decoded request types and tags
  - context      : AccountMeta and Request envelopes
  - result       : InvocationResult
"""

from .pubkey import Pubkey
from .status import EscrowStatus, InvocationStatus

__all__ = ["Pubkey", "EscrowStatus", "InvocationStatus"]
