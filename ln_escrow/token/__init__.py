"""
ln_escrow.token — token ledger interface and the program-side transfer gateway.

  - ledger  : TokenAccount, the TokenLedger protocol and InMemoryTokenLedger
  - gateway : TransferGateway, the only path through which handlers move tokens
"""

from .gateway import TransferGateway
from .ledger import InMemoryTokenLedger, TokenAccount, TokenLedger

__all__ = ["TransferGateway", "InMemoryTokenLedger", "TokenAccount", "TokenLedger"]
