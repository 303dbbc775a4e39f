"""
ln_escrow.runtime.dispatcher — route a decoded instruction to its handler.

  - CreateEscrow / Claim / Refund          → ln_escrow.runtime.escrow
  - CreatePolicy / UpdatePolicy / Withdraw → ln_escrow.runtime.fee_policy

Handler modules are imported lazily at dispatch time so the codec and types can
be used (e.g. by the CLI) without pulling in the runtime.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import InvalidInstruction
from ..types.instruction import (
    Claim,
    CreateEscrow,
    CreatePolicy,
    Instruction,
    Refund,
    UpdatePolicy,
    WithdrawFees,
)

if TYPE_CHECKING:  # type-only imports to avoid import-time cost/cycles
    from .context import InvocationContext


def dispatch(ctx: "InvocationContext", ix: Instruction) -> None:
    """Run the handler for `ix` against `ctx`."""
    if isinstance(ix, (CreateEscrow, Claim, Refund)):
        from . import escrow as _escrow

        if isinstance(ix, CreateEscrow):
            return _escrow.create_escrow(ctx, ix)
        if isinstance(ix, Claim):
            return _escrow.claim(ctx, ix)
        return _escrow.refund(ctx, ix)

    if isinstance(ix, (CreatePolicy, UpdatePolicy, WithdrawFees)):
        from . import fee_policy as _policy

        if isinstance(ix, CreatePolicy):
            return _policy.create_policy(ctx, ix)
        if isinstance(ix, UpdatePolicy):
            return _policy.update_policy(ctx, ix)
        return _policy.withdraw_fees(ctx, ix)

    raise InvalidInstruction(f"no handler for {type(ix).__name__}")


__all__ = ["dispatch"]
