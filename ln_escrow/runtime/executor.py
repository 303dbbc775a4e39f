"""
ln_escrow.runtime.executor — the request transaction boundary.

`Executor.execute(request)` runs one request as a single all-or-nothing unit:

  1. open a checkpoint on the record store and on the token ledger;
  2. decode the instruction and dispatch it to its handler;
  3. commit both on success, revert both on any failure.

Requests are serialized by a per-executor lock, so two requests never
interleave. Program errors come back as a FAILED InvocationResult carrying the
error payload (or are re-raised with `raise_on_error=True`); anything else is
re-raised after the rollback.

Every request is counted in `ln_escrow.metrics` by instruction and outcome.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Iterable, Optional

from ..config import EscrowConfig, get_config
from ..encoding.instruction import decode_instruction, encode_instruction
from ..errors import EscrowError
from ..metrics import observe_request
from ..state.store import AccountStore
from ..token.gateway import TransferGateway
from ..token.ledger import InMemoryTokenLedger, TokenLedger
from ..types.context import AccountMeta, Request
from ..types.instruction import Instruction, InstructionTag
from ..types.pubkey import Pubkey, PubkeyLike
from ..types.result import InvocationResult
from ..types.status import InvocationStatus
from .context import InvocationContext
from .dispatcher import dispatch

log = logging.getLogger(__name__)


def _system_clock() -> int:
    return int(time.time())


class Executor:
    """
    Host for the escrow program over a record store and a token ledger.

    Parameters
    ----------
    store : AccountStore
        Record store (a fresh one if omitted).
    ledger : TokenLedger
        Token ledger (a fresh InMemoryTokenLedger if omitted).
    config : EscrowConfig
        Program id and rent parameters (default: `get_config()`).
    program_id : Pubkey
        Overrides `config.program_id`.
    clock : Callable[[], int]
        Unix-seconds clock used when a request carries no timestamp.
    """

    def __init__(
        self,
        store: Optional[AccountStore] = None,
        ledger: Optional[TokenLedger] = None,
        *,
        config: Optional[EscrowConfig] = None,
        program_id: Optional[PubkeyLike] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.config = config or get_config()
        self.program_id = Pubkey.coerce(program_id) if program_id is not None else self.config.program_id
        self.store = store if store is not None else AccountStore()
        self.ledger = ledger if ledger is not None else InMemoryTokenLedger()
        self.clock = clock or _system_clock
        self._lock = threading.Lock()

    def execute(self, request: Request, *, raise_on_error: bool = False) -> InvocationResult:
        with self._lock:
            timestamp = request.timestamp if request.timestamp is not None else self.clock()
            ctx = InvocationContext(
                program_id=self.program_id,
                store=self.store,
                gateway=TransferGateway(self.ledger, program_id=self.program_id, signers=request.signers),
                accounts=request.accounts,
                timestamp=timestamp,
                rent=self.config.rent,
            )
            tag: Optional[int] = None
            t0 = time.perf_counter()

            self.store.checkpoint()
            self.ledger.checkpoint()
            try:
                ix = decode_instruction(request.data)
                tag = int(ix.tag)
                dispatch(ctx, ix)
            except EscrowError as e:
                self._rollback()
                log.info("request %s failed: %s", _tag_name(tag), e)
                self._observe(tag, "failed", ctx, t0)
                if raise_on_error:
                    raise
                return InvocationResult(
                    status=InvocationStatus.FAILED,
                    tag=tag,
                    logs=tuple(ctx.logs),
                    error=e.to_dict(),
                )
            except Exception:
                self._rollback()
                log.exception("request %s aborted by unexpected error", _tag_name(tag))
                self._observe(tag, "aborted", ctx, t0)
                raise

            self.store.commit()
            self.ledger.commit()
            log.info("request %s ok", _tag_name(tag))
            self._observe(tag, "success", ctx, t0)
            return InvocationResult(status=InvocationStatus.SUCCESS, tag=tag, logs=tuple(ctx.logs))

    def invoke(
        self,
        ix: Instruction,
        accounts: Iterable[AccountMeta],
        *,
        timestamp: Optional[int] = None,
        raise_on_error: bool = False,
    ) -> InvocationResult:
        """Encode `ix` and execute it with `accounts`."""
        request = Request(accounts=tuple(accounts), data=encode_instruction(ix), timestamp=timestamp)
        return self.execute(request, raise_on_error=raise_on_error)

    def _rollback(self) -> None:
        self.store.revert()
        self.ledger.revert()

    def _observe(self, tag: Optional[int], result: str, ctx: InvocationContext, t0: float) -> None:
        observe_request(
            instruction=_tag_name(tag),
            result=result,
            logs_emitted=len(ctx.logs),
            seconds=time.perf_counter() - t0,
        )


def _tag_name(tag: Optional[int]) -> str:
    return "undecodable" if tag is None else InstructionTag(tag).name.lower()


__all__ = ["Executor"]
