"""
ln_escrow.encoding.instruction — binary request codec.

Layout: one tag byte followed by fixed-width little-endian fields.

    tag  name                     fields
    ---  -----------------------  --------------------------------------------
    0    create escrow            payment_hash[32] recipient[32] refund[32]
                                  refund_after:i64 amount:u64
                                  expected_platform_fee_bps:u16
                                  expected_trade_fee_bps:u16
                                  trade_fee_collector[32]
    1    claim                    preimage[32]
    2    refund                   —
    3/6  create platform/trade    fee_collector[32] fee_bps:u16
    4/7  update platform/trade    fee_collector[32] fee_bps:u16
    5/8  withdraw platform/trade  amount:u64

Decoding is a single forward scan. An empty buffer, an unknown tag or a buffer
shorter than the tag demands raises `InvalidInstruction`; bytes past the last
field are ignored.
"""

from __future__ import annotations

import struct
from typing import Callable, Dict, Tuple

from ..constants import I64_MAX, I64_MIN, U16_MAX, U64_MAX
from ..errors import InvalidInstruction
from ..types.instruction import (
    Claim,
    CreateEscrow,
    CreatePolicy,
    Instruction,
    InstructionTag,
    PolicyKind,
    Refund,
    UpdatePolicy,
    WithdrawFees,
)
from ..types.pubkey import Pubkey
from ..utils.bytes import BytesLike

_U16 = struct.Struct("<H")
_U64 = struct.Struct("<Q")
_I64 = struct.Struct("<q")

# Payload sizes (excluding the tag byte).
_PAYLOAD_LEN: Dict[InstructionTag, int] = {
    InstructionTag.CREATE_ESCROW: 32 + 32 + 32 + 8 + 8 + 2 + 2 + 32,
    InstructionTag.CLAIM: 32,
    InstructionTag.REFUND: 0,
    InstructionTag.CREATE_PLATFORM_POLICY: 34,
    InstructionTag.UPDATE_PLATFORM_POLICY: 34,
    InstructionTag.WITHDRAW_PLATFORM_FEES: 8,
    InstructionTag.CREATE_TRADE_POLICY: 34,
    InstructionTag.UPDATE_TRADE_POLICY: 34,
    InstructionTag.WITHDRAW_TRADE_FEES: 8,
}


def expected_length(tag: int) -> int:
    """Minimum total buffer length (tag byte included) for `tag`."""
    try:
        return 1 + _PAYLOAD_LEN[InstructionTag(tag)]
    except ValueError:
        raise InvalidInstruction(f"unknown instruction tag {tag}") from None


class _Reader:
    """Forward-only cursor over a memoryview."""

    __slots__ = ("_buf", "_pos")

    def __init__(self, buf: memoryview) -> None:
        self._buf = buf
        self._pos = 0

    def take(self, n: int) -> bytes:
        end = self._pos + n
        if end > len(self._buf):
            raise InvalidInstruction("instruction data too short")
        out = self._buf[self._pos:end].tobytes()
        self._pos = end
        return out

    def pubkey(self) -> Pubkey:
        return Pubkey(self.take(32))

    def u16(self) -> int:
        return _U16.unpack(self.take(2))[0]

    def u64(self) -> int:
        return _U64.unpack(self.take(8))[0]

    def i64(self) -> int:
        return _I64.unpack(self.take(8))[0]


def _create_escrow(r: _Reader) -> Instruction:
    return CreateEscrow(
        payment_hash=r.take(32),
        recipient=r.pubkey(),
        refund_party=r.pubkey(),
        refund_after=r.i64(),
        amount=r.u64(),
        expected_platform_fee_bps=r.u16(),
        expected_trade_fee_bps=r.u16(),
        trade_fee_collector=r.pubkey(),
    )


def _policy_args(r: _Reader) -> Tuple[Pubkey, int]:
    fee_collector = r.pubkey()
    fee_bps = r.u16()
    return fee_collector, fee_bps


_DECODERS: Dict[InstructionTag, Callable[[_Reader], Instruction]] = {
    InstructionTag.CREATE_ESCROW: _create_escrow,
    InstructionTag.CLAIM: lambda r: Claim(preimage=r.take(32)),
    InstructionTag.REFUND: lambda r: Refund(),
    InstructionTag.CREATE_PLATFORM_POLICY: lambda r: CreatePolicy(PolicyKind.PLATFORM, *_policy_args(r)),
    InstructionTag.UPDATE_PLATFORM_POLICY: lambda r: UpdatePolicy(PolicyKind.PLATFORM, *_policy_args(r)),
    InstructionTag.WITHDRAW_PLATFORM_FEES: lambda r: WithdrawFees(PolicyKind.PLATFORM, r.u64()),
    InstructionTag.CREATE_TRADE_POLICY: lambda r: CreatePolicy(PolicyKind.TRADE, *_policy_args(r)),
    InstructionTag.UPDATE_TRADE_POLICY: lambda r: UpdatePolicy(PolicyKind.TRADE, *_policy_args(r)),
    InstructionTag.WITHDRAW_TRADE_FEES: lambda r: WithdrawFees(PolicyKind.TRADE, r.u64()),
}


def decode_instruction(data: BytesLike) -> Instruction:
    """
    Decode one request buffer.

    Raises:
        InvalidInstruction on an empty buffer, unknown tag or short payload.
    """
    view = memoryview(bytes(data)) if not isinstance(data, memoryview) else data
    if len(view) == 0:
        raise InvalidInstruction("empty instruction data")
    raw_tag = view[0]
    try:
        tag = InstructionTag(raw_tag)
    except ValueError:
        raise InvalidInstruction(f"unknown instruction tag {raw_tag}") from None
    return _DECODERS[tag](_Reader(view[1:]))


# ----------------------------------------------------------------------------
# Encoding (request builders, tests, tooling)
# ----------------------------------------------------------------------------


def _check_range(name: str, value: int, lo: int, hi: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be int")
    if not lo <= value <= hi:
        raise ValueError(f"{name} out of range [{lo}, {hi}]: {value}")
    return value


def _b32(name: str, value: BytesLike) -> bytes:
    b = bytes(value)
    if len(b) != 32:
        raise ValueError(f"{name} must be 32 bytes")
    return b


def encode_instruction(ix: Instruction) -> bytes:
    """Inverse of `decode_instruction`."""
    out = bytearray([int(ix.tag)])
    if isinstance(ix, CreateEscrow):
        out += _b32("payment_hash", ix.payment_hash)
        out += _b32("recipient", ix.recipient)
        out += _b32("refund_party", ix.refund_party)
        out += _I64.pack(_check_range("refund_after", ix.refund_after, I64_MIN, I64_MAX))
        out += _U64.pack(_check_range("amount", ix.amount, 0, U64_MAX))
        out += _U16.pack(_check_range("expected_platform_fee_bps", ix.expected_platform_fee_bps, 0, U16_MAX))
        out += _U16.pack(_check_range("expected_trade_fee_bps", ix.expected_trade_fee_bps, 0, U16_MAX))
        out += _b32("trade_fee_collector", ix.trade_fee_collector)
    elif isinstance(ix, Claim):
        out += _b32("preimage", ix.preimage)
    elif isinstance(ix, Refund):
        pass
    elif isinstance(ix, (CreatePolicy, UpdatePolicy)):
        out += _b32("fee_collector", ix.fee_collector)
        out += _U16.pack(_check_range("fee_bps", ix.fee_bps, 0, U16_MAX))
    elif isinstance(ix, WithdrawFees):
        out += _U64.pack(_check_range("amount", ix.amount, 0, U64_MAX))
    else:
        raise TypeError(f"not an instruction: {type(ix).__name__}")
    return bytes(out)


__all__ = ["decode_instruction", "encode_instruction", "expected_length"]
