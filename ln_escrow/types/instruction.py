"""
ln_escrow.types.instruction — decoded request types.

Nine wire tags map onto six shapes. Platform and trade fee policies share one
contract (create / update / withdraw) and are told apart by `PolicyKind`, so
the handlers stay symmetric and the platform policy is simply the kind whose
record lives at a single well-known address.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, Union

from ..utils.bytes import to_hex
from .pubkey import Pubkey


class InstructionTag(IntEnum):
    CREATE_ESCROW = 0
    CLAIM = 1
    REFUND = 2
    CREATE_PLATFORM_POLICY = 3
    UPDATE_PLATFORM_POLICY = 4
    WITHDRAW_PLATFORM_FEES = 5
    CREATE_TRADE_POLICY = 6
    UPDATE_TRADE_POLICY = 7
    WITHDRAW_TRADE_FEES = 8


class PolicyKind(str, Enum):
    PLATFORM = "platform"
    TRADE = "trade"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


@dataclass(frozen=True)
class CreateEscrow:
    payment_hash: bytes
    recipient: Pubkey
    refund_party: Pubkey
    refund_after: int
    amount: int
    expected_platform_fee_bps: int
    expected_trade_fee_bps: int
    trade_fee_collector: Pubkey

    @property
    def tag(self) -> InstructionTag:
        return InstructionTag.CREATE_ESCROW


@dataclass(frozen=True)
class Claim:
    preimage: bytes

    @property
    def tag(self) -> InstructionTag:
        return InstructionTag.CLAIM


@dataclass(frozen=True)
class Refund:
    @property
    def tag(self) -> InstructionTag:
        return InstructionTag.REFUND


@dataclass(frozen=True)
class CreatePolicy:
    kind: PolicyKind
    fee_collector: Pubkey
    fee_bps: int

    @property
    def tag(self) -> InstructionTag:
        if self.kind is PolicyKind.PLATFORM:
            return InstructionTag.CREATE_PLATFORM_POLICY
        return InstructionTag.CREATE_TRADE_POLICY


@dataclass(frozen=True)
class UpdatePolicy:
    kind: PolicyKind
    fee_collector: Pubkey
    fee_bps: int

    @property
    def tag(self) -> InstructionTag:
        if self.kind is PolicyKind.PLATFORM:
            return InstructionTag.UPDATE_PLATFORM_POLICY
        return InstructionTag.UPDATE_TRADE_POLICY


@dataclass(frozen=True)
class WithdrawFees:
    kind: PolicyKind
    amount: int  # 0 = full balance

    @property
    def tag(self) -> InstructionTag:
        if self.kind is PolicyKind.PLATFORM:
            return InstructionTag.WITHDRAW_PLATFORM_FEES
        return InstructionTag.WITHDRAW_TRADE_FEES


Instruction = Union[CreateEscrow, Claim, Refund, CreatePolicy, UpdatePolicy, WithdrawFees]


def instruction_to_dict(ix: Instruction) -> Dict[str, Any]:
    """JSON-friendly view (identities as base58, hashes as hex)."""
    out: Dict[str, Any] = {"tag": int(ix.tag), "name": ix.tag.name.lower()}
    for name, value in vars(ix).items():
        if isinstance(value, Pubkey):
            out[name] = str(value)
        elif isinstance(value, bytes):
            out[name] = to_hex(value)
        elif isinstance(value, PolicyKind):
            out[name] = value.value
        else:
            out[name] = value
    return out


__all__ = [
    "InstructionTag",
    "PolicyKind",
    "CreateEscrow",
    "Claim",
    "Refund",
    "CreatePolicy",
    "UpdatePolicy",
    "WithdrawFees",
    "Instruction",
    "instruction_to_dict",
]
