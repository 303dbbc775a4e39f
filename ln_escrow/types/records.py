"""
ln_escrow.types.records — fixed-layout persisted records.

Both records are packed little-endian with no padding and carry their layout
version in the first byte.

EscrowRecord (263 bytes, version 3)
    u8  version | u8 status | [32] payment_hash | [32] recipient | [32] refund_party
    i64 refund_after | [32] mint | u64 net_amount | u64 platform_fee_amount
    u16 platform_fee_bps | [32] platform_fee_collector | u64 trade_fee_amount
    u16 trade_fee_bps | [32] trade_fee_collector | [32] vault | u8 bump

FeePolicy (68 bytes, version 1; same layout for platform and trade policies)
    u8 version | [32] authority | [32] fee_collector | u16 fee_bps | u8 bump

`unpack` raises `ValueError` on a short buffer; callers translate that into the
record kind's program error. Bytes past the layout are ignored.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, fields, replace
from typing import Any, Dict

from ..constants import ESCROW_LAYOUT_VERSION, POLICY_LAYOUT_VERSION
from ..utils.bytes import BytesLike, to_hex
from .pubkey import Pubkey
from .status import EscrowStatus

_ESCROW_STRUCT = struct.Struct("<BB32s32s32sq32sQQH32sQH32s32sB")
_POLICY_STRUCT = struct.Struct("<B32s32sHB")

ESCROW_RECORD_SIZE = _ESCROW_STRUCT.size  # 263
FEE_POLICY_SIZE = _POLICY_STRUCT.size  # 68


@dataclass(frozen=True)
class EscrowRecord:
    payment_hash: bytes
    recipient: Pubkey
    refund_party: Pubkey
    refund_after: int
    mint: Pubkey
    net_amount: int
    platform_fee_amount: int
    platform_fee_bps: int
    platform_fee_collector: Pubkey
    trade_fee_amount: int
    trade_fee_bps: int
    trade_fee_collector: Pubkey
    vault: Pubkey
    bump: int
    status: EscrowStatus = EscrowStatus.ACTIVE
    version: int = ESCROW_LAYOUT_VERSION

    @property
    def total_amount(self) -> int:
        """Everything still locked in the vault for this escrow."""
        return self.net_amount + self.platform_fee_amount + self.trade_fee_amount

    @property
    def is_active(self) -> bool:
        return self.status is EscrowStatus.ACTIVE

    def settle(self, status: EscrowStatus) -> "EscrowRecord":
        """Terminal transition: new status, all three amounts zeroed together."""
        if not self.status.can_transition_to(status):
            raise ValueError(f"illegal transition {self.status.name} -> {status.name}")
        return replace(
            self,
            status=status,
            net_amount=0,
            platform_fee_amount=0,
            trade_fee_amount=0,
        )

    def pack(self) -> bytes:
        return _ESCROW_STRUCT.pack(
            self.version,
            int(self.status),
            self.payment_hash,
            self.recipient,
            self.refund_party,
            self.refund_after,
            self.mint,
            self.net_amount,
            self.platform_fee_amount,
            self.platform_fee_bps,
            self.platform_fee_collector,
            self.trade_fee_amount,
            self.trade_fee_bps,
            self.trade_fee_collector,
            self.vault,
            self.bump,
        )

    @classmethod
    def unpack(cls, data: BytesLike) -> "EscrowRecord":
        buf = bytes(data)
        if len(buf) < ESCROW_RECORD_SIZE:
            raise ValueError(f"escrow record needs {ESCROW_RECORD_SIZE} bytes (got {len(buf)})")
        (
            version,
            status,
            payment_hash,
            recipient,
            refund_party,
            refund_after,
            mint,
            net_amount,
            platform_fee_amount,
            platform_fee_bps,
            platform_fee_collector,
            trade_fee_amount,
            trade_fee_bps,
            trade_fee_collector,
            vault,
            bump,
        ) = _ESCROW_STRUCT.unpack_from(buf)
        try:
            status_enum = EscrowStatus(status)
        except ValueError:
            raise ValueError(f"unknown escrow status byte: {status}") from None
        return cls(
            payment_hash=payment_hash,
            recipient=Pubkey(recipient),
            refund_party=Pubkey(refund_party),
            refund_after=refund_after,
            mint=Pubkey(mint),
            net_amount=net_amount,
            platform_fee_amount=platform_fee_amount,
            platform_fee_bps=platform_fee_bps,
            platform_fee_collector=Pubkey(platform_fee_collector),
            trade_fee_amount=trade_fee_amount,
            trade_fee_bps=trade_fee_bps,
            trade_fee_collector=Pubkey(trade_fee_collector),
            vault=Pubkey(vault),
            bump=bump,
            status=status_enum,
            version=version,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {f.name: getattr(self, f.name) for f in fields(self)}
        d["payment_hash"] = to_hex(self.payment_hash)
        d["status"] = self.status.name.lower()
        for k in (
            "recipient",
            "refund_party",
            "mint",
            "platform_fee_collector",
            "trade_fee_collector",
            "vault",
        ):
            d[k] = str(getattr(self, k))
        return d


@dataclass(frozen=True)
class FeePolicy:
    authority: Pubkey
    fee_collector: Pubkey
    fee_bps: int
    bump: int
    version: int = POLICY_LAYOUT_VERSION

    def with_terms(self, *, fee_collector: Pubkey, fee_bps: int) -> "FeePolicy":
        """Same policy with a new collector and rate (authority never changes)."""
        return replace(self, fee_collector=Pubkey.coerce(fee_collector), fee_bps=fee_bps)

    def pack(self) -> bytes:
        return _POLICY_STRUCT.pack(
            self.version, self.authority, self.fee_collector, self.fee_bps, self.bump
        )

    @classmethod
    def unpack(cls, data: BytesLike) -> "FeePolicy":
        buf = bytes(data)
        if len(buf) < FEE_POLICY_SIZE:
            raise ValueError(f"fee policy needs {FEE_POLICY_SIZE} bytes (got {len(buf)})")
        version, authority, fee_collector, fee_bps, bump = _POLICY_STRUCT.unpack_from(buf)
        return cls(
            authority=Pubkey(authority),
            fee_collector=Pubkey(fee_collector),
            fee_bps=fee_bps,
            bump=bump,
            version=version,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "authority": str(self.authority),
            "fee_collector": str(self.fee_collector),
            "fee_bps": self.fee_bps,
            "bump": self.bump,
        }


__all__ = ["EscrowRecord", "FeePolicy", "ESCROW_RECORD_SIZE", "FEE_POLICY_SIZE"]
