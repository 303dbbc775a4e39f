"""
ln_escrow.runtime.escrow — the hash-locked escrow lifecycle.

States: (none) → ACTIVE → CLAIMED | REFUNDED. Terminal states are final and
zero all three locked amounts.

Accounts (positional):

    create  [payer (signer, writable), payer_token (writable), escrow (writable),
             vault (writable), mint, platform_policy, platform_fee_vault (writable),
             trade_policy, trade_fee_vault (writable)]
    claim   [recipient (signer), escrow (writable), vault (writable),
             recipient_token (writable), platform_fee_vault (writable),
             trade_fee_vault (writable)]
    refund  [refund_party (signer), escrow (writable), vault (writable),
             refund_token (writable)]

Creation pins both fee rates and collectors into the record. A claim pays the
fees to the vaults of the policies the record names, whatever the live policies
say by then; a refund returns the whole deposit, fees included.
"""

from __future__ import annotations

import hashlib
from typing import List, Type

from ..address.pda import (
    associated_token_address,
    escrow_address,
    platform_policy_address,
    trade_policy_address,
)
from ..constants import ESCROW_SEED, MAX_FEE_BPS, U64_MAX
from ..errors import (
    AlreadyInitialized,
    EscrowError,
    FeeMismatch,
    FeeTooHigh,
    InvalidAccountData,
    InvalidEscrowPda,
    InvalidFeeVaultAta,
    InvalidInstruction,
    InvalidPreimage,
    InvalidSigner,
    InvalidTokenAccount,
    InvalidTradeConfigState,
    InvalidTradeFeeVaultAta,
    InvalidVaultAta,
    NotActive,
    ProgramError,
    TooEarly,
)
from ..types.context import AccountMeta
from ..types.instruction import Claim, CreateEscrow, PolicyKind, Refund
from ..types.pubkey import Pubkey
from ..types.records import ESCROW_RECORD_SIZE, EscrowRecord
from ..types.status import EscrowStatus
from .context import InvocationContext
from .fee_policy import check_policy_address, load_policy
from .fees import check_combined_rate, split_fees


def escrow_signer_seeds(record: EscrowRecord) -> List[bytes]:
    return [ESCROW_SEED, record.payment_hash, bytes([record.bump])]


def _load_record(ctx: InvocationContext, meta: AccountMeta) -> EscrowRecord:
    try:
        return EscrowRecord.unpack(ctx.store.data(meta.pubkey))
    except ValueError as e:
        raise ctx.fail(InvalidAccountData(f"escrow record undecodable: {e}", address=str(meta.pubkey))) from e


def _require_active(ctx: InvocationContext, record: EscrowRecord) -> None:
    if not record.is_active:
        raise ctx.fail(NotActive(f"escrow is {record.status.name.lower()}"))


def _ensure_fee_vault(
    ctx: InvocationContext,
    *,
    payer: Pubkey,
    meta: AccountMeta,
    policy: Pubkey,
    mint: Pubkey,
    error: Type[ProgramError],
) -> None:
    ctx.assert_writable(meta)
    if associated_token_address(policy, mint) != meta.pubkey:
        raise ctx.fail(error("fee vault is not the policy's associated account"))
    if not ctx.gateway.exists(meta.pubkey):
        ctx.gateway.create_associated_account(meta.pubkey, owner=policy, mint=mint)
        ctx.msg(f"created fee vault {meta.pubkey} (payer {payer})")


def _check_settlement_accounts(
    ctx: InvocationContext,
    record: EscrowRecord,
    *,
    escrow: AccountMeta,
    vault: AccountMeta,
    party_token: AccountMeta,
    party: Pubkey,
) -> Pubkey:
    """
    Checks shared by claim and refund, run after the signer, vault and
    claim/refund condition checks. Returns the re-derived escrow address.
    """
    vault_acc = ctx.gateway.load(vault.pubkey, message="vault is not a token account")
    party_acc = ctx.gateway.load(party_token.pubkey, message="destination is not a token account")
    if vault_acc.mint != record.mint or party_acc.mint != record.mint:
        raise ctx.fail(InvalidTokenAccount("mint mismatch"))
    if party_acc.owner != party:
        raise ctx.fail(InvalidTokenAccount("destination token owner mismatch"))

    expected, bump = escrow_address(ctx.program_id, record.payment_hash)
    if expected != escrow.pubkey or bump != record.bump:
        raise ctx.fail(InvalidEscrowPda("escrow address mismatch"))
    if vault_acc.owner != expected:
        raise ctx.fail(InvalidTokenAccount("vault authority mismatch"))
    return expected


def _check_claim_fee_vault(
    ctx: InvocationContext,
    meta: AccountMeta,
    *,
    policy: Pubkey,
    mint: Pubkey,
    error: Type[ProgramError],
    label: str,
) -> None:
    if associated_token_address(policy, mint) != meta.pubkey:
        raise ctx.fail(error(f"{label} fee vault mismatch"))
    acc = ctx.gateway.load(meta.pubkey, message=f"{label} fee vault is not a token account")
    if acc.mint != mint:
        raise ctx.fail(InvalidTokenAccount(f"{label} fee vault mint mismatch"))
    if acc.owner != policy:
        raise ctx.fail(InvalidTokenAccount(f"{label} fee vault owner mismatch"))


def _settle(ctx: InvocationContext, escrow: Pubkey, record: EscrowRecord, status: EscrowStatus) -> None:
    ctx.store.write_data(escrow, record.settle(status).pack(), program_id=ctx.program_id)


# ----------------------------------------------------------------------------
# Handlers
# ----------------------------------------------------------------------------


def create_escrow(ctx: InvocationContext, ix: CreateEscrow) -> None:
    payer = ctx.next_account()
    payer_token = ctx.next_account()
    escrow = ctx.next_account()
    vault = ctx.next_account()
    mint_meta = ctx.next_account()
    platform_meta = ctx.next_account()
    platform_fee_vault = ctx.next_account()
    trade_meta = ctx.next_account()
    trade_fee_vault = ctx.next_account()

    ctx.assert_signer(payer)
    ctx.assert_writable(payer)
    ctx.assert_writable(payer_token)
    ctx.assert_writable(escrow)
    ctx.assert_writable(vault)
    mint = mint_meta.pubkey

    escrow_key, bump = escrow_address(ctx.program_id, ix.payment_hash)
    if escrow_key != escrow.pubkey:
        raise ctx.fail(InvalidEscrowPda("escrow address mismatch"))

    platform_key, platform_bump = check_policy_address(ctx, PolicyKind.PLATFORM, platform_meta.pubkey)
    platform = load_policy(ctx, PolicyKind.PLATFORM, platform_key, platform_bump)
    if platform.fee_bps > MAX_FEE_BPS:
        raise ctx.fail(FeeTooHigh("platform fee rate too high"))
    if platform.fee_bps != ix.expected_platform_fee_bps:
        raise ctx.fail(
            FeeMismatch(
                f"platform fee {platform.fee_bps} bps, expected {ix.expected_platform_fee_bps}"
            )
        )

    if associated_token_address(escrow_key, mint) != vault.pubkey:
        raise ctx.fail(InvalidVaultAta("vault is not the escrow's associated account"))

    trade_key, trade_bump = check_policy_address(
        ctx, PolicyKind.TRADE, trade_meta.pubkey, ix.trade_fee_collector
    )
    trade = load_policy(ctx, PolicyKind.TRADE, trade_key, trade_bump)
    if trade.fee_bps > MAX_FEE_BPS:
        raise ctx.fail(FeeTooHigh("trade fee rate too high"))
    if trade.fee_collector != ix.trade_fee_collector:
        raise ctx.fail(InvalidTradeConfigState("trade policy collector mismatch"))
    if trade.authority != ix.trade_fee_collector:
        raise ctx.fail(InvalidTradeConfigState("trade policy authority mismatch"))
    if trade.fee_bps != ix.expected_trade_fee_bps:
        raise ctx.fail(
            FeeMismatch(f"trade fee {trade.fee_bps} bps, expected {ix.expected_trade_fee_bps}")
        )

    try:
        check_combined_rate(platform.fee_bps, trade.fee_bps)
    except FeeTooHigh as e:
        raise ctx.fail(e) from None

    _ensure_fee_vault(
        ctx,
        payer=payer.pubkey,
        meta=platform_fee_vault,
        policy=platform_key,
        mint=mint,
        error=InvalidFeeVaultAta,
    )
    _ensure_fee_vault(
        ctx,
        payer=payer.pubkey,
        meta=trade_fee_vault,
        policy=trade_key,
        mint=mint,
        error=InvalidTradeFeeVaultAta,
    )

    source = ctx.gateway.load(payer_token.pubkey, message="payer token account missing")
    if source.owner != payer.pubkey:
        raise ctx.fail(InvalidTokenAccount("payer token owner mismatch"))
    if source.mint != mint:
        raise ctx.fail(InvalidTokenAccount("payer token mint mismatch"))

    try:
        split = split_fees(ix.amount, platform.fee_bps, trade.fee_bps)
    except EscrowError as e:
        raise ctx.fail(e) from None
    if source.amount < split.total:
        raise ctx.fail(
            InvalidTokenAccount(f"payer balance {source.amount} below deposit {split.total}")
        )

    if not ctx.store.data_is_empty(escrow_key):
        raise ctx.fail(AlreadyInitialized("escrow already initialized"))
    ctx.store.create_account(
        payer=payer.pubkey,
        address=escrow_key,
        space=ESCROW_RECORD_SIZE,
        owner=ctx.program_id,
        rent=ctx.rent,
    )

    if not ctx.gateway.exists(vault.pubkey):
        ctx.gateway.create_associated_account(vault.pubkey, owner=escrow_key, mint=mint)

    ctx.gateway.transfer(payer_token.pubkey, vault.pubkey, authority=payer.pubkey, amount=split.total)

    record = EscrowRecord(
        payment_hash=bytes(ix.payment_hash),
        recipient=ix.recipient,
        refund_party=ix.refund_party,
        refund_after=ix.refund_after,
        mint=mint,
        net_amount=split.net,
        platform_fee_amount=split.platform_fee,
        platform_fee_bps=platform.fee_bps,
        platform_fee_collector=platform.fee_collector,
        trade_fee_amount=split.trade_fee,
        trade_fee_bps=trade.fee_bps,
        trade_fee_collector=ix.trade_fee_collector,
        vault=vault.pubkey,
        bump=bump,
    )
    ctx.store.write_data(escrow_key, record.pack(), program_id=ctx.program_id)
    ctx.msg(
        f"escrow {escrow_key} active: net={split.net} "
        f"platform_fee={split.platform_fee} trade_fee={split.trade_fee}"
    )


def claim(ctx: InvocationContext, ix: Claim) -> None:
    recipient = ctx.next_account()
    escrow = ctx.next_account()
    vault = ctx.next_account()
    recipient_token = ctx.next_account()
    platform_fee_vault = ctx.next_account()
    trade_fee_vault = ctx.next_account()

    ctx.assert_signer(recipient)
    ctx.assert_writable(escrow)
    ctx.assert_writable(vault)
    ctx.assert_writable(recipient_token)
    ctx.assert_writable(platform_fee_vault)
    ctx.assert_writable(trade_fee_vault)

    record = _load_record(ctx, escrow)
    _require_active(ctx, record)
    if record.recipient != recipient.pubkey:
        raise ctx.fail(InvalidSigner("recipient mismatch"))
    if record.vault != vault.pubkey:
        raise ctx.fail(InvalidVaultAta("vault mismatch"))
    if hashlib.sha256(bytes(ix.preimage)).digest() != record.payment_hash:
        raise ctx.fail(InvalidPreimage())

    escrow_key = _check_settlement_accounts(
        ctx,
        record,
        escrow=escrow,
        vault=vault,
        party_token=recipient_token,
        party=recipient.pubkey,
    )

    # Fee vaults come from the snapshot in the record, never from live policy state.
    platform_key, _ = platform_policy_address(ctx.program_id)
    _check_claim_fee_vault(
        ctx,
        platform_fee_vault,
        policy=platform_key,
        mint=record.mint,
        error=InvalidFeeVaultAta,
        label="platform",
    )
    trade_key, _ = trade_policy_address(ctx.program_id, record.trade_fee_collector)
    _check_claim_fee_vault(
        ctx,
        trade_fee_vault,
        policy=trade_key,
        mint=record.mint,
        error=InvalidTradeFeeVaultAta,
        label="trade",
    )

    seeds = escrow_signer_seeds(record)
    ctx.gateway.transfer(
        vault.pubkey,
        recipient_token.pubkey,
        authority=escrow_key,
        amount=record.net_amount,
        signer_seeds=seeds,
    )
    if record.platform_fee_amount > 0:
        ctx.gateway.transfer(
            vault.pubkey,
            platform_fee_vault.pubkey,
            authority=escrow_key,
            amount=record.platform_fee_amount,
            signer_seeds=seeds,
        )
    if record.trade_fee_amount > 0:
        ctx.gateway.transfer(
            vault.pubkey,
            trade_fee_vault.pubkey,
            authority=escrow_key,
            amount=record.trade_fee_amount,
            signer_seeds=seeds,
        )

    _settle(ctx, escrow_key, record, EscrowStatus.CLAIMED)
    ctx.msg(f"escrow {escrow_key} claimed")


def refund(ctx: InvocationContext, ix: Refund) -> None:
    refund_party = ctx.next_account()
    escrow = ctx.next_account()
    vault = ctx.next_account()
    refund_token = ctx.next_account()

    ctx.assert_signer(refund_party)
    ctx.assert_writable(escrow)
    ctx.assert_writable(vault)
    ctx.assert_writable(refund_token)

    record = _load_record(ctx, escrow)
    _require_active(ctx, record)
    if record.refund_party != refund_party.pubkey:
        raise ctx.fail(InvalidSigner("refund signer mismatch"))
    if record.vault != vault.pubkey:
        raise ctx.fail(InvalidVaultAta("vault mismatch"))
    if ctx.timestamp < record.refund_after:
        raise ctx.fail(TooEarly(f"refund allowed from {record.refund_after}, now {ctx.timestamp}"))

    escrow_key = _check_settlement_accounts(
        ctx,
        record,
        escrow=escrow,
        vault=vault,
        party_token=refund_token,
        party=refund_party.pubkey,
    )

    total = record.total_amount
    if total > U64_MAX:
        raise ctx.fail(InvalidInstruction("locked total overflows u64"))
    ctx.gateway.transfer(
        vault.pubkey,
        refund_token.pubkey,
        authority=escrow_key,
        amount=total,
        signer_seeds=escrow_signer_seeds(record),
    )

    _settle(ctx, escrow_key, record, EscrowStatus.REFUNDED)
    ctx.msg(f"escrow {escrow_key} refunded {total}")


__all__ = ["create_escrow", "claim", "refund", "escrow_signer_seeds"]
