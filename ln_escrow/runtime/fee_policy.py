"""
ln_escrow.runtime.fee_policy — platform and trade fee policy lifecycles.

Both policy kinds share one record layout and one contract; they differ only in
where the record lives and which errors report a problem with it:

    kind      address seeds                    address / state / fee vault errors
    --------  -------------------------------  ------------------------------------------------------
    platform  ("config",)                      InvalidConfigPda / InvalidConfigState / InvalidFeeVaultAta
    trade     ("trade_config", fee_collector)  InvalidTradeConfigPda / InvalidTradeConfigState / InvalidTradeFeeVaultAta

Accounts (positional):

    create    [payer (signer, writable), policy (writable)]
    update    [authority (signer), policy (writable)]
    withdraw  [collector (signer), policy, fee_vault (writable), destination (writable)]

A policy is created once and never deleted. Its authority is fixed at creation;
updates rewrite only the collector and the rate. Fees accrue in the policy's
associated token account for each mint and leave it only through `withdraw_fees`,
signed by the policy's derived address.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Type

from ..address.pda import associated_token_address, policy_address
from ..constants import CONFIG_SEED, POLICY_LAYOUT_VERSION, TRADE_CONFIG_SEED
from ..errors import (
    AlreadyInitialized,
    FeeTooHigh,
    InvalidConfigPda,
    InvalidConfigState,
    InvalidFeeVaultAta,
    InvalidInstruction,
    InvalidSigner,
    InvalidTokenAccount,
    InvalidTradeConfigPda,
    InvalidTradeConfigState,
    InvalidTradeFeeVaultAta,
    ProgramError,
)
from ..types.instruction import CreatePolicy, PolicyKind, UpdatePolicy, WithdrawFees
from ..types.pubkey import Pubkey
from ..types.records import FEE_POLICY_SIZE, FeePolicy
from .context import InvocationContext
from .fees import check_rate


@dataclass(frozen=True)
class PolicyErrors:
    address: Type[ProgramError]
    state: Type[ProgramError]
    fee_vault: Type[ProgramError]


_ERRORS: Dict[PolicyKind, PolicyErrors] = {
    PolicyKind.PLATFORM: PolicyErrors(InvalidConfigPda, InvalidConfigState, InvalidFeeVaultAta),
    PolicyKind.TRADE: PolicyErrors(
        InvalidTradeConfigPda, InvalidTradeConfigState, InvalidTradeFeeVaultAta
    ),
}


def policy_errors(kind: PolicyKind) -> PolicyErrors:
    return _ERRORS[kind]


def policy_signer_seeds(kind: PolicyKind, fee_collector: Pubkey, bump: int) -> List[bytes]:
    """Seeds (bump last) with which the program signs for a policy address."""
    if kind is PolicyKind.PLATFORM:
        return [CONFIG_SEED, bytes([bump])]
    return [TRADE_CONFIG_SEED, bytes(fee_collector), bytes([bump])]


def check_policy_address(
    ctx: InvocationContext,
    kind: PolicyKind,
    supplied: Pubkey,
    fee_collector: Optional[Pubkey] = None,
) -> Tuple[Pubkey, int]:
    """Re-derive the policy address and compare it to the supplied one."""
    expected, bump = policy_address(ctx.program_id, kind, fee_collector)
    if expected != supplied:
        raise ctx.fail(policy_errors(kind).address(f"{kind} policy address mismatch"))
    return expected, bump


def load_policy(
    ctx: InvocationContext, kind: PolicyKind, address: Pubkey, bump: int
) -> FeePolicy:
    """
    Decode the policy stored at `address` and check it is the current layout
    with the expected bump. Any problem raises the kind's state error.
    """
    err = policy_errors(kind).state
    data = ctx.store.data(address)
    if not data:
        raise ctx.fail(err(f"{kind} policy not initialized"))
    try:
        policy = FeePolicy.unpack(data)
    except ValueError as e:
        raise ctx.fail(err(f"{kind} policy undecodable: {e}")) from e
    if policy.version != POLICY_LAYOUT_VERSION or policy.bump != bump:
        raise ctx.fail(err(f"{kind} policy version/bump mismatch"))
    return policy


def _check_rate(ctx: InvocationContext, bps: int) -> None:
    try:
        check_rate(bps)
    except FeeTooHigh as e:
        raise ctx.fail(e) from None


# ----------------------------------------------------------------------------
# Handlers
# ----------------------------------------------------------------------------


def create_policy(ctx: InvocationContext, ix: CreatePolicy) -> None:
    payer = ctx.next_account()
    policy_meta = ctx.next_account()

    ctx.assert_signer(payer)
    ctx.assert_writable(payer)
    ctx.assert_writable(policy_meta)

    _check_rate(ctx, ix.fee_bps)
    if payer.pubkey != ix.fee_collector:
        raise ctx.fail(InvalidSigner(f"fee collector must be the {ix.kind} policy authority"))

    address, bump = check_policy_address(ctx, ix.kind, policy_meta.pubkey, ix.fee_collector)
    if not ctx.store.data_is_empty(address):
        raise ctx.fail(AlreadyInitialized(f"{ix.kind} policy already initialized"))

    ctx.store.create_account(
        payer=payer.pubkey,
        address=address,
        space=FEE_POLICY_SIZE,
        owner=ctx.program_id,
        rent=ctx.rent,
    )
    policy = FeePolicy(
        authority=payer.pubkey,
        fee_collector=ix.fee_collector,
        fee_bps=ix.fee_bps,
        bump=bump,
    )
    ctx.store.write_data(address, policy.pack(), program_id=ctx.program_id)
    ctx.msg(f"{ix.kind} policy created: collector={ix.fee_collector} bps={ix.fee_bps}")


def update_policy(ctx: InvocationContext, ix: UpdatePolicy) -> None:
    authority = ctx.next_account()
    policy_meta = ctx.next_account()

    ctx.assert_signer(authority)
    ctx.assert_writable(policy_meta)

    _check_rate(ctx, ix.fee_bps)
    if authority.pubkey != ix.fee_collector:
        raise ctx.fail(InvalidSigner(f"fee collector must be the {ix.kind} policy authority"))

    # A trade policy is keyed by its collector, so it can only be re-pointed at
    # the collector it was registered under.
    address, bump = check_policy_address(ctx, ix.kind, policy_meta.pubkey, ix.fee_collector)
    current = load_policy(ctx, ix.kind, address, bump)
    if current.authority != authority.pubkey:
        raise ctx.fail(InvalidSigner(f"{ix.kind} policy authority mismatch"))

    updated = current.with_terms(fee_collector=ix.fee_collector, fee_bps=ix.fee_bps)
    ctx.store.write_data(address, updated.pack(), program_id=ctx.program_id)
    ctx.msg(f"{ix.kind} policy updated: collector={ix.fee_collector} bps={ix.fee_bps}")


def withdraw_fees(ctx: InvocationContext, ix: WithdrawFees) -> None:
    collector = ctx.next_account()
    policy_meta = ctx.next_account()
    fee_vault = ctx.next_account()
    destination = ctx.next_account()

    ctx.assert_signer(collector)
    ctx.assert_writable(fee_vault)
    ctx.assert_writable(destination)

    errors = policy_errors(ix.kind)
    # Trade policies are found from the signer; there is one platform policy.
    address, bump = check_policy_address(ctx, ix.kind, policy_meta.pubkey, collector.pubkey)
    policy = load_policy(ctx, ix.kind, address, bump)
    if policy.authority != collector.pubkey:
        raise ctx.fail(InvalidSigner("withdraw signer is not the policy authority"))
    if policy.fee_collector != collector.pubkey:
        raise ctx.fail(InvalidSigner("withdraw signer is not the fee collector"))

    vault = ctx.gateway.load(fee_vault.pubkey, message="fee vault is not a token account")
    if vault.owner != address:
        raise ctx.fail(InvalidTokenAccount("fee vault owner mismatch"))
    mint = vault.mint
    if associated_token_address(address, mint) != fee_vault.pubkey:
        raise ctx.fail(errors.fee_vault("fee vault is not the policy's associated account"))

    dest = ctx.gateway.load(destination.pubkey, message="destination is not a token account")
    if dest.mint != mint:
        raise ctx.fail(InvalidTokenAccount("destination mint mismatch"))
    if dest.owner != policy.fee_collector:
        raise ctx.fail(InvalidTokenAccount("destination owner mismatch"))

    balance = vault.amount
    amount = balance if ix.amount == 0 else ix.amount
    if amount > balance:
        raise ctx.fail(InvalidInstruction(f"withdraw amount {amount} exceeds balance {balance}"))
    if amount == 0:
        ctx.msg("nothing to withdraw")
        return

    ctx.gateway.transfer(
        fee_vault.pubkey,
        destination.pubkey,
        authority=address,
        amount=amount,
        signer_seeds=policy_signer_seeds(ix.kind, collector.pubkey, bump),
    )
    ctx.msg(f"withdrew {amount} {ix.kind} fees")


__all__ = [
    "PolicyErrors",
    "policy_errors",
    "policy_signer_seeds",
    "check_policy_address",
    "load_policy",
    "create_policy",
    "update_policy",
    "withdraw_fees",
]
