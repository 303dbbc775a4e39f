import hashlib
from typing import List, Optional

import pytest

from ln_escrow.address import associated_token_address, escrow_address, platform_policy_address, trade_policy_address
from ln_escrow.config import load_config
from ln_escrow.runtime.executor import Executor
from ln_escrow.types.context import AccountMeta
from ln_escrow.types.instruction import (
    Claim,
    CreateEscrow,
    CreatePolicy,
    PolicyKind,
    Refund,
    UpdatePolicy,
    WithdrawFees,
)
from ln_escrow.types.pubkey import Pubkey
from ln_escrow.types.records import EscrowRecord, FeePolicy
from ln_escrow.types.result import InvocationResult

NOW = 1_700_000_000
REFUND_AFTER = NOW + 3_600
PREIMAGE = bytes(range(32))
PAYMENT_HASH = hashlib.sha256(PREIMAGE).digest()
PAYER_FUNDS = 10_000_000
LAMPORTS = 10**10


def key(label: str) -> Pubkey:
    """Deterministic identity for a test actor."""
    return Pubkey(hashlib.sha256(b"ln-escrow-test/" + label.encode()).digest())


class EscrowHarness:
    """
    Drives an Executor the way a client would: builds account lists and
    instructions, and exposes balances and decoded records for assertions.
    """

    def __init__(self, executor: Executor) -> None:
        self.ex = executor
        self.program_id = executor.program_id
        self.mint = key("mint")
        self.platform_authority = key("platform")
        self.trade_collector = key("trade")
        self.payer = key("payer")
        self.recipient = key("recipient")
        for who in (self.platform_authority, self.trade_collector, self.payer, self.recipient):
            executor.store.airdrop(who, LAMPORTS)
        self.platform_key, _ = platform_policy_address(self.program_id)
        self.payer_token = self.token_account(self.payer, amount=PAYER_FUNDS)

    # ------------------------------------------------------------ tokens

    def token_account(self, owner: Pubkey, *, amount: int = 0, mint: Optional[Pubkey] = None) -> Pubkey:
        mint = mint or self.mint
        addr = associated_token_address(owner, mint)
        if self.ex.ledger.get_account(addr) is None:
            self.ex.ledger.create_account(addr, owner=owner, mint=mint)
        if amount:
            self.ex.ledger.mint_to(addr, amount)
        return addr

    def balance(self, addr: Pubkey) -> int:
        return self.ex.ledger.balance(addr)

    # ------------------------------------------------------------ addresses

    def trade_key(self, collector: Optional[Pubkey] = None) -> Pubkey:
        return trade_policy_address(self.program_id, collector or self.trade_collector)[0]

    def policy_key(self, kind: PolicyKind, collector: Optional[Pubkey] = None) -> Pubkey:
        if kind is PolicyKind.PLATFORM:
            return self.platform_key
        return self.trade_key(collector)

    def escrow_key(self, payment_hash: bytes = PAYMENT_HASH) -> Pubkey:
        return escrow_address(self.program_id, payment_hash)[0]

    def vault(self, payment_hash: bytes = PAYMENT_HASH) -> Pubkey:
        return associated_token_address(self.escrow_key(payment_hash), self.mint)

    def fee_vault(self, kind: PolicyKind, collector: Optional[Pubkey] = None) -> Pubkey:
        return associated_token_address(self.policy_key(kind, collector), self.mint)

    # ------------------------------------------------------------ records

    def record(self, payment_hash: bytes = PAYMENT_HASH) -> EscrowRecord:
        return EscrowRecord.unpack(self.ex.store.data(self.escrow_key(payment_hash)))

    def policy(self, kind: PolicyKind, collector: Optional[Pubkey] = None) -> FeePolicy:
        return FeePolicy.unpack(self.ex.store.data(self.policy_key(kind, collector)))

    # ------------------------------------------------------------ fee policies

    def create_policy(
        self,
        kind: PolicyKind,
        bps: int,
        *,
        collector: Optional[Pubkey] = None,
        signer: Optional[Pubkey] = None,
        policy: Optional[Pubkey] = None,
    ) -> InvocationResult:
        default = self.platform_authority if kind is PolicyKind.PLATFORM else self.trade_collector
        collector = collector or default
        signer = signer or collector
        accounts = [
            AccountMeta.signer(signer, writable=True),
            AccountMeta.writable(policy or self.policy_key(kind, collector)),
        ]
        return self.ex.invoke(CreatePolicy(kind, collector, bps), accounts)

    def update_policy(
        self,
        kind: PolicyKind,
        bps: int,
        *,
        collector: Optional[Pubkey] = None,
        signer: Optional[Pubkey] = None,
    ) -> InvocationResult:
        default = self.platform_authority if kind is PolicyKind.PLATFORM else self.trade_collector
        collector = collector or default
        signer = signer or collector
        accounts = [
            AccountMeta.signer(signer),
            AccountMeta.writable(self.policy_key(kind, collector)),
        ]
        return self.ex.invoke(UpdatePolicy(kind, collector, bps), accounts)

    def withdraw(
        self,
        kind: PolicyKind,
        amount: int = 0,
        *,
        collector: Optional[Pubkey] = None,
        destination: Optional[Pubkey] = None,
        fee_vault: Optional[Pubkey] = None,
    ) -> InvocationResult:
        default = self.platform_authority if kind is PolicyKind.PLATFORM else self.trade_collector
        collector = collector or default
        accounts = [
            AccountMeta.signer(collector),
            AccountMeta.readonly(self.policy_key(kind, collector)),
            AccountMeta.writable(fee_vault or self.fee_vault(kind, collector)),
            AccountMeta.writable(destination or self.token_account(collector)),
        ]
        return self.ex.invoke(WithdrawFees(kind, amount), accounts)

    def setup_policies(self, platform_bps: int = 100, trade_bps: int = 50) -> None:
        assert self.create_policy(PolicyKind.PLATFORM, platform_bps).is_success
        assert self.create_policy(PolicyKind.TRADE, trade_bps).is_success

    # ------------------------------------------------------------ escrow

    def create_accounts(
        self,
        *,
        payment_hash: bytes = PAYMENT_HASH,
        collector: Optional[Pubkey] = None,
        payer_signs: bool = True,
    ) -> List[AccountMeta]:
        collector = collector or self.trade_collector
        payer = (
            AccountMeta.signer(self.payer, writable=True)
            if payer_signs
            else AccountMeta.writable(self.payer)
        )
        return [
            payer,
            AccountMeta.writable(self.payer_token),
            AccountMeta.writable(self.escrow_key(payment_hash)),
            AccountMeta.writable(self.vault(payment_hash)),
            AccountMeta.readonly(self.mint),
            AccountMeta.readonly(self.platform_key),
            AccountMeta.writable(self.fee_vault(PolicyKind.PLATFORM)),
            AccountMeta.readonly(self.trade_key(collector)),
            AccountMeta.writable(self.fee_vault(PolicyKind.TRADE, collector)),
        ]

    def create_escrow(
        self,
        amount: int = 1_000_000,
        *,
        payment_hash: bytes = PAYMENT_HASH,
        platform_bps: int = 100,
        trade_bps: int = 50,
        collector: Optional[Pubkey] = None,
        refund_after: int = REFUND_AFTER,
        accounts: Optional[List[AccountMeta]] = None,
    ) -> InvocationResult:
        collector = collector or self.trade_collector
        ix = CreateEscrow(
            payment_hash=payment_hash,
            recipient=self.recipient,
            refund_party=self.payer,
            refund_after=refund_after,
            amount=amount,
            expected_platform_fee_bps=platform_bps,
            expected_trade_fee_bps=trade_bps,
            trade_fee_collector=collector,
        )
        if accounts is None:
            accounts = self.create_accounts(payment_hash=payment_hash, collector=collector)
        return self.ex.invoke(ix, accounts)

    def claim_accounts(
        self,
        *,
        signer: Optional[Pubkey] = None,
        payment_hash: bytes = PAYMENT_HASH,
        collector: Optional[Pubkey] = None,
    ) -> List[AccountMeta]:
        signer = signer or self.recipient
        return [
            AccountMeta.signer(signer),
            AccountMeta.writable(self.escrow_key(payment_hash)),
            AccountMeta.writable(self.vault(payment_hash)),
            AccountMeta.writable(self.token_account(signer)),
            AccountMeta.writable(self.fee_vault(PolicyKind.PLATFORM)),
            AccountMeta.writable(self.fee_vault(PolicyKind.TRADE, collector)),
        ]

    def claim(
        self,
        preimage: bytes = PREIMAGE,
        *,
        accounts: Optional[List[AccountMeta]] = None,
        signer: Optional[Pubkey] = None,
    ) -> InvocationResult:
        if accounts is None:
            accounts = self.claim_accounts(signer=signer)
        return self.ex.invoke(Claim(preimage), accounts)

    def refund_accounts(self, *, signer: Optional[Pubkey] = None) -> List[AccountMeta]:
        signer = signer or self.payer
        return [
            AccountMeta.signer(signer),
            AccountMeta.writable(self.escrow_key()),
            AccountMeta.writable(self.vault()),
            AccountMeta.writable(self.token_account(signer)),
        ]

    def refund(
        self,
        *,
        timestamp: int = REFUND_AFTER,
        signer: Optional[Pubkey] = None,
        accounts: Optional[List[AccountMeta]] = None,
    ) -> InvocationResult:
        if accounts is None:
            accounts = self.refund_accounts(signer=signer)
        return self.ex.invoke(Refund(), accounts, timestamp=timestamp)


@pytest.fixture()
def config():
    return load_config(env={})


@pytest.fixture()
def executor(config) -> Executor:
    return Executor(config=config, clock=lambda: NOW)


@pytest.fixture()
def h(executor) -> EscrowHarness:
    return EscrowHarness(executor)


@pytest.fixture()
def ready(h) -> EscrowHarness:
    """Harness with a 100 bps platform policy and a 50 bps trade policy."""
    h.setup_policies()
    return h


@pytest.fixture()
def funded(ready) -> EscrowHarness:
    """Harness with one active 1,000,000 escrow."""
    res = ready.create_escrow()
    assert res.is_success, res.to_dict()
    return ready
