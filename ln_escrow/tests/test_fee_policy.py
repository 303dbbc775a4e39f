import pytest

from ln_escrow.state.rent import Rent
from ln_escrow.types.context import AccountMeta
from ln_escrow.types.instruction import CreatePolicy, PolicyKind, UpdatePolicy, WithdrawFees
from ln_escrow.types.records import FEE_POLICY_SIZE

from .conftest import LAMPORTS, key

KINDS = [PolicyKind.PLATFORM, PolicyKind.TRADE]
ADDRESS_ERR = {PolicyKind.PLATFORM: 9, PolicyKind.TRADE: 14}
STATE_ERR = {PolicyKind.PLATFORM: 10, PolicyKind.TRADE: 15}
VAULT_ERR = {PolicyKind.PLATFORM: 13, PolicyKind.TRADE: 16}


def _owner(h, kind):
    return h.platform_authority if kind is PolicyKind.PLATFORM else h.trade_collector


# ---------------------------------------------------------------- create


@pytest.mark.parametrize("kind", KINDS)
def test_create_persists_policy_and_charges_rent(h, kind):
    res = h.create_policy(kind, 250)
    assert res.is_success, res.to_dict()
    policy = h.policy(kind)
    assert policy.authority == _owner(h, kind)
    assert policy.fee_collector == _owner(h, kind)
    assert policy.fee_bps == 250
    assert policy.version == 1
    rent = Rent().minimum_balance(FEE_POLICY_SIZE)
    assert rent == (128 + 68) * 3480 * 2
    assert h.ex.store.lamports(_owner(h, kind)) == LAMPORTS - rent
    assert h.ex.store.lamports(h.policy_key(kind)) == rent
    assert h.ex.store.owner(h.policy_key(kind)) == h.program_id


@pytest.mark.parametrize("kind", KINDS)
def test_create_accepts_cap_rejects_above(h, kind):
    assert h.create_policy(kind, 2501).custom_code == 11
    assert h.create_policy(kind, 2500).is_success


@pytest.mark.parametrize("kind", KINDS)
def test_create_requires_caller_to_be_collector(h, kind):
    res = h.create_policy(kind, 10, collector=_owner(h, kind), signer=h.payer)
    assert res.custom_code == 5


@pytest.mark.parametrize("kind", KINDS)
def test_create_requires_signature(h, kind):
    owner = _owner(h, kind)
    accounts = [AccountMeta.writable(owner), AccountMeta.writable(h.policy_key(kind))]
    res = h.ex.invoke(CreatePolicy(kind, owner, 10), accounts)
    assert res.custom_code == 5


def test_create_requires_writable_policy(h):
    owner = h.platform_authority
    accounts = [AccountMeta.signer(owner, writable=True), AccountMeta.readonly(h.platform_key)]
    res = h.ex.invoke(CreatePolicy(PolicyKind.PLATFORM, owner, 10), accounts)
    assert res.error_code == "INVALID_ACCOUNT_DATA"
    assert res.custom_code is None


@pytest.mark.parametrize("kind", KINDS)
def test_create_rejects_wrong_address(h, kind):
    res = h.create_policy(kind, 10, policy=key("not-a-policy"))
    assert res.custom_code == ADDRESS_ERR[kind]


@pytest.mark.parametrize("kind", KINDS)
def test_create_twice_is_already_initialized(h, kind):
    assert h.create_policy(kind, 10).is_success
    res = h.create_policy(kind, 20)
    assert res.custom_code == 12
    assert h.policy(kind).fee_bps == 10


def test_create_without_rent_funds_leaves_nothing(h):
    broke = key("broke")
    res = h.create_policy(PolicyKind.TRADE, 10, collector=broke)
    assert res.error_code == "INSUFFICIENT_FUNDS"
    assert h.ex.store.data_is_empty(h.trade_key(broke))


def test_create_with_too_few_accounts(h):
    res = h.ex.invoke(
        CreatePolicy(PolicyKind.PLATFORM, h.platform_authority, 10),
        [AccountMeta.signer(h.platform_authority, writable=True)],
    )
    assert res.error_code == "NOT_ENOUGH_ACCOUNT_KEYS"


def test_one_trade_policy_per_collector(h):
    other = key("other-trader")
    h.ex.store.airdrop(other, LAMPORTS)
    assert h.create_policy(PolicyKind.TRADE, 10).is_success
    assert h.create_policy(PolicyKind.TRADE, 20, collector=other).is_success
    assert h.policy(PolicyKind.TRADE).fee_bps == 10
    assert h.policy(PolicyKind.TRADE, other).fee_bps == 20


# ---------------------------------------------------------------- update


@pytest.mark.parametrize("kind", KINDS)
def test_update_rewrites_rate_only(ready, kind):
    before = ready.policy(kind)
    res = ready.update_policy(kind, 75)
    assert res.is_success, res.to_dict()
    after = ready.policy(kind)
    assert after.fee_bps == 75
    assert (after.authority, after.fee_collector, after.bump) == (before.authority, before.fee_collector, before.bump)


@pytest.mark.parametrize("kind", KINDS)
def test_update_above_cap(ready, kind):
    assert ready.update_policy(kind, 2501).custom_code == 11
    assert ready.policy(kind).fee_bps in (100, 50)


@pytest.mark.parametrize("kind", KINDS)
def test_update_uninitialized(h, kind):
    assert h.update_policy(kind, 10).custom_code == STATE_ERR[kind]


def test_update_new_collector_must_be_signer(ready):
    accounts = [AccountMeta.signer(ready.platform_authority), AccountMeta.writable(ready.platform_key)]
    res = ready.ex.invoke(UpdatePolicy(PolicyKind.PLATFORM, key("someone-else"), 10), accounts)
    assert res.custom_code == 5


def test_update_platform_by_non_authority(ready):
    intruder = key("intruder")
    res = ready.update_policy(PolicyKind.PLATFORM, 10, collector=intruder, signer=intruder)
    assert res.custom_code == 5
    assert ready.policy(PolicyKind.PLATFORM).fee_bps == 100


def test_update_trade_policy_address_follows_collector(ready):
    intruder = key("intruder")
    accounts = [AccountMeta.signer(intruder), AccountMeta.writable(ready.trade_key())]
    res = ready.ex.invoke(UpdatePolicy(PolicyKind.TRADE, intruder, 10), accounts)
    assert res.custom_code == 14


def test_update_requires_signature(ready):
    accounts = [AccountMeta.readonly(ready.platform_authority), AccountMeta.writable(ready.platform_key)]
    res = ready.ex.invoke(UpdatePolicy(PolicyKind.PLATFORM, ready.platform_authority, 10), accounts)
    assert res.custom_code == 5


def test_update_rejects_corrupt_record(ready):
    store = ready.ex.store
    store.write_data(ready.platform_key, bytes([7]), program_id=ready.program_id)  # bad version byte
    assert ready.update_policy(PolicyKind.PLATFORM, 10).custom_code == 10


# ---------------------------------------------------------------- withdraw


@pytest.mark.parametrize("kind", KINDS)
def test_withdraw_zero_takes_full_balance(ready, kind):
    vault = ready.token_account(ready.policy_key(kind), amount=12_345)
    dest = ready.token_account(_owner(ready, kind))
    res = ready.withdraw(kind, 0)
    assert res.is_success, res.to_dict()
    assert ready.balance(vault) == 0
    assert ready.balance(dest) == 12_345


@pytest.mark.parametrize("kind", KINDS)
def test_withdraw_partial(ready, kind):
    vault = ready.token_account(ready.policy_key(kind), amount=1_000)
    assert ready.withdraw(kind, 400).is_success
    assert ready.balance(vault) == 600
    assert ready.balance(ready.token_account(_owner(ready, kind))) == 400


@pytest.mark.parametrize("kind", KINDS)
def test_withdraw_over_balance_rejected(ready, kind):
    vault = ready.token_account(ready.policy_key(kind), amount=100)
    assert ready.withdraw(kind, 101).custom_code == 1
    assert ready.balance(vault) == 100


@pytest.mark.parametrize("kind", KINDS)
def test_withdraw_empty_vault_is_noop(ready, kind):
    ready.token_account(ready.policy_key(kind))
    res = ready.withdraw(kind, 0)
    assert res.is_success
    assert "nothing to withdraw" in res.logs


def test_withdraw_by_non_collector(ready):
    ready.token_account(ready.platform_key, amount=100)
    intruder = key("intruder")
    assert ready.withdraw(PolicyKind.PLATFORM, collector=intruder).custom_code == 5


def test_withdraw_trade_policy_derived_from_signer(ready):
    intruder = key("intruder")
    vault = ready.token_account(ready.trade_key(), amount=100)
    accounts = [
        AccountMeta.signer(intruder),
        AccountMeta.readonly(ready.trade_key()),
        AccountMeta.writable(vault),
        AccountMeta.writable(ready.token_account(intruder)),
    ]
    res = ready.ex.invoke(WithdrawFees(PolicyKind.TRADE, 0), accounts)
    assert res.custom_code == 14
    assert ready.balance(vault) == 100


@pytest.mark.parametrize("kind", KINDS)
def test_withdraw_destination_must_belong_to_collector(ready, kind):
    ready.token_account(ready.policy_key(kind), amount=100)
    res = ready.withdraw(kind, destination=ready.token_account(key("elsewhere")))
    assert res.custom_code == 4


@pytest.mark.parametrize("kind", KINDS)
def test_withdraw_destination_mint_must_match(ready, kind):
    ready.token_account(ready.policy_key(kind), amount=100)
    other_mint = key("other-mint")
    dest = ready.token_account(_owner(ready, kind), mint=other_mint)
    assert ready.withdraw(kind, destination=dest).custom_code == 4


@pytest.mark.parametrize("kind", KINDS)
def test_withdraw_fee_vault_must_be_canonical(ready, kind):
    stray = key("stray-vault")
    ready.ex.ledger.create_account(stray, owner=ready.policy_key(kind), mint=ready.mint)
    ready.ex.ledger.mint_to(stray, 50)
    assert ready.withdraw(kind, fee_vault=stray).custom_code == VAULT_ERR[kind]


def test_withdraw_fee_vault_owned_elsewhere(ready):
    foreign = ready.token_account(key("foreign"), amount=50)
    assert ready.withdraw(PolicyKind.PLATFORM, fee_vault=foreign).custom_code == 4


def test_withdraw_missing_fee_vault(ready):
    assert ready.withdraw(PolicyKind.PLATFORM).custom_code == 4
