import pytest

from ln_escrow.address import DEFAULT_PROGRAM_ID, associated_token_address, escrow_address
from ln_escrow.constants import ESCROW_SEED, U64_MAX
from ln_escrow.errors import InvalidTokenAccount, InvalidVaultAta, TokenError
from ln_escrow.token import InMemoryTokenLedger, TokenLedger, TransferGateway

from .conftest import key

PH = b"\x42" * 32


@pytest.fixture()
def ledger():
    return InMemoryTokenLedger()


@pytest.fixture()
def mint():
    return key("mint")


def _funded(ledger, owner, mint, amount):
    addr = associated_token_address(owner, mint)
    ledger.create_account(addr, owner=owner, mint=mint)
    if amount:
        ledger.mint_to(addr, amount)
    return addr


def test_in_memory_ledger_satisfies_port(ledger):
    assert isinstance(ledger, TokenLedger)


# ---------------------------------------------------------------- ledger


def test_transfer_moves_balance_and_keeps_supply(ledger, mint):
    alice, bob = key("alice"), key("bob")
    a = _funded(ledger, alice, mint, 100)
    b = _funded(ledger, bob, mint, 0)
    ledger.transfer(a, b, 40)
    assert (ledger.balance(a), ledger.balance(b)) == (60, 40)
    assert ledger.total_supply(mint) == 100


@pytest.mark.parametrize(
    "amount,msg",
    [(101, "insufficient funds"), (-1, "out of range"), (U64_MAX + 1, "out of range")],
)
def test_transfer_amount_guards(ledger, mint, amount, msg):
    a = _funded(ledger, key("alice"), mint, 100)
    b = _funded(ledger, key("bob"), mint, 0)
    with pytest.raises(TokenError, match=msg):
        ledger.transfer(a, b, amount)
    assert ledger.balance(a) == 100


def test_transfer_rejects_mint_mismatch(ledger, mint):
    a = _funded(ledger, key("alice"), mint, 10)
    b = _funded(ledger, key("bob"), key("other-mint"), 0)
    with pytest.raises(TokenError, match="mint mismatch"):
        ledger.transfer(a, b, 1)


def test_transfer_to_unknown_account(ledger, mint):
    a = _funded(ledger, key("alice"), mint, 10)
    with pytest.raises(TokenError, match="unknown"):
        ledger.transfer(a, key("nowhere"), 1)


def test_self_transfer_is_noop(ledger, mint):
    a = _funded(ledger, key("alice"), mint, 10)
    ledger.transfer(a, a, 10)
    assert ledger.balance(a) == 10


def test_duplicate_account_rejected(ledger, mint):
    _funded(ledger, key("alice"), mint, 0)
    with pytest.raises(TokenError, match="already exists"):
        _funded(ledger, key("alice"), mint, 0)


def test_checkpoint_revert_and_commit(ledger, mint):
    a = _funded(ledger, key("alice"), mint, 10)
    b = _funded(ledger, key("bob"), mint, 0)

    ledger.checkpoint()
    ledger.transfer(a, b, 3)
    ledger.revert()
    assert ledger.balance(b) == 0

    ledger.checkpoint()
    ledger.transfer(a, b, 3)
    ledger.commit()
    assert ledger.balance(b) == 3


# ---------------------------------------------------------------- gateway


def test_load_reports_missing_account_with_chosen_error(ledger):
    gw = TransferGateway(ledger, program_id=DEFAULT_PROGRAM_ID)
    with pytest.raises(InvalidTokenAccount):
        gw.load(key("missing"))
    with pytest.raises(InvalidVaultAta, match="no vault"):
        gw.load(key("missing"), error=InvalidVaultAta, message="no vault")
    assert not gw.exists(key("missing"))


def test_signer_may_move_own_tokens(ledger, mint):
    alice = key("alice")
    a = _funded(ledger, alice, mint, 5)
    b = _funded(ledger, key("bob"), mint, 0)
    gw = TransferGateway(ledger, program_id=DEFAULT_PROGRAM_ID, signers={alice})
    gw.transfer(a, b, authority=alice, amount=5)
    assert ledger.balance(b) == 5


def test_non_signer_cannot_move_tokens(ledger, mint):
    alice = key("alice")
    a = _funded(ledger, alice, mint, 5)
    b = _funded(ledger, key("bob"), mint, 0)
    gw = TransferGateway(ledger, program_id=DEFAULT_PROGRAM_ID)
    with pytest.raises(TokenError, match="did not sign"):
        gw.transfer(a, b, authority=alice, amount=1)


def test_authority_must_own_source(ledger, mint):
    alice, mallory = key("alice"), key("mallory")
    a = _funded(ledger, alice, mint, 5)
    b = _funded(ledger, mallory, mint, 0)
    gw = TransferGateway(ledger, program_id=DEFAULT_PROGRAM_ID, signers={mallory})
    with pytest.raises(TokenError, match="source owner"):
        gw.transfer(a, b, authority=mallory, amount=1)


def test_derived_authority_signs_with_seeds(ledger, mint):
    escrow, bump = escrow_address(DEFAULT_PROGRAM_ID, PH)
    vault = _funded(ledger, escrow, mint, 7)
    out = _funded(ledger, key("bob"), mint, 0)
    gw = TransferGateway(ledger, program_id=DEFAULT_PROGRAM_ID)
    gw.transfer(vault, out, authority=escrow, amount=7, signer_seeds=[ESCROW_SEED, PH, bytes([bump])])
    assert ledger.balance(out) == 7


def test_seeds_must_derive_authority(ledger, mint):
    escrow, bump = escrow_address(DEFAULT_PROGRAM_ID, PH)
    vault = _funded(ledger, escrow, mint, 7)
    out = _funded(ledger, key("bob"), mint, 0)
    gw = TransferGateway(ledger, program_id=DEFAULT_PROGRAM_ID)
    with pytest.raises(TokenError, match="do not derive"):
        gw.transfer(vault, out, authority=escrow, amount=1, signer_seeds=[ESCROW_SEED, b"\x43" * 32, bytes([bump])])


def test_seeds_are_bound_to_program_id(ledger, mint):
    escrow, bump = escrow_address(DEFAULT_PROGRAM_ID, PH)
    vault = _funded(ledger, escrow, mint, 7)
    out = _funded(ledger, key("bob"), mint, 0)
    gw = TransferGateway(ledger, program_id=key("another-program"))
    with pytest.raises(TokenError):
        gw.transfer(vault, out, authority=escrow, amount=1, signer_seeds=[ESCROW_SEED, PH, bytes([bump])])
    assert ledger.balance(vault) == 7


def test_create_associated_account_checks_address(ledger, mint):
    owner = key("owner")
    gw = TransferGateway(ledger, program_id=DEFAULT_PROGRAM_ID)
    with pytest.raises(TokenError, match="not the associated"):
        gw.create_associated_account(key("elsewhere"), owner=owner, mint=mint)
    acc = gw.create_associated_account(associated_token_address(owner, mint), owner=owner, mint=mint)
    assert (acc.owner, acc.mint, acc.amount) == (owner, mint, 0)
