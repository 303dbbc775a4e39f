from ln_escrow.state.accounts import Account
from ln_escrow.state.journal import Journal
from ln_escrow.types.pubkey import Pubkey

from .conftest import key


def _journal(base=None):
    return Journal({} if base is None else base, copy=Account.copy)


def test_writes_stay_in_overlay_until_root_commit():
    base = {}
    j = _journal(base)
    j.begin()
    j.put(key("a"), Account(lamports=5))
    assert j.get(key("a")).lamports == 5
    j.commit()
    assert base == {}
    j.commit()
    assert base[key("a")].lamports == 5


def test_revert_discards_top_layer_only():
    j = _journal()
    j.put(key("a"), Account(lamports=1))
    j.begin()
    j.put(key("a"), Account(lamports=2))
    j.put(key("b"), Account(lamports=3))
    j.revert()
    assert j.get(key("a")).lamports == 1
    assert j.get(key("b")) is None


def test_get_for_write_copies_up():
    base = {key("a"): Account(lamports=10)}
    j = _journal(base)
    j.begin()
    acc = j.get_for_write(key("a"))
    acc.lamports = 4
    assert base[key("a")].lamports == 10
    j.revert()
    assert j.get(key("a")).lamports == 10
    assert j.get_for_write(key("zzz")) is None


def test_nested_markers():
    j = _journal()
    outer = j.begin()
    j.put(key("a"), Account(lamports=1))
    j.begin()
    j.put(key("b"), Account(lamports=2))
    j.begin()
    j.put(key("c"), Account(lamports=3))
    j.revert_to(outer)
    assert j.depth() == outer
    assert key("a") in j
    assert key("c") not in j
    j.commit_to(1)
    assert j.pending_keys() == {key("a")}


def test_flush_writes_everything_to_base():
    base = {}
    j = _journal(base)
    j.begin()
    j.put(key("a"), Account(lamports=1, owner=Pubkey.default()))
    j.begin()
    j.put(key("b"), Account(lamports=2))
    j.flush()
    assert set(base) == {key("a"), key("b")}
    assert j.depth() == 1
    assert j.pending_keys() == set()


def test_items_prefers_upper_layers():
    base = {key("a"): Account(lamports=1)}
    j = _journal(base)
    j.begin()
    j.put(key("a"), Account(lamports=9))
    j.put(key("b"), Account(lamports=2))
    seen = {k: v.lamports for k, v in j.items()}
    assert seen == {key("a"): 9, key("b"): 2}
