import pytest
from eth_abi.packed import encode_packed
from eth_utils import keccak

from vrf import entropy
from vrf.config import ChainConfig, OracleParams
from vrf.errors import NotOwner
from vrf.ledger import LocalChain
from vrf.oracle import NativeVRF
from vrf.tests import account_for
from vrf.types.state import OracleState

OWNER = account_for(1)
BOB = account_for(3)


def _deploy(seed: int):
    chain = LocalChain(ChainConfig())
    chain.fund(OWNER.address, 10**20)
    addr = chain.deploy(NativeVRF, seed, OracleParams(), sender=OWNER.address)
    return chain, addr


def test_genesis_seeding_is_deterministic():
    c1, a1 = _deploy(7)
    c2, a2 = _deploy(7)
    c3, a3 = _deploy(8)
    r1 = c1.call(a1, "random_results", 0)
    assert r1 != 0
    assert r1 == c2.call(a2, "random_results", 0)
    assert c1.call(a1, "global_salt") == c2.call(a2, "global_salt")
    assert r1 != c3.call(a3, "random_results", 0)


def test_genesis_formulas():
    chain, addr = _deploy(7)
    deploy_block = chain.block(1)
    salt = entropy.genesis_salt(7, deploy_block, OWNER.address)
    assert chain.call(addr, "global_salt") == salt
    assert chain.call(addr, "random_results", 0) == entropy.genesis_random(7, salt, deploy_block)


def test_next_salt_is_keccak_of_salt_timestamp_submitter():
    expected = keccak(encode_packed(["uint256", "uint256", "address"], [5, 1_700_000_012, BOB.address]))
    assert entropy.next_salt(5, 1_700_000_012, BOB.address) == int.from_bytes(expected, "big")
    assert entropy.next_salt(5, 1_700_000_012, BOB.address) != entropy.next_salt(5, 1_700_000_024, BOB.address)


def test_history_uses_up_to_three_existing_predecessors():
    st = OracleState(owner=OWNER.address, params=OracleParams(), difficulty=1500)
    st.random_results.update({0: 10, 1: 11, 2: 12, 3: 13})
    assert entropy._history(st, 1) == [10]
    assert entropy._history(st, 2) == [11, 10]
    assert entropy._history(st, 4) == [13, 12, 11]
    del st.random_results[2]
    assert entropy._history(st, 4) == [13, 11]


def test_stage1_binds_submitter_nonce():
    st = OracleState(owner=OWNER.address, params=OracleParams(), difficulty=1500)
    st.random_results[0] = 10
    st.requesters[1] = OWNER.address
    a = entropy.stage1(st, 1, 42, BOB.address)
    st.nonces[BOB.address] = 1
    b = entropy.stage1(st, 1, 42, BOB.address)
    assert a != b
    assert len(a) == 32


def test_salt_rotates_and_nonce_increments_on_fulfilment(chain, accounts, oracle, make_requests, solve):
    make_requests(1)
    bob = accounts["bob"]
    old_salt = chain.call(oracle, "global_salt")
    block = chain.pending
    inp, sig = solve(bob, 1)
    chain.transact(oracle, "fulfill_randomness", [1], [inp], [sig], sender=bob.address)
    assert chain.call(oracle, "global_salt") == entropy.next_salt(old_salt, block.timestamp, bob.address)
    assert chain.call(oracle, "get_nonce", bob.address) == 1
    assert chain.call(oracle, "get_nonce", accounts["carol"].address) == 0


def test_owner_salt_update(chain, accounts, oracle):
    owner = accounts["owner"].address
    old = chain.call(oracle, "global_salt")
    ts = chain.pending.timestamp
    rcpt = chain.transact(oracle, "update_global_salt", 99, sender=owner)
    assert rcpt.return_value == entropy.mix_salt(old, 99, ts)
    assert chain.call(oracle, "global_salt") == rcpt.return_value

    with pytest.raises(NotOwner):
        chain.transact(oracle, "update_global_salt", 1, sender=accounts["mallory"].address)
    assert chain.call(oracle, "global_salt") == rcpt.return_value
