"""Difficulty retargeting against real block boundaries (manual mining)."""

import pytest

from vrf.config import ChainConfig


@pytest.fixture
def chain_config() -> ChainConfig:
    return ChainConfig(automine=False)


def _fulfil_next(chain, oracle, account, solve):
    rid = chain.call(oracle, "latest_fulfill_id") + 1
    inp, sig = solve(account, rid)
    return chain.transact(oracle, "fulfill_randomness", [rid], [inp], [sig], sender=account.address)


def test_transactions_share_the_pending_block(chain, accounts, oracle, make_requests):
    h = chain.pending.height
    make_requests(1)
    assert chain.pending.height == h
    assert len(chain.block_transactions(h)) == 3  # deploy, whitelist, request
    head = chain.mine()
    assert head.height == h
    assert chain.pending.height == h + 1


def test_retarget_once_per_block(chain, accounts, oracle, make_requests, solve):
    bob, carol = accounts["bob"], accounts["carol"]
    make_requests(5)
    chain.mine()
    h = chain.pending.height
    assert chain.call(oracle, "difficulty") == 4

    # three fulfilments inside one block; the first resets to the floor
    for solver in (bob, carol, bob):
        rcpt = _fulfil_next(chain, oracle, solver, solve)
        assert rcpt.block_height == h
        assert chain.call(oracle, "difficulty") == 2
    assert chain.call(oracle, "n_block_fulfillments", h) == 3
    assert chain.call(oracle, "latest_fulfillment_block") == h
    assert chain.call(oracle, "get_nonce", bob.address) == 2
    assert chain.call(oracle, "get_nonce", carol.address) == 1

    # next block: 3 fulfilments over a 1-block gap triples the difficulty
    chain.mine()
    _fulfil_next(chain, oracle, bob, solve)
    assert chain.call(oracle, "difficulty") == 6
    assert chain.call(oracle, "latest_fulfillment_block") == h + 1

    # a 3-block lull after a single fulfilment drops straight to the floor
    chain.mine(3)
    assert chain.pending.height == h + 4
    _fulfil_next(chain, oracle, carol, solve)
    assert chain.call(oracle, "difficulty") == 2
    assert chain.call(oracle, "latest_fulfill_id") == 5
    chain.contract(oracle).state.check_invariants()


def test_batch_counts_every_fulfilment(chain, accounts, oracle, make_requests, solve):
    bob = accounts["bob"]
    make_requests(3)
    chain.mine()
    inp1, sig1 = solve(bob, 1)
    preview = chain.call(oracle, "fulfill_randomness", [1], [inp1], [sig1], sender=bob.address)
    inp2, sig2 = solve(bob, 2, nonce=1, prev_random=preview[0])
    rcpt = chain.transact(oracle, "fulfill_randomness", [1, 2], [inp1, inp2], [sig1, sig2], sender=bob.address)
    h = rcpt.block_height
    assert chain.call(oracle, "n_block_fulfillments", h) == 2

    chain.mine()
    _fulfil_next(chain, oracle, bob, solve)
    # prev=2 fulfilments, gap=1 block
    assert chain.call(oracle, "difficulty") == 4
