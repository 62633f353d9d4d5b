import threading
import time

import pytest

from fulfiller.agent import Fulfiller, State
from fulfiller.client import LocalOracleClient
from fulfiller.config import FulfillerConfig


def _rounds(metrics, outcome: str) -> float:
    return metrics.registry.get_sample_value("native_vrf_fulfiller_rounds_total", {"outcome": outcome}) or 0.0


def _submissions(metrics, outcome: str) -> float:
    return metrics.registry.get_sample_value("native_vrf_fulfiller_submissions_total", {"outcome": outcome}) or 0.0


class HookedClient(LocalOracleClient):
    """Runs `before_submit` once, just before the transaction is sent."""

    before_submit = None

    def submit(self, request_ids, inputs, signatures):
        hook, self.before_submit = self.before_submit, None
        if hook is not None:
            hook()
        return super().submit(request_ids, inputs, signatures)


class HardClient(LocalOracleClient):
    def difficulty(self) -> int:
        return 2**200


class BrokenClient(LocalOracleClient):
    def submit(self, request_ids, inputs, signatures):
        raise RuntimeError("connection reset")


class FlakyReadClient(LocalOracleClient):
    """First read of the request counter fails."""

    failures = 1

    def current_request_id(self) -> int:
        if self.failures:
            self.failures -= 1
            raise ConnectionError("rpc timeout")
        return super().current_request_id()


def test_idle_when_nothing_pending(accounts, client_for, fast_config, isolated_metrics):
    agent = Fulfiller(client_for(accounts["bob"]), fast_config, metrics=isolated_metrics)
    res = agent.tick()
    assert res.outcome == "idle"
    assert agent.state is State.POLLING
    assert _rounds(isolated_metrics, "idle") == 1


def test_fulfils_in_order_then_idles(chain, oracle, accounts, make_requests, client_for, fast_config, isolated_metrics):
    make_requests(2)
    agent = Fulfiller(client_for(accounts["bob"]), fast_config, metrics=isolated_metrics, name="bob")
    first, second, third = agent.tick(), agent.tick(), agent.tick()
    assert (first.outcome, first.request_id) == ("confirmed", 1)
    assert (second.outcome, second.request_id) == ("confirmed", 2)
    assert third.outcome == "idle"
    assert first.random == chain.call(oracle, "random_results", 1)
    assert agent.stats.fulfilled_ids == [1, 2]
    assert agent.stats.confirmed == 2
    assert _submissions(isolated_metrics, "accepted") == 2
    assert isolated_metrics.registry.get_sample_value("native_vrf_fulfiller_search_attempts_count") == 2


def test_lost_race_before_submission(chain, oracle, accounts, make_requests, client_for, fast_config, isolated_metrics):
    make_requests(1)
    rival = Fulfiller(client_for(accounts["carol"]), fast_config, metrics=isolated_metrics)

    class Racing(Fulfiller):
        def solve(self, snap):
            sol = super().solve(snap)
            assert rival.tick().confirmed
            return sol

    agent = Racing(client_for(accounts["bob"]), fast_config, metrics=isolated_metrics)
    res = agent.tick()
    assert res.outcome == "lost_race"
    assert res.error == "already_fulfilled"
    assert agent.stats.lost_races == 1
    assert _submissions(isolated_metrics, "skipped") == 1
    assert agent.tick().outcome == "idle"


def test_lost_race_at_submission(chain, oracle, accounts, make_requests, client_for, fast_config, isolated_metrics):
    make_requests(1)
    rival = Fulfiller(client_for(accounts["carol"]), fast_config, metrics=isolated_metrics)
    client = client_for(accounts["bob"], cls=HookedClient)
    client.before_submit = rival.tick

    agent = Fulfiller(client, fast_config, metrics=isolated_metrics)
    res = agent.tick()
    assert res.outcome == "lost_race"
    assert _submissions(isolated_metrics, "reverted") == 1
    assert chain.call(oracle, "latest_fulfill_id") == 1
    assert rival.stats.fulfilled_ids == [1]


def test_stale_height_is_retried(chain, accounts, make_requests, client_for, fast_config, isolated_metrics):
    make_requests(1)
    client = client_for(accounts["bob"], cls=HookedClient)
    client.before_submit = chain.mine

    agent = Fulfiller(client, fast_config, metrics=isolated_metrics)
    res = agent.tick()
    assert res.outcome == "stale"
    assert res.error == "invalid_signature"
    assert agent.stats.stale == 1

    res = agent.tick()
    assert res.confirmed
    assert agent.stats.confirmed == 1


def test_exhaustion_is_not_fatal(accounts, make_requests, client_for, isolated_metrics):
    make_requests(1)
    cfg = FulfillerConfig(poll_interval_s=0.0, max_attempts=3)
    agent = Fulfiller(client_for(accounts["bob"], cls=HardClient), cfg, metrics=isolated_metrics)
    res = agent.tick()
    assert res.outcome == "exhausted"
    assert res.error == "search_exhausted"
    assert agent.stats.exhausted == 1
    assert agent.tick().outcome == "exhausted"


def test_transport_failure_is_logged_and_survived(accounts, make_requests, client_for, fast_config, isolated_metrics, caplog):
    make_requests(1)
    agent = Fulfiller(client_for(accounts["bob"], cls=BrokenClient), fast_config, metrics=isolated_metrics)
    with caplog.at_level("ERROR", logger="fulfiller.agent"):
        res = agent.tick()
    assert res.outcome == "failed"
    assert "connection reset" in res.error
    assert agent.stats.failed == 1
    assert any("submission for request 1 failed" in r.getMessage() for r in caplog.records)


def test_failed_read_does_not_stop_the_loop(chain, oracle, accounts, make_requests, client_for, fast_config, isolated_metrics, caplog):
    make_requests(1)
    agent = Fulfiller(client_for(accounts["bob"], cls=FlakyReadClient), fast_config, metrics=isolated_metrics)
    with caplog.at_level("ERROR", logger="fulfiller.agent"):
        stats = agent.run(threading.Event(), max_rounds=3)
    assert stats.rounds == 3
    assert stats.failed == 1
    assert stats.fulfilled_ids == [1]
    assert chain.call(oracle, "latest_fulfill_id") == 1
    assert _rounds(isolated_metrics, "failed") == 1
    assert any(r.exc_info and "rpc timeout" in str(r.exc_info[1]) for r in caplog.records)


def test_parallel_workers(chain, oracle, accounts, make_requests, client_for, isolated_metrics):
    make_requests(2)
    cfg = FulfillerConfig(poll_interval_s=0.0, workers=3, chunk_size=2)
    agent = Fulfiller(client_for(accounts["bob"]), cfg, metrics=isolated_metrics)
    assert agent.tick().confirmed
    assert agent.tick().confirmed
    assert chain.call(oracle, "latest_fulfill_id") == 2


def test_run_honours_stop_flag(accounts, client_for, fast_config, isolated_metrics):
    agent = Fulfiller(client_for(accounts["bob"]), fast_config, metrics=isolated_metrics)
    stop = threading.Event()
    stop.set()
    assert agent.run(stop).rounds == 0
    assert agent.state is State.IDLE

    stop.clear()
    assert agent.run(stop, max_rounds=3).rounds == 3


def test_competing_fulfillers_share_the_work(chain, oracle, accounts, make_requests, client_for, isolated_metrics):
    make_requests(4)
    cfg = FulfillerConfig(poll_interval_s=0.005, max_attempts=20_000)
    agents = [
        Fulfiller(client_for(accounts[name]), cfg, metrics=isolated_metrics, name=name)
        for name in ("bob", "carol")
    ]
    stop = threading.Event()
    threads = [threading.Thread(target=a.run, args=(stop,), daemon=True) for a in agents]
    for t in threads:
        t.start()
    deadline = time.monotonic() + 60
    while chain.call(oracle, "latest_fulfill_id") < 4 and time.monotonic() < deadline:
        time.sleep(0.01)
    stop.set()
    for t in threads:
        t.join(timeout=30)

    assert chain.call(oracle, "latest_fulfill_id") == 4
    fulfilled = sorted(rid for a in agents for rid in a.stats.fulfilled_ids)
    assert fulfilled == [1, 2, 3, 4]
    chain.contract(oracle).state.check_invariants()


@pytest.mark.parametrize("outcome", ["idle", "bogus"])
def test_round_metrics_vocabulary(isolated_metrics, outcome):
    isolated_metrics.record_round(outcome)
    expected = outcome if outcome == "idle" else "failed"
    assert _rounds(isolated_metrics, expected) == 1
