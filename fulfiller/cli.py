"""
native-vrf CLI

Commands:
  simulate : boot an in-process devnet, deploy the oracle, request N randoms
             and run one or more fulfillers until all are fulfilled; prints a
             JSON summary.
  config   : print the effective fulfiller/oracle/chain configuration as JSON.

Examples:
  native-vrf simulate --requests 3 --fulfillers 2 --min-difficulty 4 \\
      --expected-fulfill-time 2 --estimated-hash-power 2
  native-vrf config --config ./fulfiller.yaml

Environment:
  NATIVE_VRF_* (see vrf.config and fulfiller.config).

Signals:
  SIGINT/SIGTERM set the fulfillers' stop flag; in-flight rounds finish.
"""

from __future__ import annotations

import json
import logging
import signal
import threading
import time
from dataclasses import replace
from typing import Any, Dict, List, Optional

import typer
from eth_account import Account
from eth_utils import keccak

from vrf.ledger import LocalChain
from vrf.oracle import NativeVRF
from vrf.version import __version__

from .agent import Fulfiller
from .client import LocalOracleClient
from .config import ExecutorKind, FulfillerConfig
from .metrics import maybe_start_http_endpoint

log = logging.getLogger("fulfiller.cli")

app = typer.Typer(
    name="native-vrf",
    help="Native VRF oracle devnet and fulfiller.",
    no_args_is_help=True,
    add_completion=False,
)

_DEVNET_FUNDING = 10**21


def _setup_logging(level: str) -> None:
    lvl = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=lvl,
        format="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def devnet_key(label: str) -> str:
    """Deterministic devnet private key for `label` (NEVER use outside devnets)."""
    return "0x" + keccak(text=f"native-vrf/devnet/{label}").hex()


def fulfiller_keys(cfg: FulfillerConfig, count: int) -> List[str]:
    """Signing keys for `count` fulfillers; a configured key signs for the first."""
    keys = [devnet_key(f"fulfiller-{i}") for i in range(count)]
    if cfg.private_key:
        keys[0] = cfg.private_key
    return keys


def _load_config(path: Optional[str]) -> FulfillerConfig:
    return FulfillerConfig.from_file(path) if path else FulfillerConfig.from_env()


def _install_signal_handlers(stop: threading.Event) -> Dict[int, Any]:
    previous: Dict[int, Any] = {}

    def _handler(signum, _frame) -> None:
        log.info("signal %d received; stopping", signum)
        stop.set()

    if threading.current_thread() is threading.main_thread():
        for sig in (signal.SIGINT, signal.SIGTERM):
            previous[sig] = signal.signal(sig, _handler)
    return previous


def _restore_signal_handlers(previous: Dict[int, Any]) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)


@app.command("version")
def version() -> None:
    """Print the package version."""
    typer.echo(__version__)


@app.command("config")
def show_config(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="JSON/YAML config file"),
) -> None:
    """Print the effective configuration as JSON."""
    cfg = _load_config(config)
    typer.echo(json.dumps(cfg.to_dict(), indent=2, sort_keys=True))


@app.command("simulate")
def simulate(
    requests: int = typer.Option(3, "--requests", "-n", min=1, help="random values to request"),
    fulfillers: int = typer.Option(1, "--fulfillers", "-f", min=1, help="competing fulfillers"),
    seed: int = typer.Option(12345, "--seed", help="oracle deployment seed"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="JSON/YAML config file"),
    min_difficulty: Optional[int] = typer.Option(None, help="override difficulty floor"),
    expected_fulfill_time: Optional[int] = typer.Option(None, help="override expected fulfil time"),
    estimated_hash_power: Optional[int] = typer.Option(None, help="override estimated hash power"),
    poll_interval: Optional[float] = typer.Option(None, help="seconds between polling rounds"),
    max_attempts: Optional[int] = typer.Option(None, help="search budget per round"),
    workers: Optional[int] = typer.Option(None, help="search workers per fulfiller"),
    executor: Optional[ExecutorKind] = typer.Option(None, help="thread or process"),
    automine: Optional[bool] = typer.Option(None, "--automine/--no-automine", help="seal a block per tx"),
    timeout: float = typer.Option(120.0, help="give up after this many seconds"),
    metrics_port: Optional[int] = typer.Option(None, help="Prometheus scrape port (0 = off)"),
    log_level: str = typer.Option("info", help="debug, info, warning, error"),
) -> None:
    """Run an end-to-end devnet simulation and print a JSON summary."""
    _setup_logging(log_level)
    cfg = _load_config(config)

    oracle_overrides = {
        k: v
        for k, v in (
            ("min_difficulty", min_difficulty),
            ("expected_fulfill_time", expected_fulfill_time),
            ("estimated_hash_power", estimated_hash_power),
        )
        if v is not None
    }
    if oracle_overrides:
        cfg.oracle = replace(cfg.oracle, **oracle_overrides)
    if poll_interval is not None:
        cfg.poll_interval_s = poll_interval
    if max_attempts is not None:
        cfg.max_attempts = max_attempts
    if workers is not None:
        cfg.workers = workers
    if executor is not None:
        cfg.executor = executor
    if automine is not None:
        cfg.chain = replace(cfg.chain, automine=automine)
    if metrics_port is not None:
        cfg.metrics_port = metrics_port
    try:
        cfg.validate()
    except ValueError as e:
        typer.echo(f"invalid configuration: {e}", err=True)
        raise typer.Exit(code=2)

    maybe_start_http_endpoint(cfg.metrics_port)
    summary = run_simulation(cfg, requests=requests, fulfillers=fulfillers, seed=seed, timeout=timeout)
    typer.echo(json.dumps(summary, indent=2))
    if not summary["complete"]:
        raise typer.Exit(code=1)


def run_simulation(
    cfg: FulfillerConfig,
    *,
    requests: int,
    fulfillers: int,
    seed: int = 12345,
    timeout: float = 120.0,
) -> Dict[str, Any]:
    chain = LocalChain(cfg.chain)
    owner = Account.from_key(devnet_key("owner"))
    requester = Account.from_key(devnet_key("requester"))
    for acct in (owner, requester):
        chain.fund(acct.address, _DEVNET_FUNDING)

    oracle = chain.deploy(NativeVRF, seed, cfg.oracle, sender=owner.address)
    chain.transact(oracle, "whitelist_address", requester.address, sender=owner.address)
    chain.transact(
        oracle,
        "request_random",
        requests,
        sender=requester.address,
        value=cfg.oracle.min_reward * requests,
    )
    if not chain.automine:
        chain.mine()

    agents: List[Fulfiller] = []
    for i, key in enumerate(fulfiller_keys(cfg, fulfillers)):
        client = LocalOracleClient(chain, oracle, key, gas_limit=cfg.gas_limit)
        agents.append(Fulfiller(client, cfg, name=str(i)))

    stop = threading.Event()
    previous = _install_signal_handlers(stop)
    threads = [
        threading.Thread(target=a.run, args=(stop,), name=f"fulfiller-{i}", daemon=True)
        for i, a in enumerate(agents)
    ]
    started = time.monotonic()
    try:
        for t in threads:
            t.start()
        while not stop.is_set():
            if chain.call(oracle, "latest_fulfill_id") >= requests:
                break
            if time.monotonic() - started > timeout:
                log.warning("simulation timed out after %.1fs", timeout)
                break
            stop.wait(max(cfg.poll_interval_s, 0.01))
            if not chain.automine:
                chain.mine()
    finally:
        stop.set()
        for t in threads:
            t.join()
        _restore_signal_handlers(previous)

    chain.contract(oracle).state.check_invariants()
    state = chain.call(oracle, "summary")
    latest = state["latest_fulfill_id"]
    return {
        "oracle": oracle,
        "requested": requests,
        "latest_fulfill_id": latest,
        "pending": state["pending"],
        "complete": latest >= requests,
        "difficulty": state["difficulty"],
        "height": chain.height,
        "transactions": sum(len(chain.block_transactions(h)) for h in range(chain.pending.height + 1)),
        "fulfilled_events": len(chain.events.filter("RandomFullfilled")),
        "elapsed_s": round(time.monotonic() - started, 3),
        "randoms": {
            str(rid): hex(chain.call(oracle, "random_results", rid)) for rid in range(1, latest + 1)
        },
        "fulfillers": [
            {
                "address": a.client.address,
                "balance": chain.balance_of(a.client.address),
                "nonce": a.client.nonce(),
                "confirmed": a.stats.confirmed,
                "lost_races": a.stats.lost_races,
                "stale": a.stats.stale,
                "exhausted": a.stats.exhausted,
                "failed": a.stats.failed,
            }
            for a in agents
        ],
    }


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
