from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Set

from ..config import OracleParams
from ..constants import GENESIS_REQUEST_ID, ZERO_ADDRESS
from .core import Address, Request, RequestId


@dataclass
class OracleState:
    """
    The single owned state object of a deployed oracle.

    Only the oracle's own operations mutate it, always inside a ledger
    transaction, so every mutation is atomic with respect to observers.

    Fields:
      owner                    — privileged administrator
      params                   — deployment-time difficulty/reward parameters
      difficulty               — current puzzle difficulty (>= params.min_difficulty)
      global_salt              — rotating 256-bit salt
      next_request_id          — id the next request will receive (starts at 1)
      latest_fulfill_id        — highest fulfilled id (0 = only the genesis random)
      latest_fulfillment_block — height of the last block with a fulfilment
      block_fulfillments       — fulfilments counted per block height
      whitelist                — addresses allowed to request
      nonces                   — per-solver submission counters
      requesters               — request id → requester
      rewards                  — request id → escrowed reward still owed
      random_results           — request id → random value
    """

    owner: Address
    params: OracleParams
    difficulty: int
    global_salt: int = 0
    next_request_id: int = 1
    latest_fulfill_id: int = 0
    latest_fulfillment_block: int = 0
    block_fulfillments: Dict[int, int] = field(default_factory=dict)
    whitelist: Set[Address] = field(default_factory=set)
    nonces: Dict[Address, int] = field(default_factory=dict)
    requesters: Dict[int, Address] = field(default_factory=dict)
    rewards: Dict[int, int] = field(default_factory=dict)
    random_results: Dict[int, int] = field(default_factory=dict)

    # ---- views -------------------------------------------------------------

    def request(self, request_id: int) -> Request:
        return Request(
            id=RequestId(request_id),
            requester=self.requesters.get(request_id),
            reward=self.rewards.get(request_id, 0),
            random=self.random_results.get(request_id),
        )

    def random_result(self, request_id: int) -> int:
        """Legacy accessor: 0 for absent entries."""
        return self.random_results.get(request_id, 0)

    def request_initializer(self, request_id: int) -> Address:
        """Legacy accessor: the zero address for absent entries."""
        return self.requesters.get(request_id, Address(ZERO_ADDRESS))

    def nonce_of(self, address: Address) -> int:
        return self.nonces.get(address, 0)

    def fulfillments_at(self, height: int) -> int:
        return self.block_fulfillments.get(height, 0)

    def is_fulfilled(self, request_id: int) -> bool:
        return request_id in self.random_results

    def pending_ids(self) -> range:
        return range(self.latest_fulfill_id + 1, self.next_request_id)

    # ---- invariants --------------------------------------------------------

    def check_invariants(self) -> None:
        """Raise AssertionError if a structural invariant does not hold."""
        assert self.latest_fulfill_id < self.next_request_id, (
            f"latest_fulfill_id {self.latest_fulfill_id} >= next_request_id {self.next_request_id}"
        )
        assert self.difficulty >= self.params.min_difficulty, (
            f"difficulty {self.difficulty} below floor {self.params.min_difficulty}"
        )
        assert GENESIS_REQUEST_ID in self.random_results, "genesis random missing"
        for rid in range(1, self.latest_fulfill_id + 1):
            assert rid in self.random_results, f"id {rid} <= latest_fulfill_id has no random"
        for rid in self.random_results:
            assert rid <= self.latest_fulfill_id, f"id {rid} > latest_fulfill_id has a random"
        for rid in self.requesters:
            assert 1 <= rid < self.next_request_id, f"requester recorded for unissued id {rid}"

    def summary(self) -> Dict[str, object]:
        return {
            "owner": self.owner,
            "difficulty": self.difficulty,
            "next_request_id": self.next_request_id,
            "latest_fulfill_id": self.latest_fulfill_id,
            "pending": len(self.pending_ids()),
            "latest_fulfillment_block": self.latest_fulfillment_block,
            "whitelisted": len(self.whitelist),
        }


__all__ = ["OracleState"]
