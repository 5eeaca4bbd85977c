"""
Shared test doubles and constants.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Union

from chainfolio.engines.scoring import NetworkActivity, NetworkConfig
from chainfolio.kernel.errors import SourceUnavailable


AUTHORITY = "0x" + "a1" * 20
ALICE = "0x" + "11" * 20
BOB = "0x" + "22" * 20
CAROL = "0x" + "33" * 20

TEST_SECRET_KEY = "test-secret-key-for-testing-only-32-chars"

L1 = NetworkConfig(name="sepolia", chain_id=11155111, rpc_url="https://l1.test", is_mainnet=True)
L2 = NetworkConfig(name="base-sepolia", chain_id=84532, rpc_url="https://l2.test")


class FixedClock:
    """Deterministic clock; advance() moves it forward."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


Outcome = Union[NetworkActivity, Exception]


class FakeChainSource:
    """
    In-memory chain data source.

    ``outcomes`` maps network name to the activity to return or the
    exception to raise; ``delays`` maps network name to seconds to sleep
    first. Unknown networks report no activity.
    """

    def __init__(
        self,
        outcomes: Optional[Dict[str, Outcome]] = None,
        delays: Optional[Dict[str, float]] = None,
    ):
        self.outcomes = outcomes or {}
        self.delays = delays or {}
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def query_activity(self, identity: str, network: NetworkConfig) -> NetworkActivity:
        self.calls.append((identity, network.name))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.delays.get(network.name, 0)
            if delay:
                await asyncio.sleep(delay)
            outcome = self.outcomes.get(network.name, NetworkActivity.absent(network.name))
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        finally:
            self.in_flight -= 1


def unavailable(network: str) -> SourceUnavailable:
    return SourceUnavailable(network, "connection refused")

