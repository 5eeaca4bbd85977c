"""
Activity Scoring Engine - cross-network orchestration.

For one identity, every configured network is queried concurrently with
its own timeout. Aggregation waits until every query has settled. A failed
or timed-out source contributes absent signals and is listed in
``failed_sources``; only when every source fails does the call raise
NoSourcesAvailable. An optional overall deadline raises ScoringTimeout.

The engine keeps no per-call state, so concurrent calls (for the same or
different identities) are independent and callers may memoize results.
"""

import asyncio
from typing import List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, computed_field

from chainfolio.engines.scoring.chain_sources import ChainDataSource
from chainfolio.engines.scoring.scorer import ActivityScorer
from chainfolio.engines.scoring.signals import (
    ActivitySignals,
    NetworkActivity,
    NetworkConfig,
    aggregate_signals,
)
from chainfolio.kernel.errors import NoSourcesAvailable, ScoringTimeout, SourceUnavailable
from chainfolio.kernel.identity.address import normalize_identity
from chainfolio.kernel.models.credential import Tier
from chainfolio.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_SOURCE_TIMEOUT = 8.0


class FailedSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    network: str
    reason: str


class ScoreReport(BaseModel):
    """Score and tier for one identity, with the evidence behind them."""

    model_config = ConfigDict(frozen=True)

    identity: str
    score: int
    tier: Tier
    signals: ActivitySignals
    networks: List[NetworkActivity]
    failed_sources: List[FailedSource]

    @computed_field
    @property
    def partial(self) -> bool:
        """True when some sources were unavailable."""
        return bool(self.failed_sources)


class ActivityScoringEngine:
    """
    Gathers activity from N chain data sources and scores it.

    Usage:
        engine = ActivityScoringEngine(networks, RpcChainSource())
        report = await engine.compute("0xabc...", timeout=20.0)
    """

    def __init__(
        self,
        networks: Sequence[NetworkConfig],
        source: ChainDataSource,
        source_timeout: float = DEFAULT_SOURCE_TIMEOUT,
    ):
        mainnets = [n.name for n in networks if n.is_mainnet]
        if len(mainnets) > 1:
            raise ValueError(f"Only one mainnet network may be designated, got {mainnets}")
        names = [n.name for n in networks]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate network names: {names}")
        self.networks: Tuple[NetworkConfig, ...] = tuple(networks)
        self.mainnet_network: Optional[str] = mainnets[0] if mainnets else None
        self.source = source
        self.source_timeout = source_timeout

    def snapshot_key(self) -> Tuple[Tuple[str, str, Optional[str]], ...]:
        """Identifies the configured source set, for cache keys."""
        return tuple((n.name, n.rpc_url, n.explorer_api_url) for n in self.networks)

    async def compute(self, identity: str, timeout: Optional[float] = None) -> ScoreReport:
        """
        Score ``identity`` across all configured networks.

        Args:
            identity: Account address
            timeout: Overall deadline in seconds; None or 0 disables it

        Raises:
            InvalidIdentity: identity is not an account address
            NoSourcesAvailable: every source failed
            ScoringTimeout: the overall deadline passed first
        """
        identity = normalize_identity(identity)
        if not timeout:
            return await self._compute(identity)
        try:
            return await asyncio.wait_for(self._compute(identity), timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.warning("Scoring deadline exceeded", extra={"identity": identity, "timeout": timeout})
            raise ScoringTimeout(f"Scoring did not finish within {timeout}s") from e

    async def _query(
        self,
        identity: str,
        network: NetworkConfig,
    ) -> Union[NetworkActivity, SourceUnavailable]:
        try:
            activity = await asyncio.wait_for(
                self.source.query_activity(identity, network),
                timeout=self.source_timeout,
            )
        except asyncio.TimeoutError:
            return SourceUnavailable(network.name, f"timed out after {self.source_timeout}s")
        except SourceUnavailable as e:
            return e
        if activity.network != network.name:
            # Sources must answer for the network they were asked about
            return SourceUnavailable(network.name, f"answered for {activity.network!r}")
        return activity

    async def _compute(self, identity: str) -> ScoreReport:
        outcomes = await asyncio.gather(
            *(self._query(identity, network) for network in self.networks),
            return_exceptions=True,
        )
        # Anything other than SourceUnavailable is a defect; surface it once all settled
        for outcome in outcomes:
            if isinstance(outcome, BaseException) and not isinstance(outcome, SourceUnavailable):
                raise outcome

        activities: List[NetworkActivity] = []
        failures: List[SourceUnavailable] = []
        for network, outcome in zip(self.networks, outcomes):
            if isinstance(outcome, SourceUnavailable):
                failures.append(outcome)
                activities.append(NetworkActivity.absent(network.name))
            else:
                activities.append(outcome)

        if len(failures) == len(self.networks):
            logger.error(
                "All chain data sources unavailable",
                extra={"identity": identity, "failed": [f.network for f in failures]},
            )
            raise NoSourcesAvailable(failures)

        if failures:
            logger.warning(
                "Scoring with partial sources",
                extra={"identity": identity, "failed": [f.network for f in failures]},
            )

        signals = aggregate_signals(activities, self.mainnet_network)
        result = ActivityScorer.score(signals)
        return ScoreReport(
            identity=identity,
            score=result.score,
            tier=result.tier,
            signals=signals,
            networks=activities,
            failed_sources=[FailedSource(network=f.network, reason=f.reason) for f in failures],
        )
