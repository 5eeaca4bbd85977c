"""
Caller-side memoization of score reports.

Keyed by ``(identity, source snapshot)`` so a change of configured networks
never serves a stale report. Reports computed with unavailable sources are
not cached, so a transient outage does not pin a low score.
"""

from datetime import datetime, timedelta
from typing import Callable, Dict, Hashable, Optional, Tuple

from chainfolio.engines.scoring.activity_engine import ActivityScoringEngine, ScoreReport
from chainfolio.kernel.identity.address import normalize_identity
from chainfolio.logging_config import get_logger

logger = get_logger(__name__)

CacheKey = Tuple[str, Hashable]


class ScoreCache:
    """TTL cache for complete score reports."""

    def __init__(
        self,
        ttl: timedelta = timedelta(minutes=5),
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[CacheKey, Tuple[datetime, ScoreReport]] = {}

    def get(self, identity: str, snapshot: Hashable) -> Optional[ScoreReport]:
        key = (normalize_identity(identity), snapshot)
        cached = self._entries.get(key)
        if cached is None:
            return None
        stored_at, report = cached
        if self._expired(stored_at, self.clock()):
            self._entries.pop(key, None)
            return None
        return report

    def put(self, report: ScoreReport, snapshot: Hashable) -> bool:
        """Store ``report``; returns False when it was partial and skipped."""
        if report.partial:
            return False
        now = self.clock()
        self._prune(now)
        self._entries[(report.identity, snapshot)] = (now, report)
        return True

    def _expired(self, stored_at: datetime, now: datetime) -> bool:
        return now - stored_at >= self.ttl

    def _prune(self, now: datetime) -> None:
        expired = [k for k, (stored_at, _) in self._entries.items() if self._expired(stored_at, now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Pruned expired score reports", extra={"count": len(expired)})

    def invalidate(self, identity: str) -> None:
        identity = normalize_identity(identity)
        for key in [k for k in self._entries if k[0] == identity]:
            self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


async def get_or_compute(
    engine: ActivityScoringEngine,
    cache: ScoreCache,
    identity: str,
    timeout: Optional[float] = None,
    refresh: bool = False,
) -> Tuple[ScoreReport, bool]:
    """
    Cached report for ``identity`` or a freshly computed one.

    Returns:
        (report, served_from_cache)
    """
    snapshot = engine.snapshot_key()
    if not refresh:
        cached = cache.get(identity, snapshot)
        if cached is not None:
            logger.debug("Score served from cache", extra={"identity": cached.identity})
            return cached, True
    report = await engine.compute(identity, timeout=timeout)
    cache.put(report, snapshot)
    return report, False
