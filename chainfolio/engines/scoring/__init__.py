"""
Scoring Engine - cross-chain activity signals to score and tier.
"""

from chainfolio.engines.scoring.signals import (
    ActivitySignals,
    NetworkActivity,
    NetworkConfig,
    aggregate_signals,
)
from chainfolio.engines.scoring.scorer import ActivityScorer, ScoreResult, score_signals
from chainfolio.engines.scoring.chain_sources import (
    ChainDataSource,
    RpcChainSource,
    default_networks,
)
from chainfolio.engines.scoring.activity_engine import (
    ActivityScoringEngine,
    FailedSource,
    ScoreReport,
)
from chainfolio.engines.scoring.score_cache import ScoreCache, get_or_compute

__all__ = [
    "ActivitySignals",
    "NetworkActivity",
    "NetworkConfig",
    "aggregate_signals",
    "ActivityScorer",
    "ScoreResult",
    "score_signals",
    "ChainDataSource",
    "RpcChainSource",
    "default_networks",
    "ActivityScoringEngine",
    "FailedSource",
    "ScoreReport",
    "ScoreCache",
    "get_or_compute",
]
