"""
Activity Scorer - deterministic score and tier from aggregated signals.

Points:
- Deployed a contract on any network: +40
- Interacted with a rollup network: +30
- More than 100 transactions in total: +20
- Interacted with the mainnet network: +10

The four weights sum to exactly 100, which is therefore the natural
ceiling; no clamp is applied.

Tiers (inclusive lower bounds):
- 0-49: Bronze
- 50-99: Silver
- 100+: Gold
"""

from pydantic import BaseModel, ConfigDict

from chainfolio.engines.scoring.signals import ActivitySignals
from chainfolio.kernel.errors import InvalidScore
from chainfolio.kernel.models.credential import Tier


class ScoreResult(BaseModel):
    """Score/tier pair."""

    model_config = ConfigDict(frozen=True)

    score: int
    tier: Tier


class ActivityScorer:
    """Pure scoring rules. Holds no state; safe to call from anywhere."""

    DEPLOYED_CONTRACT_POINTS = 40
    ROLLUP_INTERACTION_POINTS = 30
    TRANSACTION_VOLUME_POINTS = 20
    MAINNET_INTERACTION_POINTS = 10

    TRANSACTION_VOLUME_THRESHOLD = 100  # strictly greater than

    SILVER_THRESHOLD = 50
    GOLD_THRESHOLD = 100

    MAX_SCORE = (
        DEPLOYED_CONTRACT_POINTS
        + ROLLUP_INTERACTION_POINTS
        + TRANSACTION_VOLUME_POINTS
        + MAINNET_INTERACTION_POINTS
    )

    @classmethod
    def compute_score(cls, signals: ActivitySignals) -> int:
        score = 0
        if signals.has_deployed_contract:
            score += cls.DEPLOYED_CONTRACT_POINTS
        if signals.has_rollup_interaction:
            score += cls.ROLLUP_INTERACTION_POINTS
        if signals.transaction_count > cls.TRANSACTION_VOLUME_THRESHOLD:
            score += cls.TRANSACTION_VOLUME_POINTS
        if signals.has_mainnet_interaction:
            score += cls.MAINNET_INTERACTION_POINTS
        return score

    @classmethod
    def classify_tier(cls, score: int) -> Tier:
        if isinstance(score, bool) or not isinstance(score, int) or score < 0:
            raise InvalidScore(f"Invalid score: {score!r}")
        if score >= cls.GOLD_THRESHOLD:
            return Tier.GOLD
        if score >= cls.SILVER_THRESHOLD:
            return Tier.SILVER
        return Tier.BRONZE

    @classmethod
    def score(cls, signals: ActivitySignals) -> ScoreResult:
        value = cls.compute_score(signals)
        return ScoreResult(score=value, tier=cls.classify_tier(value))


def score_signals(signals: ActivitySignals) -> ScoreResult:
    """Score and tier for an aggregated signal set."""
    return ActivityScorer.score(signals)
