"""Unit tests for the cross-network scoring engine."""

import pytest

from chainfolio.engines.scoring import ActivityScoringEngine, NetworkActivity, NetworkConfig
from chainfolio.kernel.errors import InvalidIdentity, NoSourcesAvailable, ScoringTimeout
from chainfolio.kernel.models.credential import Tier
from tests.helpers import ALICE, L1, L2, FakeChainSource, unavailable


def l1_activity(**kwargs) -> NetworkActivity:
    return NetworkActivity(network=L1.name, **kwargs)


def l2_activity(**kwargs) -> NetworkActivity:
    return NetworkActivity(network=L2.name, **kwargs)


class TestCompute:
    """Happy path and aggregation across sources."""

    @pytest.mark.asyncio
    async def test_full_activity_scores_gold(self, scoring_engine, fake_source):
        fake_source.outcomes = {
            L1.name: l1_activity(has_deployed_contract=True, transaction_count=90, has_mainnet_interaction=True),
            L2.name: l2_activity(has_rollup_interaction=True, transaction_count=60),
        }

        report = await scoring_engine.compute(ALICE)

        assert report.identity == ALICE
        assert report.score == 100
        assert report.tier == Tier.GOLD
        assert report.signals.transaction_count == 150
        assert report.failed_sources == []
        assert not report.partial

    @pytest.mark.asyncio
    async def test_no_activity_scores_bronze(self, scoring_engine):
        report = await scoring_engine.compute(ALICE)
        assert (report.score, report.tier) == (0, Tier.BRONZE)

    @pytest.mark.asyncio
    async def test_identity_is_normalised(self, scoring_engine, fake_source):
        report = await scoring_engine.compute(ALICE.upper().replace("0X", "0x"))
        assert report.identity == ALICE
        assert {identity for identity, _ in fake_source.calls} == {ALICE}

    @pytest.mark.asyncio
    async def test_invalid_identity(self, scoring_engine, fake_source):
        with pytest.raises(InvalidIdentity):
            await scoring_engine.compute("0x1234")
        assert fake_source.calls == []

    @pytest.mark.asyncio
    async def test_sources_queried_concurrently(self, fake_source):
        fake_source.delays = {L1.name: 0.2, L2.name: 0.2}
        engine = ActivityScoringEngine([L1, L2], fake_source, source_timeout=5)

        await engine.compute(ALICE)

        assert fake_source.max_in_flight == 2

    @pytest.mark.asyncio
    async def test_repeated_calls_are_deterministic(self, scoring_engine, fake_source):
        fake_source.outcomes = {L1.name: l1_activity(has_deployed_contract=True)}
        first = await scoring_engine.compute(ALICE)
        second = await scoring_engine.compute(ALICE)
        assert first == second


class TestDegradedSources:
    """A failed source contributes absent signals; all failing is an error."""

    @pytest.mark.asyncio
    async def test_one_source_fails(self, scoring_engine, fake_source):
        fake_source.outcomes = {
            L1.name: l1_activity(has_deployed_contract=True, has_mainnet_interaction=True),
            L2.name: unavailable(L2.name),
        }

        report = await scoring_engine.compute(ALICE)

        assert report.score == 50
        assert report.tier == Tier.SILVER
        assert report.partial
        assert [f.network for f in report.failed_sources] == [L2.name]
        assert report.networks[1] == NetworkActivity.absent(L2.name)

    @pytest.mark.asyncio
    async def test_all_sources_fail(self, scoring_engine, fake_source):
        fake_source.outcomes = {L1.name: unavailable(L1.name), L2.name: unavailable(L2.name)}

        with pytest.raises(NoSourcesAvailable) as exc_info:
            await scoring_engine.compute(ALICE)
        assert {f.network for f in exc_info.value.failures} == {L1.name, L2.name}

    @pytest.mark.asyncio
    async def test_slow_source_times_out_individually(self, scoring_engine, fake_source):
        fake_source.outcomes = {L1.name: l1_activity(has_deployed_contract=True)}
        fake_source.delays = {L2.name: 2.0}

        report = await scoring_engine.compute(ALICE)

        assert report.score == 40
        assert report.failed_sources[0].network == L2.name
        assert "timed out" in report.failed_sources[0].reason

    @pytest.mark.asyncio
    async def test_answer_for_wrong_network_counts_as_failure(self, scoring_engine, fake_source):
        fake_source.outcomes = {L2.name: l1_activity(has_deployed_contract=True)}

        report = await scoring_engine.compute(ALICE)

        assert report.score == 0
        assert [f.network for f in report.failed_sources] == [L2.name]

    @pytest.mark.asyncio
    async def test_unexpected_source_error_propagates(self, scoring_engine, fake_source):
        fake_source.outcomes = {L2.name: RuntimeError("bug in source")}
        with pytest.raises(RuntimeError):
            await scoring_engine.compute(ALICE)


class TestOverallTimeout:

    @pytest.mark.asyncio
    async def test_deadline_exceeded(self):
        source = FakeChainSource(delays={L1.name: 2.0, L2.name: 2.0})
        engine = ActivityScoringEngine([L1, L2], source, source_timeout=5)

        with pytest.raises(ScoringTimeout):
            await engine.compute(ALICE, timeout=0.1)

    @pytest.mark.asyncio
    async def test_zero_disables_deadline(self, scoring_engine):
        report = await scoring_engine.compute(ALICE, timeout=0)
        assert report.score == 0


class TestConfiguration:

    def test_single_mainnet_only(self, fake_source):
        other = NetworkConfig(name="holesky", chain_id=17000, rpc_url="https://l1b.test", is_mainnet=True)
        with pytest.raises(ValueError):
            ActivityScoringEngine([L1, other], fake_source)

    def test_unique_network_names(self, fake_source):
        with pytest.raises(ValueError):
            ActivityScoringEngine([L1, L1], fake_source)

    def test_snapshot_key_tracks_sources(self, fake_source):
        engine = ActivityScoringEngine([L1, L2], fake_source)
        moved = L2.model_copy(update={"rpc_url": "https://elsewhere.test"})
        assert engine.snapshot_key() != ActivityScoringEngine([L1, moved], fake_source).snapshot_key()
