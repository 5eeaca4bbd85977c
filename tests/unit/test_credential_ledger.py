"""Unit tests for the soulbound credential ledger."""

import asyncio

import pytest

from chainfolio.kernel.credentials import decode_token_uri, parse_tier, validate_score
from chainfolio.kernel.errors import (
    AlreadyIssued,
    InvalidIdentity,
    InvalidScore,
    InvalidTier,
    NonTransferable,
    NotFound,
    Unauthorized,
    ValidationError,
)
from chainfolio.kernel.events.event_store import EventStore
from chainfolio.kernel.identity.address import ZERO_ADDRESS
from chainfolio.kernel.models.credential import MAX_SCORE, Tier
from chainfolio.kernel.models.event_log import EventType
from tests.helpers import ALICE, BOB, CAROL


class TestIssue:
    """One credential per identity."""

    @pytest.mark.asyncio
    async def test_first_issue_gets_token_zero(self, ledger, clock):
        token_id = await ledger.issue(ALICE, 80, "Silver")

        assert token_id == 0
        record = await ledger.get_metadata(0)
        assert record.owner == ALICE
        assert record.tier == Tier.SILVER
        assert record.score == 80
        assert record.issued_at == clock.now
        assert await ledger.total_supply() == 1

    @pytest.mark.asyncio
    async def test_token_ids_follow_issue_order(self, ledger):
        assert await ledger.issue(ALICE, 10, Tier.BRONZE) == 0
        assert await ledger.issue(BOB, 100, Tier.GOLD) == 1
        assert await ledger.issue(CAROL, 50, Tier.SILVER) == 2

    @pytest.mark.asyncio
    async def test_second_issue_rejected(self, ledger, clock):
        await ledger.issue(ALICE, 100, "Gold")
        issued_at = await ledger.get_issued_at(0)
        clock.advance(days=3)

        with pytest.raises(AlreadyIssued):
            await ledger.issue(ALICE, 10, "Bronze")
        assert await ledger.total_supply() == 1
        assert await ledger.get_tier(0) == Tier.GOLD
        assert await ledger.get_score(0) == 100
        assert await ledger.get_issued_at(0) == issued_at

    @pytest.mark.asyncio
    async def test_already_issued_checked_before_tier_and_score(self, ledger):
        await ledger.issue(ALICE, 100, "Gold")
        with pytest.raises(AlreadyIssued):
            await ledger.issue(ALICE, -5, "Platinum")

    @pytest.mark.asyncio
    async def test_tier_checked_before_score(self, ledger):
        with pytest.raises(InvalidTier):
            await ledger.issue(ALICE, -5, "Platinum")

    @pytest.mark.asyncio
    async def test_same_identity_in_other_case_is_one_identity(self, ledger):
        await ledger.issue(ALICE, 10, "Bronze")
        with pytest.raises(AlreadyIssued):
            await ledger.issue(ALICE.upper().replace("0X", "0x"), 10, "Bronze")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tier", ["Platinum", 3, -1, True, None, 1.0])
    async def test_invalid_tier_leaves_no_state(self, ledger, tier):
        with pytest.raises(InvalidTier):
            await ledger.issue(ALICE, 10, tier)
        assert await ledger.total_supply() == 0
        assert not await ledger.has_issued(ALICE)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("score", [-1, "10", 1.5, False, MAX_SCORE + 1, 2**63])
    async def test_invalid_score_leaves_no_state(self, ledger, score):
        with pytest.raises(InvalidScore):
            await ledger.issue(ALICE, score, "Bronze")
        assert await ledger.total_supply() == 0

    @pytest.mark.asyncio
    async def test_largest_score_accepted(self, ledger):
        token_id = await ledger.issue(ALICE, MAX_SCORE, "Gold")
        assert await ledger.get_score(token_id) == MAX_SCORE

    @pytest.mark.asyncio
    async def test_caller_values_stored_without_rederivation(self, ledger):
        # Score 5 would classify as Bronze; the supplied Gold is kept as-is
        token_id = await ledger.issue(ALICE, 5, "Gold")
        assert await ledger.get_tier(token_id) == Tier.GOLD
        assert await ledger.get_score(token_id) == 5

    @pytest.mark.asyncio
    async def test_invalid_caller(self, ledger):
        with pytest.raises(InvalidIdentity):
            await ledger.issue("alice", 10, "Bronze")

    @pytest.mark.asyncio
    async def test_issue_emits_notification(self, ledger, session_maker):
        await ledger.issue(ALICE, 80, "Silver")

        async with session_maker() as session:
            events = await EventStore(session).list_events(event_types=[EventType.CREDENTIAL_ISSUED])
        assert len(events) == 1
        assert events[0].entity_id == 0
        assert events[0].payload == {"owner": ALICE, "token_id": 0, "tier": "Silver", "score": 80}

    @pytest.mark.asyncio
    async def test_concurrent_issues_for_same_identity(self, ledger):
        results = await asyncio.gather(
            *(ledger.issue(ALICE, 10, "Bronze") for _ in range(5)),
            return_exceptions=True,
        )

        successes = [r for r in results if isinstance(r, int)]
        failures = [r for r in results if isinstance(r, AlreadyIssued)]
        assert successes == [0]
        assert len(failures) == 4
        assert await ledger.total_supply() == 1


class TestTierAndScoreParsing:
    """Boundary validators."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (Tier.GOLD, Tier.GOLD),
            ("Bronze", Tier.BRONZE),
            ("silver", Tier.SILVER),
            (" GOLD ", Tier.GOLD),
            (0, Tier.BRONZE),
            (1, Tier.SILVER),
            (2, Tier.GOLD),
        ],
    )
    def test_parse_tier(self, value, expected):
        assert parse_tier(value) == expected

    def test_ordinals_round_trip(self):
        for tier in Tier:
            assert Tier.from_ordinal(tier.ordinal) is tier

    def test_validate_score(self):
        assert validate_score(0) == 0
        assert validate_score(100) == 100
        with pytest.raises(InvalidScore):
            validate_score(-1)
        with pytest.raises(InvalidScore):
            validate_score(MAX_SCORE + 1)


class TestNonTransferable:
    """Every ownership-changing path is rejected."""

    @pytest.mark.asyncio
    async def test_transfer_from_by_owner(self, ledger):
        await ledger.issue(ALICE, 10, "Bronze")
        with pytest.raises(NonTransferable):
            await ledger.transfer_from(ALICE, ALICE, BOB, 0)
        assert await ledger.owner_of(0) == ALICE

    @pytest.mark.asyncio
    async def test_safe_transfer_from(self, ledger):
        await ledger.issue(ALICE, 10, "Bronze")
        with pytest.raises(NonTransferable):
            await ledger.safe_transfer_from(ALICE, ALICE, BOB, 0, b"data")
        assert await ledger.owner_of(0) == ALICE

    @pytest.mark.asyncio
    async def test_transfer_and_burn(self, ledger):
        await ledger.issue(ALICE, 10, "Bronze")
        with pytest.raises(NonTransferable):
            await ledger.transfer(ALICE, BOB, 0)
        with pytest.raises(NonTransferable):
            await ledger.burn(ALICE, 0)
        assert await ledger.total_supply() == 1
        assert await ledger.balance_of(BOB) == 0

    @pytest.mark.asyncio
    async def test_transfer_to_self(self, ledger):
        await ledger.issue(ALICE, 10, "Bronze")
        with pytest.raises(NonTransferable):
            await ledger.transfer_from(ALICE, ALICE, ALICE, 0)
        assert await ledger.owner_of(0) == ALICE
        assert await ledger.balance_of(ALICE) == 1

    @pytest.mark.asyncio
    async def test_transfer_to_zero_address(self, ledger):
        await ledger.issue(ALICE, 10, "Bronze")
        with pytest.raises(NonTransferable):
            await ledger.transfer_from(ALICE, ALICE, ZERO_ADDRESS, 0)
        assert await ledger.owner_of(0) == ALICE
        assert await ledger.total_supply() == 1

    @pytest.mark.asyncio
    async def test_rejected_even_for_missing_token(self, ledger):
        with pytest.raises(NonTransferable):
            await ledger.transfer_from(ALICE, ALICE, BOB, 42)

    @pytest.mark.asyncio
    async def test_approved_operator_still_cannot_transfer(self, ledger):
        await ledger.issue(ALICE, 10, "Bronze")
        await ledger.approve(ALICE, BOB, 0)
        await ledger.set_approval_for_all(ALICE, CAROL, True)

        with pytest.raises(NonTransferable):
            await ledger.transfer_from(BOB, ALICE, BOB, 0)
        with pytest.raises(NonTransferable):
            await ledger.transfer_from(CAROL, ALICE, CAROL, 0)
        assert await ledger.owner_of(0) == ALICE


class TestApprovals:
    """Approvals are recorded but grant nothing."""

    @pytest.mark.asyncio
    async def test_owner_can_approve(self, ledger):
        await ledger.issue(ALICE, 10, "Bronze")
        assert await ledger.get_approved(0) == ZERO_ADDRESS

        await ledger.approve(ALICE, BOB, 0)
        assert await ledger.get_approved(0) == BOB

        await ledger.approve(ALICE, ZERO_ADDRESS, 0)
        assert await ledger.get_approved(0) == ZERO_ADDRESS

    @pytest.mark.asyncio
    async def test_stranger_cannot_approve(self, ledger):
        await ledger.issue(ALICE, 10, "Bronze")
        with pytest.raises(Unauthorized):
            await ledger.approve(BOB, CAROL, 0)

    @pytest.mark.asyncio
    async def test_operator_can_approve(self, ledger):
        await ledger.issue(ALICE, 10, "Bronze")
        await ledger.set_approval_for_all(ALICE, BOB, True)

        await ledger.approve(BOB, CAROL, 0)
        assert await ledger.get_approved(0) == CAROL

    @pytest.mark.asyncio
    async def test_approve_missing_token(self, ledger):
        with pytest.raises(NotFound):
            await ledger.approve(ALICE, BOB, 0)

    @pytest.mark.asyncio
    async def test_operator_flag_round_trip(self, ledger):
        assert not await ledger.is_approved_for_all(ALICE, BOB)
        await ledger.set_approval_for_all(ALICE, BOB, True)
        assert await ledger.is_approved_for_all(ALICE, BOB)
        await ledger.set_approval_for_all(ALICE, BOB, False)
        assert not await ledger.is_approved_for_all(ALICE, BOB)

    @pytest.mark.asyncio
    async def test_self_operator_rejected(self, ledger):
        with pytest.raises(ValidationError):
            await ledger.set_approval_for_all(ALICE, ALICE, True)


class TestReads:
    """Lookups and the rendered token URI."""

    @pytest.mark.asyncio
    async def test_reads_for_missing_token(self, ledger):
        for read in (ledger.get_metadata, ledger.get_tier, ledger.get_score, ledger.owner_of):
            with pytest.raises(NotFound):
                await read(0)

    @pytest.mark.asyncio
    async def test_balance_and_token_of(self, ledger):
        assert await ledger.balance_of(ALICE) == 0
        with pytest.raises(NotFound):
            await ledger.token_of(ALICE)

        await ledger.issue(BOB, 10, "Bronze")
        await ledger.issue(ALICE, 60, "Silver")
        assert await ledger.balance_of(ALICE) == 1
        assert await ledger.token_of(ALICE) == 1
        assert await ledger.has_issued(BOB)

    @pytest.mark.asyncio
    async def test_render_metadata(self, ledger, clock):
        await ledger.issue(ALICE, 100, "Gold")

        document = decode_token_uri(await ledger.render_metadata(0))
        traits = {a["trait_type"]: a["value"] for a in document["attributes"]}
        assert document["name"].endswith("#0")
        assert traits["Token ID"] == 0
        assert traits["Tier"] == "Gold"
        assert traits["Score"] == 100
        assert traits["Issued At"] == int(clock.now.timestamp())

    @pytest.mark.asyncio
    async def test_issued_at_survives_persistence(self, ledger, clock):
        issued_at = clock.now
        await ledger.issue(ALICE, 10, "Bronze")
        clock.advance(days=1)
        assert await ledger.get_issued_at(0) == issued_at
