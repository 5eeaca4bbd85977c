"""
Soulbound credential ledger.

Any identity may issue exactly one credential for itself. The tier and
score it supplies are stored as given: the ledger does not re-derive them
from chain activity. They are advisory values the caller obtained from the
scoring engine, and that trust boundary is deliberate.

Per identity:  NoCredential --issue()--> Credentialed (terminal)
Per token:     Minted (terminal; Transferred and Burned do not exist)

Every ownership-changing entry point raises NonTransferable before it
looks at any state. Approvals are plain bookkeeping and never feed into a
transfer path, because there is none.
"""

import asyncio
from datetime import datetime
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chainfolio.kernel.credentials.metadata import render_token_uri
from chainfolio.kernel.errors import (
    AlreadyIssued,
    InvalidScore,
    InvalidTier,
    NonTransferable,
    NotFound,
    Unauthorized,
    ValidationError,
)
from chainfolio.kernel.events.event_store import EventStore
from chainfolio.kernel.events.event_types import CredentialIssuedEvent
from chainfolio.kernel.identity.address import ZERO_ADDRESS, normalize_identity
from chainfolio.kernel.models.base import utcnow
from chainfolio.kernel.models.credential import (
    MAX_SCORE,
    Credential,
    OperatorApproval,
    Tier,
    TokenApproval,
)
from chainfolio.kernel.models.event_log import EventType
from chainfolio.kernel.records.record_store import RecordStore
from chainfolio.logging_config import get_logger

logger = get_logger(__name__)

TierInput = Union[Tier, str, int]


class CredentialRecord(BaseModel):
    """Read-only snapshot of an issued credential."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    token_id: int
    owner: str
    tier: Tier
    score: int
    issued_at: datetime


def parse_tier(value: Any) -> Tier:
    """
    Accept a Tier, its name (any case) or its ordinal 0-2.

    Anything else raises InvalidTier; values are never clamped or coerced.
    """
    if isinstance(value, Tier):
        return value
    if isinstance(value, bool):
        raise InvalidTier(f"Invalid tier: {value!r}")
    if isinstance(value, int):
        if 0 <= value < len(Tier):
            return Tier.from_ordinal(value)
        raise InvalidTier(f"Invalid tier: {value!r}")
    if isinstance(value, str):
        for tier in Tier:
            if value.strip().lower() == tier.value.lower():
                return tier
    raise InvalidTier(f"Invalid tier: {value!r}")


def validate_score(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidScore(f"Invalid score: {value!r}")
    if value < 0 or value > MAX_SCORE:
        raise InvalidScore(f"Invalid score: {value!r}")
    return value


class CredentialLedger:
    """
    One-per-identity, non-transferable credential issuer.

    One instance per process; it owns the write lock for the ledger.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_maker = session_maker
        self.clock = clock
        self._write_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    async def issue(self, caller: str, score: int, tier: TierInput) -> int:
        """
        Mint the caller's credential and return its token id.

        Raises:
            InvalidIdentity: caller is not an account address
            AlreadyIssued: caller already holds a credential
            InvalidTier: tier outside Bronze/Silver/Gold
            InvalidScore: score is not a non-negative integer
        """
        owner = normalize_identity(caller)

        try:
            async with self._write_lock:
                async with self.session_maker() as session, session.begin():
                    if await self._find_by_owner(session, owner) is not None:
                        raise AlreadyIssued(f"{owner} already holds a credential")
                    parsed_tier = parse_tier(tier)
                    parsed_score = validate_score(score)

                    credential = await RecordStore(session, Credential).append(
                        owner=owner,
                        tier=parsed_tier.value,
                        score=parsed_score,
                        issued_at=self.clock(),
                    )
                    token_id = credential.token_id
                    await EventStore(session).log_from_model(
                        event_type=EventType.CREDENTIAL_ISSUED,
                        entity_type="credential",
                        entity_id=token_id,
                        actor=owner,
                        payload_model=CredentialIssuedEvent(
                            owner=owner,
                            token_id=token_id,
                            tier=parsed_tier,
                            score=parsed_score,
                        ),
                    )
        except IntegrityError:
            # Another writer outside this process got there first
            if await self.has_issued(owner):
                raise AlreadyIssued(f"{owner} already holds a credential")
            raise

        logger.info(
            "Credential issued",
            extra={"token_id": token_id, "owner": owner, "tier": parsed_tier.value, "score": parsed_score},
        )
        return token_id

    # ------------------------------------------------------------------
    # Ownership changes: never possible
    # ------------------------------------------------------------------

    def _reject_transfer(self, caller: Any, token_id: Any, to: Any) -> None:
        logger.warning(
            "Rejected transfer of soulbound credential",
            extra={"requested_by": str(caller), "token_id": str(token_id), "to": str(to)},
        )
        raise NonTransferable()

    async def transfer_from(self, caller: str, from_: str, to: str, token_id: int) -> None:
        self._reject_transfer(caller, token_id, to)

    async def safe_transfer_from(
        self,
        caller: str,
        from_: str,
        to: str,
        token_id: int,
        data: bytes = b"",
    ) -> None:
        self._reject_transfer(caller, token_id, to)

    async def transfer(self, caller: str, to: str, token_id: int) -> None:
        self._reject_transfer(caller, token_id, to)

    async def burn(self, caller: str, token_id: int) -> None:
        self._reject_transfer(caller, token_id, ZERO_ADDRESS)

    # ------------------------------------------------------------------
    # Approvals: bookkeeping only
    # ------------------------------------------------------------------

    async def approve(self, caller: str, approved: str, token_id: int) -> None:
        """
        Record ``approved`` for ``token_id``. The zero address clears it.

        Raises:
            NotFound: token was never issued
            Unauthorized: caller is neither the owner nor an approved operator
        """
        caller_id = normalize_identity(caller)
        approved_id = normalize_identity(approved)
        async with self._write_lock:
            async with self.session_maker() as session, session.begin():
                credential = await self._get(session, token_id)
                if caller_id != credential.owner and not await self._is_operator(
                    session, credential.owner, caller_id
                ):
                    raise Unauthorized("Only the owner or an approved operator may approve")
                await session.merge(TokenApproval(token_id=credential.token_id, approved=approved_id))

        logger.info("Token approval recorded", extra={"token_id": token_id, "approved": approved_id})

    async def set_approval_for_all(self, caller: str, operator: str, approved: bool) -> None:
        owner = normalize_identity(caller)
        operator_id = normalize_identity(operator)
        if operator_id == owner:
            raise ValidationError("An identity cannot be its own operator")
        async with self._write_lock:
            async with self.session_maker() as session, session.begin():
                await session.merge(
                    OperatorApproval(owner=owner, operator=operator_id, approved=bool(approved))
                )

        logger.info(
            "Operator approval recorded",
            extra={"owner": owner, "operator": operator_id, "approved": bool(approved)},
        )

    async def get_approved(self, token_id: int) -> str:
        async with self.session_maker() as session:
            credential = await self._get(session, token_id)
            approval = await session.get(TokenApproval, credential.token_id)
            if approval is None or approval.approved is None:
                return ZERO_ADDRESS
            return approval.approved

    async def is_approved_for_all(self, owner: str, operator: str) -> bool:
        async with self.session_maker() as session:
            return await self._is_operator(session, normalize_identity(owner), normalize_identity(operator))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_metadata(self, token_id: int) -> CredentialRecord:
        async with self.session_maker() as session:
            return CredentialRecord.model_validate(await self._get(session, token_id))

    async def get_tier(self, token_id: int) -> Tier:
        return (await self.get_metadata(token_id)).tier

    async def get_score(self, token_id: int) -> int:
        return (await self.get_metadata(token_id)).score

    async def get_issued_at(self, token_id: int) -> datetime:
        return (await self.get_metadata(token_id)).issued_at

    async def owner_of(self, token_id: int) -> str:
        return (await self.get_metadata(token_id)).owner

    async def render_metadata(self, token_id: int) -> str:
        """Token URI embedding token id, tier name, score and issuance time."""
        return render_token_uri(await self.get_metadata(token_id))

    async def has_issued(self, identity: str) -> bool:
        async with self.session_maker() as session:
            return await self._find_by_owner(session, normalize_identity(identity)) is not None

    async def balance_of(self, owner: str) -> int:
        return 1 if await self.has_issued(owner) else 0

    async def token_of(self, owner: str) -> int:
        owner_id = normalize_identity(owner)
        async with self.session_maker() as session:
            credential = await self._find_by_owner(session, owner_id)
        if credential is None:
            raise NotFound(f"{owner_id} holds no credential")
        return credential.token_id

    async def total_supply(self) -> int:
        async with self.session_maker() as session:
            return await RecordStore(session, Credential).count()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get(self, session: AsyncSession, token_id: Any) -> Credential:
        if isinstance(token_id, bool) or not isinstance(token_id, int) or token_id < 0:
            raise NotFound(f"Credential {token_id!r} does not exist")
        credential = await session.get(Credential, token_id)
        if credential is None:
            raise NotFound(f"Credential {token_id} does not exist")
        return credential

    async def _find_by_owner(self, session: AsyncSession, owner: str) -> Optional[Credential]:
        result = await session.execute(select(Credential).where(Credential.owner == owner))
        return result.scalar_one_or_none()

    async def _is_operator(self, session: AsyncSession, owner: str, operator: str) -> bool:
        approval = await session.get(OperatorApproval, (owner, operator))
        return bool(approval and approval.approved)
