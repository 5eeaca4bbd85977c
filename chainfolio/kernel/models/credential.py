"""
Soulbound identity credential models.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from chainfolio.kernel.models.base import Base


class Tier(str, Enum):
    """Closed, ordered set of reputation tiers."""

    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"

    @property
    def ordinal(self) -> int:
        return _TIER_ORDER.index(self)

    @classmethod
    def from_ordinal(cls, value: int) -> "Tier":
        return _TIER_ORDER[value]


_TIER_ORDER = (Tier.BRONZE, Tier.SILVER, Tier.GOLD)

# Largest value the signed 32-bit score column holds on every backend
MAX_SCORE = 2**31 - 1


class Credential(Base):
    """
    Identity credential bound to its issuing address.

    ``owner`` is unique: the database itself refuses a second credential
    for the same identity. Every column is write-once.
    """

    __tablename__ = "credentials"

    token_id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=False,
    )
    owner: Mapped[str] = mapped_column(
        String(42),
        nullable=False,
        unique=True,
        index=True,
    )
    tier: Mapped[Tier] = mapped_column(
        String(16),
        nullable=False,
    )
    score: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    issued_at: Mapped[datetime] = mapped_column(
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Credential {self.token_id} owner={self.owner}>"


class TokenApproval(Base):
    """Approved address for a single token. Bookkeeping only."""

    __tablename__ = "credential_token_approvals"

    token_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("credentials.token_id"),
        primary_key=True,
        autoincrement=False,
    )
    approved: Mapped[Optional[str]] = mapped_column(
        String(42),
        nullable=True,
    )


class OperatorApproval(Base):
    """Owner-wide operator flag. Bookkeeping only."""

    __tablename__ = "credential_operator_approvals"

    owner: Mapped[str] = mapped_column(
        String(42),
        primary_key=True,
    )
    operator: Mapped[str] = mapped_column(
        String(42),
        primary_key=True,
    )
    approved: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
