"""
Notification log.

Every successful ledger mutation writes exactly one row here inside the
same transaction, so the stream order matches the mutation order.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from chainfolio.kernel.models.base import Base


class EventType(str, Enum):
    """All notification types."""

    PROJECT_ADDED = "registry.project_added"
    CREDENTIAL_ISSUED = "credential.issued"


class EventLog(Base):
    """
    Immutable notification record.

    This table is append-only - no updates or deletes allowed.
    ``sequence`` is assigned by the database and orders the stream.
    """

    __tablename__ = "event_logs"

    sequence: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    event_type: Mapped[EventType] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )

    # Entity reference: project id or token id
    entity_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    entity_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # Identity that triggered the mutation
    actor: Mapped[Optional[str]] = mapped_column(
        String(42),
        nullable=True,
        index=True,
    )

    payload: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
    )

    __table_args__ = (
        Index("ix_event_logs_entity", "entity_type", "entity_id"),
    )

    def __repr__(self) -> str:
        kind = self.event_type.value if hasattr(self.event_type, "value") else self.event_type
        return f"<EventLog #{self.sequence} {kind} {self.entity_type}:{self.entity_id}>"
