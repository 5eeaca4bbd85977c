"""
Event Store service for the append-only notification log.

Notifications are written in the same transaction as the mutation they
describe, so a rolled-back mutation never leaves a notification behind and
the stream order matches the mutation order.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from chainfolio.kernel.models.base import utcnow
from chainfolio.kernel.models.event_log import EventLog, EventType


class EventStore:
    """
    Service for writing and reading the notification log.

    Usage:
        event_store = EventStore(session)
        await event_store.log_from_model(
            event_type=EventType.PROJECT_ADDED,
            entity_type="project",
            entity_id=entry.id,
            actor=caller,
            payload_model=ProjectAddedEvent(...),
        )
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def log(
        self,
        event_type: EventType,
        entity_type: str,
        entity_id: int,
        actor: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> EventLog:
        """
        Append a notification.

        Must be called inside the transaction of the mutation it records.

        Args:
            event_type: The type of event
            entity_type: "project" or "credential"
            entity_id: Project id or token id
            actor: Identity that triggered the mutation
            payload: Event data

        Returns:
            The created EventLog record (sequence assigned on flush)
        """
        event = EventLog(
            event_type=event_type.value,
            entity_type=entity_type,
            entity_id=entity_id,
            actor=actor,
            payload=self._serialize_payload(payload or {}),
            created_at=utcnow(),
        )
        self.session.add(event)
        await self.session.flush()
        return event

    async def log_from_model(
        self,
        event_type: EventType,
        entity_type: str,
        entity_id: int,
        actor: Optional[str],
        payload_model: BaseModel,
    ) -> EventLog:
        """Append a notification using a Pydantic model as payload."""
        return await self.log(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            actor=actor,
            payload=payload_model.model_dump(mode="json"),
        )

    async def list_events(
        self,
        after_sequence: int = 0,
        event_types: Optional[List[EventType]] = None,
        limit: int = 100,
    ) -> List[EventLog]:
        """
        Read the stream in mutation order.

        Args:
            after_sequence: Only events with a greater sequence (cursor)
            event_types: Optional filter for specific event types
            limit: Maximum number of events to return

        Returns:
            List of EventLog records, oldest first
        """
        query = select(EventLog).where(EventLog.sequence > after_sequence)
        if event_types:
            query = query.where(EventLog.event_type.in_([t.value for t in event_types]))
        query = query.order_by(EventLog.sequence).limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_entity_history(self, entity_type: str, entity_id: int) -> List[EventLog]:
        """All notifications for one project or token, oldest first."""
        query = (
            select(EventLog)
            .where(EventLog.entity_type == entity_type, EventLog.entity_id == entity_id)
            .order_by(EventLog.sequence)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_events(self, event_type: Optional[EventType] = None) -> int:
        query = select(func.count(EventLog.sequence))
        if event_type:
            query = query.where(EventLog.event_type == event_type.value)
        result = await self.session.execute(query)
        return result.scalar() or 0

    def _serialize_payload(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Convert payload values to JSON-serializable types."""
        result = {}
        for key, value in payload.items():
            if isinstance(value, Enum):
                result[key] = value.value
            elif isinstance(value, datetime):
                result[key] = value.isoformat()
            elif isinstance(value, dict):
                result[key] = self._serialize_payload(value)
            else:
                result[key] = value
        return result
