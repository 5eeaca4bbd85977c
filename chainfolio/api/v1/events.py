"""
Notification stream endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Query

from chainfolio.api.deps import DbSession
from chainfolio.kernel.events.event_store import EventStore
from chainfolio.kernel.models.event_log import EventType
from chainfolio.schemas.events import EventResponse

router = APIRouter()


@router.get("", response_model=List[EventResponse])
async def list_events(
    db: DbSession,
    after: int = Query(0, ge=0, description="Return events with a greater sequence"),
    event_type: Optional[List[EventType]] = Query(None, description="Filter by event type"),
    limit: int = Query(100, ge=1, le=500),
):
    """Project and credential notifications in mutation order."""
    events = await EventStore(db).list_events(
        after_sequence=after,
        event_types=event_type,
        limit=limit,
    )
    return [EventResponse.model_validate(e) for e in events]


@router.get("/{entity_type}/{entity_id}", response_model=List[EventResponse])
async def get_entity_history(entity_type: str, entity_id: int, db: DbSession):
    """Notifications for one project (``project``) or credential (``credential``)."""
    events = await EventStore(db).get_entity_history(entity_type, entity_id)
    return [EventResponse.model_validate(e) for e in events]
