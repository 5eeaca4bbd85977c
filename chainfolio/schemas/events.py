"""
Notification stream schemas.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sequence: int
    event_type: str
    entity_type: str
    entity_id: int
    actor: Optional[str]
    payload: Dict[str, Any]
    created_at: datetime
