"""
Kernel Data Models

SQLAlchemy models for the two append-only ledgers and their notification log.
"""

from chainfolio.kernel.models.base import Base, UTCDateTime, utcnow
from chainfolio.kernel.models.project import ProjectEntry
from chainfolio.kernel.models.credential import (
    Credential,
    Tier,
    TokenApproval,
    OperatorApproval,
)
from chainfolio.kernel.models.event_log import EventLog, EventType

__all__ = [
    "Base",
    "UTCDateTime",
    "utcnow",
    # Registry
    "ProjectEntry",
    # Credentials
    "Credential",
    "Tier",
    "TokenApproval",
    "OperatorApproval",
    # Notifications
    "EventLog",
    "EventType",
]
