"""
Notification log infrastructure.

Provides the append-only stream of ledger notifications.
"""

from chainfolio.kernel.events.event_store import EventStore
from chainfolio.kernel.events.event_types import CredentialIssuedEvent, ProjectAddedEvent

__all__ = [
    "EventStore",
    "ProjectAddedEvent",
    "CredentialIssuedEvent",
]
