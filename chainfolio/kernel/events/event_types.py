"""
Notification payload schemas.

These are the payloads written to the notification log, one per successful
ledger mutation.
"""

from datetime import datetime

from pydantic import BaseModel

from chainfolio.kernel.models.credential import Tier


class ProjectAddedEvent(BaseModel):
    """ProjectAdded(id, title, contentRef, createdAt)."""

    id: int
    title: str
    content_ref: str
    created_at: datetime


class CredentialIssuedEvent(BaseModel):
    """CredentialIssued(owner, tokenId, tier, score)."""

    owner: str
    token_id: int
    tier: Tier
    score: int
