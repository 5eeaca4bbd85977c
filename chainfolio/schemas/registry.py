"""
Registry schemas.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ProjectCreate(BaseModel):
    """Project append request. Emptiness is checked by the registry itself."""

    title: str = Field(..., max_length=500)
    content_ref: str = Field(..., max_length=512, description="Opaque content identifier, e.g. an IPFS CID")


class ProjectResponse(BaseModel):
    """Registry entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content_ref: str
    created_at: datetime


class ProjectCountResponse(BaseModel):
    count: int


class AuthorityResponse(BaseModel):
    authority: str
