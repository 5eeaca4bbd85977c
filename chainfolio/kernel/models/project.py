"""
Registry project entries.
"""

from datetime import datetime

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from chainfolio.kernel.models.base import Base


class ProjectEntry(Base):
    """
    One catalogued project.

    Rows are only ever inserted through the RecordStore, which assigns
    ``id`` densely from 0 in insertion order. No update or delete path
    exists anywhere in the service.
    """

    __tablename__ = "registry_projects"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=False,
    )
    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    # Opaque identifier into the external content store (e.g. an IPFS CID)
    content_ref: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<ProjectEntry {self.id} {self.title!r}>"
