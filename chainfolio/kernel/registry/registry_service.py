"""
Project registry.

An authority-gated catalog on top of the RecordStore. Only the configured
authority may append; everyone may read. Entries are immutable once
appended and their ids are dense, so ``get_project(i).id == i``.

Writes are serialised by a per-instance lock and run in one transaction
together with their ProjectAdded notification. All checks happen before
the transaction opens, so a rejected call never touches state.
"""

import asyncio
from datetime import datetime
from typing import Callable, List

from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chainfolio.kernel.errors import EmptyContentRef, EmptyTitle, Unauthorized
from chainfolio.kernel.events.event_store import EventStore
from chainfolio.kernel.events.event_types import ProjectAddedEvent
from chainfolio.kernel.identity.address import is_identity, normalize_identity
from chainfolio.kernel.models.base import utcnow
from chainfolio.kernel.models.event_log import EventType
from chainfolio.kernel.models.project import ProjectEntry
from chainfolio.kernel.records.record_store import RecordStore
from chainfolio.logging_config import get_logger

logger = get_logger(__name__)


class Project(BaseModel):
    """Read-only snapshot of a registry entry."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    title: str
    content_ref: str
    created_at: datetime


class RegistryService:
    """
    Authority-gated, append-only project catalog.

    One instance per process; it owns the write lock for the registry.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        authority: str,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_maker = session_maker
        self.authority = normalize_identity(authority)
        self.clock = clock
        self._write_lock = asyncio.Lock()

    def is_authority(self, caller: str) -> bool:
        return is_identity(caller) and normalize_identity(caller) == self.authority

    async def add_project(self, caller: str, title: str, content_ref: str) -> Project:
        """
        Append a project entry.

        Raises:
            Unauthorized: caller is not the registry authority
            EmptyTitle: title is empty or blank
            EmptyContentRef: content_ref is empty or blank
        """
        if not self.is_authority(caller):
            logger.warning("Rejected registry write from non-authority", extra={"rejected_caller": str(caller)})
            raise Unauthorized("Only the registry authority may add projects")
        if not isinstance(title, str) or not title.strip():
            raise EmptyTitle()
        if not isinstance(content_ref, str) or not content_ref.strip():
            raise EmptyContentRef()

        async with self._write_lock:
            async with self.session_maker() as session, session.begin():
                store = RecordStore(session, ProjectEntry)
                entry = await store.append(
                    title=title,
                    content_ref=content_ref,
                    created_at=self.clock(),
                )
                await EventStore(session).log_from_model(
                    event_type=EventType.PROJECT_ADDED,
                    entity_type="project",
                    entity_id=entry.id,
                    actor=self.authority,
                    payload_model=ProjectAddedEvent(
                        id=entry.id,
                        title=entry.title,
                        content_ref=entry.content_ref,
                        created_at=entry.created_at,
                    ),
                )
                project = Project.model_validate(entry)

        logger.info("Project appended", extra={"project_id": project.id, "content_ref": project.content_ref})
        return project

    async def get_projects(self) -> List[Project]:
        """All entries in insertion order."""
        async with self.session_maker() as session:
            rows = await RecordStore(session, ProjectEntry).list()
            return [Project.model_validate(row) for row in rows]

    async def get_project_count(self) -> int:
        async with self.session_maker() as session:
            return await RecordStore(session, ProjectEntry).count()

    async def get_project(self, index: int) -> Project:
        """Entry at ``index``; raises IndexOutOfBounds for an unwritten index."""
        async with self.session_maker() as session:
            row = await RecordStore(session, ProjectEntry).get(index)
            return Project.model_validate(row)
