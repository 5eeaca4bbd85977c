"""
Append-only, densely indexed record store.

A RecordStore wraps one model whose single integer primary key is the
record index. ``append`` is the only mutator and assigns
``index = count()`` before inserting, so indexes are dense, start at 0 and
follow insertion order. There is no update or delete.

The store does not serialise writers itself: callers run ``append`` under
their component lock and inside a transaction (see RegistryService and
CredentialLedger).
"""

from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import func, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from chainfolio.kernel.errors import IndexOutOfBounds
from chainfolio.kernel.models.base import Base

R = TypeVar("R", bound=Base)


class RecordStore(Generic[R]):
    """
    Ordered sequence of ``model`` rows keyed by their integer primary key.

    Usage:
        store = RecordStore(session, ProjectEntry)
        entry = await store.append(title="...", content_ref="...", created_at=now)
        assert entry.id == await store.count() - 1
    """

    def __init__(self, session: AsyncSession, model: Type[R]):
        self.session = session
        self.model = model
        primary_key = inspect(model).primary_key
        if len(primary_key) != 1:
            raise TypeError(f"{model.__name__} must have exactly one primary key column")
        self.index_column = primary_key[0]
        self.index_attr = self.index_column.key

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(self.model))
        return result.scalar() or 0

    async def append(self, **fields: Any) -> R:
        """Insert a new record at index ``count()`` and return it."""
        if self.index_attr in fields:
            raise TypeError(f"{self.index_attr} is assigned by the store")
        index = await self.count()
        record = self.model(**{self.index_attr: index}, **fields)
        self.session.add(record)
        await self.session.flush()
        return record

    async def get(self, index: int) -> R:
        """Return the record at ``index`` or raise IndexOutOfBounds."""
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            raise IndexOutOfBounds(index, await self.count())
        record = await self.session.get(self.model, index)
        if record is None:
            raise IndexOutOfBounds(index, await self.count())
        return record

    async def exists(self, index: int) -> bool:
        try:
            await self.get(index)
        except IndexOutOfBounds:
            return False
        return True

    async def list(self, offset: int = 0, limit: Optional[int] = None) -> List[R]:
        """Records in index order."""
        query = select(self.model).order_by(self.index_column).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())
