"""
Database connection and session management.
Uses SQLAlchemy 2.0 async pattern.
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine with options matching the database backend."""
    if not database_url.startswith("sqlite"):
        # PostgreSQL settings with connection pooling
        return create_async_engine(
            database_url,
            echo=echo,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
        )

    in_memory = ":memory:" in database_url or database_url.rstrip("/").endswith("aiosqlite:")
    # In-memory SQLite lives inside one connection, so it must be shared.
    # File SQLite uses NullPool: every session gets its own connection.
    engine = create_async_engine(
        database_url,
        echo=echo,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool if in_memory else NullPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        """Enable foreign keys and a busy timeout on every new SQLite connection."""
        cursor = dbapi_conn.cursor()
        if not in_memory:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()

    return engine


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_db(target: AsyncEngine) -> None:
    """Create tables for every registered model."""
    from chainfolio.kernel.models import Base

    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

