"""
Pytest fixtures for Chainfolio tests.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from chainfolio.database import build_engine, build_session_maker, init_db
from chainfolio.engines.scoring import ActivityScoringEngine
from chainfolio.kernel.credentials import CredentialLedger
from chainfolio.kernel.identity.jwt import JWTManager
from chainfolio.kernel.registry import RegistryService
from tests.helpers import AUTHORITY, L1, L2, TEST_SECRET_KEY, FakeChainSource, FixedClock


@pytest_asyncio.fixture
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite so concurrent sessions each get their own connection."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'chainfolio_test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_maker(db_engine)


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def registry(session_maker, clock) -> RegistryService:
    return RegistryService(session_maker, authority=AUTHORITY, clock=clock)


@pytest.fixture
def ledger(session_maker, clock) -> CredentialLedger:
    return CredentialLedger(session_maker, clock=clock)


@pytest.fixture
def fake_source() -> FakeChainSource:
    return FakeChainSource()


@pytest.fixture
def scoring_engine(fake_source) -> ActivityScoringEngine:
    return ActivityScoringEngine([L1, L2], fake_source, source_timeout=0.5)


@pytest.fixture
def jwt_manager() -> JWTManager:
    """Create a JWT manager for tests."""
    return JWTManager(
        secret_key=TEST_SECRET_KEY,
        algorithm="HS256",
        access_token_expire_minutes=30,
    )


@pytest.fixture
def auth_headers(jwt_manager: JWTManager):
    """Build bearer headers for an identity."""

    def _headers(identity: str) -> dict:
        token, _, _ = jwt_manager.create_access_token(identity)
        return {"Authorization": f"Bearer {token}"}

    return _headers
