"""
FastAPI dependencies for caller resolution and component access.

Components are built once per application (see ``chainfolio.main.create_app``)
and kept on ``app.state``; each owns the single-writer lock for its store.
"""

from typing import Annotated, AsyncGenerator, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from chainfolio.config import Settings
from chainfolio.engines.scoring import ActivityScoringEngine, ScoreCache
from chainfolio.kernel.credentials import CredentialLedger
from chainfolio.kernel.identity.jwt import JWTManager
from chainfolio.kernel.registry import RegistryService
from chainfolio.logging_config import caller_var


# Security scheme
security = HTTPBearer(auto_error=False)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields read sessions from the application's session factory."""
    async with request.app.state.session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


DbSession = Annotated[AsyncSession, Depends(get_db)]


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_registry(request: Request) -> RegistryService:
    return request.app.state.registry


def get_ledger(request: Request) -> CredentialLedger:
    return request.app.state.ledger


def get_engine(request: Request) -> ActivityScoringEngine:
    return request.app.state.engine


def get_score_cache(request: Request) -> ScoreCache:
    return request.app.state.score_cache


AppSettings = Annotated[Settings, Depends(get_app_settings)]
Registry = Annotated[RegistryService, Depends(get_registry)]
Ledger = Annotated[CredentialLedger, Depends(get_ledger)]
Engine = Annotated[ActivityScoringEngine, Depends(get_engine)]
Cache = Annotated[ScoreCache, Depends(get_score_cache)]


async def get_current_identity(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> str:
    """Resolve the bearer token to the caller's identity handle or raise 401."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    jwt_manager: JWTManager = request.app.state.jwt_manager
    payload = jwt_manager.verify_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Logs from the rest of this request carry the caller; request.state
    # is shared with the middleware for its completion log
    caller_var.set(payload.sub)
    request.state.caller = payload.sub
    return payload.sub


CurrentIdentity = Annotated[str, Depends(get_current_identity)]

