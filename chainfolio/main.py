"""
Chainfolio: on-chain builder identity service.

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncGenerator, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from chainfolio.api.middleware.rate_limit import RateLimitMiddleware
from chainfolio.api.middleware.request_id import RequestIdMiddleware
from chainfolio.api.v1 import router as api_v1_router
from chainfolio.config import Settings, get_settings
from chainfolio.database import build_engine, build_session_maker, init_db
from chainfolio.engines.scoring import (
    ActivityScoringEngine,
    ChainDataSource,
    RpcChainSource,
    ScoreCache,
    default_networks,
)
from chainfolio.kernel.credentials import CredentialLedger
from chainfolio.kernel.errors import (
    AlreadyIssued,
    LedgerError,
    NoSourcesAvailable,
    NonTransferable,
    NotFound,
    ScoringTimeout,
    SourceUnavailable,
    Unauthorized,
    ValidationError,
)
from chainfolio.kernel.identity.jwt import JWTManager
from chainfolio.kernel.registry import RegistryService
from chainfolio.logging_config import configure_logging, get_logger
from chainfolio.schemas.common import HealthResponse

logger = get_logger(__name__)

# Most specific first; the first isinstance match wins
_ERROR_STATUS: List[tuple] = [
    (Unauthorized, status.HTTP_403_FORBIDDEN),
    (NonTransferable, status.HTTP_403_FORBIDDEN),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (AlreadyIssued, status.HTTP_409_CONFLICT),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (NoSourcesAvailable, status.HTTP_503_SERVICE_UNAVAILABLE),
    (SourceUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
    (ScoringTimeout, status.HTTP_504_GATEWAY_TIMEOUT),
]


def status_for_error(exc: LedgerError) -> int:
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _cors_origins(settings: Settings) -> List[str]:
    origins = [
        "http://localhost:3000",
        "http://localhost:5173",  # Vite default
        "http://127.0.0.1:3000",
    ]
    if not (settings.debug or settings.environment == "development"):
        origins = ["https://chainfolio.example.com"] + origins
    return origins


def create_app(
    settings: Optional[Settings] = None,
    *,
    db_engine: Optional[AsyncEngine] = None,
    session_maker: Optional[async_sessionmaker[AsyncSession]] = None,
    chain_source: Optional[ChainDataSource] = None,
) -> FastAPI:
    """
    Build the application and its components.

    Components are constructed here rather than in the lifespan so that
    they exist even when the ASGI server skips lifespan events (tests).
    """
    settings = settings or get_settings()
    if db_engine is None:
        db_engine = build_engine(settings.database_url, echo=settings.debug)
    if session_maker is None:
        session_maker = build_session_maker(db_engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        """Configure logging, create tables, and dispose the engine on shutdown."""
        configure_logging(
            log_level=settings.log_level,
            environment=settings.environment,
            debug=settings.debug,
        )

        logger.info("Starting %s v%s", settings.project_name, settings.version)
        await init_db(db_engine)
        logger.info(
            "Database initialized",
            extra={"authority": app.state.registry.authority, "networks": len(app.state.engine.networks)},
        )

        yield

        logger.info("Shutting down...")
        await db_engine.dispose()
        logger.info("Database connections closed")

    app = FastAPI(
        title=settings.project_name,
        description="""
        On-chain builder identity.

        ## Components

        - **Registry**: append-only project catalog; only the authority may write
        - **Scoring**: cross-chain activity signals to a score (0-100) and tier
        - **Credentials**: one soulbound credential per identity, never transferable
        - **Events**: notification stream of registry and credential mutations
        """,
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    jwt_manager = JWTManager(
        secret_key=settings.secret_key,
        algorithm=settings.algorithm,
        access_token_expire_minutes=settings.access_token_expire_minutes,
    )
    networks = default_networks(
        rpc_url_sepolia=settings.rpc_url_sepolia,
        rpc_url_base_sepolia=settings.rpc_url_base_sepolia,
        explorer_api_sepolia=settings.explorer_api_sepolia,
        explorer_api_base_sepolia=settings.explorer_api_base_sepolia,
        mainnet_network=settings.mainnet_network,
    )
    if chain_source is None:
        chain_source = RpcChainSource(
            timeout=settings.source_timeout_seconds,
            explorer_api_key=settings.explorer_api_key,
        )

    app.state.settings = settings
    app.state.db_engine = db_engine
    app.state.session_maker = session_maker
    app.state.jwt_manager = jwt_manager
    app.state.registry = RegistryService(session_maker, authority=settings.registry_authority)
    app.state.ledger = CredentialLedger(session_maker)
    app.state.engine = ActivityScoringEngine(
        networks,
        chain_source,
        source_timeout=settings.source_timeout_seconds,
    )
    app.state.score_cache = ScoreCache(ttl=timedelta(seconds=settings.score_cache_ttl_seconds))

    cors_origins = _cors_origins(settings)

    # add_middleware stacks innermost-first, so the last added is outermost.
    # CORS goes last so 429s and error responses carry its headers too.
    app.add_middleware(RateLimitMiddleware, settings=settings, jwt_manager=jwt_manager)
    app.add_middleware(RequestIdMiddleware, slow_request_ms=settings.slow_request_ms)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _error_headers(request: Request) -> Dict[str, str]:
        """CORS and correlation headers for error responses (500s often bypass CORS middleware)."""
        origin = request.headers.get("origin") or ""
        headers = {
            "Access-Control-Allow-Origin": origin if origin in cors_origins else cors_origins[0],
            "Access-Control-Allow-Credentials": "true",
            "Access-Control-Allow-Methods": "*",
            "Access-Control-Allow-Headers": "*",
        }
        req_id = getattr(request.state, "request_id", None)
        if req_id:
            headers["X-Request-ID"] = req_id
        return headers

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        """Domain errors carry a stable code; map it to a status."""
        status_code = status_for_error(exc)
        if status_code >= 500:
            logger.warning(
                "Request failed",
                extra={"code": exc.code, "path": request.url.path, "error": exc.message},
            )
        content = {"detail": exc.message, "code": exc.code}
        if isinstance(exc, NoSourcesAvailable):
            content["failed_sources"] = [
                {"network": f.network, "reason": f.reason} for f in exc.failures
            ]
        return JSONResponse(status_code=status_code, content=content, headers=_error_headers(request))

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Ensure 401/404 etc. responses have CORS headers."""
        headers = _error_headers(request)
        if exc.headers:
            headers.update(exc.headers)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "code": "http_error"},
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        errors = []
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            errors.append({
                "field": field,
                "message": error["msg"],
                "type": error["type"],
            })
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": "Validation error", "code": "request_validation", "errors": errors},
            headers=_error_headers(request),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.exception("Unhandled exception: %s", exc)
        req_id = getattr(request.state, "request_id", None)
        if settings.debug:
            content = {
                "detail": str(exc),
                "code": "internal_error",
                "type": type(exc).__name__,
                "request_id": req_id,
            }
        else:
            content = {"detail": "Internal server error", "code": "internal_error", "request_id": req_id}
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=content,
            headers=_error_headers(request),
        )

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check():
        """Check application health."""
        database = "connected"
        try:
            async with session_maker() as session:
                await session.execute(text("SELECT 1"))
        except Exception as e:
            logger.error("Health check database query failed", extra={"error": str(e)})
            database = "unavailable"
        return HealthResponse(
            status="ok" if database == "connected" else "degraded",
            version=settings.version,
            database=database,
            networks=len(app.state.engine.networks),
        )

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.project_name,
            "version": settings.version,
            "docs": "/docs" if settings.debug else "disabled",
            "api": {
                "v1": settings.api_v1_prefix,
            },
        }

    app.include_router(api_v1_router, prefix=settings.api_v1_prefix)

    return app


app = create_app()


# Main entry point for development
if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "chainfolio.main:app",
        host="0.0.0.0",
        port=8000,
        reload=_settings.debug,
    )
