"""
Rate limiting per identity (or IP when unauthenticated).

Scopes:
- score: POST {prefix}/identity/score, each call may fan out to every
  chain source, so it has its own tighter budget
- api: everything else under {prefix}
"""

import time
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from chainfolio.config import Settings
from chainfolio.kernel.identity.jwt import JWTManager

WINDOW_SECONDS = 60


def _get_client_ip(request: Request) -> str:
    """Get client IP from request (X-Forwarded-For or direct)."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _get_identity_from_jwt(request: Request, jwt_manager: JWTManager) -> Optional[str]:
    """Identity from the bearer token if it verifies; auth proper runs later."""
    auth = request.headers.get("authorization")
    if not auth or not auth.lower().startswith("bearer "):
        return None
    token = auth[7:].strip()
    if not token:
        return None
    payload = jwt_manager.verify_access_token(token)
    return payload.sub if payload else None


class InMemoryRateLimitStore:
    """Fixed-window in-memory store. Key -> (count, window_start_ts)."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._data: Dict[str, Tuple[int, float]] = {}
        self._window_sec: Dict[str, int] = {}

    def _key(self, scope: str, identifier: str) -> str:
        return f"{scope}:{identifier}"

    def check_and_incr(
        self,
        scope: str,
        identifier: str,
        limit: int,
        window_seconds: int,
    ) -> bool:
        """Returns True if under limit (and increments). False if over limit (no increment)."""
        key = self._key(scope, identifier)
        now = self.clock()
        if key not in self._data:
            self._data[key] = (1, now)
            self._window_sec[key] = window_seconds
            return True
        count, start = self._data[key]
        win = self._window_sec.get(key, window_seconds)
        if now - start >= win:
            self._data[key] = (1, now)
            self._window_sec[key] = window_seconds
            return True
        if count >= limit:
            return False
        self._data[key] = (count + 1, start)
        return True

    def cleanup_old(self, max_age_seconds: int = 3600) -> None:
        """Remove entries older than max_age_seconds to avoid unbounded growth."""
        now = self.clock()
        to_remove = [k for k, (_, start) in self._data.items() if now - start > max_age_seconds]
        for k in to_remove:
            self._data.pop(k, None)
            self._window_sec.pop(k, None)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window limits per scope. Single process; state lives on the instance."""

    def __init__(
        self,
        app: ASGIApp,
        settings: Settings,
        jwt_manager: JWTManager,
        store: Optional[InMemoryRateLimitStore] = None,
    ):
        super().__init__(app)
        self.settings = settings
        self.jwt_manager = jwt_manager
        self.store = store or InMemoryRateLimitStore()

    def _classify(self, request: Request) -> Tuple[str, int]:
        # Both score routes fan out to every chain source
        score_path = f"{self.settings.api_v1_prefix}/identity/score"
        path = request.url.path
        if (request.method == "POST" and path == score_path) or (
            request.method == "GET" and path.startswith(score_path + "/")
        ):
            return "score", self.settings.rate_limit_score_per_minute
        return "api", self.settings.rate_limit_api_per_minute

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.settings.rate_limit_enabled:
            return await call_next(request)

        path = request.url.path or ""
        if not path.startswith(self.settings.api_v1_prefix):
            return await call_next(request)

        self.store.cleanup_old(max_age_seconds=7200)

        scope, limit = self._classify(request)
        identity = _get_identity_from_jwt(request, self.jwt_manager)
        identifier = identity if identity else _get_client_ip(request)

        allowed = self.store.check_and_incr(scope, identifier, limit, WINDOW_SECONDS)
        if not allowed:
            return Response(
                content='{"detail":"Too many requests. Please try again later.","code":"rate_limited"}',
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                media_type="application/json",
                headers={"Retry-After": str(WINDOW_SECONDS)},
            )
        return await call_next(request)
