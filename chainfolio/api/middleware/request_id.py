"""
Per-request logging context.

Each request gets an X-Request-ID (the client's, when it is a plain token,
otherwise a fresh UUID) and starts with no resolved caller. The bearer
dependency fills the caller in once the token verifies, so every log line
of an authenticated request names the identity behind it.
"""

import re
import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from chainfolio.logging_config import caller_var, get_logger, request_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Client-supplied ids end up in log lines verbatim
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def resolve_request_id(incoming: Optional[str]) -> str:
    if incoming and _REQUEST_ID_RE.match(incoming):
        return incoming
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Bind request id and caller for the duration of one request.

    Scoring requests fan out to remote chain sources, so requests slower
    than ``slow_request_ms`` are logged as warnings along with the caller
    that issued them. Everything else is logged at debug.
    """

    def __init__(self, app: ASGIApp, slow_request_ms: int = 1000):
        super().__init__(app)
        self.slow_request_ms = slow_request_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        request.state.caller = None

        request_token = request_id_var.set(request_id)
        caller_token = caller_var.set(None)
        try:
            start = time.perf_counter()
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - start) * 1000, 1)

            response.headers[REQUEST_ID_HEADER] = request_id

            extra = {
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "identity": request.state.caller or "anonymous",
            }
            if duration_ms > self.slow_request_ms:
                logger.warning("Slow request", extra=extra)
            else:
                logger.debug("Request completed", extra=extra)
            return response
        finally:
            caller_var.reset(caller_token)
            request_id_var.reset(request_token)
