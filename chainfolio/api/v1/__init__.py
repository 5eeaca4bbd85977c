"""
API v1 routes.
"""

from fastapi import APIRouter

from chainfolio.api.v1 import events, identity, registry
from chainfolio.schemas.common import ErrorResponse

# Domain errors are rendered by the LedgerError handler in main.py
_ERRORS = {
    401: {"model": ErrorResponse, "description": "Missing or invalid bearer token"},
    403: {"model": ErrorResponse, "description": "Unauthorized or non-transferable"},
    404: {"model": ErrorResponse, "description": "Unknown project index or token id"},
    409: {"model": ErrorResponse, "description": "Credential already issued"},
    422: {"model": ErrorResponse, "description": "Validation error"},
}

router = APIRouter(responses=_ERRORS)

router.include_router(registry.router, prefix="/registry", tags=["Registry"])
router.include_router(
    identity.router,
    prefix="/identity",
    tags=["Identity"],
    responses={
        503: {"model": ErrorResponse, "description": "No chain data source available"},
        504: {"model": ErrorResponse, "description": "Scoring deadline exceeded"},
    },
)
router.include_router(events.router, prefix="/events", tags=["Events"])
