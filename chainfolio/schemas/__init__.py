"""
Pydantic schemas for API request/response validation.
"""

from chainfolio.schemas.common import ErrorResponse, HealthResponse
from chainfolio.schemas.registry import (
    ProjectCreate,
    ProjectResponse,
    ProjectCountResponse,
    AuthorityResponse,
)
from chainfolio.schemas.identity import (
    ScoreResponse,
    CredentialIssueRequest,
    CredentialResponse,
    HolderResponse,
    TransferRequest,
    ApproveRequest,
    OperatorApprovalRequest,
)
from chainfolio.schemas.events import EventResponse

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "ProjectCreate",
    "ProjectResponse",
    "ProjectCountResponse",
    "AuthorityResponse",
    "ScoreResponse",
    "CredentialIssueRequest",
    "CredentialResponse",
    "HolderResponse",
    "TransferRequest",
    "ApproveRequest",
    "OperatorApprovalRequest",
    "EventResponse",
]
