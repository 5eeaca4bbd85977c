"""
Identity schemas: scoring and credentials.
"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr

from chainfolio.kernel.models.credential import Tier


class NetworkActivityResponse(BaseModel):
    network: str
    has_deployed_contract: bool
    has_rollup_interaction: bool
    transaction_count: int
    has_mainnet_interaction: bool


class SignalsResponse(BaseModel):
    has_deployed_contract: bool
    has_rollup_interaction: bool
    transaction_count: int
    has_mainnet_interaction: bool


class FailedSourceResponse(BaseModel):
    network: str
    reason: str


class ScoreResponse(BaseModel):
    """Computed score/tier with the signals and sources behind it."""

    identity: str
    score: int
    tier: Tier
    signals: SignalsResponse
    networks: List[NetworkActivityResponse]
    failed_sources: List[FailedSourceResponse] = Field(default_factory=list)
    partial: bool = False
    cached: bool = False


class CredentialIssueRequest(BaseModel):
    """
    Score/tier pair presented for minting.

    Tier may be the name ("Gold") or the ordinal (2). Values are passed
    through unmodified; the ledger rejects anything outside the tier set.
    """

    score: StrictInt
    tier: Union[StrictInt, StrictStr]


class CredentialResponse(BaseModel):
    """Issued credential."""

    model_config = ConfigDict(from_attributes=True)

    token_id: int
    owner: str
    tier: Tier
    score: int
    issued_at: datetime


class TierResponse(BaseModel):
    token_id: int
    tier: Tier


class ScoreValueResponse(BaseModel):
    token_id: int
    score: int


class IssuedAtResponse(BaseModel):
    token_id: int
    issued_at: datetime


class OwnerResponse(BaseModel):
    token_id: int
    owner: str


class TokenUriResponse(BaseModel):
    token_id: int
    token_uri: str


class HolderResponse(BaseModel):
    address: str
    balance: int
    token_id: Optional[int] = None


class TransferRequest(BaseModel):
    """Accepted only so the rejection can be explicit."""

    to: str
    from_address: Optional[str] = None


class ApproveRequest(BaseModel):
    approved: str


class ApprovedResponse(BaseModel):
    token_id: int
    approved: str


class OperatorApprovalRequest(BaseModel):
    operator: str
    approved: StrictBool


class OperatorApprovalResponse(BaseModel):
    owner: str
    operator: str
    approved: bool
