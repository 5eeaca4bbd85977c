"""
Identity endpoints: activity scoring and soulbound credentials.
"""

from fastapi import APIRouter, Query, status

from chainfolio.api.deps import AppSettings, Cache, CurrentIdentity, Engine, Ledger
from chainfolio.engines.scoring import ScoreReport, get_or_compute
from chainfolio.kernel.identity.address import normalize_identity
from chainfolio.schemas.identity import (
    ApprovedResponse,
    ApproveRequest,
    CredentialIssueRequest,
    CredentialResponse,
    HolderResponse,
    IssuedAtResponse,
    OperatorApprovalRequest,
    OperatorApprovalResponse,
    OwnerResponse,
    ScoreResponse,
    ScoreValueResponse,
    TierResponse,
    TokenUriResponse,
    TransferRequest,
)

router = APIRouter()


def _score_response(report: ScoreReport, cached: bool) -> ScoreResponse:
    return ScoreResponse(**report.model_dump(mode="json"), cached=cached)


# ----------------------------------------------------------------------
# Scoring
# ----------------------------------------------------------------------


@router.post("/score", response_model=ScoreResponse)
async def score_caller(
    caller: CurrentIdentity,
    engine: Engine,
    cache: Cache,
    settings: AppSettings,
    refresh: bool = Query(False, description="Bypass the score cache"),
):
    """
    Compute the caller's score and tier from cross-chain activity.

    The result is advisory: pass it to POST /credentials to mint.
    """
    report, cached = await get_or_compute(
        engine,
        cache,
        caller,
        timeout=settings.scoring_timeout_seconds,
        refresh=refresh,
    )
    return _score_response(report, cached)


@router.get("/score/{address}", response_model=ScoreResponse)
async def score_address(
    address: str,
    engine: Engine,
    cache: Cache,
    settings: AppSettings,
):
    """Score any address (read-only, cached)."""
    report, cached = await get_or_compute(
        engine,
        cache,
        address,
        timeout=settings.scoring_timeout_seconds,
    )
    return _score_response(report, cached)


# ----------------------------------------------------------------------
# Credentials
# ----------------------------------------------------------------------


@router.post(
    "/credentials",
    response_model=CredentialResponse,
    status_code=status.HTTP_201_CREATED,
)
async def issue_credential(
    data: CredentialIssueRequest,
    caller: CurrentIdentity,
    ledger: Ledger,
):
    """Mint the caller's one soulbound credential with the given score and tier."""
    token_id = await ledger.issue(caller, data.score, data.tier)
    return CredentialResponse.model_validate(await ledger.get_metadata(token_id))


@router.get("/credentials/{token_id}", response_model=CredentialResponse)
async def get_credential(token_id: int, ledger: Ledger):
    return CredentialResponse.model_validate(await ledger.get_metadata(token_id))


@router.get("/credentials/{token_id}/tier", response_model=TierResponse)
async def get_tier(token_id: int, ledger: Ledger):
    return TierResponse(token_id=token_id, tier=await ledger.get_tier(token_id))


@router.get("/credentials/{token_id}/score", response_model=ScoreValueResponse)
async def get_score(token_id: int, ledger: Ledger):
    return ScoreValueResponse(token_id=token_id, score=await ledger.get_score(token_id))


@router.get("/credentials/{token_id}/issued-at", response_model=IssuedAtResponse)
async def get_issued_at(token_id: int, ledger: Ledger):
    return IssuedAtResponse(token_id=token_id, issued_at=await ledger.get_issued_at(token_id))


@router.get("/credentials/{token_id}/owner", response_model=OwnerResponse)
async def get_owner(token_id: int, ledger: Ledger):
    return OwnerResponse(token_id=token_id, owner=await ledger.owner_of(token_id))


@router.get("/credentials/{token_id}/token-uri", response_model=TokenUriResponse)
async def get_token_uri(token_id: int, ledger: Ledger):
    """Self-contained metadata document as a base64 JSON data URI."""
    return TokenUriResponse(token_id=token_id, token_uri=await ledger.render_metadata(token_id))


@router.post("/credentials/{token_id}/transfer", status_code=status.HTTP_204_NO_CONTENT)
async def transfer_credential(
    token_id: int,
    data: TransferRequest,
    caller: CurrentIdentity,
    ledger: Ledger,
):
    """Always rejected with 403: credentials are soulbound."""
    await ledger.transfer_from(caller, data.from_address or caller, data.to, token_id)


@router.post("/credentials/{token_id}/burn", status_code=status.HTTP_204_NO_CONTENT)
async def burn_credential(token_id: int, caller: CurrentIdentity, ledger: Ledger):
    """Always rejected with 403: credentials are soulbound."""
    await ledger.burn(caller, token_id)


@router.post("/credentials/{token_id}/approve", response_model=ApprovedResponse)
async def approve(
    token_id: int,
    data: ApproveRequest,
    caller: CurrentIdentity,
    ledger: Ledger,
):
    """Record a per-token approval. It grants nothing: no transfer path exists."""
    await ledger.approve(caller, data.approved, token_id)
    return ApprovedResponse(token_id=token_id, approved=await ledger.get_approved(token_id))


@router.get("/credentials/{token_id}/approved", response_model=ApprovedResponse)
async def get_approved(token_id: int, ledger: Ledger):
    return ApprovedResponse(token_id=token_id, approved=await ledger.get_approved(token_id))


@router.post("/operators", response_model=OperatorApprovalResponse)
async def set_operator(
    data: OperatorApprovalRequest,
    caller: CurrentIdentity,
    ledger: Ledger,
):
    """Approve or revoke an operator for all of the caller's credentials."""
    await ledger.set_approval_for_all(caller, data.operator, data.approved)
    return OperatorApprovalResponse(
        owner=caller,
        operator=normalize_identity(data.operator),
        approved=await ledger.is_approved_for_all(caller, data.operator),
    )


@router.get("/operators/{owner}/{operator}", response_model=OperatorApprovalResponse)
async def get_operator(owner: str, operator: str, ledger: Ledger):
    return OperatorApprovalResponse(
        owner=normalize_identity(owner),
        operator=normalize_identity(operator),
        approved=await ledger.is_approved_for_all(owner, operator),
    )


@router.get("/holders/{address}", response_model=HolderResponse)
async def get_holder(address: str, ledger: Ledger):
    """Balance (0 or 1) and token id, if any, for an address."""
    identity = normalize_identity(address)
    balance = await ledger.balance_of(identity)
    token_id = await ledger.token_of(identity) if balance else None
    return HolderResponse(address=identity, balance=balance, token_id=token_id)


@router.get("/supply")
async def total_supply(ledger: Ledger):
    return {"total_supply": await ledger.total_supply()}
