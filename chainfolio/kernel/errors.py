"""
Error taxonomy for the ledger components and the scoring engine.

Every error carries a stable ``code`` so the API layer can map it to an
HTTP status without inspecting messages. Mutating operations raise before
touching state, so any of these leaves the ledgers unchanged.
"""

from typing import Optional, Sequence


class LedgerError(Exception):
    """Base class for all domain errors."""

    code = "ledger_error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = message or self.__class__.__doc__ or self.code


# Authorization

class Unauthorized(LedgerError):
    """Caller lacks the required authority."""

    code = "unauthorized"


# Validation

class ValidationError(LedgerError):
    """Input rejected; correct it and retry."""

    code = "validation_error"


class EmptyTitle(ValidationError):
    """Project title must not be empty."""

    code = "empty_title"


class EmptyContentRef(ValidationError):
    """Project content reference must not be empty."""

    code = "empty_content_ref"


class InvalidTier(ValidationError):
    """Tier must be one of Bronze, Silver, Gold."""

    code = "invalid_tier"


class InvalidScore(ValidationError):
    """Score must be a non-negative integer."""

    code = "invalid_score"


class InvalidIdentity(ValidationError):
    """Identity must be a 0x-prefixed 20-byte hex address."""

    code = "invalid_identity"


# Conflict

class AlreadyIssued(LedgerError):
    """Identity already holds a credential."""

    code = "already_issued"


# Bad references

class NotFound(LedgerError):
    """Referenced record does not exist."""

    code = "not_found"


class IndexOutOfBounds(NotFound):
    """Index is outside the stored sequence."""

    code = "index_out_of_bounds"

    def __init__(self, index: int, count: int):
        super().__init__(f"Index {index} out of bounds (count={count})")
        self.index = index
        self.count = count


# Structural

class NonTransferable(LedgerError):
    """Credentials are soulbound and cannot be transferred or burned."""

    code = "non_transferable"


# Environmental (retryable by the caller)

class SourceUnavailable(LedgerError):
    """A chain data source could not be queried."""

    code = "source_unavailable"

    def __init__(self, network: str, reason: str):
        super().__init__(f"{network}: {reason}")
        self.network = network
        self.reason = reason


class NoSourcesAvailable(LedgerError):
    """Every chain data source failed; no score was produced."""

    code = "no_sources_available"

    def __init__(self, failures: Sequence[SourceUnavailable]):
        names = ", ".join(f.network for f in failures) or "none configured"
        super().__init__(f"All chain data sources failed: {names}")
        self.failures = list(failures)


class ScoringTimeout(LedgerError):
    """Score computation exceeded the caller's deadline."""

    code = "scoring_timeout"
