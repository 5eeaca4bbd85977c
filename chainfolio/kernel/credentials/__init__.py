"""
Credential Ledger - soulbound, one-per-identity credentials.
"""

from chainfolio.kernel.credentials.credential_ledger import (
    CredentialLedger,
    CredentialRecord,
    parse_tier,
    validate_score,
)
from chainfolio.kernel.credentials.metadata import decode_token_uri, render_token_uri

__all__ = [
    "CredentialLedger",
    "CredentialRecord",
    "parse_tier",
    "validate_score",
    "decode_token_uri",
    "render_token_uri",
]
