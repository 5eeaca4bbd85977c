"""
Token metadata rendering.

Produces a token-URI style ``data:application/json;base64,...`` document so
wallets and explorers can display a credential without any external
content store.
"""

import base64
import json
from typing import Any, Dict

from chainfolio.kernel.models.credential import Tier

TOKEN_NAME = "Chainfolio Identity"
DATA_URI_PREFIX = "data:application/json;base64,"

_TIER_COLORS = {
    Tier.BRONZE: "#cd7f32",
    Tier.SILVER: "#c0c0c0",
    Tier.GOLD: "#ffd700",
}


def build_metadata_document(credential) -> Dict[str, Any]:
    """JSON metadata for one credential (anything with token_id/tier/score/issued_at)."""
    tier = Tier(credential.tier)
    issued_at = credential.issued_at
    return {
        "name": f"{TOKEN_NAME} #{credential.token_id}",
        "description": (
            "Soulbound onchain identity credential. "
            f"Activity score {credential.score}, tier {tier.value}."
        ),
        "background_color": _TIER_COLORS[tier].lstrip("#"),
        "attributes": [
            {"trait_type": "Token ID", "value": credential.token_id},
            {"trait_type": "Tier", "value": tier.value},
            {"trait_type": "Score", "value": credential.score, "display_type": "number"},
            {
                "trait_type": "Issued At",
                "value": int(issued_at.timestamp()),
                "display_type": "date",
            },
        ],
    }


def render_token_uri(credential) -> str:
    """Encode the metadata document as a base64 JSON data URI."""
    document = build_metadata_document(credential)
    encoded = base64.b64encode(
        json.dumps(document, separators=(",", ":"), sort_keys=True).encode("utf-8")
    ).decode("ascii")
    return DATA_URI_PREFIX + encoded


def decode_token_uri(uri: str) -> Dict[str, Any]:
    """Inverse of render_token_uri."""
    if not uri.startswith(DATA_URI_PREFIX):
        raise ValueError("Not a base64 JSON data URI")
    return json.loads(base64.b64decode(uri[len(DATA_URI_PREFIX):]))
