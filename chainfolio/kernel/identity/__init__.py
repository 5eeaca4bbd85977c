"""
Identity Core - account handles and bearer tokens.
"""

from chainfolio.kernel.identity.address import ZERO_ADDRESS, is_identity, normalize_identity
from chainfolio.kernel.identity.jwt import JWTManager, AccessTokenPayload

__all__ = [
    "ZERO_ADDRESS",
    "is_identity",
    "normalize_identity",
    "JWTManager",
    "AccessTokenPayload",
]
