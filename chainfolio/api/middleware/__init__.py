"""
HTTP middleware.
"""

from chainfolio.api.middleware.rate_limit import RateLimitMiddleware
from chainfolio.api.middleware.request_id import RequestIdMiddleware

__all__ = ["RateLimitMiddleware", "RequestIdMiddleware"]
