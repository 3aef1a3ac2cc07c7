"""
Request rate limiting (slowapi): a global per-IP default plus a stricter
policy for the anonymous auth endpoints (login / refresh).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from authapi.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.default_rate_limit],
    enabled=settings.rate_limit_enabled,
)

# Decorator for auth routes; the route must accept `request: Request`.
auth_limit = limiter.limit(settings.auth_rate_limit)
