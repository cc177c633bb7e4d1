"""Request rate limiting shared by the app and its routers."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from zerobuild.config import settings

# Keyed by remote address
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default] if settings.rate_limit_enabled else [],
    enabled=settings.rate_limit_enabled,
)
