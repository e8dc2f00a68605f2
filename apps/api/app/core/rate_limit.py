"""Rate limiting configuration for the public recruitment endpoints."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

# memory:// per process; point RATE_LIMIT_STORAGE_URI at Redis for multi-worker deploys
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED,
)
