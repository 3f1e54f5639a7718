"""
Request rate limiting shared by the routers.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from crapstable.config import settings

limiter = Limiter(key_func=get_remote_address)

UNLIMITED = "1000/second"


def table_rate_limit() -> str:
    """Limit for bets, rolls and resets. Read on every request so tests can change it."""
    return settings.rate_limit.table_requests if settings.rate_limit.enabled else UNLIMITED


def api_rate_limit() -> str:
    """Limit for account CRUD."""
    return settings.rate_limit.api_requests if settings.rate_limit.enabled else UNLIMITED
