from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from core.auth import read_token
from core.config import settings


def get_user_identifier(request: Request):
    """
    Use the access token (cookie or bearer header) as the rate limit key.
    Fallback to IP address for anonymous callers.
    """
    return read_token(request) or get_remote_address(request)


# Global limiter instance imported by the routers
limiter = Limiter(key_func=get_user_identifier, enabled=settings.rate_limit_enabled)
