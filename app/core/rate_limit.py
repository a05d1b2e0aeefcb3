"""
Shared slowapi limiter.

Lives outside app.main so feature routers can decorate endpoints without
importing the application module.
"""
from slowapi import Limiter
from starlette.requests import Request

from app.core import config


def get_authorization_header(request: Request) -> str:
    """
    Extract authorization header for rate limiting.
    Used with slowapi Limiter.
    """
    auth = request.headers.get("Authorization", "")
    return auth or "anonymous"


limiter = Limiter(key_func=get_authorization_header, enabled=config.RATE_LIMIT_ENABLED)
