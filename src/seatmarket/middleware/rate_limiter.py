"""
Rate limiting using SlowAPI
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

from seatmarket.core.config import settings


def get_identifier(request: Request) -> str:
    """
    Get identifier for rate limiting

    Authenticated requests are limited per session, anonymous ones per IP.
    """
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.lower().startswith("bearer "):
            token = auth_header[7:].strip()

    if token:
        return f"session:{token[:16]}"

    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_identifier,
    default_limits=["100/minute"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URL,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)
