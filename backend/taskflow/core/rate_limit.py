"""
Request rate limiting.

Requests carrying a valid bearer token are counted against their user, so
clients sharing an address (an office NAT, or every client when the proxy
headers are not trusted) do not exhaust each other's budget. Anonymous
requests and the credential endpoints are counted per client address.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from taskflow.core.config import settings
from taskflow.core.security import decode_token_subject


def client_address(request: Request) -> str:
    """Client address, taken from proxy headers only when BEHIND_PROXY=True."""
    if settings.BEHIND_PROXY:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()

    return get_remote_address(request)


def rate_limit_key(request: Request) -> str:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        user_id = decode_token_subject(token.strip())
        if user_id is not None:
            return f"user:{user_id}"
    return f"ip:{client_address(request)}"


def auth_rate_limit() -> str:
    return settings.RATE_LIMIT_AUTH


def auth_rate_limit_key(request: Request) -> str:
    # Login and registration guard credentials, so a token never buys a separate bucket.
    return f"ip:{client_address(request)}"


limiter = Limiter(key_func=rate_limit_key, default_limits=[settings.RATE_LIMIT_DEFAULT])
