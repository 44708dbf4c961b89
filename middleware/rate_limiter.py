"""
Rate limits for the account endpoints.

Login, registration and the password-setup flow are reachable without a
session, so anonymous callers are limited per client address. Callers with a
valid access token are limited per account. The payment webhook carries no
limit: the provider retries throttled deliveries, which only delays orders.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request
from jose import jwt, JWTError
from core.config import settings

LOGIN_LIMIT = "5/minute"
REGISTER_LIMIT = "3/minute"
SESSION_LIMIT = "10/minute"
ACCOUNT_READ_LIMIT = "30/minute"
ACCOUNT_WRITE_LIMIT = "10/minute"
SETUP_LINK_CHECK_LIMIT = "20/minute"
SET_PASSWORD_LIMIT = "5/minute"
# One new setup email per caller per minute
RESEND_LIMIT = "1/minute"


def client_address(request: Request) -> str:
    """First hop of X-Forwarded-For when behind the storefront proxy, else the peer address."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return get_remote_address(request)


def rate_limit_key(request: Request) -> str:
    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer "):
        try:
            payload = jwt.decode(authorization[len("Bearer "):], settings.SECRET_KEY,
                                 algorithms=[settings.ALGORITHM])
            if payload.get("type") == "access" and payload.get("id"):
                return f"user:{payload['id']}"
        except JWTError:
            pass

    return f"ip:{client_address(request)}"


limiter = Limiter(
    key_func=rate_limit_key,
    enabled=settings.ENV != "testing"
)
