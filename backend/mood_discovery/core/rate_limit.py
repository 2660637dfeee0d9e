"""
Per-IP rate limits (slowapi).

The general API limit is one application-wide bucket per IP, shared by every route.
SlowAPIMiddleware enforces it on undecorated routes. It skips routes that carry their own
@limiter.limit, so chat and auth also stack `general_limit`, which hits the same bucket.
"""
from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from mood_discovery.core.constants import API_RATE_LIMIT
from mood_discovery.core.errors import error_body

MSG_API_RATE_LIMITED = "Too many requests from this IP, please try again later"
MSG_CHAT_RATE_LIMITED = "Too many chat requests, please slow down"
MSG_AUTH_RATE_LIMITED = "Too many authentication attempts, please try again later"

# (path prefix, message). First match wins.
_RATE_LIMIT_MESSAGES: list[tuple[str, str]] = [
    ("/api/chat", MSG_CHAT_RATE_LIMITED),
    ("/api/auth", MSG_AUTH_RATE_LIMITED),
]

# slowapi stores application limits under the fixed scope "global"
GENERAL_LIMIT_SCOPE = "global"

limiter = Limiter(key_func=get_remote_address, application_limits=[API_RATE_LIMIT])

# For routes with their own limit: counts the request in the shared per-IP bucket.
general_limit = limiter.shared_limit(
    API_RATE_LIMIT, scope=GENERAL_LIMIT_SCOPE, error_message=MSG_API_RATE_LIMITED
)


def rate_limit_message(path: str) -> str:
    for prefix, message in _RATE_LIMIT_MESSAGES:
        if path.startswith(prefix):
            return message
    return MSG_API_RATE_LIMITED


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 with the standard error shape; message depends on the route family.

    A limit that carries its own message (the shared general bucket) wins over the route family.
    Must stay sync: SlowAPIMiddleware calls the registered handler without awaiting it.
    """
    if exc.limit is not None and exc.limit.error_message:
        message = exc.detail
    else:
        message = rate_limit_message(request.url.path)
    return JSONResponse(status_code=429, content=error_body(429, message))
