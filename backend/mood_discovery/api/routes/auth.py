"""
Auth endpoint: verify the caller's session token and echo who they are.
"""
from fastapi import APIRouter, Header, Request

from mood_discovery.core.auth import require_auth
from mood_discovery.core.constants import AUTH_RATE_LIMIT
from mood_discovery.core.rate_limit import general_limit, limiter

router = APIRouter()


@router.post("/verify")
@limiter.limit(AUTH_RATE_LIMIT)
@general_limit
async def verify(request: Request, authorization: str | None = Header(None)):
    """Returns {userId, sessionId, verified}. 401 when the token is missing or invalid."""
    # Verified in the handler (not as a dependency) so rejected attempts count toward the limit.
    auth = require_auth(request, authorization)
    return {"userId": auth.user_id, "sessionId": auth.session_id, "verified": True}
