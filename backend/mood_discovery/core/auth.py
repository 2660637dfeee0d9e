"""
Bearer-token authentication (Clerk session JWTs).

Tokens are RS256 JWTs signed by the Clerk instance; the signing key is looked up by `kid`
in the instance JWKS (PyJWKClient caches the key set). The verifier lives on app.state.
"""
import logging
from dataclasses import dataclass
from typing import Any

import jwt
from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from mood_discovery.core.errors import UnauthorizedError
from mood_discovery.db.session import get_db
from mood_discovery.models.user import User
from mood_discovery.services.user_service import get_or_create_user

logger = logging.getLogger(__name__)

MSG_MISSING_AUTH_HEADER = "Missing or invalid authorization header"
MSG_INVALID_SESSION = "Invalid or expired session token"
MSG_AUTH_FAILED = "Authentication failed"

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class AuthContext:
    user_id: str
    session_id: str
    email: str | None = None


class InvalidSessionToken(Exception):
    """Token is malformed, expired, or not signed by the identity provider."""


class SessionTokenVerifier:
    def __init__(
        self,
        jwks_url: str | None = None,
        *,
        issuer: str | None = None,
        jwk_client: Any = None,
        leeway: float = 5.0,
    ) -> None:
        if jwk_client is None:
            if not jwks_url:
                raise ValueError("CLERK_JWKS_URL is required to verify session tokens")
            jwk_client = jwt.PyJWKClient(jwks_url)
        self._jwk_client = jwk_client
        self._issuer = issuer or None
        self._leeway = leeway

    def verify(self, token: str) -> AuthContext:
        """Decode and verify token. Raises InvalidSessionToken on any JWT failure."""
        try:
            signing_key = self._jwk_client.get_signing_key_from_jwt(token)
            options = {"require": ["exp", "sub"], "verify_aud": False}
            claims = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                issuer=self._issuer,
                options=options,
                leeway=self._leeway,
            )
        except jwt.PyJWTError as e:
            raise InvalidSessionToken(str(e)) from e
        return AuthContext(
            user_id=claims["sub"],
            session_id=claims.get("sid") or "",
            email=claims.get("email"),
        )


def build_verifier(jwks_url: str, issuer: str = "") -> SessionTokenVerifier | None:
    """Verifier for the configured Clerk instance, or None when no JWKS URL is set."""
    if not jwks_url:
        logger.warning("CLERK_JWKS_URL not set; authenticated routes will reject every request")
        return None
    return SessionTokenVerifier(jwks_url, issuer=issuer)


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    return authorization[len(BEARER_PREFIX):].strip() or None


def _verifier(request: Request) -> SessionTokenVerifier | None:
    return getattr(request.app.state, "token_verifier", None)


def require_auth(request: Request, authorization: str | None = Header(None)) -> AuthContext:
    token = _bearer_token(authorization)
    if token is None:
        raise UnauthorizedError(MSG_MISSING_AUTH_HEADER)
    verifier = _verifier(request)
    if verifier is None:
        raise UnauthorizedError(MSG_AUTH_FAILED)
    try:
        return verifier.verify(token)
    except InvalidSessionToken as e:
        logger.info("Rejected session token: %s", e)
        raise UnauthorizedError(MSG_INVALID_SESSION) from e
    except Exception as e:
        logger.exception("Authentication error")
        raise UnauthorizedError(MSG_AUTH_FAILED) from e


def optional_auth(request: Request, authorization: str | None = Header(None)) -> AuthContext | None:
    """AuthContext when a valid bearer token is present, else None."""
    token = _bearer_token(authorization)
    verifier = _verifier(request)
    if token is None or verifier is None:
        return None
    try:
        return verifier.verify(token)
    except Exception:
        return None


def get_current_user(
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
) -> User:
    """Local user row for the authenticated caller (created on first contact)."""
    return get_or_create_user(db, auth.user_id, auth.email)
