"""Tests for session token verification and the auth endpoint."""
import time
from types import SimpleNamespace

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from mood_discovery.core.auth import InvalidSessionToken, SessionTokenVerifier, require_auth
from mood_discovery.core.rate_limit import limiter

ISSUER = "https://clerk.example.com"


@pytest.fixture(scope="module")
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="module")
def other_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


class _StaticJwkClient:
    """Returns one public key for every token, like a JWKS with a single key."""

    def __init__(self, private_key) -> None:
        self.key = private_key.public_key()

    def get_signing_key_from_jwt(self, token: str):
        return SimpleNamespace(key=self.key)


def _token(private_key, **overrides) -> str:
    claims = {
        "sub": "user_2abc",
        "sid": "sess_2xyz",
        "iss": ISSUER,
        "exp": int(time.time()) + 300,
        "iat": int(time.time()),
    }
    claims.update(overrides)
    claims = {k: v for k, v in claims.items() if v is not None}
    return jwt.encode(claims, private_key, algorithm="RS256", headers={"kid": "ins_1"})


@pytest.fixture
def verifier(signing_key) -> SessionTokenVerifier:
    return SessionTokenVerifier(issuer=ISSUER, jwk_client=_StaticJwkClient(signing_key))


# -- Verifier ----------------------------------------------------------------


def test_valid_token(verifier, signing_key) -> None:
    auth = verifier.verify(_token(signing_key, email="a@b.co"))
    assert auth.user_id == "user_2abc"
    assert auth.session_id == "sess_2xyz"
    assert auth.email == "a@b.co"


def test_expired_token(verifier, signing_key) -> None:
    with pytest.raises(InvalidSessionToken):
        verifier.verify(_token(signing_key, exp=int(time.time()) - 60))


def test_wrong_signature(verifier, other_key) -> None:
    with pytest.raises(InvalidSessionToken):
        verifier.verify(_token(other_key))


def test_wrong_issuer(verifier, signing_key) -> None:
    with pytest.raises(InvalidSessionToken):
        verifier.verify(_token(signing_key, iss="https://evil.example.com"))


def test_missing_subject(verifier, signing_key) -> None:
    with pytest.raises(InvalidSessionToken):
        verifier.verify(_token(signing_key, sub=None))


def test_garbage_token(verifier) -> None:
    with pytest.raises(InvalidSessionToken):
        verifier.verify("not-a-jwt")


def test_requires_jwks_url_without_client() -> None:
    with pytest.raises(ValueError):
        SessionTokenVerifier()


# -- /api/auth/verify --------------------------------------------------------


@pytest.fixture
def auth_client(client, verifier):
    client.app.dependency_overrides.pop(require_auth, None)
    client.app.state.token_verifier = verifier
    return client


def test_verify_endpoint(auth_client, signing_key) -> None:
    r = auth_client.post("/api/auth/verify", headers={"Authorization": f"Bearer {_token(signing_key)}"})
    assert r.status_code == 200
    assert r.json() == {"userId": "user_2abc", "sessionId": "sess_2xyz", "verified": True}


@pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer "])
def test_verify_missing_header(auth_client, header) -> None:
    headers = {"Authorization": header} if header is not None else {}
    r = auth_client.post("/api/auth/verify", headers=headers)
    assert r.status_code == 401
    assert r.json() == {
        "error": "Unauthorized",
        "message": "Missing or invalid authorization header",
        "statusCode": 401,
    }


def test_verify_invalid_token(auth_client, other_key) -> None:
    r = auth_client.post("/api/auth/verify", headers={"Authorization": f"Bearer {_token(other_key)}"})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid or expired session token"


def test_verify_unexpected_failure(auth_client, signing_key) -> None:
    class _Broken:
        def get_signing_key_from_jwt(self, token):
            raise RuntimeError("JWKS endpoint unreachable")

    auth_client.app.state.token_verifier = SessionTokenVerifier(jwk_client=_Broken())
    r = auth_client.post("/api/auth/verify", headers={"Authorization": f"Bearer {_token(signing_key)}"})
    assert r.status_code == 401
    assert r.json()["message"] == "Authentication failed"


def test_unconfigured_verifier_rejects(auth_client, signing_key) -> None:
    auth_client.app.state.token_verifier = None
    r = auth_client.post("/api/auth/verify", headers={"Authorization": f"Bearer {_token(signing_key)}"})
    assert r.status_code == 401


def test_protected_route_requires_token(auth_client) -> None:
    r = auth_client.get("/api/user/profile")
    assert r.status_code == 401
    assert r.json()["message"] == "Missing or invalid authorization header"


def test_protected_route_creates_user_on_first_contact(auth_client, signing_key) -> None:
    headers = {"Authorization": f"Bearer {_token(signing_key, email='new@user.co')}"}
    r = auth_client.get("/api/user/profile", headers=headers)
    assert r.status_code == 200
    user = r.json()["user"]
    assert user["clerkId"] == "user_2abc"
    assert user["email"] == "new@user.co"
    again = auth_client.get("/api/user/profile", headers=headers).json()["user"]
    assert again["id"] == user["id"]


def test_auth_rate_limit(auth_client) -> None:
    limiter.reset()
    statuses = [auth_client.post("/api/auth/verify").status_code for _ in range(6)]
    assert statuses == [401, 401, 401, 401, 401, 429]
    r = auth_client.post("/api/auth/verify")
    assert r.json() == {
        "error": "Too Many Requests",
        "message": "Too many authentication attempts, please try again later",
        "statusCode": 429,
    }


def test_api_index_reports_authentication(auth_client, signing_key) -> None:
    assert auth_client.get("/api").json()["authenticated"] is False
    headers = {"Authorization": f"Bearer {_token(signing_key)}"}
    body = auth_client.get("/api", headers=headers).json()
    assert body["authenticated"] is True
    assert body["endpoints"]["chat"] == "/api/chat"
