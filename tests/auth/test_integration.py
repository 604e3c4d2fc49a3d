"""End-to-end tests: two authenticators sharing one context behind a Starlette app.

Verifies the full pipeline:
  request headers -> token_factory -> GuardMiddleware -> AuthenticationManager
  -> GuardAuthenticationProvider -> authenticator -> ContextVars -> endpoint
"""

from __future__ import annotations

import time
from typing import Any

import jwt as pyjwt
import pytest
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from apcore_guard import (
    AuthenticationManager,
    DisabledAccountError,
    GuardAuthenticationProvider,
    GuardMiddleware,
    PostAuthenticationToken,
    PreAuthenticationToken,
    current_identity,
    current_token,
    is_granted,
)

SECRET = "integration-test-secret"
CONTEXT = "main"


def _make_jwt(payload: dict, key: str = SECRET) -> str:
    return pyjwt.encode(payload, key, algorithm="HS256")


class _User:
    def __init__(self, identifier: str, roles: list[str], *, api_key: str = "", enabled: bool = True) -> None:
        self.identifier = identifier
        self.roles = roles
        self.api_key = api_key
        self.enabled = enabled


class _UserStore:
    def __init__(self, users: list[_User]) -> None:
        self._users = {u.identifier: u for u in users}

    def load_user(self, identifier: str) -> _User | None:
        return self._users.get(identifier)

    def find_by_api_key(self, api_key: str) -> _User | None:
        return next((u for u in self._users.values() if u.api_key == api_key), None)


class _BearerAuthenticator:
    """Credentials are a raw JWT; the signature check happens before user lookup."""

    def resolve_user(self, credentials: str, user_store: _UserStore) -> _User | None:
        try:
            claims = pyjwt.decode(credentials, SECRET, algorithms=["HS256"], options={"require": ["sub"]})
        except pyjwt.InvalidTokenError:
            return None
        return user_store.load_user(claims["sub"])

    def verify_credentials(self, credentials: str, user: _User) -> bool:
        return True

    def create_authenticated_token(self, user: _User, context_name: str) -> PostAuthenticationToken:
        return PostAuthenticationToken(user, context_name, user.roles, attrs={"via": "bearer"})


class _ApiKeyAuthenticator:
    def resolve_user(self, credentials: str, user_store: _UserStore) -> _User | None:
        return user_store.find_by_api_key(credentials)

    def verify_credentials(self, credentials: str, user: _User) -> bool:
        return credentials == user.api_key

    def create_authenticated_token(self, user: _User, context_name: str) -> PostAuthenticationToken:
        return PostAuthenticationToken(user, context_name, ["ROLE_API"], attrs={"via": "api-key"})


class _EnabledChecker:
    def check_pre_auth(self, user: _User) -> None:
        if not user.enabled:
            raise DisabledAccountError(user=user)

    def check_post_auth(self, user: _User) -> None:
        pass


def _token_factory(headers: dict[str, str]) -> PreAuthenticationToken | None:
    authorization = headers.get("authorization", "")
    if authorization.lower().startswith("bearer ") and authorization[7:].strip():
        return PreAuthenticationToken.for_authenticator(authorization[7:].strip(), CONTEXT, "bearer")
    if "x-api-key" in headers:
        return PreAuthenticationToken.for_authenticator(headers["x-api-key"], CONTEXT, "api-key")
    return None


async def whoami(request: Request) -> JSONResponse:
    identity = current_identity()
    token = current_token()
    body: dict[str, Any] = {
        "id": identity.id if identity else None,
        "via": token.attrs.get("via") if token else None,
        "admin": is_granted("ROLE_ADMIN"),
    }
    return JSONResponse(body)


async def health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "id": current_identity()})


@pytest.fixture
def client() -> TestClient:
    store = _UserStore(
        [
            _User("alice", ["ROLE_USER", "ROLE_ADMIN"]),
            _User("bot", ["ROLE_USER"], api_key="key-123"),
            _User("mallory", ["ROLE_USER"], api_key="key-666", enabled=False),
        ]
    )
    provider = GuardAuthenticationProvider(
        {"bearer": _BearerAuthenticator(), "api-key": _ApiKeyAuthenticator()},
        store,
        CONTEXT,
        _EnabledChecker(),
    )
    manager = AuthenticationManager([provider])
    app = Starlette(
        routes=[Route("/whoami", whoami), Route("/health", health)],
        middleware=[Middleware(GuardMiddleware, manager=manager, token_factory=_token_factory)],
    )
    return TestClient(app)


class TestBearer:
    def test_valid_jwt(self, client):
        response = client.get("/whoami", headers={"Authorization": f"Bearer {_make_jwt({'sub': 'alice'})}"})
        assert response.status_code == 200
        assert response.json() == {"id": "alice", "via": "bearer", "admin": True}

    def test_expired_jwt(self, client):
        expired = _make_jwt({"sub": "alice", "exp": int(time.time()) - 60})
        response = client.get("/whoami", headers={"Authorization": f"Bearer {expired}"})
        assert response.status_code == 401
        assert response.json()["code"] == "AUTHENTICATION_FAILED"

    def test_wrong_signature(self, client):
        forged = _make_jwt({"sub": "alice"}, key="wrong-key")
        response = client.get("/whoami", headers={"Authorization": f"Bearer {forged}"})
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Guard"

    def test_unknown_subject(self, client):
        response = client.get("/whoami", headers={"Authorization": f"Bearer {_make_jwt({'sub': 'nobody'})}"})
        assert response.status_code == 401


class TestApiKey:
    def test_valid_key(self, client):
        response = client.get("/whoami", headers={"X-API-Key": "key-123"})
        assert response.status_code == 200
        assert response.json() == {"id": "bot", "via": "api-key", "admin": False}

    def test_unknown_key(self, client):
        response = client.get("/whoami", headers={"X-API-Key": "nope"})
        assert response.status_code == 401

    def test_disabled_account(self, client):
        response = client.get("/whoami", headers={"X-API-Key": "key-666"})
        assert response.status_code == 401
        assert response.json() == {
            "error": "Unauthorized",
            "code": "ACCOUNT_DISABLED",
            "detail": "Account is disabled.",
        }


class TestUnauthenticated:
    def test_no_credentials(self, client):
        response = client.get("/whoami")
        assert response.status_code == 401
        assert response.json()["code"] == "PROVIDER_NOT_FOUND"

    def test_health_exempt(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "id": None}
