"""Serve a Starlette app guarded by two authenticators sharing the "main" context.

Usage (from the project root, with the ``examples`` extra installed):
    python examples/run.py

Then test with curl:
    curl http://localhost:8000/health                                   # 200 (exempt)
    curl http://localhost:8000/whoami                                   # 401 (no credentials)
    curl -H "X-API-Key: demo-key" localhost:8000/whoami                 # 200 as "robot"
    curl -H "Authorization: Bearer <token>" localhost:8000/whoami       # 200 as "demo-user"

The bearer token is printed on startup. Set JWT_SECRET to choose the signing key.
"""

import logging
import os

import jwt as pyjwt
import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from apcore_guard import (
    AuthenticationManager,
    DisabledAccountError,
    GuardAuthenticationProvider,
    GuardMiddleware,
    PostAuthenticationToken,
    PreAuthenticationToken,
    configure_logging,
    current_identity,
    is_granted,
)

CONTEXT = "main"
JWT_SECRET = os.environ.get("JWT_SECRET", "demo-secret")


class DemoUser:
    def __init__(self, identifier, roles, api_key=None, enabled=True):
        self.identifier = identifier
        self.roles = roles
        self.api_key = api_key
        self.enabled = enabled


class DemoUserStore:
    def __init__(self, users):
        self._users = {user.identifier: user for user in users}

    def load_user(self, identifier):
        return self._users.get(identifier)

    def find_by_api_key(self, api_key):
        return next((user for user in self._users.values() if user.api_key == api_key), None)


class BearerAuthenticator:
    """Credentials are a signed JWT whose ``sub`` claim names the user."""

    def __init__(self, key, algorithms=None):
        self._key = key
        self._algorithms = algorithms or ["HS256"]

    def resolve_user(self, credentials, user_store):
        try:
            claims = pyjwt.decode(credentials, self._key, algorithms=self._algorithms, options={"require": ["sub"]})
        except pyjwt.InvalidTokenError:
            return None
        return user_store.load_user(claims["sub"])

    def verify_credentials(self, credentials, user):
        # The signature was verified while resolving the user.
        return True

    def create_authenticated_token(self, user, context_name):
        return PostAuthenticationToken(user, context_name, user.roles, attrs={"via": "bearer"})


class ApiKeyAuthenticator:
    def resolve_user(self, credentials, user_store):
        return user_store.find_by_api_key(credentials)

    def verify_credentials(self, credentials, user):
        return credentials == user.api_key

    def create_authenticated_token(self, user, context_name):
        return PostAuthenticationToken(user, context_name, user.roles, attrs={"via": "api-key"})


class EnabledUserChecker:
    def check_pre_auth(self, user):
        if not user.enabled:
            raise DisabledAccountError(f"User '{user.identifier}' is disabled", user=user)

    def check_post_auth(self, user):
        pass


def token_factory(headers):
    authorization = headers.get("authorization", "")
    if authorization.lower().startswith("bearer "):
        return PreAuthenticationToken.for_authenticator(authorization[7:].strip(), CONTEXT, "bearer")
    if "x-api-key" in headers:
        return PreAuthenticationToken.for_authenticator(headers["x-api-key"], CONTEXT, "api-key")
    return None


async def whoami(request: Request) -> JSONResponse:
    identity = current_identity()
    return JSONResponse(
        {
            "id": identity.id,
            "roles": list(identity.roles),
            "attrs": identity.attrs,
            "admin": is_granted("ROLE_ADMIN"),
        }
    )


async def health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


logging.basicConfig(format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
configure_logging("DEBUG")

store = DemoUserStore(
    [
        DemoUser("demo-user", ["ROLE_USER", "ROLE_ADMIN"]),
        DemoUser("robot", ["ROLE_API"], api_key="demo-key"),
        DemoUser("retired", ["ROLE_USER"], api_key="old-key", enabled=False),
    ]
)
provider = GuardAuthenticationProvider(
    {"bearer": BearerAuthenticator(JWT_SECRET), "api-key": ApiKeyAuthenticator()},
    store,
    CONTEXT,
    EnabledUserChecker(),
)
manager = AuthenticationManager([provider])

app = Starlette(
    routes=[Route("/whoami", whoami), Route("/health", health)],
    middleware=[Middleware(GuardMiddleware, manager=manager, token_factory=token_factory)],
)

if __name__ == "__main__":
    sample_token = pyjwt.encode({"sub": "demo-user"}, JWT_SECRET, algorithm="HS256")
    print(f"Context keys:  {', '.join(provider.context_keys)}")
    print(f"Sample token:  {sample_token}")
    uvicorn.run(app, host="127.0.0.1", port=8000)
