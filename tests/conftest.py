"""Shared test fixtures for apcore-guard tests."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any
from unittest.mock import MagicMock

import pytest

from apcore_guard.protocol import Authenticator, UserChecker, UserStore
from apcore_guard.tokens import PostAuthenticationToken

# ---------------------------------------------------------------------------
# Lightweight collaborators. Mocks are built with ``spec=`` so that only the
# protocol methods exist and stray calls fail loudly.
# ---------------------------------------------------------------------------


@dataclass
class StubUser:
    """Minimal user satisfying the ``User`` protocol."""

    identifier: str
    roles: list[str] = field(default_factory=lambda: ["ROLE_USER"])
    password_hash: str = ""


class InMemoryUserStore:
    """Dict-backed user store."""

    def __init__(self, users: dict[str, StubUser] | None = None) -> None:
        self.users = dict(users or {})

    def load_user(self, identifier: str) -> StubUser | None:
        return self.users.get(identifier)


class PasswordAuthenticator:
    """Real authenticator checking ``{"username", "password"}`` credentials."""

    def resolve_user(self, credentials: dict[str, Any], user_store: InMemoryUserStore) -> StubUser | None:
        return user_store.load_user(credentials["username"])

    def verify_credentials(self, credentials: dict[str, Any], user: StubUser) -> bool:
        return credentials["password"] == user.password_hash

    def create_authenticated_token(self, user: StubUser, context_name: str) -> PostAuthenticationToken:
        return PostAuthenticationToken(user, context_name, user.roles)


@pytest.fixture
def make_authenticator() -> Callable[[], MagicMock]:
    """Factory for mocks limited to the ``Authenticator`` protocol."""

    def _make() -> MagicMock:
        return MagicMock(spec=Authenticator)

    return _make


@pytest.fixture
def password_authenticator() -> PasswordAuthenticator:
    return PasswordAuthenticator()


@pytest.fixture
def user_store() -> MagicMock:
    return MagicMock(spec=UserStore)


@pytest.fixture
def user_checker() -> MagicMock:
    return MagicMock(spec=UserChecker)


@pytest.fixture
def alice() -> StubUser:
    return StubUser(identifier="alice", roles=["ROLE_USER", "ROLE_ADMIN"], password_hash="s3cret")


@pytest.fixture
def memory_store(alice: StubUser) -> InMemoryUserStore:
    return InMemoryUserStore({"alice": alice})
