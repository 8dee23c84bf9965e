"""
Pytest configuration and fixtures for RCP auth tests.

Provides fixtures for:
- A scripted identity source standing in for the OS
- Native and mock providers built on top of it
- Clean global state (settings cache, manager singleton, factory registry)
"""

from typing import Optional

import pytest

from rcp_auth.config.auth import NativeAuthConfig
from rcp_auth.config.settings import get_settings
from rcp_auth.core.auth import AuthProviderFactory, NativeAuthProvider
from rcp_auth.core.errors import IdentitySourceError
from rcp_auth.infrastructure.identity import AccountEntry, IdentitySource
from rcp_auth.main import reset_auth_manager


class FakeIdentitySource(IdentitySource):
    """In-memory identity source.

    Records how often groups are resolved so caching can be asserted.
    Usernames listed in ``broken`` make user_groups raise.
    """

    platform = "fake"

    def __init__(
        self,
        users: Optional[dict[str, list[str]]] = None,
        display_names: Optional[dict[str, str]] = None,
        uids: Optional[dict[str, int]] = None,
        baseline: tuple[str, ...] = (),
    ):
        self.users = dict(users or {})
        self.display_names = dict(display_names or {})
        self.uids = dict(uids or {})
        self.baseline_permissions = baseline
        self.broken: set[str] = set()
        self.group_calls = 0
        self.membership_calls = 0

    def user_exists(self, username: str) -> bool:
        return username in self.users

    def user_groups(self, username: str) -> list[str]:
        self.group_calls += 1
        if username in self.broken:
            raise IdentitySourceError(f"Failed to get groups for user: {username}")
        return list(self.users.get(username, []))

    def is_member_of_group(self, username: str, group: str) -> bool:
        self.membership_calls += 1
        return group in self.users.get(username, [])

    def display_name(self, username: str) -> Optional[str]:
        return self.display_names.get(username)

    def list_accounts(self) -> list[AccountEntry]:
        return [AccountEntry(username=name, uid=self.uids.get(name)) for name in self.users]


@pytest.fixture
def make_source():
    """Factory for custom FakeIdentitySource instances"""
    return FakeIdentitySource


@pytest.fixture
def fake_source():
    """Identity source with a regular user, an admin and an outsider"""
    return FakeIdentitySource(
        users={
            "alice": ["rcp-users", "developers"],
            "root": ["root", "wheel"],
            "bob": ["staff"],
        },
        display_names={"alice": "Alice Liddell"},
        uids={"alice": 1000, "root": 0, "bob": 1001},
    )


@pytest.fixture
def native_config():
    """Native config with a developers mapping"""
    return NativeAuthConfig(
        require_group="rcp-users",
        permission_mappings={"developers": ["app:*", "api:read"]},
    )


@pytest.fixture
def native_provider(fake_source, native_config):
    """NativeAuthProvider backed by the fake identity source"""
    return NativeAuthProvider(fake_source, native_config)


@pytest.fixture
def mock_provider():
    """Mock provider seeded with testuser and admin"""
    return AuthProviderFactory.create_mock_provider()


@pytest.fixture(autouse=True)
def clean_global_state(monkeypatch):
    """Isolate tests from the environment and from each other"""
    for name in ("RCP_AUTH_PROVIDER", "RCP_AUTH_CONFIG_PATH", "RCP_LOG_FORMAT", "RCP_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(AuthProviderFactory, "_backends", {})
    get_settings.cache_clear()
    reset_auth_manager()
    yield
    get_settings.cache_clear()
    reset_auth_manager()
