"""In-memory authentication provider.

Reference implementation of the provider contract with no OS dependencies.
Used by tests and by development setups (``provider = "mock"``).
"""

import hmac
import logging
from typing import Optional
from uuid import UUID

from rcp_auth.core.auth.permissions import has_permission as match_permission
from rcp_auth.core.auth.provider import AuthProvider
from rcp_auth.core.errors import UnsupportedMethodError
from rcp_auth.domain.models import AuthMethod, Principal, utc_now

logger = logging.getLogger(__name__)


class MockAuthProvider(AuthProvider):
    """Authentication provider backed by plain dictionaries.

    Example:
        provider = (
            MockAuthProvider()
            .with_user(Principal(username="testuser"))
            .with_credential("testuser", b"password123")
            .with_permission("testuser", "app:safari")
        )
    """

    def __init__(self):
        self._users: dict[str, Principal] = {}
        self._credentials: dict[str, bytes] = {}
        self._permissions: dict[str, list[str]] = {}
        self.initialized = False

    @property
    def name(self) -> str:
        return "mock-provider"

    def with_user(self, user: Principal) -> "MockAuthProvider":
        """Add a user"""
        self._users[user.username] = user
        return self

    def with_credential(self, username: str, secret: bytes) -> "MockAuthProvider":
        """Set the password for a user"""
        self._credentials[username] = bytes(secret)
        return self

    def with_permission(self, username: str, permission: str) -> "MockAuthProvider":
        """Grant a permission pattern to a user"""
        perms = self._permissions.setdefault(username, [])
        if permission not in perms:
            perms.append(permission)
        return self

    async def initialize(self) -> None:
        self.initialized = True

    async def validate_credentials(
        self,
        username: str,
        credentials: bytes,
        method: str
    ) -> bool:
        if method == AuthMethod.PASSWORD:
            stored = self._credentials.get(username)
            if stored is None:
                return False
            return hmac.compare_digest(stored, bytes(credentials))

        if method == AuthMethod.PSK:
            return username in self._users

        raise UnsupportedMethodError(method, self.name)

    async def get_user_by_username(self, username: str) -> Optional[Principal]:
        return self._users.get(username)

    async def get_user(self, user_id: UUID) -> Optional[Principal]:
        for user in self._users.values():
            if user.id == user_id:
                return user
        return None

    async def list_users(self) -> list[Principal]:
        return list(self._users.values())

    async def create_user(self, user: Principal) -> None:
        if user.username in self._users:
            raise ValueError(f"User '{user.username}' already exists")
        self._users[user.username] = user
        logger.info(f"Mock user created: {user.username}")

    async def update_user(self, user: Principal) -> None:
        existing = self._find_username(user.id)
        if existing is None:
            raise KeyError(f"User not found: {user.id}")

        if existing != user.username:
            # Renamed: move credentials and permissions with the user
            if user.username in self._users:
                raise ValueError(f"User '{user.username}' already exists")
            del self._users[existing]
            if existing in self._credentials:
                self._credentials[user.username] = self._credentials.pop(existing)
            if existing in self._permissions:
                self._permissions[user.username] = self._permissions.pop(existing)

        self._users[user.username] = user.model_copy(update={"updated_at": utc_now()})

    async def delete_user(self, user_id: UUID) -> None:
        username = self._find_username(user_id)
        if username is None:
            raise KeyError(f"User not found: {user_id}")
        del self._users[username]
        self._credentials.pop(username, None)
        self._permissions.pop(username, None)
        logger.info(f"Mock user deleted: {username}")

    async def has_permission(self, user: Principal, permission: str) -> bool:
        if match_permission(self._permissions.get(user.username, ()), permission):
            return True

        # Admin users have all permissions
        return user.is_admin

    async def get_permissions(self, user: Principal) -> list[str]:
        return list(self._permissions.get(user.username, []))

    def supports_user_management(self) -> bool:
        return True

    def supports_auth_method(self, method: str) -> bool:
        return method in (AuthMethod.PASSWORD, AuthMethod.PSK)

    def _find_username(self, user_id: UUID) -> Optional[str]:
        for username, user in self._users.items():
            if user.id == user_id:
                return username
        return None
