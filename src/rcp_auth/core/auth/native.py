"""OS-native authentication provider.

Authenticates against the host's own accounts and derives permissions from
OS group membership. Platform differences live entirely in the injected
IdentitySource; this class is the same on every OS.

Security note:
    Password validation is currently a simplified existence check. It does
    NOT verify the presented password. Deployments that enable the
    ``password`` method on a native provider must replace
    ``_validate_password`` with a real OS credential check (PAM, LogonUser,
    Security framework) before exposing the daemon.
"""

import asyncio
import logging
from typing import Any, Callable, Optional, TypeVar
from uuid import UUID

from rcp_auth.config.auth import NativeAuthConfig
from rcp_auth.core.auth.cache import GroupMembershipCache
from rcp_auth.core.auth.permissions import has_permission as match_permission
from rcp_auth.core.auth.permissions import is_admin, map_permissions
from rcp_auth.core.auth.provider import AuthProvider
from rcp_auth.core.errors import (
    IdentitySourceError,
    UnsupportedMethodError,
    UnsupportedOperationError,
)
from rcp_auth.domain.models import EPOCH, AuthMethod, Principal, UserRole
from rcp_auth.infrastructure.identity.source import IdentitySource, is_valid_account_name

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NativeAuthProvider(AuthProvider):
    """Authentication provider backed by OS accounts and groups.

    The provider is read-only: users are managed with the OS's own tools.
    Group lists are memoized per username until initialize() is called.

    Attributes:
        source: Identity source for the current platform
        config: Native auth settings (gate group, admin groups, mappings)
    """

    def __init__(self, source: IdentitySource, config: Optional[NativeAuthConfig] = None):
        self.source = source
        self.config = config or NativeAuthConfig()
        self._group_cache = GroupMembershipCache()
        self._password_gap_warned = False

    @property
    def name(self) -> str:
        return f"{self.source.platform}-native"

    async def initialize(self) -> None:
        logger.info(f"Initializing {self.name} authentication provider")
        self._group_cache.clear()

    async def _query(self, fn: Callable[..., T], *args: Any) -> T:
        """Run a blocking identity-source call off the event loop"""
        return await asyncio.to_thread(fn, *args)

    async def _user_exists(self, username: str) -> bool:
        if not is_valid_account_name(username):
            logger.warning(f"Rejected malformed username: {username!r}")
            return False
        return await self._query(self.source.user_exists, username)

    async def _user_groups(self, username: str) -> list[str]:
        cached = self._group_cache.get(username)
        if cached is not None:
            logger.debug(f"Using cached groups for user: {username}")
            return cached

        groups = await self._query(self.source.user_groups, username)
        self._group_cache.put(username, groups)
        return groups

    async def _is_member_of_group(self, username: str, group: str) -> bool:
        cached = self._group_cache.get(username)
        if cached is not None:
            return group in cached
        return await self._query(self.source.is_member_of_group, username, group)

    async def validate_credentials(
        self,
        username: str,
        credentials: bytes,
        method: str
    ) -> bool:
        if method == AuthMethod.PSK:
            return await self._validate_psk(username)

        if method == AuthMethod.PASSWORD:
            return await self._validate_password(username, credentials)

        if method == AuthMethod.PUBLICKEY:
            # Would check the user's authorized_keys
            logger.warning(f"Public key authentication not implemented for {self.name}")
            return False

        raise UnsupportedMethodError(method, self.name)

    async def _validate_psk(self, username: str) -> bool:
        # The PSK itself is checked by the session layer; here we only
        # decide whether this account may use it.
        if not await self._user_exists(username):
            return False

        required_group = self.config.require_group
        if not self.config.allow_all_users and required_group:
            allowed = await self._is_member_of_group(username, required_group)
            if not allowed:
                logger.info(f"PSK login refused: {username} not in group {required_group}")
            return allowed

        return True

    async def _validate_password(self, username: str, credentials: bytes) -> bool:
        # FIXME: existence check only, the password is never verified
        if not self._password_gap_warned:
            logger.warning(
                f"{self.name} password validation only checks that the account exists. "
                "Do not rely on it for access control."
            )
            self._password_gap_warned = True
        return await self._user_exists(username)

    async def get_user_by_username(self, username: str) -> Optional[Principal]:
        if not await self._user_exists(username):
            return None

        display_name = await self._query(self.source.display_name, username)
        groups = await self._user_groups(username)
        role = UserRole.ADMIN if is_admin(groups, self.config.admin_groups) else UserRole.USER

        return Principal(
            id=Principal.id_for_username(username),
            username=username,
            display_name=display_name or username,
            email=None,  # OS account databases carry no email
            role=role,
            created_at=EPOCH,  # Not tracked by the OS
            updated_at=EPOCH,
        )

    async def get_user(self, user_id: UUID) -> Optional[Principal]:
        # Ids are derived from usernames and there is no reverse index, so
        # lookups by id always miss. Callers use get_user_by_username.
        logger.warning(f"Looking up users by id is not supported by {self.name}")
        return None

    async def list_users(self) -> list[Principal]:
        accounts = await self._query(self.source.list_accounts)
        users = []

        for entry in accounts:
            if self.source.is_system_account(entry):
                continue
            try:
                user = await self.get_user_by_username(entry.username)
            except IdentitySourceError as e:
                logger.debug(f"Skipping {entry.username}: {e}")
                continue
            if user is not None:
                users.append(user)

        return users

    async def create_user(self, user: Principal) -> None:
        raise UnsupportedOperationError("User creation", self.name)

    async def update_user(self, user: Principal) -> None:
        raise UnsupportedOperationError("User updates", self.name)

    async def delete_user(self, user_id: UUID) -> None:
        raise UnsupportedOperationError("User deletion", self.name)

    async def has_permission(self, user: Principal, permission: str) -> bool:
        permissions = await self.get_permissions(user)
        return match_permission(permissions, permission)

    async def get_permissions(self, user: Principal) -> list[str]:
        groups = await self._user_groups(user.username)
        return map_permissions(
            groups,
            self.config.admin_groups,
            self.config.require_group,
            self.config.permission_mappings,
            baseline=self.source.baseline_permissions,
            apply_mappings=self.config.permission_mapping,
        )

    def supports_user_management(self) -> bool:
        return False

    def supports_auth_method(self, method: str) -> bool:
        return method in (AuthMethod.PSK, AuthMethod.PASSWORD)
