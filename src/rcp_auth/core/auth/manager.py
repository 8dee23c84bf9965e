"""Authentication manager.

Owns the active provider and is the only auth object the rest of the daemon
talks to. Adds two things on top of the provider it wraps:

- a reader/writer lock around the provider slot, so queries run
  concurrently while initialization and provider swaps are exclusive
- fallback to the internal provider when a native provider fails to
  validate credentials and ``fallback_to_internal`` is enabled
"""

import logging
from typing import Optional, Type
from uuid import UUID

from rcp_auth.config.auth import AuthConfig, AuthProviderType
from rcp_auth.config.settings import Settings
from rcp_auth.domain.models import Credential, Principal

from .factory import AuthProviderFactory
from .locks import ReadWriteLock
from .provider import AuthProvider

logger = logging.getLogger(__name__)


class AuthManager:
    """Coordinates authentication through the configured provider.

    Example:
        manager = AuthManager(load_auth_config("/etc/rcp/rcp.toml"))
        await manager.initialize()
        if await manager.validate_credentials("alice", secret, "psk"):
            ...

    Attributes:
        config: Authentication configuration the provider was built from
    """

    def __init__(
        self,
        config: AuthConfig,
        factory: Type[AuthProviderFactory] = AuthProviderFactory,
        settings: Optional[Settings] = None
    ):
        self.config = config
        self._factory = factory
        self._settings = settings
        self._provider: AuthProvider = factory.create_provider(config, settings)
        self._lock = ReadWriteLock()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def provider_name(self) -> str:
        return self._provider.name

    async def initialize(self) -> None:
        """Initialize the active provider once.

        Later calls return without touching the provider until
        replace_provider() installs a new one.
        """
        async with self._lock.write():
            if self._initialized:
                return
            await self._provider.initialize()
            self._initialized = True
            logger.info(f"Authentication manager initialized with {self._provider.name}")

    async def replace_provider(self, provider: AuthProvider) -> AuthProvider:
        """Swap in a new provider.

        The new provider is not initialized; call initialize() afterwards.

        Returns:
            The provider that was replaced
        """
        async with self._lock.write():
            previous = self._provider
            self._provider = provider
            self._initialized = False
        logger.info(f"Authentication provider replaced: {previous.name} -> {provider.name}")
        return previous

    async def validate_credentials(
        self,
        username: str,
        credentials: bytes,
        method: str
    ) -> bool:
        """Validate credentials with the active provider.

        Returns:
            True if the credentials are accepted

        Raises:
            AuthError: Provider errors, unless fallback handled them
        """
        async with self._lock.read():
            provider = self._provider
            try:
                return await provider.validate_credentials(username, credentials, method)
            except Exception as e:
                if not self._should_fallback(provider):
                    raise
                error = e

        # Outside the lock: the fallback provider never enters the slot
        return await self._fallback_validate(provider, error, username, credentials, method)

    async def authenticate(self, username: str, credential: Credential) -> bool:
        """validate_credentials() for a Credential object"""
        return await self.validate_credentials(username, credential.secret, credential.method)

    def _should_fallback(self, provider: AuthProvider) -> bool:
        return self.config.fallback_to_internal and "native" in provider.name

    async def _fallback_validate(
        self,
        failed: AuthProvider,
        error: Exception,
        username: str,
        credentials: bytes,
        method: str
    ) -> bool:
        logger.warning(
            f"{failed.name} failed to validate credentials for {username}: {_describe_error(error)}. "
            "Falling back to internal authentication"
        )

        fallback_config = self.config.with_provider(AuthProviderType.INTERNAL)
        try:
            fallback = self._factory.create_provider(fallback_config, self._settings)
        except Exception as e:
            logger.error(f"Failed to create fallback provider: {e}")
            return False

        try:
            return await fallback.validate_credentials(username, credentials, method)
        except Exception as e:
            logger.error(f"Fallback authentication failed for {username}: {e}")
            return False

    async def has_permission(self, user: Principal, permission: str) -> bool:
        async with self._lock.read():
            return await self._provider.has_permission(user, permission)

    async def get_permissions(self, user: Principal) -> list[str]:
        async with self._lock.read():
            return await self._provider.get_permissions(user)

    async def get_user_by_username(self, username: str) -> Optional[Principal]:
        async with self._lock.read():
            return await self._provider.get_user_by_username(username)

    async def get_user(self, user_id: UUID) -> Optional[Principal]:
        async with self._lock.read():
            return await self._provider.get_user(user_id)

    async def list_users(self) -> list[Principal]:
        async with self._lock.read():
            return await self._provider.list_users()

    async def supports_auth_method(self, method: str) -> bool:
        async with self._lock.read():
            return self._provider.supports_auth_method(method)


def _describe_error(error: Exception) -> str:
    """Error text, falling back to the type name for empty messages"""
    return str(error) or error.__class__.__name__
