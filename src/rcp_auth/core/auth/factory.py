"""Authentication provider factory.

Selects and instantiates the auth provider named by an AuthConfig:
- mock: in-memory provider (tests, development)
- native: OS accounts and groups for the current platform
- internal, ldap, oauth: placeholders until a backend is registered
"""

import logging
import os
import sys
from typing import Callable, Optional

from rcp_auth.config.auth import AuthConfig, AuthProviderType
from rcp_auth.config.settings import Settings, get_settings
from rcp_auth.core.errors import ProviderNotImplementedError, UnsupportedOnPlatformError

from .provider import AuthProvider

logger = logging.getLogger(__name__)

BackendBuilder = Callable[[AuthConfig], AuthProvider]

# Kinds with built-in implementations can't be overridden
PLUGGABLE_KINDS = frozenset({
    AuthProviderType.INTERNAL,
    AuthProviderType.LDAP,
    AuthProviderType.OAUTH,
})


class AuthProviderFactory:
    """Builds AuthProvider instances from configuration"""

    _backends: dict[AuthProviderType, BackendBuilder] = {}

    @staticmethod
    def detect_platform() -> Optional[str]:
        """Platform family of the running interpreter.

        Returns:
            "linux", "macos", "windows" or "unix", or None when the OS has
            no identity adapter
        """
        if sys.platform.startswith("linux"):
            return "linux"
        if sys.platform == "darwin":
            return "macos"
        if sys.platform in ("win32", "cygwin"):
            return "windows"
        if os.name == "posix":
            return "unix"
        return None

    @classmethod
    def register_backend(cls, kind: AuthProviderType, builder: BackendBuilder) -> None:
        """Supply a real backend for a placeholder provider kind.

        Args:
            kind: internal, ldap or oauth
            builder: Called with the AuthConfig, returns the provider

        Raises:
            ValueError: If kind has a built-in implementation
        """
        kind = AuthProviderType(kind)
        if kind not in PLUGGABLE_KINDS:
            raise ValueError(f"Cannot register a backend for built-in provider: {kind.value}")
        cls._backends[kind] = builder
        logger.info(f"Registered {kind.value} auth backend")

    @classmethod
    def unregister_backend(cls, kind: AuthProviderType) -> None:
        """Remove a registered backend, restoring the placeholder"""
        cls._backends.pop(AuthProviderType(kind), None)

    @classmethod
    def create_provider(
        cls,
        config: AuthConfig,
        settings: Optional[Settings] = None
    ) -> AuthProvider:
        """Create the provider selected by config.provider_kind.

        Args:
            config: Authentication configuration
            settings: Service settings, for the identity command timeout

        Returns:
            An uninitialized AuthProvider

        Raises:
            UnsupportedOnPlatformError: native on an OS without an adapter
            ProviderNotImplementedError: placeholder kind with no backend
        """
        kind = config.provider_kind
        logger.info(f"Creating authentication provider: {kind.value}")

        if kind == AuthProviderType.MOCK:
            from .mock import MockAuthProvider
            return MockAuthProvider()

        if kind == AuthProviderType.NATIVE:
            return cls._create_native(config, settings or get_settings())

        builder = cls._backends.get(kind)
        if builder is None:
            raise ProviderNotImplementedError(kind.value)

        provider = builder(config)
        logger.info(f"Auth provider created: {provider.__class__.__name__}")
        return provider

    @classmethod
    def _create_native(cls, config: AuthConfig, settings: Settings) -> AuthProvider:
        from rcp_auth.infrastructure.identity import (
            LinuxIdentitySource,
            MacOSIdentitySource,
            UnixIdentitySource,
            WindowsIdentitySource,
        )

        from .native import NativeAuthProvider

        sources = {
            "linux": LinuxIdentitySource,
            "macos": MacOSIdentitySource,
            "windows": WindowsIdentitySource,
            "unix": UnixIdentitySource,
        }

        platform = cls.detect_platform()
        source_cls = sources.get(platform)
        if source_cls is None:
            raise UnsupportedOnPlatformError(platform or sys.platform)

        source = source_cls(timeout=settings.identity_command_timeout)
        provider = NativeAuthProvider(source, config.native)
        logger.info(f"Auth provider created: {provider.name}")
        return provider

    @staticmethod
    def create_mock_provider() -> AuthProvider:
        """Mock provider seeded with a regular user and an admin.

        - testuser / password123: app:safari, connect:*
        - admin / admin123: admin role, admin:*
        """
        from rcp_auth.domain.models import Principal, UserRole

        from .mock import MockAuthProvider

        return (
            MockAuthProvider()
            .with_user(Principal(
                username="testuser",
                display_name="Test User",
                email="test@example.com",
            ))
            .with_credential("testuser", b"password123")
            .with_permission("testuser", "app:safari")
            .with_permission("testuser", "connect:*")
            .with_user(Principal(
                username="admin",
                display_name="Administrator",
                email="admin@example.com",
                role=UserRole.ADMIN,
            ))
            .with_credential("admin", b"admin123")
            .with_permission("admin", "admin:*")
        )
