"""Authentication provider abstraction layer.

Supports multiple authentication backends via pluggable providers:
- native: OS accounts and groups (Linux, macOS, Windows, other Unix)
- mock: in-memory users for tests and development
- internal, ldap, oauth: placeholders until a backend is registered
"""

from rcp_auth.core.errors import (
    AuthError,
    IdentitySourceError,
    ProviderNotImplementedError,
    UnsupportedMethodError,
    UnsupportedOnPlatformError,
    UnsupportedOperationError,
)

from .provider import AuthProvider
from .factory import AuthProviderFactory
from .manager import AuthManager
from .mock import MockAuthProvider
from .native import NativeAuthProvider

__all__ = [
    "AuthError",
    "AuthManager",
    "AuthProvider",
    "AuthProviderFactory",
    "IdentitySourceError",
    "MockAuthProvider",
    "NativeAuthProvider",
    "ProviderNotImplementedError",
    "UnsupportedMethodError",
    "UnsupportedOnPlatformError",
    "UnsupportedOperationError",
]
