"""Authentication error taxonomy.

Every error raised by a provider, the factory or the manager derives from
AuthError, so callers can catch the whole family in one place.

- UnsupportedMethodError: the provider does not implement the method tag
- UnsupportedOnPlatformError: native auth requested where no adapter exists
- ProviderNotImplementedError: a placeholder backend was selected
- IdentitySourceError: the underlying OS identity query failed
- UnsupportedOperationError: write operation on a read-only backend
"""

from typing import Optional


class AuthError(Exception):
    """Base class for authentication and authorization failures."""
    pass


class UnsupportedMethodError(AuthError):
    """The provider does not implement the requested authentication method."""

    def __init__(self, method: str, provider: Optional[str] = None):
        self.method = method
        self.provider = provider
        where = f" by {provider}" if provider else ""
        super().__init__(f"Unsupported authentication method{where}: {method}")


class UnsupportedOnPlatformError(AuthError):
    """Native authentication requested on a platform without an adapter."""

    def __init__(self, platform: str):
        self.platform = platform
        super().__init__(f"Native authentication not supported on this platform: {platform}")


class ProviderNotImplementedError(AuthError, NotImplementedError):
    """A placeholder provider kind was selected with no backend registered."""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"{provider} provider not implemented")


class IdentitySourceError(AuthError):
    """An OS identity query could not be completed."""

    def __init__(self, message: str, command: Optional[list[str]] = None):
        self.command = command
        super().__init__(message)


class UnsupportedOperationError(AuthError):
    """The provider's backend is read-only for this operation."""

    def __init__(self, operation: str, provider: str):
        self.operation = operation
        self.provider = provider
        super().__init__(f"{operation} not supported by {provider} provider")
