"""Abstract authentication provider interface.

This module defines the contract that all authentication providers must implement.
The AuthManager only ever talks to this interface, so backends can be swapped
at startup (or on fallback) without the rest of the daemon noticing.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from rcp_auth.domain.models import Principal


class AuthProvider(ABC):
    """Abstract interface for authentication providers.

    Implementation is chosen at startup from the ``[auth]`` configuration
    table (see AuthProviderFactory).

    Contract notes:
        - A wrong secret is a ``False`` result, never an exception.
        - A method tag the provider does not implement raises
          UnsupportedMethodError.
        - Read-only backends raise UnsupportedOperationError from the user
          management operations.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name, e.g. ``linux-native`` or ``mock-provider``.

        The manager matches on this name to decide whether fallback applies.
        """
        pass

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the provider for use.

        Must be safe to call more than once.
        """
        pass

    @abstractmethod
    async def validate_credentials(
        self,
        username: str,
        credentials: bytes,
        method: str
    ) -> bool:
        """Validate a credential for a user.

        Args:
            username: Login name
            credentials: Opaque secret bytes
            method: Method tag (password, psk, publickey, ...)

        Returns:
            True if the credential is accepted, False otherwise

        Raises:
            UnsupportedMethodError: If the provider does not implement method
        """
        pass

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[Principal]:
        """Look up a principal by login name."""
        pass

    @abstractmethod
    async def get_user(self, user_id: UUID) -> Optional[Principal]:
        """Look up a principal by id.

        Providers that cannot reverse-map ids may always return None;
        callers should fall back to get_user_by_username.
        """
        pass

    @abstractmethod
    async def list_users(self) -> list[Principal]:
        """List non-system principals known to the backend."""
        pass

    @abstractmethod
    async def create_user(self, user: Principal) -> None:
        """Create a principal (if supported by the provider)."""
        pass

    @abstractmethod
    async def update_user(self, user: Principal) -> None:
        """Update a principal (if supported by the provider)."""
        pass

    @abstractmethod
    async def delete_user(self, user_id: UUID) -> None:
        """Delete a principal (if supported by the provider)."""
        pass

    @abstractmethod
    async def has_permission(self, user: Principal, permission: str) -> bool:
        """Check whether a principal holds a ``resource:action`` permission."""
        pass

    @abstractmethod
    async def get_permissions(self, user: Principal) -> list[str]:
        """All permission patterns granted to a principal."""
        pass

    @abstractmethod
    def supports_user_management(self) -> bool:
        """Whether create/update/delete are available."""
        pass

    @abstractmethod
    def supports_auth_method(self, method: str) -> bool:
        """Whether the provider implements a credential method."""
        pass
