"""Authentication configuration.

Models the ``[auth]`` table of the daemon's TOML configuration file:

    [auth]
    provider = "native"
    required = true
    fallback_to_internal = true

    [auth.native]
    allow_all_users = false
    require_group = "rcp-users"
    admin_groups = ["wheel", "sudo"]

    [auth.native.permission_mappings]
    developers = ["app:*", "api:read"]

Both models are frozen: configuration is immutable once loaded. Derived
configurations are produced with ``model_copy(update=...)``.
"""

import logging
import tomllib
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

# Group names are matched case-sensitively. Windows reports the local admin
# group as "Administrators", so Windows hosts must list it in admin_groups.
DEFAULT_ADMIN_GROUPS = ["administrators", "wheel", "sudo", "admin"]


def _ordered_unique(values: list[str]) -> list[str]:
    """Drop duplicates while keeping first-seen order"""
    return list(dict.fromkeys(values))


class AuthProviderType(str, Enum):
    """Authentication backend kind"""
    INTERNAL = "internal"
    NATIVE = "native"
    LDAP = "ldap"
    OAUTH = "oauth"
    MOCK = "mock"


class NativeAuthConfig(BaseModel):
    """Settings shared by every OS-native provider.

    Attributes:
        allow_all_users: Skip the require_group gate for PSK logins
        require_group: OS group a user must belong to for access
        permission_mapping: Apply permission_mappings to OS groups
        admin_groups: OS groups that escalate to full admin permissions
        permission_mappings: OS group name -> permission patterns
    """
    model_config = ConfigDict(frozen=True)

    allow_all_users: bool = False
    require_group: Optional[str] = "rcp-users"
    permission_mapping: bool = True
    admin_groups: list[str] = Field(default_factory=lambda: list(DEFAULT_ADMIN_GROUPS))
    permission_mappings: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator("admin_groups")
    @classmethod
    def dedupe_admin_groups(cls, v: list[str]) -> list[str]:
        return _ordered_unique(v)

    @field_validator("permission_mappings")
    @classmethod
    def dedupe_mappings(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        return {group: _ordered_unique(perms) for group, perms in v.items()}


class AuthConfig(BaseModel):
    """Top-level authentication configuration.

    Attributes:
        provider_kind: Backend to use (accepts the legacy key ``provider``)
        required: Whether clients must authenticate at all
        psk: Pre-shared key for simple authentication
        fallback_to_internal: Retry failed native validations internally
        native: OS-native provider settings
        ldap: LDAP backend settings (opaque until a backend is registered)
        oauth: OAuth backend settings (opaque until a backend is registered)
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    provider_kind: AuthProviderType = Field(
        default=AuthProviderType.INTERNAL,
        validation_alias=AliasChoices("provider_kind", "provider"),
    )
    required: bool = True
    psk: Optional[str] = Field(default=None, repr=False)
    fallback_to_internal: bool = False
    native: NativeAuthConfig = Field(default_factory=NativeAuthConfig)
    ldap: dict[str, str] = Field(default_factory=dict)
    oauth: dict[str, str] = Field(default_factory=dict)

    @field_validator("provider_kind", mode="before")
    @classmethod
    def normalize_provider(cls, v):
        """Accept provider names in any case"""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    def with_provider(self, kind: AuthProviderType) -> "AuthConfig":
        """Copy of this configuration pointing at a different backend"""
        return self.model_copy(update={"provider_kind": kind})


def load_auth_config(path: Union[str, Path]) -> AuthConfig:
    """Load the ``[auth]`` table from a TOML configuration file.

    A file without an ``[auth]`` table yields the defaults.

    Args:
        path: Path to the daemon configuration file

    Returns:
        Validated AuthConfig

    Raises:
        FileNotFoundError: If the file does not exist
        tomllib.TOMLDecodeError: If the file is not valid TOML
        pydantic.ValidationError: If the auth table is malformed
    """
    path = Path(path)
    with path.open("rb") as fh:
        document = tomllib.load(fh)

    section = document.get("auth", {})
    if not section:
        logger.info(f"No [auth] table in {path}, using defaults")

    config = AuthConfig.model_validate(section)
    logger.debug(f"Loaded auth config from {path}: provider={config.provider_kind.value}")
    return config
