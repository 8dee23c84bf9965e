"""Configuration Settings for RCP Auth

Manages environment variables and service-level configuration. The auth
backend itself is configured from the daemon's TOML file (see
rcp_auth.config.auth); these settings say where that file lives and how the
auth layer runs.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from rcp_auth.config.auth import AuthConfig, AuthProviderType, load_auth_config


class Settings(BaseSettings):
    """Service settings"""

    model_config = SettingsConfigDict(
        env_prefix="RCP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service info
    service_name: str = "rcp-auth"
    service_version: str = "1.0.0"
    environment: str = "development"

    # Auth configuration source
    auth_config_path: Optional[str] = None
    auth_provider: Optional[AuthProviderType] = None  # Overrides provider_kind from the file

    # Identity source commands
    identity_command_timeout: float = 10.0  # seconds

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # json or text

    def load_auth_config(self) -> AuthConfig:
        """Build the AuthConfig for this process

        Reads auth_config_path when set, otherwise starts from defaults,
        then applies the auth_provider override.
        """
        if self.auth_config_path:
            config = load_auth_config(self.auth_config_path)
        else:
            config = AuthConfig()

        if self.auth_provider is not None:
            config = config.with_provider(self.auth_provider)
        return config


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance

    Returns:
        Settings instance
    """
    return Settings()
