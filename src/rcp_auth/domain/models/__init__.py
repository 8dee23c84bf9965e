"""Domain models for RCP authentication"""

from rcp_auth.domain.models.principal import (
    EPOCH,
    AuthMethod,
    Credential,
    Principal,
    UserRole,
    utc_now,
)

__all__ = [
    "EPOCH",
    "AuthMethod",
    "Credential",
    "Principal",
    "UserRole",
    "utc_now",
]
