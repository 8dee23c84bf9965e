"""Principal Data Models

Purpose: Define the identity records exchanged between providers and callers

Key Components:
- UserRole: Coarse role carried by every principal
- AuthMethod: Well-known credential method tags
- Principal: An authenticated identity record
- Credential: Opaque secret bytes plus the method they are meant for
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Timestamp used for identities whose backend does not track creation time
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


class UserRole(str, Enum):
    """Principal role"""
    ADMIN = "admin"
    USER = "user"
    GUEST = "guest"

    @classmethod
    def parse(cls, value: str) -> "UserRole":
        """Parse a role name case-insensitively

        Raises:
            ValueError: If the name is not a known role
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Invalid user role: {value}") from None


class AuthMethod(str, Enum):
    """Credential method tags understood by the built-in providers"""
    PASSWORD = "password"
    PSK = "psk"
    PUBLICKEY = "publickey"


class Principal(BaseModel):
    """An authenticated identity record.

    Attributes:
        id: Stable identifier. OS providers derive it from the username,
            other providers mint a random one.
        username: Login name
        display_name: Human-readable name, if the backend knows one
        email: Email address, if the backend knows one
        role: Coarse role used for admin short-circuits
        credential_hash: Stored secret hash. Never serialized.
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    username: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    role: UserRole = UserRole.USER
    credential_hash: Optional[str] = Field(default=None, exclude=True, repr=False)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @staticmethod
    def id_for_username(username: str) -> uuid.UUID:
        """Deterministic id for identities that only have a username"""
        return uuid.uuid5(uuid.NAMESPACE_DNS, username)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return self.model_dump(mode="json")


class Credential(BaseModel):
    """A presented secret and the method it is meant for.

    The bytes are opaque to the core. Only providers interpret them.
    """
    model_config = ConfigDict(frozen=True)

    method: str
    secret: bytes = Field(default=b"", repr=False)
