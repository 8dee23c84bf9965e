"""Identity source interface.

An identity source answers account and group questions about the local OS.
Native providers depend only on this interface; the per-OS adapters in this
package implement it by running the platform's account utilities and
parsing their text output.

All methods are blocking. Providers call them through asyncio.to_thread.
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from rcp_auth.core.errors import IdentitySourceError

logger = logging.getLogger(__name__)

DEFAULT_COMMAND_TIMEOUT = 10.0
SYSTEM_UID_THRESHOLD = 1000


def is_valid_account_name(name: str) -> bool:
    """Whether a name is safe to hand to the account utilities as an argument.

    A leading "-" would be read as an option and a "/" (or a bare "." or "..")
    would escape the directory-service path it is formatted into.
    """
    if not name or not name.isprintable():
        return False
    if name.startswith("-") or "/" in name:
        return False
    return name not in (".", "..")


@dataclass(frozen=True)
class AccountEntry:
    """An account listed by the OS

    Attributes:
        username: Login name
        uid: Numeric user id, when the platform exposes one
    """
    username: str
    uid: Optional[int] = None


class IdentitySource(ABC):
    """Queries account existence and group membership on the host."""

    #: Short platform tag, used to build the provider name
    platform: str = "unknown"

    #: Permissions every non-admin user of this platform starts with
    baseline_permissions: tuple[str, ...] = ()

    @abstractmethod
    def user_exists(self, username: str) -> bool:
        pass

    @abstractmethod
    def user_groups(self, username: str) -> list[str]:
        """All groups the user belongs to.

        Raises:
            IdentitySourceError: If the groups cannot be resolved
        """
        pass

    def is_member_of_group(self, username: str, group: str) -> bool:
        """Whether the user belongs to a group

        Adapters with a direct membership query override this.
        """
        return group in self.user_groups(username)

    @abstractmethod
    def display_name(self, username: str) -> Optional[str]:
        pass

    @abstractmethod
    def list_accounts(self) -> list[AccountEntry]:
        pass

    def is_system_account(self, entry: AccountEntry) -> bool:
        """Whether an account belongs to the OS rather than a person"""
        return entry.uid is not None and entry.uid < SYSTEM_UID_THRESHOLD


class CommandIdentitySource(IdentitySource):
    """Identity source that shells out to OS utilities."""

    def __init__(self, timeout: float = DEFAULT_COMMAND_TIMEOUT):
        self.timeout = timeout

    def _run(self, args: list[str]) -> subprocess.CompletedProcess:
        """Run a command and capture its output.

        A non-zero exit status is returned to the caller. Failure to run the
        command at all (missing binary, permission error, timeout) raises.

        Raises:
            IdentitySourceError: If the command could not be run
        """
        try:
            result = subprocess.run(
                args,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
                shell=False,
            )
        except subprocess.TimeoutExpired as e:
            raise IdentitySourceError(
                f"Command timed out after {self.timeout}s: {args[0]}", command=args
            ) from e
        except OSError as e:
            raise IdentitySourceError(f"Failed to run {args[0]}: {e}", command=args) from e

        logger.debug(f"{' '.join(args)} -> rc={result.returncode}")
        return result

    def _succeeds(self, args: list[str]) -> bool:
        return self._run(args).returncode == 0

    def _check_name(self, name: str) -> None:
        """Reject names the account utilities would misread.

        Raises:
            IdentitySourceError: If name is not a usable account or group name
        """
        if not is_valid_account_name(name):
            raise IdentitySourceError(f"Invalid account name: {name!r}")
