"""Generic Unix identity source (FreeBSD, OpenBSD, NetBSD, Solaris, ...).

Group resolution tries several mechanisms in turn because their availability
varies between Unix variants:

1. ``groups USER``
2. ``getent group`` membership scan
3. ``id -Gn USER``
4. parsing /etc/group directly
"""

import logging
from pathlib import Path
from typing import Optional

from rcp_auth.core.errors import IdentitySourceError
from rcp_auth.infrastructure.identity.linux import (
    parse_gecos_name,
    parse_groups_output,
    parse_passwd_accounts,
)
from rcp_auth.infrastructure.identity.source import (
    DEFAULT_COMMAND_TIMEOUT,
    SYSTEM_UID_THRESHOLD,
    AccountEntry,
    CommandIdentitySource,
    is_valid_account_name,
)

logger = logging.getLogger(__name__)

GROUP_FILE = Path("/etc/group")


def parse_group_file(content: str, username: str) -> list[str]:
    """Groups listing username as a member in group(5) formatted text"""
    groups = []
    for line in content.splitlines():
        fields = line.split(":")
        if len(fields) < 4:
            continue
        if username in (m.strip() for m in fields[3].split(",")):
            groups.append(fields[0])
    return groups


class UnixIdentitySource(CommandIdentitySource):
    """Identity source for Unix hosts other than Linux and macOS"""

    platform = "unix"
    baseline_permissions = ("connect:*",)

    def __init__(self, timeout: float = DEFAULT_COMMAND_TIMEOUT, group_file: Path = GROUP_FILE):
        super().__init__(timeout=timeout)
        self.group_file = group_file

    def user_exists(self, username: str) -> bool:
        if not is_valid_account_name(username):
            return False
        return self._succeeds(["id", username])

    def user_groups(self, username: str) -> list[str]:
        self._check_name(username)
        groups: list[str] = []
        groups_failed = False

        try:
            result = self._run(["groups", username])
        except IdentitySourceError as e:
            logger.warning(f"'groups' command unavailable: {e}")
            groups_failed = True
        else:
            if result.returncode == 0:
                groups = parse_groups_output(result.stdout)
            else:
                logger.warning(f"'groups' command failed for {username}: {result.stderr.strip()}")
                groups_failed = True

        if not groups:
            groups = self._groups_from_getent(username)
        if not groups:
            groups = self._groups_from_id(username)
        if not groups:
            groups = self._groups_from_file(username)

        if not groups and groups_failed:
            raise IdentitySourceError(
                f"Failed to list groups for user: {username}", command=["groups", username]
            )

        logger.debug(f"Found groups for {username}: {groups}")
        return groups

    def _groups_from_getent(self, username: str) -> list[str]:
        try:
            result = self._run(["getent", "group"])
        except IdentitySourceError:
            logger.debug("'getent group' not available")
            return []
        if result.returncode != 0:
            return []
        return parse_group_file(result.stdout, username)

    def _groups_from_id(self, username: str) -> list[str]:
        try:
            result = self._run(["id", "-Gn", username])
        except IdentitySourceError:
            return []
        if result.returncode != 0:
            return []
        return list(dict.fromkeys(result.stdout.split()))

    def _groups_from_file(self, username: str) -> list[str]:
        try:
            content = self.group_file.read_text(errors="replace")
        except OSError as e:
            logger.debug(f"Could not read {self.group_file}: {e}")
            return []
        return parse_group_file(content, username)

    def display_name(self, username: str) -> Optional[str]:
        if not is_valid_account_name(username):
            return None
        try:
            result = self._run(["getent", "passwd", username])
        except IdentitySourceError:
            # Not every Unix ships getent
            return None
        if result.returncode != 0:
            return None
        return parse_gecos_name(result.stdout)

    def list_accounts(self) -> list[AccountEntry]:
        result = self._run(["getent", "passwd"])
        if result.returncode != 0:
            raise IdentitySourceError("Failed to list users", command=["getent", "passwd"])
        return parse_passwd_accounts(result.stdout)

    def is_system_account(self, entry: AccountEntry) -> bool:
        if entry.uid is not None and entry.uid < SYSTEM_UID_THRESHOLD:
            return True
        return entry.username.startswith("_") or entry.username in ("nobody", "root")
