"""Linux identity source.

Uses the NSS-aware utilities (``id``, ``groups``, ``getent``) so accounts
from LDAP/SSSD are visible as well as local ones.
"""

import logging
from typing import Optional

from rcp_auth.core.errors import IdentitySourceError
from rcp_auth.infrastructure.identity.source import (
    AccountEntry,
    CommandIdentitySource,
    is_valid_account_name,
)

logger = logging.getLogger(__name__)


def parse_groups_output(output: str) -> list[str]:
    """Parse ``groups USER`` output.

    Accepts both ``user : g1 g2`` (GNU coreutils) and a bare ``g1 g2`` line.
    """
    text = output.strip()
    if ":" in text:
        text = text.split(":", 1)[1]
    return text.split()


def parse_group_members(entry: str) -> list[str]:
    """Member list from a ``getent group G`` line (``name:x:gid:a,b,c``)"""
    fields = entry.strip().split(":")
    if len(fields) < 4:
        return []
    return [m.strip() for m in fields[3].split(",") if m.strip()]


def parse_gecos_name(entry: str) -> Optional[str]:
    """Full name from a passwd line's GECOS field (first comma-separated part)"""
    fields = entry.strip().split(":")
    if len(fields) < 5:
        return None
    name = fields[4].split(",", 1)[0].strip()
    return name or None


def parse_passwd_accounts(output: str) -> list[AccountEntry]:
    """Accounts from ``getent passwd`` output"""
    accounts = []
    for line in output.splitlines():
        fields = line.split(":")
        if len(fields) < 3 or not fields[0]:
            continue
        try:
            uid: Optional[int] = int(fields[2])
        except ValueError:
            uid = None
        accounts.append(AccountEntry(username=fields[0], uid=uid))
    return accounts


class LinuxIdentitySource(CommandIdentitySource):
    """Identity source for Linux hosts"""

    platform = "linux"

    def user_exists(self, username: str) -> bool:
        if not is_valid_account_name(username):
            return False
        return self._succeeds(["id", username])

    def user_groups(self, username: str) -> list[str]:
        self._check_name(username)
        result = self._run(["groups", username])
        if result.returncode != 0:
            raise IdentitySourceError(
                f"Failed to list groups for user: {username}", command=["groups", username]
            )
        return parse_groups_output(result.stdout)

    def is_member_of_group(self, username: str, group: str) -> bool:
        if not (is_valid_account_name(username) and is_valid_account_name(group)):
            return False
        result = self._run(["getent", "group", group])
        if result.returncode != 0:
            return False
        if username in parse_group_members(result.stdout):
            return True

        # getent only lists supplementary members; check the primary group too
        primary = self._run(["id", "-gn", username])
        return primary.returncode == 0 and primary.stdout.strip() == group

    def display_name(self, username: str) -> Optional[str]:
        if not is_valid_account_name(username):
            return None
        result = self._run(["getent", "passwd", username])
        if result.returncode != 0:
            return None
        return parse_gecos_name(result.stdout)

    def list_accounts(self) -> list[AccountEntry]:
        result = self._run(["getent", "passwd"])
        if result.returncode != 0:
            raise IdentitySourceError("Failed to list users", command=["getent", "passwd"])
        return parse_passwd_accounts(result.stdout)
