"""macOS identity source.

Queries the local Directory Service node with ``dscl``.
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

SYSTEM_ACCOUNTS = frozenset({"root", "nobody", "daemon"})


def parse_group_membership_list(output: str, username: str) -> list[str]:
    """Groups listing username in ``dscl . -list /Groups GroupMembership`` output.

    Each line is ``groupname member1 member2 ...``.
    """
    groups = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) > 1 and username in parts[1:]:
            groups.append(parts[0])
    return groups


def parse_group_membership_record(output: str) -> list[str]:
    """Members from ``dscl . -read /Groups/G GroupMembership``"""
    text = output.strip()
    if text.startswith("GroupMembership:"):
        text = text[len("GroupMembership:"):]
    return text.split()


def parse_real_name(output: str) -> Optional[str]:
    """RealName attribute from ``dscl . -read /Users/USER``.

    dscl prints short values on the attribute line and long or multi-word
    values on the following indented line; both are handled.
    """
    lines = output.splitlines()
    for i, line in enumerate(lines):
        if not line.startswith("RealName:"):
            continue
        value = line[len("RealName:"):].strip()
        if not value and i + 1 < len(lines) and lines[i + 1].startswith(" "):
            value = lines[i + 1].strip()
        return value or None
    return None


class MacOSIdentitySource(CommandIdentitySource):
    """Identity source for macOS hosts"""

    platform = "macos"

    def user_exists(self, username: str) -> bool:
        if not is_valid_account_name(username):
            return False
        return self._succeeds(["dscl", ".", "-read", f"/Users/{username}"])

    def user_groups(self, username: str) -> list[str]:
        self._check_name(username)
        args = ["dscl", ".", "-list", "/Groups", "GroupMembership"]
        result = self._run(args)
        if result.returncode != 0:
            raise IdentitySourceError("Failed to list groups", command=args)

        groups = parse_group_membership_list(result.stdout, username)

        # GroupMembership omits the primary group
        primary = self._run(["id", "-gn", username])
        if primary.returncode == 0:
            primary_group = primary.stdout.strip()
            if primary_group and primary_group not in groups:
                groups.append(primary_group)

        logger.debug(f"Found groups for {username}: {groups}")
        return groups

    def is_member_of_group(self, username: str, group: str) -> bool:
        if not (is_valid_account_name(username) and is_valid_account_name(group)):
            return False
        result = self._run(["dscl", ".", "-read", f"/Groups/{group}", "GroupMembership"])
        if result.returncode != 0:
            return False
        return username in parse_group_membership_record(result.stdout)

    def display_name(self, username: str) -> Optional[str]:
        if not is_valid_account_name(username):
            return None
        result = self._run(["dscl", ".", "-read", f"/Users/{username}", "RealName"])
        if result.returncode != 0:
            return None
        return parse_real_name(result.stdout)

    def list_accounts(self) -> list[AccountEntry]:
        args = ["dscl", ".", "-list", "/Users"]
        result = self._run(args)
        if result.returncode != 0:
            raise IdentitySourceError("Failed to list users", command=args)
        return [
            AccountEntry(username=line.strip())
            for line in result.stdout.splitlines()
            if line.strip()
        ]

    def is_system_account(self, entry: AccountEntry) -> bool:
        return entry.username.startswith("_") or entry.username in SYSTEM_ACCOUNTS
