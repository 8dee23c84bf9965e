"""Windows identity source.

Parses the output of ``net user``. Group names in that output are prefixed
with ``*`` and may contain spaces, e.g. ``*Remote Desktop Users``.
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

GROUP_SECTIONS = ("Local Group Memberships", "Global Group memberships")
SYSTEM_ACCOUNTS = frozenset({"Guest", "DefaultAccount", "WDAGUtilityAccount", "defaultuser0"})
FOOTER = "The command completed"


def parse_net_user_groups(output: str) -> list[str]:
    """Group names from ``net user USER`` output.

    Collects the ``Local Group Memberships`` and ``Global Group memberships``
    blocks, including their indented continuation lines. ``*None`` is the
    placeholder for an empty block.
    """
    groups: list[str] = []
    in_section = False

    for line in output.splitlines():
        section = next((s for s in GROUP_SECTIONS if line.startswith(s)), None)
        if section is not None:
            in_section = True
            text = line[len(section):]
        elif in_section and line[:1].isspace() and line.strip():
            text = line
        else:
            in_section = False
            continue

        for name in text.split("*"):
            name = name.strip()
            if name and name != "None" and name not in groups:
                groups.append(name)

    return groups


def parse_net_user_full_name(output: str) -> Optional[str]:
    """Value of the ``Full Name`` line"""
    for line in output.splitlines():
        if line.startswith("Full Name"):
            value = line[len("Full Name"):].strip()
            return value or None
    return None


def parse_net_user_list(output: str) -> list[str]:
    """Account names from the ``net user`` table"""
    names: list[str] = []
    in_table = False

    for line in output.splitlines():
        if line.startswith("---"):
            in_table = True
            continue
        if not in_table:
            continue
        if line.startswith(FOOTER):
            break
        names.extend(line.split())

    return names


class WindowsIdentitySource(CommandIdentitySource):
    """Identity source for Windows hosts"""

    platform = "windows"

    def user_exists(self, username: str) -> bool:
        if not is_valid_account_name(username):
            return False
        return self._succeeds(["net", "user", username])

    def user_groups(self, username: str) -> list[str]:
        self._check_name(username)
        args = ["net", "user", username]
        result = self._run(args)
        if result.returncode != 0:
            raise IdentitySourceError(f"Failed to get groups for user: {username}", command=args)
        return parse_net_user_groups(result.stdout)

    def display_name(self, username: str) -> Optional[str]:
        if not is_valid_account_name(username):
            return None
        result = self._run(["net", "user", username])
        if result.returncode != 0:
            return None
        return parse_net_user_full_name(result.stdout)

    def list_accounts(self) -> list[AccountEntry]:
        args = ["net", "user"]
        result = self._run(args)
        if result.returncode != 0:
            raise IdentitySourceError("Failed to list users", command=args)
        return [AccountEntry(username=name) for name in parse_net_user_list(result.stdout)]

    def is_system_account(self, entry: AccountEntry) -> bool:
        return entry.username in SYSTEM_ACCOUNTS
