"""OS identity sources.

One adapter per platform family:
- linux: id / groups / getent
- macos: dscl
- windows: net user
- unix: groups with getent, id and /etc/group fallbacks (BSDs, Solaris)
"""

from .source import AccountEntry, CommandIdentitySource, IdentitySource, is_valid_account_name
from .linux import LinuxIdentitySource
from .macos import MacOSIdentitySource
from .unix import UnixIdentitySource
from .windows import WindowsIdentitySource

__all__ = [
    "AccountEntry",
    "CommandIdentitySource",
    "IdentitySource",
    "LinuxIdentitySource",
    "MacOSIdentitySource",
    "UnixIdentitySource",
    "WindowsIdentitySource",
    "is_valid_account_name",
]
