"""Per-provider group membership cache.

Maps a username to the group list last resolved from the identity source.
Entries never expire on their own; clear() drops everything and is the only
invalidation. Reads and writes may come from the event loop and from worker
threads, so every access goes through one lock, which also makes clear() a
barrier: once it returns, no reader can observe a pre-clear entry.
"""

import logging
import threading
from typing import Optional

logger = logging.getLogger(__name__)


class GroupMembershipCache:
    """Thread-safe username -> groups memo"""

    def __init__(self):
        self._entries: dict[str, list[str]] = {}
        self._lock = threading.Lock()

    def get(self, username: str) -> Optional[list[str]]:
        """Cached groups for a user, or None on a miss

        Returns a copy so callers cannot mutate the cached list.
        """
        with self._lock:
            groups = self._entries.get(username)
            return list(groups) if groups is not None else None

    def put(self, username: str, groups: list[str]) -> None:
        with self._lock:
            self._entries[username] = list(groups)

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.debug(f"Group cache cleared ({count} entries)")

    def __contains__(self, username: str) -> bool:
        with self._lock:
            return username in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
