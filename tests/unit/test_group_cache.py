"""Unit tests for GroupMembershipCache"""

import threading

import pytest

from rcp_auth.core.auth.cache import GroupMembershipCache


@pytest.mark.unit
class TestGroupMembershipCache:
    """Test cache get/put/clear"""

    def test_miss_returns_none(self):
        cache = GroupMembershipCache()

        assert cache.get("alice") is None
        assert "alice" not in cache

    def test_put_then_get(self):
        """Stored groups are returned for the same user"""
        # Arrange
        cache = GroupMembershipCache()

        # Act
        cache.put("alice", ["rcp-users", "developers"])

        # Assert
        assert cache.get("alice") == ["rcp-users", "developers"]
        assert "alice" in cache
        assert len(cache) == 1

    def test_empty_group_list_is_a_hit(self):
        """A user with no groups is cached, not treated as a miss"""
        cache = GroupMembershipCache()
        cache.put("bob", [])

        assert cache.get("bob") == []

    def test_returned_list_is_a_copy(self):
        """Mutating a returned list does not change the cache"""
        # Arrange
        cache = GroupMembershipCache()
        source = ["staff"]
        cache.put("bob", source)

        # Act
        cache.get("bob").append("wheel")
        source.append("sudo")

        # Assert
        assert cache.get("bob") == ["staff"]

    def test_clear_drops_everything(self):
        # Arrange
        cache = GroupMembershipCache()
        cache.put("alice", ["rcp-users"])
        cache.put("bob", ["staff"])

        # Act
        cache.clear()

        # Assert
        assert len(cache) == 0
        assert cache.get("alice") is None

    def test_concurrent_writers(self):
        """Puts from many threads all land"""
        # Arrange
        cache = GroupMembershipCache()

        def fill(prefix):
            for i in range(100):
                cache.put(f"{prefix}{i}", [prefix])

        threads = [threading.Thread(target=fill, args=(p,)) for p in ("a", "b", "c", "d")]

        # Act
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        # Assert
        assert len(cache) == 400
        assert cache.get("c42") == ["c"]
