"""Unit tests for NativeAuthProvider

Runs against FakeIdentitySource (tests/conftest.py), so no OS commands are
executed.
"""

import logging
import uuid

import pytest

from rcp_auth.config.auth import NativeAuthConfig
from rcp_auth.core.auth.native import NativeAuthProvider
from rcp_auth.core.errors import (
    IdentitySourceError,
    UnsupportedMethodError,
    UnsupportedOperationError,
)
from rcp_auth.domain.models import EPOCH, Principal, UserRole


@pytest.mark.unit
class TestNativeValidateCredentials:
    """Test credential validation against OS accounts"""

    @pytest.mark.asyncio
    async def test_psk_member_of_required_group(self, native_provider):
        assert await native_provider.validate_credentials("alice", b"", "psk")

    @pytest.mark.asyncio
    async def test_psk_not_in_required_group(self, native_provider):
        """Existing user outside require_group is refused"""
        assert not await native_provider.validate_credentials("bob", b"", "psk")

    @pytest.mark.asyncio
    async def test_psk_unknown_user(self, native_provider, fake_source):
        """Unknown user is refused before any group lookup"""
        # Act
        result = await native_provider.validate_credentials("ghost", b"", "psk")

        # Assert
        assert result is False
        assert fake_source.membership_calls == 0

    @pytest.mark.asyncio
    async def test_psk_allow_all_users_skips_gate(self, fake_source):
        # Arrange
        provider = NativeAuthProvider(fake_source, NativeAuthConfig(allow_all_users=True))

        # Act / Assert
        assert await provider.validate_credentials("bob", b"", "psk")
        assert fake_source.membership_calls == 0

    @pytest.mark.asyncio
    async def test_psk_no_required_group(self, fake_source):
        provider = NativeAuthProvider(fake_source, NativeAuthConfig(require_group=None))

        assert await provider.validate_credentials("bob", b"", "psk")

    @pytest.mark.asyncio
    async def test_password_is_existence_check(self, native_provider, caplog):
        """Password validation only checks the account and warns once"""
        # Act
        with caplog.at_level(logging.WARNING, logger="rcp_auth.core.auth.native"):
            known = await native_provider.validate_credentials("bob", b"anything", "password")
            await native_provider.validate_credentials("alice", b"anything", "password")
            unknown = await native_provider.validate_credentials("ghost", b"anything", "password")

        # Assert
        assert known is True
        assert unknown is False
        warnings = [r for r in caplog.records if "only checks that the account exists" in r.message]
        assert len(warnings) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("username", ["--help", "../Groups/admin", ""])
    async def test_malformed_username_refused_before_lookup(self, fake_source, username):
        """Names that would be read as options or paths are refused for every method"""
        # Arrange
        fake_source.users[username] = ["rcp-users"]
        provider = NativeAuthProvider(fake_source, NativeAuthConfig(allow_all_users=True))

        # Act
        psk = await provider.validate_credentials(username, b"", "psk")
        password = await provider.validate_credentials(username, b"secret", "password")

        # Assert
        assert psk is False
        assert password is False
        assert fake_source.group_calls == 0

    @pytest.mark.asyncio
    async def test_publickey_not_implemented(self, native_provider):
        assert not await native_provider.validate_credentials("alice", b"ssh-ed25519 AAAA", "publickey")

    @pytest.mark.asyncio
    async def test_unknown_method_raises(self, native_provider):
        with pytest.raises(UnsupportedMethodError) as exc_info:
            await native_provider.validate_credentials("alice", b"", "kerberos")

        assert exc_info.value.provider == "fake-native"

    def test_supports_auth_method(self, native_provider):
        assert native_provider.supports_auth_method("psk")
        assert native_provider.supports_auth_method("password")
        assert not native_provider.supports_auth_method("publickey")

    def test_name_uses_platform(self, native_provider):
        assert native_provider.name == "fake-native"


@pytest.mark.unit
class TestNativePermissions:
    """Test permission mapping through the provider"""

    @pytest.mark.asyncio
    async def test_admin_group_member(self, native_provider):
        """Scenario D: wheel member is an admin with every permission"""
        # Act
        user = await native_provider.get_user_by_username("root")

        # Assert
        assert user.role == UserRole.ADMIN
        assert await native_provider.get_permissions(user) == ["admin:*", "connect:*", "app:*"]
        assert await native_provider.has_permission(user, "admin:users")

    @pytest.mark.asyncio
    async def test_mapped_group_member(self, native_provider):
        # Arrange
        user = await native_provider.get_user_by_username("alice")

        # Act
        permissions = await native_provider.get_permissions(user)

        # Assert
        assert user.role == UserRole.USER
        assert permissions == ["app:*", "api:read"]
        assert await native_provider.has_permission(user, "app:safari")
        assert not await native_provider.has_permission(user, "api:write")

    @pytest.mark.asyncio
    async def test_required_group_only(self, fake_source):
        """Scenario C through the provider"""
        # Arrange
        fake_source.users["dave"] = ["rcp-users"]
        provider = NativeAuthProvider(fake_source, NativeAuthConfig())
        user = await provider.get_user_by_username("dave")

        # Act / Assert
        assert await provider.get_permissions(user) == ["connect:basic"]

    @pytest.mark.asyncio
    async def test_baseline_from_source(self, make_source):
        # Arrange
        source = make_source(users={"erin": ["staff"]}, baseline=("connect:*",))
        provider = NativeAuthProvider(source, NativeAuthConfig())
        user = await provider.get_user_by_username("erin")

        # Act / Assert
        assert await provider.get_permissions(user) == ["connect:*"]

    @pytest.mark.asyncio
    async def test_permission_mapping_disabled(self, fake_source):
        # Arrange
        config = NativeAuthConfig(
            permission_mapping=False,
            permission_mappings={"developers": ["app:*"]},
        )
        provider = NativeAuthProvider(fake_source, config)
        user = await provider.get_user_by_username("alice")

        # Act / Assert
        assert await provider.get_permissions(user) == ["connect:basic"]

    @pytest.mark.asyncio
    async def test_groups_are_cached(self, native_provider, fake_source):
        """Repeated permission checks resolve groups once"""
        # Arrange
        user = await native_provider.get_user_by_username("alice")
        calls_after_lookup = fake_source.group_calls

        # Act
        await native_provider.has_permission(user, "app:x")
        await native_provider.has_permission(user, "api:read")
        await native_provider.get_permissions(user)

        # Assert
        assert calls_after_lookup == 1
        assert fake_source.group_calls == 1

    @pytest.mark.asyncio
    async def test_cached_groups_used_for_psk_gate(self, native_provider, fake_source):
        """After groups are cached, the gate does not query membership"""
        # Arrange
        await native_provider.get_user_by_username("alice")

        # Act
        assert await native_provider.validate_credentials("alice", b"", "psk")

        # Assert
        assert fake_source.membership_calls == 0

    @pytest.mark.asyncio
    async def test_initialize_clears_cache(self, native_provider, fake_source):
        """initialize() drops cached groups so changes become visible"""
        # Arrange
        user = await native_provider.get_user_by_username("alice")
        fake_source.users["alice"] = ["wheel"]

        # Act
        before = await native_provider.get_permissions(user)
        await native_provider.initialize()
        after = await native_provider.get_permissions(user)

        # Assert
        assert before == ["app:*", "api:read"]
        assert after == ["admin:*", "connect:*", "app:*"]

    @pytest.mark.asyncio
    async def test_group_lookup_failure_propagates(self, native_provider, fake_source):
        # Arrange
        fake_source.broken.add("alice")

        # Act / Assert
        with pytest.raises(IdentitySourceError):
            await native_provider.get_permissions(Principal(username="alice"))


@pytest.mark.unit
class TestNativeUsers:
    """Test principal synthesis and read-only user management"""

    @pytest.mark.asyncio
    async def test_principal_synthesis(self, native_provider):
        # Act
        user = await native_provider.get_user_by_username("alice")

        # Assert
        assert user.id == uuid.uuid5(uuid.NAMESPACE_DNS, "alice")
        assert user.display_name == "Alice Liddell"
        assert user.email is None
        assert user.created_at == EPOCH
        assert user.updated_at == EPOCH

    @pytest.mark.asyncio
    async def test_display_name_falls_back_to_username(self, native_provider):
        user = await native_provider.get_user_by_username("bob")

        assert user.display_name == "bob"

    @pytest.mark.asyncio
    async def test_unknown_user(self, native_provider):
        assert await native_provider.get_user_by_username("ghost") is None

    @pytest.mark.asyncio
    async def test_malformed_username_has_no_principal(self, native_provider, fake_source):
        fake_source.users["-G"] = ["wheel"]

        assert await native_provider.get_user_by_username("-G") is None

    @pytest.mark.asyncio
    async def test_get_user_by_id_always_misses(self, native_provider):
        user_id = Principal.id_for_username("alice")

        assert await native_provider.get_user(user_id) is None

    @pytest.mark.asyncio
    async def test_list_users_skips_system_and_failing_accounts(self, fake_source, native_config):
        # Arrange
        fake_source.users["carol"] = ["staff"]
        fake_source.uids["carol"] = 1002
        fake_source.broken.add("carol")
        provider = NativeAuthProvider(fake_source, native_config)

        # Act
        users = await provider.list_users()

        # Assert
        assert sorted(u.username for u in users) == ["alice", "bob"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", ["create_user", "update_user"])
    async def test_writes_unsupported(self, native_provider, operation):
        with pytest.raises(UnsupportedOperationError) as exc_info:
            await getattr(native_provider, operation)(Principal(username="x"))

        assert exc_info.value.provider == "fake-native"

    @pytest.mark.asyncio
    async def test_delete_unsupported(self, native_provider):
        with pytest.raises(UnsupportedOperationError, match="User deletion not supported"):
            await native_provider.delete_user(uuid.uuid4())

    def test_no_user_management(self, native_provider):
        assert not native_provider.supports_user_management()
