"""Group-to-permission mapping.

Single source of truth for turning an OS group list into normalized
``resource:action`` permission patterns, and for evaluating a requested
permission against a granted set. Every native provider goes through here.

Rules, in order:

1. Membership in any admin group grants ``admin:*``, ``connect:*`` and
   ``app:*`` and nothing else is considered.
2. Otherwise the provider's baseline patterns are unioned with the
   conventional group grants (``rcp-app-NAME`` -> ``app:NAME``,
   ``rcp-api-users`` -> ``api:read``, ``rcp-api-admins`` -> ``api:write``)
   and the configured patterns for each of the user's groups.
3. A user who ends up with nothing but is in the required group still gets
   ``connect:basic``.

The result is a union, so the order of the input groups never changes which
patterns are granted.
"""

from typing import Iterable, Mapping, Optional, Sequence

ADMIN_PERMISSIONS = ("admin:*", "connect:*", "app:*")
BASIC_CONNECT = "connect:basic"
WILDCARD_SUFFIX = ":*"

APP_GROUP_PREFIX = "rcp-app-"
CONVENTION_GROUPS = {
    "rcp-api-users": "api:read",
    "rcp-api-admins": "api:write",
}


def is_admin(groups: Iterable[str], admin_groups: Iterable[str]) -> bool:
    """True if any of the groups is an admin group"""
    admin = set(admin_groups)
    return any(group in admin for group in groups)


def convention_permissions(group: str) -> list[str]:
    """Permissions implied by an rcp-* group name, if any"""
    if group.startswith(APP_GROUP_PREFIX) and len(group) > len(APP_GROUP_PREFIX):
        return [f"app:{group[len(APP_GROUP_PREFIX):]}"]
    if group in CONVENTION_GROUPS:
        return [CONVENTION_GROUPS[group]]
    return []


def map_permissions(
    groups: Sequence[str],
    admin_groups: Iterable[str],
    require_group: Optional[str],
    permission_mappings: Mapping[str, Sequence[str]],
    *,
    baseline: Iterable[str] = (),
    apply_mappings: bool = True,
) -> list[str]:
    """Map a resolved group list to permission patterns.

    Args:
        groups: Groups the user belongs to
        admin_groups: Groups that escalate to full admin permissions
        require_group: Access gate group, if any
        permission_mappings: Group name -> permission patterns
        baseline: Patterns granted to every non-admin user of this provider
        apply_mappings: Whether group conventions and permission_mappings
            are consulted

    Returns:
        Ordered, de-duplicated list of permission patterns
    """
    if is_admin(groups, admin_groups):
        return list(ADMIN_PERMISSIONS)

    granted: dict[str, None] = dict.fromkeys(baseline)

    if apply_mappings:
        for group in groups:
            for permission in convention_permissions(group):
                granted.setdefault(permission, None)
            for permission in permission_mappings.get(group, ()):
                granted.setdefault(permission, None)

    if not granted and require_group is not None and require_group in groups:
        return [BASIC_CONNECT]

    return list(granted)


def permission_matches(pattern: str, requested: str) -> bool:
    """Check a single granted pattern against a requested permission.

    ``x:*`` matches anything starting with ``x:``; everything else must be
    equal.
    """
    if pattern == requested:
        return True
    if pattern.endswith(WILDCARD_SUFFIX):
        return requested.startswith(pattern[:-1])
    return False


def has_permission(granted: Iterable[str], requested: str) -> bool:
    """True if any granted pattern matches the requested permission"""
    return any(permission_matches(pattern, requested) for pattern in granted)
