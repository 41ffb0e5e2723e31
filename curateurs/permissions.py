"""Role to permission mapping.

Permissions are ``"<verb>:<resource>"`` strings. The stored list on a user may
drift from this mapping; it is only reasserted when an admin updates the user.
"""
from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    admin = "admin"
    contributor = "contributor"


TOMBSTONE_PREFIX = "markfordeletion|"

CONTRIBUTOR_PERMISSIONS: tuple[str, ...] = (
    "read:articles",
    "create:articles",
    "update:articles",
    "validate:articles",
)

ADMIN_PERMISSIONS: tuple[str, ...] = (
    "read:articles",
    "create:articles",
    "update:articles",
    "delete:articles",
    "validate:articles",
    "ship:articles",
    "create:user",
    "update:user",
    "delete:user",
    "enable:maintenance",
)

ROLE_PERMISSIONS: dict[UserRole, tuple[str, ...]] = {
    UserRole.admin: ADMIN_PERMISSIONS,
    UserRole.contributor: CONTRIBUTOR_PERMISSIONS,
}


def permissions_for_role(role: UserRole | str | None) -> list[str]:
    """Return a fresh permission list for ``role`` (contributor when unknown)."""
    try:
        key = UserRole(role)
    except ValueError:
        key = UserRole.contributor
    return list(ROLE_PERMISSIONS[key])


def default_permissions() -> list[str]:
    return list(CONTRIBUTOR_PERMISSIONS)


__all__ = [
    "UserRole",
    "TOMBSTONE_PREFIX",
    "CONTRIBUTOR_PERMISSIONS",
    "ADMIN_PERMISSIONS",
    "ROLE_PERMISSIONS",
    "permissions_for_role",
    "default_permissions",
]
