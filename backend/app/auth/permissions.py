"""
Permission catalog - the closed set of permissions the system recognizes.

Permissions are flat strings of the form ``<action>_<subject>``. They are never
combined, nested or wildcarded: set membership is the only operation performed
on them. The catalog is built once per process and handed to the role
validator and the authorization gate through ``get_permission_catalog()``.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import Final

from ..errors import UnknownPermissionError


# ============================================================================
# SUBJECTS
# ============================================================================

class PermissionSubject(str, Enum):
    USER = "user"
    ROLE = "role"


# ============================================================================
# PERMISSIONS - EXPLICIT ONLY
# ============================================================================

class UserPermission(str, Enum):
    VIEW = "view_user"
    ACTIVATE = "activate_user"
    DEACTIVATE = "deactivate_user"
    ARCHIVE = "archive_user"
    RESTORE = "restore_user"
    DELETE = "delete_user"


class RolePermission(str, Enum):
    VIEW = "view_role"
    ADD = "add_role"
    UPDATE = "update_role"
    DELETE = "delete_role"
    ACTIVATE = "activate_role"
    DEACTIVATE = "deactivate_role"
    ASSIGN = "assign_role"
    UNASSIGN = "unassign_role"


PERMISSION_DESCRIPTIONS: Final[Mapping[str, str]] = MappingProxyType({
    UserPermission.VIEW.value: "View a user",
    UserPermission.ACTIVATE.value: "Activate a user",
    UserPermission.DEACTIVATE.value: "Deactivate a user",
    UserPermission.ARCHIVE.value: "Archive a user",
    UserPermission.RESTORE.value: "Restore an archived user",
    UserPermission.DELETE.value: "Delete a user",
    RolePermission.VIEW.value: "View a role",
    RolePermission.ADD.value: "Add a new role",
    RolePermission.UPDATE.value: "Update a role",
    RolePermission.DELETE.value: "Delete a role",
    RolePermission.ACTIVATE.value: "Activate a role",
    RolePermission.DEACTIVATE.value: "Deactivate a role",
    RolePermission.ASSIGN.value: "Assign a role to a user",
    RolePermission.UNASSIGN.value: "Unassign a role from a user",
})

PERMISSIONS_BY_SUBJECT: Final[Mapping[PermissionSubject, tuple[str, ...]]] = MappingProxyType({
    PermissionSubject.USER: tuple(p.value for p in UserPermission),
    PermissionSubject.ROLE: tuple(p.value for p in RolePermission),
})


# ============================================================================
# CATALOG
# ============================================================================

class PermissionCatalog:
    """Immutable registry of permissions and their descriptions."""

    __slots__ = ("_descriptions", "_by_subject", "_all")

    def __init__(
        self,
        by_subject: Mapping[PermissionSubject, Iterable[str]],
        descriptions: Mapping[str, str],
    ) -> None:
        grouped = {subject: tuple(perms) for subject, perms in by_subject.items()}
        flattened = frozenset(p for perms in grouped.values() for p in perms)

        missing = flattened - set(descriptions)
        if missing:
            raise RuntimeError(
                f"Permission catalog is missing descriptions for: {sorted(missing)}"
            )
        orphans = set(descriptions) - flattened
        if orphans:
            raise RuntimeError(
                f"Permission catalog describes unknown permissions: {sorted(orphans)}"
            )

        self._by_subject = MappingProxyType(grouped)
        self._descriptions = MappingProxyType(dict(descriptions))
        self._all = flattened

    def all_permissions(self) -> frozenset[str]:
        return self._all

    def by_subject(self) -> Mapping[PermissionSubject, tuple[str, ...]]:
        return self._by_subject

    def contains(self, permission: str) -> bool:
        return permission in self._all

    def unknown(self, permissions: Iterable[str]) -> list[str]:
        """Return the entries of ``permissions`` that are not in the catalog."""
        return sorted({p for p in permissions if p not in self._all})

    def describe(self, permission: str) -> str:
        try:
            return self._descriptions[permission]
        except KeyError:
            raise UnknownPermissionError(
                f"Unknown permission '{permission}'. "
                f"Valid permissions are: {self.format_options()}",
                field="permission",
                reason="unknown",
            ) from None

    def format_options(self) -> str:
        return ", ".join(sorted(self._all))

    def __len__(self) -> int:
        return len(self._all)

    def __contains__(self, permission: object) -> bool:
        return permission in self._all


@lru_cache(maxsize=1)
def get_permission_catalog() -> PermissionCatalog:
    return PermissionCatalog(PERMISSIONS_BY_SUBJECT, PERMISSION_DESCRIPTIONS)


# Fail fast on a malformed catalog at import time
get_permission_catalog()
