"""
Role invariants.

- Title: required, letters and spaces only, at most 50 characters.
- Permissions: at least one, every entry drawn from the permission catalog,
  duplicates collapsed.
- A role is full-administrative when its permissions cover the whole catalog.
"""
from __future__ import annotations

from collections.abc import Iterable

from ..auth.permissions import PermissionCatalog, get_permission_catalog
from .validation import NAME_MAX_LENGTH, NAME_PATTERN, validation_error


def validate_role_title(title: str | None) -> str:
    if title is None:
        raise validation_error("title", "required")
    candidate = title.strip()
    if not candidate:
        raise validation_error("title", "empty")
    if len(candidate) > NAME_MAX_LENGTH:
        raise validation_error("title", "max_length", max_length=NAME_MAX_LENGTH)
    if not NAME_PATTERN.match(candidate):
        raise validation_error("title", "pattern")
    return candidate


def validate_role_permissions(
    permissions: Iterable[str] | None,
    catalog: PermissionCatalog | None = None,
) -> frozenset[str]:
    catalog = catalog or get_permission_catalog()
    if permissions is None:
        raise validation_error("permissions", "required")

    unique = frozenset(p.strip() for p in permissions if p and p.strip())
    if not unique:
        raise validation_error("permissions", "min_items")

    invalid = catalog.unknown(unique)
    if invalid:
        raise validation_error(
            "permissions",
            "invalid",
            invalid=", ".join(invalid),
            options=catalog.format_options(),
        )
    return unique


def is_full_administrative(
    permissions: Iterable[str], catalog: PermissionCatalog | None = None
) -> bool:
    catalog = catalog or get_permission_catalog()
    return catalog.all_permissions() <= frozenset(permissions)


def permission_key(permissions: Iterable[str]) -> str:
    """Canonical form of a permission set, equal for equal sets."""
    return ",".join(sorted(set(permissions)))
