import pytest

from app.auth.permissions import (
    PERMISSION_DESCRIPTIONS,
    PermissionCatalog,
    PermissionSubject,
    RolePermission,
    UserPermission,
    get_permission_catalog,
)
from app.errors import UnknownPermissionError


def test_catalog_contains_every_user_and_role_permission() -> None:
    catalog = get_permission_catalog()

    assert len(catalog) == 14
    assert {p.value for p in UserPermission} <= catalog.all_permissions()
    assert {p.value for p in RolePermission} <= catalog.all_permissions()


def test_catalog_groups_permissions_by_subject() -> None:
    grouped = get_permission_catalog().by_subject()

    assert set(grouped) == {PermissionSubject.USER, PermissionSubject.ROLE}
    assert "archive_user" in grouped[PermissionSubject.USER]
    assert "assign_role" in grouped[PermissionSubject.ROLE]


def test_catalog_is_cached() -> None:
    assert get_permission_catalog() is get_permission_catalog()


def test_unknown_returns_sorted_unrecognized_entries() -> None:
    catalog = get_permission_catalog()

    assert catalog.unknown(["view_user", "fly_user", "edit_role", "fly_user"]) == [
        "edit_role",
        "fly_user",
    ]
    assert "view_role" in catalog
    assert not catalog.contains("view_anything")


def test_describe_rejects_unknown_permission() -> None:
    with pytest.raises(UnknownPermissionError) as exc_info:
        get_permission_catalog().describe("publish_user")

    assert "Unknown permission 'publish_user'" in exc_info.value.message
    assert exc_info.value.status_code == 400


def test_catalog_refuses_permissions_without_description() -> None:
    with pytest.raises(RuntimeError, match="missing descriptions"):
        PermissionCatalog(
            {PermissionSubject.USER: ("view_user", "ban_user")},
            {"view_user": "View a user"},
        )


def test_catalog_refuses_orphan_descriptions() -> None:
    descriptions = dict(PERMISSION_DESCRIPTIONS)
    descriptions["ban_user"] = "Ban a user"

    with pytest.raises(RuntimeError, match="unknown permissions"):
        PermissionCatalog(
            {
                PermissionSubject.USER: tuple(p.value for p in UserPermission),
                PermissionSubject.ROLE: tuple(p.value for p in RolePermission),
            },
            descriptions,
        )
