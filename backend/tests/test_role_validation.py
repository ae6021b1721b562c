import pytest

from app.domain.listing import (
    RoleSortOption,
    UserSortOption,
    validate_active_filter,
    validate_order,
    validate_page_request,
    validate_sort,
)
from app.domain.roles import (
    is_full_administrative,
    permission_key,
    validate_role_permissions,
    validate_role_title,
)
from app.domain.validation import (
    fullname,
    validate_email,
    validate_name,
    validate_password,
    validate_phone,
)
from app.errors import ValidationError

from rbac_helpers import all_permissions


def test_role_title_is_trimmed() -> None:
    assert validate_role_title("  Support Staff ") == "Support Staff"


@pytest.mark.parametrize(
    ("title", "reason"),
    [
        (None, "required"),
        ("   ", "empty"),
        ("Admins 2", "pattern"),
        ("Ops-Team", "pattern"),
        ("Super\tAdmin", "pattern"),
        ("Super\nAdmin", "pattern"),
        ("A" * 51, "max_length"),
    ],
)
def test_role_title_rejections(title, reason) -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_role_title(title)

    assert exc_info.value.field == "title"
    assert exc_info.value.reason == reason


def test_role_permissions_collapse_duplicates() -> None:
    assert validate_role_permissions(["view_user", "view_user", " view_role "]) == {
        "view_user",
        "view_role",
    }


def test_role_permissions_require_at_least_one() -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_role_permissions(["", "  "])

    assert exc_info.value.reason == "min_items"
    assert exc_info.value.message == "Role must have at least one permission"


def test_role_permissions_name_every_invalid_entry() -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_role_permissions(["view_user", "fly_user", "edit_role"])

    message = exc_info.value.message
    assert message.startswith("Provided invalid permissions: edit_role, fly_user.")
    assert "Valid permissions are:" in message
    assert "view_user" in message


def test_role_permissions_required() -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_role_permissions(None)

    assert exc_info.value.reason == "required"


def test_full_administrative_needs_the_whole_catalog() -> None:
    permissions = all_permissions()

    assert is_full_administrative(permissions)
    assert not is_full_administrative(permissions[1:])


def test_permission_key_ignores_order_and_duplicates() -> None:
    assert permission_key(["view_user", "add_role", "view_user"]) == permission_key(
        ["add_role", "view_user"]
    )


def test_user_fields() -> None:
    assert validate_name(" Jane ", "firstname", required=True) == "Jane"
    assert validate_name("", "lastname", required=False) is None
    assert validate_email(" Jane.Doe@Example.com ") == "jane.doe@example.com"
    assert validate_phone("9876543210") == "9876543210"
    assert validate_phone("919876543210") == "919876543210"
    assert validate_password("abc@12") == "abc@12"
    assert fullname("Jane", None) == "Jane"
    assert fullname("Jane", "Doe") == "Jane Doe"


@pytest.mark.parametrize(
    ("validator", "value", "reason"),
    [
        (lambda v: validate_name(v, "firstname", required=True), None, "required"),
        (lambda v: validate_name(v, "firstname", required=True), "J4ne", "pattern"),
        (lambda v: validate_name(v, "lastname", required=False), "Van\tDyke", "pattern"),
        (validate_email, "not-an-email", "pattern"),
        (validate_phone, "12345", "pattern"),
        (validate_phone, "5876543210", "pattern"),
        (validate_phone, "98765432101234", "pattern"),
        (validate_password, "password", "pattern"),
        (validate_password, "abc@1", "pattern"),
        (validate_password, None, "required"),
    ],
)
def test_user_field_rejections(validator, value, reason) -> None:
    with pytest.raises(ValidationError) as exc_info:
        validator(value)

    assert exc_info.value.reason == reason


def test_page_request_defaults_and_offset() -> None:
    request = validate_page_request(None, None)

    assert (request.page, request.limit, request.offset) == (1, 10, 0)
    assert validate_page_request(3, 20).offset == 40


@pytest.mark.parametrize(("page", "limit"), [(0, 10), (1, 0), (1, 101)])
def test_page_request_bounds(page, limit) -> None:
    with pytest.raises(ValidationError):
        validate_page_request(page, limit)


def test_sort_and_order() -> None:
    assert validate_sort(None, UserSortOption) is None
    assert validate_sort("NAME", UserSortOption) == "name"
    assert validate_sort("user_count", RoleSortOption) == "user_count"
    assert validate_order(None) is True
    assert validate_order("asc") is False

    with pytest.raises(ValidationError, match="Valid options are: name, created_at"):
        validate_sort("email", UserSortOption)
    with pytest.raises(ValidationError):
        validate_order("sideways")


def test_active_filter() -> None:
    assert validate_active_filter(None) is None
    assert validate_active_filter("all") is None
    assert validate_active_filter("Active") is True
    assert validate_active_filter("inactive") is False

    with pytest.raises(ValidationError):
        validate_active_filter("maybe")
