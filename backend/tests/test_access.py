import uuid

import pytest

from app.domain.access import (
    DenialReason,
    SelfAction,
    authorize,
    ensure_authorized,
    ensure_not_self_action,
    ensure_not_sole_root_user,
    is_sole_root_user,
)
from app.errors import (
    MissingPermissionError,
    NoRoleError,
    RoleInactiveError,
    RootUserProtectionError,
    SelfActionForbiddenError,
    UserInactiveError,
)

from rbac_helpers import FakeStore, all_permissions


def test_user_without_role_is_denied(store: FakeStore) -> None:
    user = store.add_user()

    decision = authorize(store.subject(user), "view_user")

    assert not decision.allowed
    assert decision.reason is DenialReason.NO_ROLE
    assert "No role is assigned to you" in decision.message


def test_inactive_role_is_reported_before_inactive_user(store: FakeStore) -> None:
    role = store.add_role("Editor", ["view_user"], is_active=False)
    user = store.add_user(role=role, is_active=False)

    decision = authorize(store.subject(user), "view_user")

    assert decision.reason is DenialReason.ROLE_INACTIVE
    assert decision.message == "Access denied. Your role 'Editor' is currently inactive"


def test_inactive_user_is_reported_before_missing_permission(store: FakeStore) -> None:
    role = store.add_role("Editor", ["view_user"])
    user = store.add_user(role=role, is_active=False)

    decision = authorize(store.subject(user), "delete_role")

    assert decision.reason is DenialReason.USER_INACTIVE


def test_missing_permission_names_the_role_and_action(store: FakeStore) -> None:
    role = store.add_role("Editor", ["view_user"])
    user = store.add_user(role=role)

    decision = authorize(store.subject(user), "delete_role")

    assert decision.reason is DenialReason.MISSING_PERMISSION
    assert decision.message == (
        "Access denied. Your role 'Editor' does not have permission to delete a role"
    )


def test_permission_granted(store: FakeStore) -> None:
    role = store.add_role("Editor", ["view_user"])
    user = store.add_user(role=role)

    decision = authorize(store.subject(user), "view_user")

    assert decision.allowed
    assert decision.role_title == "Editor"


@pytest.mark.parametrize(
    ("role_active", "user_active", "permissions", "error"),
    [
        (False, True, ["view_user"], RoleInactiveError),
        (True, False, ["view_user"], UserInactiveError),
        (True, True, ["view_role"], MissingPermissionError),
    ],
)
def test_ensure_authorized_raises_typed_errors(
    store: FakeStore, role_active, user_active, permissions, error
) -> None:
    role = store.add_role("Editor", permissions, is_active=role_active)
    user = store.add_user(role=role, is_active=user_active)

    with pytest.raises(error) as exc_info:
        ensure_authorized(store.subject(user), "view_user")

    assert exc_info.value.status_code == 403
    assert exc_info.value.details["permission"] == "view_user"


def test_ensure_authorized_without_role(store: FakeStore) -> None:
    user = store.add_user()

    with pytest.raises(NoRoleError):
        ensure_authorized(store.subject(user), "view_user")


def test_role_deactivation_revokes_access_immediately(store: FakeStore) -> None:
    role = store.add_role("Editor", ["view_user"])
    user = store.add_user(role=role)
    ensure_authorized(store.subject(user), "view_user")

    store.roles[role.id].is_active = False

    with pytest.raises(RoleInactiveError):
        ensure_authorized(store.subject(user), "view_user")


def test_sole_root_user_is_protected(store: FakeStore) -> None:
    root = store.add_role("Super Admin", all_permissions())
    admin = store.add_user("Ada", role=root)

    assert is_sole_root_user(store.subject(admin))
    with pytest.raises(RootUserProtectionError) as exc_info:
        ensure_not_sole_root_user(store.subject(admin))

    assert "only one with the 'Super Admin' role" in exc_info.value.message


def test_second_root_holder_lifts_protection(store: FakeStore) -> None:
    root = store.add_role("Super Admin", all_permissions())
    admin = store.add_user("Ada", role=root)
    store.add_user("Grace", role=root)

    assert not is_sole_root_user(store.subject(admin))
    ensure_not_sole_root_user(store.subject(admin))


def test_partial_role_is_never_root(store: FakeStore) -> None:
    role = store.add_role("Almost Admin", all_permissions()[1:])
    user = store.add_user(role=role)

    assert not is_sole_root_user(store.subject(user))
    assert not is_sole_root_user(store.subject(store.add_user()))


@pytest.mark.parametrize("action", list(SelfAction))
def test_self_actions_are_refused(action: SelfAction) -> None:
    actor_id = uuid.uuid4()

    with pytest.raises(SelfActionForbiddenError) as exc_info:
        ensure_not_self_action(action, actor_id, uuid.UUID(str(actor_id)))

    assert exc_info.value.message.endswith(
        "This action can only be performed by other users"
    )
    assert exc_info.value.details == {"action": action.value}


def test_actions_on_other_users_pass_the_self_guard() -> None:
    ensure_not_self_action(SelfAction.DELETE, uuid.uuid4(), uuid.uuid4())
