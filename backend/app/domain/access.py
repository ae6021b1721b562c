"""
Access decisions for authenticated users.

- ``authorize``: allow/deny for a single permission, checked in a fixed order
  (no role, inactive role, inactive user, missing permission). The first failing
  check wins.
- ``is_sole_root_user``: the user is the only holder of a full-administrative
  role. Such a user cannot be demoted, deactivated, archived or deleted.
- ``is_self_action``: the actor targets their own account with an action that
  only another user may perform.

All checks operate on ``UserWithRole`` so the role state is the one read for
the current request.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Final, Mapping, NoReturn

from ..auth.permissions import PermissionCatalog, get_permission_catalog
from ..errors import (
    MissingPermissionError,
    NoRoleError,
    PermissionError,
    RoleInactiveError,
    RootUserProtectionError,
    SelfActionForbiddenError,
    UserInactiveError,
)
from .ports.role import RoleData
from .ports.user import UserWithRole
from .roles import is_full_administrative

logger = logging.getLogger("rbac.access")


# ============================================================================
# AUTHORIZATION GATE
# ============================================================================

class DenialReason(str, Enum):
    NO_ROLE = "no_role"
    ROLE_INACTIVE = "role_inactive"
    USER_INACTIVE = "user_inactive"
    MISSING_PERMISSION = "missing_permission"


DENIAL_ERRORS: Final[Mapping[DenialReason, type[PermissionError]]] = {
    DenialReason.NO_ROLE: NoRoleError,
    DenialReason.ROLE_INACTIVE: RoleInactiveError,
    DenialReason.USER_INACTIVE: UserInactiveError,
    DenialReason.MISSING_PERMISSION: MissingPermissionError,
}


@dataclass(frozen=True)
class AccessDecision:
    permission: str
    reason: DenialReason | None = None
    message: str | None = None
    role_title: str | None = None

    @property
    def allowed(self) -> bool:
        return self.reason is None


def _lowercase_first(text: str) -> str:
    return text[:1].lower() + text[1:]


def authorize(
    subject: UserWithRole,
    permission: str,
    catalog: PermissionCatalog | None = None,
) -> AccessDecision:
    catalog = catalog or get_permission_catalog()
    role = subject.role

    if role is None:
        return AccessDecision(
            permission=permission,
            reason=DenialReason.NO_ROLE,
            message=(
                "Access denied. No role is assigned to you. "
                "Ask an administrator to assign you a role"
            ),
        )

    if not role.is_active:
        return AccessDecision(
            permission=permission,
            reason=DenialReason.ROLE_INACTIVE,
            role_title=role.title,
            message=(
                f"Access denied. Your role '{role.title}' is currently inactive"
            ),
        )

    if not subject.user.is_active:
        return AccessDecision(
            permission=permission,
            reason=DenialReason.USER_INACTIVE,
            role_title=role.title,
            message="Access denied. Your account is currently inactive",
        )

    if permission not in role.permissions:
        description = _lowercase_first(catalog.describe(permission))
        return AccessDecision(
            permission=permission,
            reason=DenialReason.MISSING_PERMISSION,
            role_title=role.title,
            message=(
                f"Access denied. Your role '{role.title}' does not have "
                f"permission to {description}"
            ),
        )

    return AccessDecision(permission=permission, role_title=role.title)


def ensure_authorized(
    subject: UserWithRole,
    permission: str,
    catalog: PermissionCatalog | None = None,
) -> None:
    decision = authorize(subject, permission, catalog)
    reason = decision.reason
    if reason is None:
        return
    raise DENIAL_ERRORS[reason](
        decision.message,
        details={
            "reason": reason.value,
            "permission": decision.permission,
            "role": decision.role_title,
        },
    )


# ============================================================================
# ROOT-USER GUARD
# ============================================================================

def is_sole_root_user(
    subject: UserWithRole, catalog: PermissionCatalog | None = None
) -> bool:
    role = subject.role
    if role is None:
        return False
    return is_full_administrative(role.permissions, catalog) and role.user_count == 1


def minimum_role_holders(
    role: RoleData | None, catalog: PermissionCatalog | None = None
) -> int:
    """Fewest users a role may keep when one of its holders is removed."""
    if role is not None and is_full_administrative(role.permissions, catalog):
        return 1
    return 0


def ensure_not_sole_root_user(
    subject: UserWithRole, catalog: PermissionCatalog | None = None
) -> None:
    if is_sole_root_user(subject, catalog):
        raise_root_user_protection(subject)


def raise_root_user_protection(subject: UserWithRole) -> NoReturn:
    role = subject.role
    title = role.title if role is not None else ""
    logger.warning(
        "root_user_protection user_id=%s role_id=%s",
        subject.id,
        role.id if role is not None else None,
    )
    raise RootUserProtectionError(
        f"This user is the only one with the '{title}' role, which has full "
        f"administrative access. Assign the '{title}' role to another user "
        "before performing this action",
        details={"role": title, "user_id": str(subject.id)},
    )


# ============================================================================
# SELF-ACTION GUARD
# ============================================================================

class SelfAction(str, Enum):
    ASSIGN_ROLE = "assign_role"
    UNASSIGN_ROLE = "unassign_role"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
    ARCHIVE = "archive"
    RESTORE = "restore"
    DELETE = "delete"


SELF_ACTION_MESSAGES: Final[Mapping[SelfAction, str]] = {
    SelfAction.ASSIGN_ROLE: "You cannot assign a role to yourself",
    SelfAction.UNASSIGN_ROLE: "You cannot unassign your own role",
    SelfAction.ACTIVATE: "You cannot activate yourself",
    SelfAction.DEACTIVATE: "You cannot deactivate yourself",
    SelfAction.ARCHIVE: "You cannot archive yourself",
    SelfAction.RESTORE: "You cannot restore yourself",
    SelfAction.DELETE: "You cannot delete yourself",
}


def is_self_action(actor_id: uuid.UUID, target_id: uuid.UUID) -> bool:
    return str(actor_id) == str(target_id)


def ensure_not_self_action(
    action: SelfAction, actor_id: uuid.UUID, target_id: uuid.UUID
) -> None:
    if not is_self_action(actor_id, target_id):
        return
    raise SelfActionForbiddenError(
        f"{SELF_ACTION_MESSAGES[action]}. "
        "This action can only be performed by other users",
        details={"action": action.value},
    )
