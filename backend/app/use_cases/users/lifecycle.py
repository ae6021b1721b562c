"""Administrative status changes on other users' accounts.

Every action refuses to target the acting user. Actions that could leave the
system without a full administrator (deactivate, archive, delete) also run the
root-user check against the target's freshly loaded role.
"""
import logging
import uuid
from typing import Any

from ...auth.permissions import PermissionCatalog
from ...domain.access import (
    SelfAction,
    ensure_not_self_action,
    ensure_not_sole_root_user,
)
from ...domain.ports.role import RoleRepository
from ...domain.ports.services import ImageStore
from ...domain.ports.user import UserRepository, UserWithRole
from ...errors import ConflictError, NotFoundError
from .assign_role import release_role_holder
from .avatars import release_avatar

logger = logging.getLogger("rbac.users.lifecycle")


async def _change_status(
    user_port: UserRepository,
    action: SelfAction,
    actor_id: uuid.UUID,
    target_id: uuid.UUID,
    *,
    already: str,
    guard_root: bool,
    catalog: PermissionCatalog | None,
    **values: Any,
) -> UserWithRole:
    ensure_not_self_action(action, actor_id, target_id)

    try:
        target = await user_port.get_with_role(target_id)
        if target is None:
            raise NotFoundError("User not found")
        if all(getattr(target.user, key) == value for key, value in values.items()):
            raise ConflictError(already)
        if guard_root:
            ensure_not_sole_root_user(target, catalog)
        await user_port.update(target_id, **values)
        await user_port.commit()
    except Exception:
        await user_port.rollback()
        raise

    logger.info(
        "user_status_changed action=%s user_id=%s actor_id=%s",
        action.value,
        target_id,
        actor_id,
    )
    updated = await user_port.get_with_role(target_id)
    if updated is None:
        raise NotFoundError("User not found")
    return updated


async def activate_user(
    user_port: UserRepository,
    actor_id: uuid.UUID,
    target_id: uuid.UUID,
    catalog: PermissionCatalog | None = None,
) -> UserWithRole:
    return await _change_status(
        user_port,
        SelfAction.ACTIVATE,
        actor_id,
        target_id,
        already="User is already active",
        guard_root=False,
        catalog=catalog,
        is_active=True,
    )


async def deactivate_user(
    user_port: UserRepository,
    actor_id: uuid.UUID,
    target_id: uuid.UUID,
    catalog: PermissionCatalog | None = None,
) -> UserWithRole:
    return await _change_status(
        user_port,
        SelfAction.DEACTIVATE,
        actor_id,
        target_id,
        already="User is already inactive",
        guard_root=True,
        catalog=catalog,
        is_active=False,
    )


async def archive_user(
    user_port: UserRepository,
    actor_id: uuid.UUID,
    target_id: uuid.UUID,
    catalog: PermissionCatalog | None = None,
) -> UserWithRole:
    return await _change_status(
        user_port,
        SelfAction.ARCHIVE,
        actor_id,
        target_id,
        already="User is already archived",
        guard_root=True,
        catalog=catalog,
        is_archived=True,
    )


async def restore_user(
    user_port: UserRepository,
    actor_id: uuid.UUID,
    target_id: uuid.UUID,
    catalog: PermissionCatalog | None = None,
) -> UserWithRole:
    return await _change_status(
        user_port,
        SelfAction.RESTORE,
        actor_id,
        target_id,
        already="User is not archived",
        guard_root=False,
        catalog=catalog,
        is_archived=False,
    )


async def remove_user_account(
    user_port: UserRepository,
    role_port: RoleRepository,
    image_store: ImageStore,
    target: UserWithRole,
    catalog: PermissionCatalog | None = None,
) -> None:
    """Delete ``target`` together with its role count and stored avatar."""
    avatar_public_id = target.user.avatar_public_id
    try:
        ensure_not_sole_root_user(target, catalog)
        await user_port.delete(target.id)
        await release_role_holder(role_port, target, catalog)
        await user_port.commit()
    except Exception:
        await user_port.rollback()
        await role_port.rollback()
        raise

    await release_avatar(image_store, avatar_public_id)


async def delete_user(
    user_port: UserRepository,
    role_port: RoleRepository,
    image_store: ImageStore,
    actor_id: uuid.UUID,
    target_id: uuid.UUID,
    catalog: PermissionCatalog | None = None,
) -> None:
    ensure_not_self_action(SelfAction.DELETE, actor_id, target_id)

    target = await user_port.get_with_role(target_id)
    if target is None:
        raise NotFoundError("User not found")
    await remove_user_account(user_port, role_port, image_store, target, catalog)
    logger.info("user_deleted user_id=%s actor_id=%s", target_id, actor_id)
