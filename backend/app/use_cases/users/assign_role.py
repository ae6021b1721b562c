"""Role assignment and removal.

The user row and both role counters change in the same database transaction:
the user and role repositories share the request session, so a single commit
covers all of them and any failure rolls every change back.
"""
import logging
import uuid

from ...auth.permissions import PermissionCatalog
from ...domain.access import (
    SelfAction,
    ensure_not_self_action,
    ensure_not_sole_root_user,
    minimum_role_holders,
    raise_root_user_protection,
)
from ...domain.ports.role import RoleRepository
from ...domain.ports.user import UserRepository, UserWithRole
from ...errors import ConflictError, NotFoundError

logger = logging.getLogger("rbac.users.roles")

USER_NOT_FOUND_MESSAGE = "User not found"


async def _load_target(user_port: UserRepository, user_id: uuid.UUID) -> UserWithRole:
    target = await user_port.get_with_role(user_id)
    if target is None:
        raise NotFoundError(USER_NOT_FOUND_MESSAGE)
    return target


async def _rollback(user_port: UserRepository, role_port: RoleRepository) -> None:
    await user_port.rollback()
    await role_port.rollback()


async def release_role_holder(
    role_port: RoleRepository,
    target: UserWithRole,
    catalog: PermissionCatalog | None = None,
) -> None:
    """Take ``target`` out of its role's user count.

    A full-administrative role never drops below one holder. The floor is
    enforced by the decrement itself, which also covers a concurrent request
    that passed the root-user check against the same count.
    """
    role = target.role
    if role is None:
        return
    floor = minimum_role_holders(role, catalog)
    released = await role_port.adjust_user_count(role.id, -1, floor=floor)
    if not released and floor:
        raise_root_user_protection(target)


async def assign_role(
    user_port: UserRepository,
    role_port: RoleRepository,
    actor_id: uuid.UUID,
    target_id: uuid.UUID,
    role_id: uuid.UUID,
    catalog: PermissionCatalog | None = None,
) -> UserWithRole:
    ensure_not_self_action(SelfAction.ASSIGN_ROLE, actor_id, target_id)

    try:
        target = await _load_target(user_port, target_id)
        role = await role_port.get_by_id(role_id)
        if role is None:
            raise NotFoundError("Provided role does not exist")
        if target.user.role_id == role_id:
            raise ConflictError(f"User already has the '{role.title}' role")

        previous_role_id = target.role.id if target.role is not None else None
        ensure_not_sole_root_user(target, catalog)

        await user_port.update(target_id, role_id=role_id)
        await role_port.adjust_user_count(role_id, 1)
        await release_role_holder(role_port, target, catalog)
        await user_port.commit()
    except Exception:
        await _rollback(user_port, role_port)
        raise

    logger.info(
        "role_assigned user_id=%s role_id=%s previous_role_id=%s actor_id=%s",
        target_id,
        role_id,
        previous_role_id,
        actor_id,
    )
    return await _load_target(user_port, target_id)


async def unassign_role(
    user_port: UserRepository,
    role_port: RoleRepository,
    actor_id: uuid.UUID,
    target_id: uuid.UUID,
    catalog: PermissionCatalog | None = None,
) -> UserWithRole:
    ensure_not_self_action(SelfAction.UNASSIGN_ROLE, actor_id, target_id)

    try:
        target = await _load_target(user_port, target_id)
        previous_role_id = target.user.role_id
        if previous_role_id is None:
            raise ConflictError("User does not have a role assigned")
        ensure_not_sole_root_user(target, catalog)

        await user_port.update(target_id, role_id=None)
        # A dangling role_id has no role row left to decrement
        await release_role_holder(role_port, target, catalog)
        await user_port.commit()
    except Exception:
        await _rollback(user_port, role_port)
        raise

    logger.info(
        "role_unassigned user_id=%s role_id=%s actor_id=%s",
        target_id,
        previous_role_id,
        actor_id,
    )
    return await _load_target(user_port, target_id)
