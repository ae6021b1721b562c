import logging
import uuid
from dataclasses import dataclass, field

from ...auth.permissions import PermissionCatalog, get_permission_catalog
from ...domain.ports.role import RoleRepository
from ...domain.ports.user import UserRepository
from ...domain.roles import is_full_administrative
from ...errors import ForbiddenModificationError, NotFoundError

logger = logging.getLogger("rbac.roles")


@dataclass(frozen=True)
class RoleDeletionResult:
    role_id: uuid.UUID
    unassigned_user_ids: tuple[uuid.UUID, ...] = ()
    failed_user_ids: tuple[uuid.UUID, ...] = field(default=())

    @property
    def complete(self) -> bool:
        return not self.failed_user_ids


async def _unassign_deleted_role(
    user_port: UserRepository, user_id: uuid.UUID, role_id: uuid.UUID
) -> bool:
    try:
        await user_port.update(user_id, role_id=None)
        await user_port.commit()
    except Exception as exc:
        # Any per-user failure is reported in the result
        await user_port.rollback()
        logger.error(
            "role_unassign_after_delete_failed role_id=%s user_id=%s error=%s",
            role_id,
            user_id,
            exc,
            exc_info=True,
        )
        return False
    return True


async def delete_role(
    role_port: RoleRepository,
    user_port: UserRepository,
    role_id: uuid.UUID,
    catalog: PermissionCatalog | None = None,
) -> RoleDeletionResult:
    """Delete a role, then detach it from every user that held it.

    The role deletion is committed first. Detaching users happens one user at
    a time; a failure for one user is logged and reported in the result
    without undoing the deletion or stopping the remaining users.
    """
    catalog = catalog or get_permission_catalog()

    try:
        role = await role_port.get_by_id(role_id)
        if role is None:
            raise NotFoundError("Role not found")
        if is_full_administrative(role.permissions, catalog):
            raise ForbiddenModificationError(
                "Cannot delete a role with full administrative access. "
                "This role is required for system administration",
                details={"role": role.title},
            )
        holder_ids = await user_port.list_ids_by_role(role_id)
        await role_port.delete(role_id)
        await role_port.commit()
    except Exception:
        await role_port.rollback()
        raise

    logger.info("role_deleted role_id=%s holders=%s", role_id, len(holder_ids))

    unassigned: list[uuid.UUID] = []
    failed: list[uuid.UUID] = []
    for user_id in holder_ids:
        if await _unassign_deleted_role(user_port, user_id, role_id):
            unassigned.append(user_id)
        else:
            failed.append(user_id)

    if failed:
        logger.warning(
            "role_delete_cascade_incomplete role_id=%s failed=%s", role_id, len(failed)
        )
    return RoleDeletionResult(
        role_id=role_id,
        unassigned_user_ids=tuple(unassigned),
        failed_user_ids=tuple(failed),
    )
