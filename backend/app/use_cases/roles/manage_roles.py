import logging
import uuid
from collections.abc import Iterable

from ...auth.permissions import PermissionCatalog, get_permission_catalog
from ...domain.ports.role import RoleData, RoleRepository
from ...domain.roles import (
    is_full_administrative,
    validate_role_permissions,
    validate_role_title,
)
from ...errors import (
    ConflictError,
    DuplicateRoleError,
    ForbiddenModificationError,
    NotFoundError,
)

logger = logging.getLogger("rbac.roles")

ROLE_NOT_FOUND_MESSAGE = "Role not found"
TITLE_TAKEN_MESSAGE = (
    "Role by this title already exists. Please provide a different title"
)


async def _load_role(role_port: RoleRepository, role_id: uuid.UUID) -> RoleData:
    role = await role_port.get_by_id(role_id)
    if role is None:
        raise NotFoundError(ROLE_NOT_FOUND_MESSAGE)
    return role


async def _ensure_title_available(
    role_port: RoleRepository, title: str, *, exclude_id: uuid.UUID | None = None
) -> None:
    if await role_port.get_by_title(title, exclude_id=exclude_id) is not None:
        raise ConflictError(TITLE_TAKEN_MESSAGE, details={"field": "title"})


async def _ensure_permission_set_unique(
    role_port: RoleRepository,
    permissions: frozenset[str],
    *,
    exclude_id: uuid.UUID | None = None,
) -> None:
    existing = await role_port.get_by_permissions(permissions, exclude_id=exclude_id)
    if existing is not None:
        raise DuplicateRoleError(
            f"{existing.title} role with the same permissions already exists. "
            "Either use it or provide different permissions",
            details={"role_id": str(existing.id), "role": existing.title},
        )


async def create_role(
    role_port: RoleRepository,
    title: str | None,
    permissions: Iterable[str] | None,
    catalog: PermissionCatalog | None = None,
) -> RoleData:
    catalog = catalog or get_permission_catalog()
    clean_title = validate_role_title(title)
    clean_permissions = validate_role_permissions(permissions, catalog)

    try:
        await _ensure_title_available(role_port, clean_title)
        await _ensure_permission_set_unique(role_port, clean_permissions)
        role = await role_port.create(clean_title, clean_permissions)
        await role_port.commit()
    except Exception:
        await role_port.rollback()
        raise

    logger.info("role_created role_id=%s title=%s", role.id, role.title)
    return role


async def update_role(
    role_port: RoleRepository,
    role_id: uuid.UUID,
    *,
    title: str | None = None,
    permissions: Iterable[str] | None = None,
    catalog: PermissionCatalog | None = None,
) -> RoleData:
    """Rename a role and/or replace its permission set.

    The fully-privileged role keeps its permissions: only its title may change.
    """
    catalog = catalog or get_permission_catalog()
    clean_title = validate_role_title(title) if title is not None else None
    clean_permissions = (
        validate_role_permissions(permissions, catalog)
        if permissions is not None
        else None
    )

    try:
        role = await _load_role(role_port, role_id)

        if (
            clean_permissions is not None
            and is_full_administrative(role.permissions, catalog)
            and not is_full_administrative(clean_permissions, catalog)
        ):
            raise ForbiddenModificationError(
                "Cannot modify permissions for a role with full administrative "
                "access. Only title updates are allowed",
                details={"role": role.title},
            )

        if clean_title is not None:
            await _ensure_title_available(role_port, clean_title, exclude_id=role_id)
        if clean_permissions is not None:
            await _ensure_permission_set_unique(
                role_port, clean_permissions, exclude_id=role_id
            )

        updated = await role_port.update(
            role_id, title=clean_title, permissions=clean_permissions
        )
        await role_port.commit()
    except Exception:
        await role_port.rollback()
        raise

    logger.info("role_updated role_id=%s", role_id)
    return updated


async def _set_role_active(
    role_port: RoleRepository,
    role_id: uuid.UUID,
    is_active: bool,
    catalog: PermissionCatalog,
) -> RoleData:
    try:
        role = await _load_role(role_port, role_id)
        if role.is_active == is_active:
            state = "active" if is_active else "inactive"
            raise ConflictError(f"Role is already {state}")
        if not is_active and is_full_administrative(role.permissions, catalog):
            raise ForbiddenModificationError(
                "Cannot deactivate a role with full administrative access. "
                "This role is required for system administration",
                details={"role": role.title},
            )
        updated = await role_port.update(role_id, is_active=is_active)
        await role_port.commit()
    except Exception:
        await role_port.rollback()
        raise

    logger.info("role_status_changed role_id=%s is_active=%s", role_id, is_active)
    return updated


async def activate_role(
    role_port: RoleRepository,
    role_id: uuid.UUID,
    catalog: PermissionCatalog | None = None,
) -> RoleData:
    return await _set_role_active(
        role_port, role_id, True, catalog or get_permission_catalog()
    )


async def deactivate_role(
    role_port: RoleRepository,
    role_id: uuid.UUID,
    catalog: PermissionCatalog | None = None,
) -> RoleData:
    return await _set_role_active(
        role_port, role_id, False, catalog or get_permission_catalog()
    )
