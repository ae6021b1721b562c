import uuid
from collections.abc import Iterable

from ...auth.permissions import PermissionCatalog, get_permission_catalog
from ...domain.listing import (
    Page,
    RoleSortOption,
    validate_active_filter,
    validate_order,
    validate_page_request,
    validate_sort,
)
from ...domain.ports.role import RoleData, RoleRepository
from ...domain.validation import validation_error
from ...errors import NotFoundError


async def get_role(role_port: RoleRepository, role_id: uuid.UUID) -> RoleData:
    role = await role_port.get_by_id(role_id)
    if role is None:
        raise NotFoundError("Role not found")
    return role


async def list_roles(
    role_port: RoleRepository,
    *,
    active: str | None = None,
    permissions: Iterable[str] = (),
    sort_by: str | None = None,
    order: str | None = None,
    page: int | None = None,
    limit: int | None = None,
    catalog: PermissionCatalog | None = None,
) -> Page[RoleData]:
    catalog = catalog or get_permission_catalog()
    is_active = validate_active_filter(active)
    wanted = sorted({p.strip() for p in permissions if p and p.strip()})
    invalid = catalog.unknown(wanted)
    if invalid:
        raise validation_error(
            "permissions",
            "invalid",
            invalid=", ".join(invalid),
            options=catalog.format_options(),
        )
    sort_column = validate_sort(sort_by, RoleSortOption)
    descending = validate_order(order)
    page_request = validate_page_request(page, limit)

    roles = await role_port.list(
        is_active=is_active,
        permissions=wanted,
        sort_by=sort_column,
        descending=descending,
        limit=page_request.limit,
        offset=page_request.offset,
    )
    total = await role_port.count(is_active=is_active, permissions=wanted)
    return Page(
        items=roles, total=total, page=page_request.page, limit=page_request.limit
    )
