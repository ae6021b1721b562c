import uuid

from fastapi import APIRouter, Depends, Query, Response, status

from ..auth.permissions import RolePermission
from ..dependencies import (
    get_catalog,
    get_role_port,
    get_user_port,
    require_permission,
)
from ..schemas.role import (
    RoleCreate,
    RoleDeletionResponse,
    RoleResponse,
    RoleUpdate,
)
from ..use_cases.roles.delete_role import delete_role
from ..use_cases.roles.manage_roles import (
    activate_role,
    create_role,
    deactivate_role,
    update_role,
)
from ..use_cases.roles.query_roles import get_role, list_roles

router = APIRouter(prefix="/roles", tags=["roles"])


@router.get("", response_model=list[RoleResponse])
async def list_all_roles(
    response: Response,
    active: str | None = Query(default=None),
    permissions: list[str] = Query(default=[]),
    sort_by: str | None = Query(default=None, alias="sortBy"),
    order: str | None = Query(default=None),
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    role_port=Depends(get_role_port),
    catalog=Depends(get_catalog),
    _subject=Depends(require_permission(RolePermission.VIEW.value)),
) -> list[RoleResponse]:
    result = await list_roles(
        role_port,
        active=active,
        permissions=permissions,
        sort_by=sort_by,
        order=order,
        page=page,
        limit=limit,
        catalog=catalog,
    )
    response.headers["X-Total-Count"] = str(result.total)
    return [RoleResponse.model_validate(role) for role in result.items]


@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def add_role(
    payload: RoleCreate,
    role_port=Depends(get_role_port),
    catalog=Depends(get_catalog),
    _subject=Depends(require_permission(RolePermission.ADD.value)),
) -> RoleResponse:
    role = await create_role(role_port, payload.title, payload.permissions, catalog)
    return RoleResponse.model_validate(role)


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role_by_id(
    role_id: uuid.UUID,
    role_port=Depends(get_role_port),
    _subject=Depends(require_permission(RolePermission.VIEW.value)),
) -> RoleResponse:
    return RoleResponse.model_validate(await get_role(role_port, role_id))


@router.put("/{role_id}", response_model=RoleResponse)
async def edit_role(
    role_id: uuid.UUID,
    payload: RoleUpdate,
    role_port=Depends(get_role_port),
    catalog=Depends(get_catalog),
    _subject=Depends(require_permission(RolePermission.UPDATE.value)),
) -> RoleResponse:
    role = await update_role(
        role_port,
        role_id,
        title=payload.title,
        permissions=payload.permissions,
        catalog=catalog,
    )
    return RoleResponse.model_validate(role)


@router.delete("/{role_id}", response_model=RoleDeletionResponse)
async def remove_role(
    role_id: uuid.UUID,
    role_port=Depends(get_role_port),
    user_port=Depends(get_user_port),
    catalog=Depends(get_catalog),
    _subject=Depends(require_permission(RolePermission.DELETE.value)),
) -> RoleDeletionResponse:
    result = await delete_role(role_port, user_port, role_id, catalog)
    return RoleDeletionResponse(
        role_id=result.role_id,
        unassigned_user_ids=list(result.unassigned_user_ids),
        failed_user_ids=list(result.failed_user_ids),
    )


@router.put("/{role_id}/activate", response_model=RoleResponse)
async def activate(
    role_id: uuid.UUID,
    role_port=Depends(get_role_port),
    catalog=Depends(get_catalog),
    _subject=Depends(require_permission(RolePermission.ACTIVATE.value)),
) -> RoleResponse:
    return RoleResponse.model_validate(await activate_role(role_port, role_id, catalog))


@router.put("/{role_id}/deactivate", response_model=RoleResponse)
async def deactivate(
    role_id: uuid.UUID,
    role_port=Depends(get_role_port),
    catalog=Depends(get_catalog),
    _subject=Depends(require_permission(RolePermission.DEACTIVATE.value)),
) -> RoleResponse:
    return RoleResponse.model_validate(
        await deactivate_role(role_port, role_id, catalog)
    )
