import uuid

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status

from ..auth.permissions import RolePermission, UserPermission
from ..config import settings
from ..dependencies import (
    get_catalog,
    get_current_user,
    get_image_store,
    get_password_hasher,
    get_role_port,
    get_user_port,
    require_permission,
)
from ..domain.ports.user import UserWithRole
from ..schemas.auth import MessageResponse
from ..schemas.user import ProfileUpdate, RoleAssignment, UserRead
from ..use_cases.users.assign_role import assign_role, unassign_role
from ..use_cases.users.avatars import remove_avatar, update_avatar
from ..use_cases.users.lifecycle import (
    activate_user,
    archive_user,
    deactivate_user,
    delete_user,
    restore_user,
)
from ..use_cases.users.profile import delete_account, get_profile, update_profile
from ..use_cases.users.query_users import get_user, list_users
from .auth import clear_auth_cookie

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[UserRead])
async def list_all_users(
    response: Response,
    active: str | None = Query(default=None),
    archived: bool = Query(default=False),
    roles: list[uuid.UUID] = Query(default=[]),
    sort_by: str | None = Query(default=None, alias="sortBy"),
    order: str | None = Query(default=None),
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    user_port=Depends(get_user_port),
    _subject=Depends(require_permission(UserPermission.VIEW.value)),
) -> list[UserRead]:
    result = await list_users(
        user_port,
        active=active,
        archived=archived,
        role_ids=roles,
        sort_by=sort_by,
        order=order,
        page=page,
        limit=limit,
    )
    response.headers["X-Total-Count"] = str(result.total)
    return [UserRead.from_subject(subject) for subject in result.items]


# ============================================================================
# SELF SERVICE
# ============================================================================

@router.get("/self", response_model=UserRead)
async def read_profile(
    subject: UserWithRole = Depends(get_current_user),
    user_port=Depends(get_user_port),
) -> UserRead:
    return UserRead.from_subject(await get_profile(user_port, subject.id))


@router.put("/self", response_model=UserRead)
async def edit_profile(
    payload: ProfileUpdate,
    subject: UserWithRole = Depends(get_current_user),
    user_port=Depends(get_user_port),
    hasher=Depends(get_password_hasher),
) -> UserRead:
    updated = await update_profile(
        user_port,
        hasher,
        subject.id,
        firstname=payload.firstname,
        lastname=payload.lastname,
        phone=payload.phone,
        password=payload.password,
    )
    return UserRead.from_subject(updated)


@router.delete("/self", response_model=MessageResponse)
async def remove_account(
    response: Response,
    subject: UserWithRole = Depends(get_current_user),
    user_port=Depends(get_user_port),
    role_port=Depends(get_role_port),
    image_store=Depends(get_image_store),
    catalog=Depends(get_catalog),
) -> MessageResponse:
    await delete_account(user_port, role_port, image_store, subject.id, catalog)
    clear_auth_cookie(response)
    return MessageResponse(message="Account deleted successfully")


@router.put("/self/avatar", response_model=UserRead)
async def upload_avatar(
    avatar: UploadFile = File(...),
    subject: UserWithRole = Depends(get_current_user),
    user_port=Depends(get_user_port),
    image_store=Depends(get_image_store),
) -> UserRead:
    content = await avatar.read()
    updated = await update_avatar(
        user_port,
        image_store,
        subject.id,
        content,
        avatar.content_type,
        folder=settings.avatar_folder,
    )
    return UserRead.from_subject(updated)


@router.delete("/self/avatar", response_model=UserRead)
async def delete_avatar(
    subject: UserWithRole = Depends(get_current_user),
    user_port=Depends(get_user_port),
    image_store=Depends(get_image_store),
) -> UserRead:
    return UserRead.from_subject(await remove_avatar(user_port, image_store, subject.id))


# ============================================================================
# ADMINISTRATION
# ============================================================================

@router.get("/{user_id}", response_model=UserRead)
async def read_user(
    user_id: uuid.UUID,
    user_port=Depends(get_user_port),
    _subject=Depends(require_permission(UserPermission.VIEW.value)),
) -> UserRead:
    return UserRead.from_subject(await get_user(user_port, user_id))


@router.put("/{user_id}/role", response_model=UserRead)
async def assign_user_role(
    user_id: uuid.UUID,
    payload: RoleAssignment,
    user_port=Depends(get_user_port),
    role_port=Depends(get_role_port),
    catalog=Depends(get_catalog),
    actor: UserWithRole = Depends(require_permission(RolePermission.ASSIGN.value)),
) -> UserRead:
    updated = await assign_role(
        user_port, role_port, actor.id, user_id, payload.role, catalog
    )
    return UserRead.from_subject(updated)


@router.delete("/{user_id}/role", response_model=UserRead)
async def unassign_user_role(
    user_id: uuid.UUID,
    user_port=Depends(get_user_port),
    role_port=Depends(get_role_port),
    catalog=Depends(get_catalog),
    actor: UserWithRole = Depends(require_permission(RolePermission.UNASSIGN.value)),
) -> UserRead:
    updated = await unassign_role(user_port, role_port, actor.id, user_id, catalog)
    return UserRead.from_subject(updated)


@router.put("/{user_id}/activate", response_model=UserRead)
async def activate(
    user_id: uuid.UUID,
    user_port=Depends(get_user_port),
    actor: UserWithRole = Depends(require_permission(UserPermission.ACTIVATE.value)),
) -> UserRead:
    return UserRead.from_subject(await activate_user(user_port, actor.id, user_id))


@router.put("/{user_id}/deactivate", response_model=UserRead)
async def deactivate(
    user_id: uuid.UUID,
    user_port=Depends(get_user_port),
    catalog=Depends(get_catalog),
    actor: UserWithRole = Depends(
        require_permission(UserPermission.DEACTIVATE.value)
    ),
) -> UserRead:
    return UserRead.from_subject(
        await deactivate_user(user_port, actor.id, user_id, catalog)
    )


@router.put("/{user_id}/archive", response_model=UserRead)
async def archive(
    user_id: uuid.UUID,
    user_port=Depends(get_user_port),
    catalog=Depends(get_catalog),
    actor: UserWithRole = Depends(require_permission(UserPermission.ARCHIVE.value)),
) -> UserRead:
    return UserRead.from_subject(
        await archive_user(user_port, actor.id, user_id, catalog)
    )


@router.put("/{user_id}/restore", response_model=UserRead)
async def restore(
    user_id: uuid.UUID,
    user_port=Depends(get_user_port),
    actor: UserWithRole = Depends(require_permission(UserPermission.RESTORE.value)),
) -> UserRead:
    return UserRead.from_subject(await restore_user(user_port, actor.id, user_id))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_user(
    user_id: uuid.UUID,
    user_port=Depends(get_user_port),
    role_port=Depends(get_role_port),
    image_store=Depends(get_image_store),
    catalog=Depends(get_catalog),
    actor: UserWithRole = Depends(require_permission(UserPermission.DELETE.value)),
) -> None:
    await delete_user(user_port, role_port, image_store, actor.id, user_id, catalog)
