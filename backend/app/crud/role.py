from __future__ import annotations

import logging
import uuid
from collections.abc import Collection

from sqlalchemy import String, delete, func, literal, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.ports.role import RoleData, RoleRepository as RoleRepositoryPort
from ..domain.roles import permission_key
from ..models.role import Role
from .base import commit_session, flush_session, rollback_session

logger = logging.getLogger("rbac.storage.roles")

ROLE_SORT_COLUMNS = {
    "user_count": Role.user_count,
    "created_at": Role.created_at,
}


def _apply_filters(stmt, *, is_active: bool | None, permissions: Collection[str]):
    if is_active is not None:
        stmt = stmt.where(Role.is_active.is_(is_active))
    # Membership test on the canonical key: ",a,b,c," contains ",b,"
    wrapped_key = literal(",", String) + Role.permission_key + literal(",", String)
    for permission in permissions:
        stmt = stmt.where(wrapped_key.contains(f",{permission},"))
    return stmt


async def get_role(session: AsyncSession, role_id: uuid.UUID) -> Role | None:
    return await session.get(Role, role_id, populate_existing=True)


async def get_role_by_title(
    session: AsyncSession, title: str, *, exclude_id: uuid.UUID | None = None
) -> Role | None:
    stmt = select(Role).where(Role.title == title)
    if exclude_id is not None:
        stmt = stmt.where(Role.id != exclude_id)
    result = await session.execute(stmt)
    return result.scalars().first()


async def get_role_by_permissions(
    session: AsyncSession,
    permissions: Collection[str],
    *,
    exclude_id: uuid.UUID | None = None,
) -> Role | None:
    stmt = select(Role).where(Role.permission_key == permission_key(permissions))
    if exclude_id is not None:
        stmt = stmt.where(Role.id != exclude_id)
    result = await session.execute(stmt)
    return result.scalars().first()


async def list_roles(
    session: AsyncSession,
    *,
    is_active: bool | None = None,
    permissions: Collection[str] = (),
    sort_by: str | None = None,
    descending: bool = True,
    limit: int = 10,
    offset: int = 0,
) -> list[Role]:
    column = ROLE_SORT_COLUMNS.get(sort_by or "created_at", Role.created_at)
    stmt = _apply_filters(select(Role), is_active=is_active, permissions=permissions)
    stmt = (
        stmt.order_by(column.desc() if descending else column.asc(), Role.id)
        .limit(limit)
        .offset(offset)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def count_roles(
    session: AsyncSession,
    *,
    is_active: bool | None = None,
    permissions: Collection[str] = (),
) -> int:
    stmt = _apply_filters(
        select(func.count()).select_from(Role),
        is_active=is_active,
        permissions=permissions,
    )
    result = await session.execute(stmt)
    return int(result.scalar_one())


async def create_role(
    session: AsyncSession, title: str, permissions: Collection[str]
) -> Role:
    ordered = sorted(set(permissions))
    role = Role(
        title=title,
        permissions=ordered,
        permission_key=permission_key(ordered),
        user_count=0,
        is_active=True,
    )
    session.add(role)
    await flush_session(session)
    await session.refresh(role)
    return role


async def update_role(
    session: AsyncSession,
    role_id: uuid.UUID,
    *,
    title: str | None = None,
    permissions: Collection[str] | None = None,
    is_active: bool | None = None,
) -> Role:
    role = await get_role(session, role_id)
    if role is None:
        raise LookupError(f"Role {role_id} does not exist")
    if title is not None:
        role.title = title
    if permissions is not None:
        ordered = sorted(set(permissions))
        role.permissions = ordered
        role.permission_key = permission_key(ordered)
    if is_active is not None:
        role.is_active = is_active
    await flush_session(session)
    await session.refresh(role)
    return role


async def delete_role(session: AsyncSession, role_id: uuid.UUID) -> bool:
    result = await session.execute(delete(Role).where(Role.id == role_id))
    await flush_session(session)
    return bool(result.rowcount)


async def adjust_role_user_count(
    session: AsyncSession, role_id: uuid.UUID, delta: int, *, floor: int = 0
) -> bool:
    """Add ``delta`` to the user count unless that would drop it below ``floor``.

    The condition is part of the UPDATE, so concurrent decrements serialize on
    the role row and the second one sees the first one's result.
    """
    stmt = (
        update(Role)
        .where(Role.id == role_id)
        .values(user_count=Role.user_count + delta)
        .execution_options(synchronize_session=False)
    )
    if delta < 0:
        stmt = stmt.where(Role.user_count + delta >= floor)
    result = await session.execute(stmt)
    adjusted = bool(result.rowcount)
    if not adjusted:
        logger.warning(
            "role_user_count_not_adjusted role_id=%s delta=%s floor=%s",
            role_id,
            delta,
            floor,
        )
    await flush_session(session)
    return adjusted


class RoleRepository(RoleRepositoryPort):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, role_id: uuid.UUID) -> RoleData | None:
        return await get_role(self._session, role_id)

    async def get_by_title(
        self, title: str, *, exclude_id: uuid.UUID | None = None
    ) -> RoleData | None:
        return await get_role_by_title(self._session, title, exclude_id=exclude_id)

    async def get_by_permissions(
        self, permissions: Collection[str], *, exclude_id: uuid.UUID | None = None
    ) -> RoleData | None:
        return await get_role_by_permissions(
            self._session, permissions, exclude_id=exclude_id
        )

    async def list(
        self,
        *,
        is_active: bool | None = None,
        permissions: Collection[str] = (),
        sort_by: str | None = None,
        descending: bool = True,
        limit: int = 10,
        offset: int = 0,
    ) -> list[RoleData]:
        return await list_roles(
            self._session,
            is_active=is_active,
            permissions=permissions,
            sort_by=sort_by,
            descending=descending,
            limit=limit,
            offset=offset,
        )

    async def count(
        self, *, is_active: bool | None = None, permissions: Collection[str] = ()
    ) -> int:
        return await count_roles(
            self._session, is_active=is_active, permissions=permissions
        )

    async def create(self, title: str, permissions: Collection[str]) -> RoleData:
        return await create_role(self._session, title, permissions)

    async def update(
        self,
        role_id: uuid.UUID,
        *,
        title: str | None = None,
        permissions: Collection[str] | None = None,
        is_active: bool | None = None,
    ) -> RoleData:
        return await update_role(
            self._session,
            role_id,
            title=title,
            permissions=permissions,
            is_active=is_active,
        )

    async def delete(self, role_id: uuid.UUID) -> bool:
        return await delete_role(self._session, role_id)

    async def adjust_user_count(
        self, role_id: uuid.UUID, delta: int, *, floor: int = 0
    ) -> bool:
        return await adjust_role_user_count(self._session, role_id, delta, floor=floor)

    async def commit(self) -> None:
        await commit_session(self._session)

    async def rollback(self) -> None:
        await rollback_session(self._session)
