from __future__ import annotations

import uuid
from collections.abc import Collection
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.ports.user import (
    UserData,
    UserRepository as UserRepositoryPort,
    UserWithRole,
)
from ..models.role import Role
from ..models.user import User
from .base import commit_session, flush_session, rollback_session

UPDATABLE_USER_FIELDS = frozenset({
    "firstname",
    "lastname",
    "phone",
    "password_hash",
    "role_id",
    "avatar_url",
    "avatar_public_id",
    "is_active",
    "is_archived",
    "reset_password_token",
    "reset_password_expiry",
})


def _apply_filters(
    stmt,
    *,
    is_archived: bool,
    is_active: bool | None,
    role_ids: Collection[uuid.UUID],
):
    stmt = stmt.where(User.is_archived.is_(is_archived))
    if is_active is not None:
        stmt = stmt.where(User.is_active.is_(is_active))
    if role_ids:
        stmt = stmt.where(User.role_id.in_(list(role_ids)))
    return stmt


def _order_by(sort_by: str | None, descending: bool) -> list:
    if sort_by == "name":
        columns = [User.firstname, User.lastname]
    else:
        columns = [User.created_at]
    ordered = [col.desc() if descending else col.asc() for col in columns]
    return [*ordered, User.id]


async def get_user(session: AsyncSession, user_id: uuid.UUID) -> User | None:
    return await session.get(User, user_id, populate_existing=True)


async def get_user_with_role(
    session: AsyncSession, user_id: uuid.UUID
) -> UserWithRole | None:
    user = await get_user(session, user_id)
    if user is None:
        return None
    role = None
    if user.role_id is not None:
        role = await session.get(Role, user.role_id, populate_existing=True)
    return UserWithRole(user=user, role=role)


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalars().first()


async def get_user_by_phone(
    session: AsyncSession, phone: str, *, exclude_id: uuid.UUID | None = None
) -> User | None:
    stmt = select(User).where(User.phone == phone)
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    result = await session.execute(stmt)
    return result.scalars().first()


async def get_user_by_reset_token(
    session: AsyncSession, token_digest: str
) -> User | None:
    result = await session.execute(
        select(User).where(User.reset_password_token == token_digest)
    )
    return result.scalars().first()


async def list_users(
    session: AsyncSession,
    *,
    is_archived: bool = False,
    is_active: bool | None = None,
    role_ids: Collection[uuid.UUID] = (),
    sort_by: str | None = None,
    descending: bool = True,
    limit: int = 10,
    offset: int = 0,
) -> list[UserWithRole]:
    stmt = _apply_filters(
        select(User), is_archived=is_archived, is_active=is_active, role_ids=role_ids
    )
    stmt = stmt.order_by(*_order_by(sort_by, descending)).limit(limit).offset(offset)
    result = await session.execute(stmt)
    users = list(result.scalars().all())

    referenced = {user.role_id for user in users if user.role_id is not None}
    roles: dict[uuid.UUID, Role] = {}
    if referenced:
        role_result = await session.execute(
            select(Role).where(Role.id.in_(referenced))
        )
        roles = {role.id: role for role in role_result.scalars().all()}

    return [
        UserWithRole(user=user, role=roles.get(user.role_id) if user.role_id else None)
        for user in users
    ]


async def count_users(
    session: AsyncSession,
    *,
    is_archived: bool = False,
    is_active: bool | None = None,
    role_ids: Collection[uuid.UUID] = (),
) -> int:
    stmt = _apply_filters(
        select(func.count()).select_from(User),
        is_archived=is_archived,
        is_active=is_active,
        role_ids=role_ids,
    )
    result = await session.execute(stmt)
    return int(result.scalar_one())


async def list_user_ids_by_role(
    session: AsyncSession, role_id: uuid.UUID
) -> list[uuid.UUID]:
    result = await session.execute(select(User.id).where(User.role_id == role_id))
    return list(result.scalars().all())


async def create_user(
    session: AsyncSession,
    *,
    firstname: str,
    lastname: str | None,
    email: str,
    phone: str,
    password_hash: str,
) -> User:
    user = User(
        firstname=firstname,
        lastname=lastname,
        email=email,
        phone=phone,
        password_hash=password_hash,
        is_active=True,
        is_archived=False,
    )
    session.add(user)
    await flush_session(session)
    await session.refresh(user)
    return user


async def update_user(
    session: AsyncSession, user_id: uuid.UUID, **values: Any
) -> User:
    unknown = set(values) - UPDATABLE_USER_FIELDS
    if unknown:
        raise ValueError(f"Fields cannot be updated: {sorted(unknown)}")

    user = await get_user(session, user_id)
    if user is None:
        raise LookupError(f"User {user_id} does not exist")
    for field, value in values.items():
        setattr(user, field, value)
    await flush_session(session)
    await session.refresh(user)
    return user


async def delete_user(session: AsyncSession, user_id: uuid.UUID) -> bool:
    result = await session.execute(delete(User).where(User.id == user_id))
    await flush_session(session)
    return bool(result.rowcount)


class UserRepository(UserRepositoryPort):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: uuid.UUID) -> UserData | None:
        return await get_user(self._session, user_id)

    async def get_with_role(self, user_id: uuid.UUID) -> UserWithRole | None:
        return await get_user_with_role(self._session, user_id)

    async def get_by_email(self, email: str) -> UserData | None:
        return await get_user_by_email(self._session, email)

    async def get_by_phone(
        self, phone: str, *, exclude_id: uuid.UUID | None = None
    ) -> UserData | None:
        return await get_user_by_phone(self._session, phone, exclude_id=exclude_id)

    async def get_by_reset_token(self, token_digest: str) -> UserData | None:
        return await get_user_by_reset_token(self._session, token_digest)

    async def list(
        self,
        *,
        is_archived: bool = False,
        is_active: bool | None = None,
        role_ids: Collection[uuid.UUID] = (),
        sort_by: str | None = None,
        descending: bool = True,
        limit: int = 10,
        offset: int = 0,
    ) -> list[UserWithRole]:
        return await list_users(
            self._session,
            is_archived=is_archived,
            is_active=is_active,
            role_ids=role_ids,
            sort_by=sort_by,
            descending=descending,
            limit=limit,
            offset=offset,
        )

    async def count(
        self,
        *,
        is_archived: bool = False,
        is_active: bool | None = None,
        role_ids: Collection[uuid.UUID] = (),
    ) -> int:
        return await count_users(
            self._session,
            is_archived=is_archived,
            is_active=is_active,
            role_ids=role_ids,
        )

    async def list_ids_by_role(self, role_id: uuid.UUID) -> list[uuid.UUID]:
        return await list_user_ids_by_role(self._session, role_id)

    async def create(
        self,
        *,
        firstname: str,
        lastname: str | None,
        email: str,
        phone: str,
        password_hash: str,
    ) -> UserData:
        return await create_user(
            self._session,
            firstname=firstname,
            lastname=lastname,
            email=email,
            phone=phone,
            password_hash=password_hash,
        )

    async def update(self, user_id: uuid.UUID, **values: Any) -> UserData:
        return await update_user(self._session, user_id, **values)

    async def delete(self, user_id: uuid.UUID) -> bool:
        return await delete_user(self._session, user_id)

    async def commit(self) -> None:
        await commit_session(self._session)

    async def rollback(self) -> None:
        await rollback_session(self._session)
