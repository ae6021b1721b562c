from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from datetime import datetime
import uuid
from typing import Any, Protocol

from .role import RoleData


class UserData(Protocol):
    id: uuid.UUID
    firstname: str
    lastname: str | None
    email: str
    phone: str
    password_hash: str
    role_id: uuid.UUID | None
    avatar_url: str | None
    avatar_public_id: str | None
    is_active: bool
    is_archived: bool
    reset_password_token: str | None
    reset_password_expiry: datetime | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class UserWithRole:
    """A user assembled together with the current state of its role.

    Authorization and root-user decisions only ever look at this view, so the
    role is always read alongside the user instead of trusting a bare
    ``role_id``.
    """

    user: UserData
    role: RoleData | None

    @property
    def id(self) -> uuid.UUID:
        return self.user.id


class UserRepository(Protocol):
    async def get_by_id(self, user_id: uuid.UUID) -> UserData | None:
        ...

    async def get_with_role(self, user_id: uuid.UUID) -> UserWithRole | None:
        ...

    async def get_by_email(self, email: str) -> UserData | None:
        ...

    async def get_by_phone(
        self, phone: str, *, exclude_id: uuid.UUID | None = None
    ) -> UserData | None:
        ...

    async def get_by_reset_token(self, token_digest: str) -> UserData | None:
        ...

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
        ...

    async def count(
        self,
        *,
        is_archived: bool = False,
        is_active: bool | None = None,
        role_ids: Collection[uuid.UUID] = (),
    ) -> int:
        ...

    async def list_ids_by_role(self, role_id: uuid.UUID) -> list[uuid.UUID]:
        ...

    async def create(
        self,
        *,
        firstname: str,
        lastname: str | None,
        email: str,
        phone: str,
        password_hash: str,
    ) -> UserData:
        ...

    async def update(self, user_id: uuid.UUID, **values: Any) -> UserData:
        ...

    async def delete(self, user_id: uuid.UUID) -> bool:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...
