from __future__ import annotations

from collections.abc import Collection
from datetime import datetime
import uuid
from typing import Protocol


class RoleData(Protocol):
    id: uuid.UUID
    title: str
    permissions: list[str]
    user_count: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class RoleRepository(Protocol):
    async def get_by_id(self, role_id: uuid.UUID) -> RoleData | None:
        ...

    async def get_by_title(
        self, title: str, *, exclude_id: uuid.UUID | None = None
    ) -> RoleData | None:
        ...

    async def get_by_permissions(
        self, permissions: Collection[str], *, exclude_id: uuid.UUID | None = None
    ) -> RoleData | None:
        ...

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
        ...

    async def count(
        self, *, is_active: bool | None = None, permissions: Collection[str] = ()
    ) -> int:
        ...

    async def create(self, title: str, permissions: Collection[str]) -> RoleData:
        ...

    async def update(
        self,
        role_id: uuid.UUID,
        *,
        title: str | None = None,
        permissions: Collection[str] | None = None,
        is_active: bool | None = None,
    ) -> RoleData:
        ...

    async def delete(self, role_id: uuid.UUID) -> bool:
        ...

    async def adjust_user_count(
        self, role_id: uuid.UUID, delta: int, *, floor: int = 0
    ) -> bool:
        """Atomically add ``delta`` to the role's user count.

        Returns False, leaving the count unchanged, when the result would fall
        below ``floor``.
        """
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...
