"""In-memory ports for use case tests.

``FakeStore`` holds roles and users for both fake repositories. ``commit``
snapshots the store and ``rollback`` restores the last snapshot, so tests can
assert that a failed use case left no partial changes behind.
"""
from __future__ import annotations

import copy
import uuid
from collections.abc import Collection, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from app.auth.permissions import get_permission_catalog
from app.domain.ports.services import StoredImage
from app.domain.ports.user import UserWithRole
from app.errors import DependencyFailureError
from app.security.tokens import InvalidTokenError

_clock = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _tick() -> datetime:
    global _clock
    _clock = _clock + timedelta(seconds=1)
    return _clock


@dataclass
class FakeRole:
    title: str
    permissions: list[str]
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    user_count: int = 0
    is_active: bool = True
    created_at: datetime = field(default_factory=_tick)
    updated_at: datetime = field(default_factory=_tick)


@dataclass
class FakeUser:
    firstname: str
    email: str
    phone: str
    password_hash: str = "hashed:Secret@1"
    lastname: str | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    role_id: uuid.UUID | None = None
    avatar_url: str | None = None
    avatar_public_id: str | None = None
    is_active: bool = True
    is_archived: bool = False
    reset_password_token: str | None = None
    reset_password_expiry: datetime | None = None
    created_at: datetime = field(default_factory=_tick)
    updated_at: datetime = field(default_factory=_tick)


class FakeStore:
    def __init__(self) -> None:
        self.roles: dict[uuid.UUID, FakeRole] = {}
        self.users: dict[uuid.UUID, FakeUser] = {}
        self.commits = 0
        self.rollbacks = 0
        self._snapshot: tuple[dict, dict] = ({}, {})

    def commit(self) -> None:
        self.commits += 1
        self._snapshot = (copy.deepcopy(self.roles), copy.deepcopy(self.users))

    def rollback(self) -> None:
        self.rollbacks += 1
        roles, users = copy.deepcopy(self._snapshot)
        self.roles = roles
        self.users = users

    def add_role(
        self,
        title: str,
        permissions: Iterable[str],
        *,
        is_active: bool = True,
    ) -> FakeRole:
        role = FakeRole(title=title, permissions=sorted(set(permissions)), is_active=is_active)
        self.roles[role.id] = role
        self.commit()
        return role

    def add_user(
        self,
        firstname: str = "Jane",
        *,
        email: str | None = None,
        phone: str | None = None,
        role: FakeRole | None = None,
        **values: Any,
    ) -> FakeUser:
        suffix = uuid.uuid4().hex[:8]
        user = FakeUser(
            firstname=firstname,
            email=email or f"{firstname.lower()}-{suffix}@example.com",
            phone=phone or f"9{int(suffix, 16) % 10**9:09d}",
            **values,
        )
        if role is not None:
            user.role_id = role.id
            self.roles[role.id].user_count += 1
        self.users[user.id] = user
        self.commit()
        return user

    def subject(self, user: FakeUser) -> UserWithRole:
        current = self.users[user.id]
        role = self.roles.get(current.role_id) if current.role_id else None
        return UserWithRole(user=current, role=role)


class _FailureMixin:
    def __init__(self) -> None:
        self.fail_on: set[str] = set()

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise DependencyFailureError(f"{operation} failed")


class FakeRolePort(_FailureMixin):
    def __init__(self, store: FakeStore) -> None:
        super().__init__()
        self.store = store

    async def get_by_id(self, role_id: uuid.UUID) -> FakeRole | None:
        return self.store.roles.get(role_id)

    async def get_by_title(
        self, title: str, *, exclude_id: uuid.UUID | None = None
    ) -> FakeRole | None:
        for role in self.store.roles.values():
            if role.title == title and role.id != exclude_id:
                return role
        return None

    async def get_by_permissions(
        self, permissions: Collection[str], *, exclude_id: uuid.UUID | None = None
    ) -> FakeRole | None:
        wanted = set(permissions)
        for role in self.store.roles.values():
            if set(role.permissions) == wanted and role.id != exclude_id:
                return role
        return None

    def _filtered(
        self, is_active: bool | None, permissions: Collection[str]
    ) -> list[FakeRole]:
        roles = list(self.store.roles.values())
        if is_active is not None:
            roles = [r for r in roles if r.is_active is is_active]
        return [r for r in roles if set(permissions) <= set(r.permissions)]

    async def list(
        self,
        *,
        is_active: bool | None = None,
        permissions: Collection[str] = (),
        sort_by: str | None = None,
        descending: bool = True,
        limit: int = 10,
        offset: int = 0,
    ) -> list[FakeRole]:
        roles = self._filtered(is_active, permissions)
        key = sort_by or "created_at"
        roles.sort(key=lambda r: getattr(r, key), reverse=descending)
        return roles[offset : offset + limit]

    async def count(
        self, *, is_active: bool | None = None, permissions: Collection[str] = ()
    ) -> int:
        return len(self._filtered(is_active, permissions))

    async def create(self, title: str, permissions: Collection[str]) -> FakeRole:
        self._maybe_fail("create")
        role = FakeRole(title=title, permissions=sorted(set(permissions)))
        self.store.roles[role.id] = role
        return role

    async def update(
        self,
        role_id: uuid.UUID,
        *,
        title: str | None = None,
        permissions: Collection[str] | None = None,
        is_active: bool | None = None,
    ) -> FakeRole:
        self._maybe_fail("update")
        role = self.store.roles[role_id]
        if title is not None:
            role.title = title
        if permissions is not None:
            role.permissions = sorted(set(permissions))
        if is_active is not None:
            role.is_active = is_active
        role.updated_at = _tick()
        return role

    async def delete(self, role_id: uuid.UUID) -> bool:
        self._maybe_fail("delete")
        return self.store.roles.pop(role_id, None) is not None

    async def adjust_user_count(
        self, role_id: uuid.UUID, delta: int, *, floor: int = 0
    ) -> bool:
        self._maybe_fail("adjust_user_count")
        role = self.store.roles.get(role_id)
        if role is None or (delta < 0 and role.user_count + delta < floor):
            return False
        role.user_count += delta
        return True

    async def commit(self) -> None:
        self._maybe_fail("commit")
        self.store.commit()

    async def rollback(self) -> None:
        self.store.rollback()


class FakeUserPort(_FailureMixin):
    def __init__(self, store: FakeStore) -> None:
        super().__init__()
        self.store = store
        self.fail_update_for: set[uuid.UUID] = set()
        self.update_errors: dict[uuid.UUID, Exception] = {}

    def _with_role(self, user: FakeUser) -> UserWithRole:
        role = self.store.roles.get(user.role_id) if user.role_id else None
        return UserWithRole(user=user, role=role)

    async def get_by_id(self, user_id: uuid.UUID) -> FakeUser | None:
        return self.store.users.get(user_id)

    async def get_with_role(self, user_id: uuid.UUID) -> UserWithRole | None:
        user = self.store.users.get(user_id)
        return self._with_role(user) if user else None

    async def get_by_email(self, email: str) -> FakeUser | None:
        return next((u for u in self.store.users.values() if u.email == email), None)

    async def get_by_phone(
        self, phone: str, *, exclude_id: uuid.UUID | None = None
    ) -> FakeUser | None:
        return next(
            (
                u
                for u in self.store.users.values()
                if u.phone == phone and u.id != exclude_id
            ),
            None,
        )

    async def get_by_reset_token(self, token_digest: str) -> FakeUser | None:
        return next(
            (
                u
                for u in self.store.users.values()
                if u.reset_password_token == token_digest
            ),
            None,
        )

    def _filtered(
        self,
        is_archived: bool,
        is_active: bool | None,
        role_ids: Collection[uuid.UUID],
    ) -> list[FakeUser]:
        users = [u for u in self.store.users.values() if u.is_archived is is_archived]
        if is_active is not None:
            users = [u for u in users if u.is_active is is_active]
        if role_ids:
            users = [u for u in users if u.role_id in set(role_ids)]
        return users

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
        users = self._filtered(is_archived, is_active, role_ids)
        if sort_by == "name":
            users.sort(key=lambda u: (u.firstname, u.lastname or ""), reverse=descending)
        else:
            users.sort(key=lambda u: u.created_at, reverse=descending)
        return [self._with_role(u) for u in users[offset : offset + limit]]

    async def count(
        self,
        *,
        is_archived: bool = False,
        is_active: bool | None = None,
        role_ids: Collection[uuid.UUID] = (),
    ) -> int:
        return len(self._filtered(is_archived, is_active, role_ids))

    async def list_ids_by_role(self, role_id: uuid.UUID) -> list[uuid.UUID]:
        return [u.id for u in self.store.users.values() if u.role_id == role_id]

    async def create(
        self,
        *,
        firstname: str,
        lastname: str | None,
        email: str,
        phone: str,
        password_hash: str,
    ) -> FakeUser:
        self._maybe_fail("create")
        user = FakeUser(
            firstname=firstname,
            lastname=lastname,
            email=email,
            phone=phone,
            password_hash=password_hash,
        )
        self.store.users[user.id] = user
        return user

    async def update(self, user_id: uuid.UUID, **values: Any) -> FakeUser:
        self._maybe_fail("update")
        if user_id in self.fail_update_for:
            raise DependencyFailureError("update failed")
        if user_id in self.update_errors:
            raise self.update_errors[user_id]
        user = self.store.users.get(user_id)
        if user is None:
            raise LookupError(f"User {user_id} does not exist")
        for key, value in values.items():
            setattr(user, key, value)
        user.updated_at = _tick()
        return user

    async def delete(self, user_id: uuid.UUID) -> bool:
        self._maybe_fail("delete")
        return self.store.users.pop(user_id, None) is not None

    async def commit(self) -> None:
        self._maybe_fail("commit")
        self.store.commit()

    async def rollback(self) -> None:
        self.store.rollback()


class FakeHasher:
    async def hash(self, raw: str) -> str:
        return f"hashed:{raw}"

    async def verify(self, raw: str, hashed: str) -> bool:
        return hashed == f"hashed:{raw}"


class FakeSigner:
    def __init__(self) -> None:
        self.issued: dict[str, uuid.UUID] = {}
        self.last_ttl: timedelta | None = None

    def sign(self, user_id: uuid.UUID, ttl: timedelta) -> str:
        token = f"token-{uuid.uuid4().hex}"
        self.issued[token] = user_id
        self.last_ttl = ttl
        return token

    def verify(self, token: str) -> uuid.UUID:
        try:
            return self.issued[token]
        except KeyError:
            raise InvalidTokenError() from None


class FakeImageStore:
    def __init__(self) -> None:
        self.uploads: list[StoredImage] = []
        self.deleted: list[str] = []
        self.fail_upload = False
        self.fail_delete = False

    async def upload(
        self, folder: str, content: bytes, owner_id: uuid.UUID
    ) -> StoredImage:
        if self.fail_upload:
            raise DependencyFailureError("Image storage is unavailable")
        image = StoredImage(
            url=f"https://images.example.com/{folder}/{owner_id}-{len(self.uploads)}.png",
            public_id=f"{folder}/{owner_id}-{len(self.uploads)}",
        )
        self.uploads.append(image)
        return image

    async def delete(self, public_id: str) -> None:
        if self.fail_delete:
            raise DependencyFailureError("Image could not be removed")
        self.deleted.append(public_id)


class FakeEmailSender:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[tuple[str, str, str]] = []

    async def send(self, recipient: str, subject: str, html_body: str) -> None:
        if self.fail:
            raise DependencyFailureError("Email could not be sent")
        self.sent.append((recipient, subject, html_body))


def all_permissions() -> list[str]:
    return sorted(get_permission_catalog().all_permissions())
