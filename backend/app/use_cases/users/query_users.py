import uuid
from collections.abc import Iterable

from ...domain.listing import (
    Page,
    UserSortOption,
    validate_active_filter,
    validate_order,
    validate_page_request,
    validate_sort,
)
from ...domain.ports.user import UserRepository, UserWithRole
from ...errors import NotFoundError


async def get_user(user_port: UserRepository, user_id: uuid.UUID) -> UserWithRole:
    subject = await user_port.get_with_role(user_id)
    if subject is None:
        raise NotFoundError("User not found")
    return subject


async def list_users(
    user_port: UserRepository,
    *,
    active: str | None = None,
    archived: bool = False,
    role_ids: Iterable[uuid.UUID] = (),
    sort_by: str | None = None,
    order: str | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> Page[UserWithRole]:
    is_active = validate_active_filter(active)
    sort_column = validate_sort(sort_by, UserSortOption)
    descending = validate_order(order)
    page_request = validate_page_request(page, limit)
    wanted_roles = tuple(dict.fromkeys(role_ids))

    users = await user_port.list(
        is_archived=archived,
        is_active=is_active,
        role_ids=wanted_roles,
        sort_by=sort_column,
        descending=descending,
        limit=page_request.limit,
        offset=page_request.offset,
    )
    total = await user_port.count(
        is_archived=archived, is_active=is_active, role_ids=wanted_roles
    )
    return Page(
        items=users, total=total, page=page_request.page, limit=page_request.limit
    )
