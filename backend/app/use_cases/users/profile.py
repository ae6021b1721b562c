import logging
import uuid

from ...auth.permissions import PermissionCatalog
from ...domain.ports.role import RoleRepository
from ...domain.ports.services import ImageStore, PasswordHasher
from ...domain.ports.user import UserRepository, UserWithRole
from ...domain.validation import (
    validate_name,
    validate_password,
    validate_phone,
)
from ...errors import ConflictError, NotFoundError
from .lifecycle import remove_user_account

logger = logging.getLogger("rbac.users.profile")

PHONE_TAKEN_MESSAGE = (
    "This phone number is being used by another user. "
    "Please set a different phone number"
)


async def get_profile(user_port: UserRepository, user_id: uuid.UUID) -> UserWithRole:
    subject = await user_port.get_with_role(user_id)
    if subject is None:
        raise NotFoundError("User not found")
    return subject


async def update_profile(
    user_port: UserRepository,
    hasher: PasswordHasher,
    user_id: uuid.UUID,
    *,
    firstname: str | None,
    lastname: str | None,
    phone: str | None,
    password: str | None = None,
) -> UserWithRole:
    values = {
        "firstname": validate_name(firstname, "firstname", required=True),
        "lastname": validate_name(lastname, "lastname", required=False),
        "phone": validate_phone(phone),
    }
    # An empty password keeps the current one
    if password:
        values["password_hash"] = await hasher.hash(validate_password(password))

    try:
        if await user_port.get_by_id(user_id) is None:
            raise NotFoundError("User not found")
        if await user_port.get_by_phone(values["phone"], exclude_id=user_id):
            raise ConflictError(PHONE_TAKEN_MESSAGE, details={"field": "phone"})
        await user_port.update(user_id, **values)
        await user_port.commit()
    except Exception:
        await user_port.rollback()
        raise

    logger.info(
        "profile_updated user_id=%s password_changed=%s",
        user_id,
        "password_hash" in values,
    )
    return await get_profile(user_port, user_id)


async def delete_account(
    user_port: UserRepository,
    role_port: RoleRepository,
    image_store: ImageStore,
    user_id: uuid.UUID,
    catalog: PermissionCatalog | None = None,
) -> None:
    # Reload so the root-user check sees the role's current user count
    subject = await get_profile(user_port, user_id)
    await remove_user_account(user_port, role_port, image_store, subject, catalog)
    logger.info("account_deleted user_id=%s", user_id)
