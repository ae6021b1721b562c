import logging
import uuid

from ...domain.ports.services import ImageStore, StoredImage
from ...domain.ports.user import UserRepository, UserWithRole
from ...domain.validation import validation_error
from ...errors import DependencyFailureError, NotFoundError

logger = logging.getLogger("rbac.users.avatars")

AVATAR_CONTENT_TYPES = frozenset({"image/jpeg", "image/png", "image/gif"})
AVATAR_MAX_BYTES = 2 * 1024 * 1024


async def release_avatar(image_store: ImageStore, public_id: str | None) -> bool:
    """Delete a stored image whose owner row is already gone or updated.

    The database change has been committed by the time this runs, so a storage
    failure is logged and reported to the caller instead of raised.
    """
    if not public_id:
        return True
    try:
        await image_store.delete(public_id)
    except DependencyFailureError as exc:
        logger.error("avatar_release_failed public_id=%s error=%s", public_id, exc)
        return False
    return True


def validate_avatar(content: bytes, content_type: str | None) -> None:
    if (content_type or "").lower() not in AVATAR_CONTENT_TYPES:
        raise validation_error("avatar", "content_type")
    if not content:
        raise validation_error("avatar", "empty")
    if len(content) > AVATAR_MAX_BYTES:
        raise validation_error("avatar", "max_size", max_bytes=AVATAR_MAX_BYTES)


async def update_avatar(
    user_port: UserRepository,
    image_store: ImageStore,
    user_id: uuid.UUID,
    content: bytes,
    content_type: str | None,
    *,
    folder: str,
) -> UserWithRole:
    validate_avatar(content, content_type)

    user = await user_port.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    previous_public_id = user.avatar_public_id

    stored: StoredImage = await image_store.upload(folder, content, user_id)
    try:
        await user_port.update(
            user_id, avatar_url=stored.url, avatar_public_id=stored.public_id
        )
        await user_port.commit()
    except Exception:
        await user_port.rollback()
        await release_avatar(image_store, stored.public_id)
        raise

    await release_avatar(image_store, previous_public_id)
    logger.info("avatar_updated user_id=%s", user_id)
    updated = await user_port.get_with_role(user_id)
    if updated is None:
        raise NotFoundError("User not found")
    return updated


async def remove_avatar(
    user_port: UserRepository, image_store: ImageStore, user_id: uuid.UUID
) -> UserWithRole:
    try:
        user = await user_port.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        public_id = user.avatar_public_id
        if not user.avatar_url and not public_id:
            raise NotFoundError("No avatar to remove")
        await user_port.update(user_id, avatar_url=None, avatar_public_id=None)
        await user_port.commit()
    except Exception:
        await user_port.rollback()
        raise

    await release_avatar(image_store, public_id)
    logger.info("avatar_removed user_id=%s", user_id)
    updated = await user_port.get_with_role(user_id)
    if updated is None:
        raise NotFoundError("User not found")
    return updated
