import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ConflictError, DependencyFailureError

logger = logging.getLogger("rbac.storage")


async def commit_session(session: AsyncSession) -> None:
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        logger.warning("storage_conflict error=%s", exc.orig)
        raise ConflictError(
            "Request could not be completed due to a conflict"
        ) from exc
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("storage_commit_failed error=%s", exc)
        raise DependencyFailureError("Storage is unavailable") from exc


async def rollback_session(session: AsyncSession) -> None:
    try:
        await session.rollback()
    except SQLAlchemyError as exc:
        logger.error("storage_rollback_failed error=%s", exc)
        raise DependencyFailureError("Storage is unavailable") from exc


async def flush_session(session: AsyncSession) -> None:
    try:
        await session.flush()
    except IntegrityError as exc:
        logger.warning("storage_conflict error=%s", exc.orig)
        raise ConflictError(
            "Request could not be completed due to a conflict"
        ) from exc
    except SQLAlchemyError as exc:
        logger.error("storage_flush_failed error=%s", exc)
        raise DependencyFailureError("Storage is unavailable") from exc
