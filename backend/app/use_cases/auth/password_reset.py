"""Forgot-password flow.

Only a keyed digest of the reset token is stored; the raw token travels in the
emailed link. Tokens expire lazily: an expired token is cleared the first time
someone tries to use it.
"""
import logging
from datetime import datetime, timedelta, timezone

from ...config import settings
from ...domain.ports.services import EmailSender, PasswordHasher
from ...domain.ports.user import UserRepository
from ...domain.validation import validate_email, validate_password
from ...errors import DependencyFailureError, InvalidOrExpiredTokenError, NotFoundError
from ...security.reset_tokens import digest_reset_token, generate_reset_token
from ...utils.email_templates import (
    PASSWORD_RESET_SUBJECT,
    render_password_reset_email,
)

logger = logging.getLogger("rbac.auth.password_reset")

CLEARED_RESET_FIELDS = {"reset_password_token": None, "reset_password_expiry": None}


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def request_password_reset(
    user_port: UserRepository,
    email_sender: EmailSender,
    email: str | None,
    reset_url: str,
    *,
    ttl: timedelta | None = None,
) -> str:
    """Store a fresh reset token for ``email`` and mail the reset link.

    ``reset_url`` is the frontend page the token is appended to. Returns the
    raw token.
    """
    clean_email = validate_email(email)
    if ttl is None:
        ttl = timedelta(minutes=settings.reset_token_expire_minutes)

    token = generate_reset_token()
    try:
        user = await user_port.get_by_email(clean_email)
        if user is None:
            raise NotFoundError("No user registered with this email")
        await user_port.update(
            user.id,
            reset_password_token=digest_reset_token(token),
            reset_password_expiry=datetime.now(timezone.utc) + ttl,
        )
        await user_port.commit()
    except Exception:
        await user_port.rollback()
        raise

    html_body = render_password_reset_email(
        f"{reset_url.rstrip('/')}/{token}",
        app_name=settings.app_name,
        expires_minutes=int(ttl.total_seconds() // 60),
    )
    try:
        await email_sender.send(user.email, PASSWORD_RESET_SUBJECT, html_body)
    except DependencyFailureError:
        logger.error("password_reset_email_failed user_id=%s", user.id)
        try:
            await user_port.update(user.id, **CLEARED_RESET_FIELDS)
            await user_port.commit()
        except Exception:
            await user_port.rollback()
            raise
        raise DependencyFailureError(
            "Password reset email could not be sent. Please try again later"
        ) from None

    logger.info("password_reset_requested user_id=%s", user.id)
    return token


async def reset_password(
    user_port: UserRepository,
    hasher: PasswordHasher,
    raw_token: str,
    new_password: str | None,
) -> None:
    clean_password = validate_password(new_password)
    if not raw_token:
        raise InvalidOrExpiredTokenError()

    try:
        user = await user_port.get_by_reset_token(digest_reset_token(raw_token))
        if user is None:
            raise InvalidOrExpiredTokenError()

        expiry = user.reset_password_expiry
        if expiry is None or _as_utc(expiry) <= datetime.now(timezone.utc):
            await user_port.update(user.id, **CLEARED_RESET_FIELDS)
            await user_port.commit()
            logger.info("password_reset_token_expired user_id=%s", user.id)
            raise InvalidOrExpiredTokenError()

        await user_port.update(
            user.id,
            password_hash=await hasher.hash(clean_password),
            **CLEARED_RESET_FIELDS,
        )
        await user_port.commit()
    except InvalidOrExpiredTokenError:
        raise
    except Exception:
        await user_port.rollback()
        raise

    logger.info("password_reset_completed user_id=%s", user.id)
