import logging
from datetime import timedelta

from ...application.auth_rate_limit import (
    check_login_rate_limit,
    record_login_failure,
    reset_login_limit,
)
from ...config import settings
from ...domain.ports.services import PasswordHasher, TokenSigner
from ...domain.ports.user import UserData, UserRepository
from ...domain.validation import validate_email
from ...errors import AuthError, ValidationError

logger = logging.getLogger("rbac.auth")


async def verify_credential(
    hasher: PasswordHasher, user: UserData, raw: str
) -> bool:
    return await hasher.verify(raw, user.password_hash)


def issue_session_token(
    signer: TokenSigner, user: UserData, ttl: timedelta | None = None
) -> str:
    if ttl is None:
        ttl = timedelta(minutes=settings.access_token_expire_minutes)
    return signer.sign(user.id, ttl)


async def _authenticate_user(
    user_port: UserRepository, hasher: PasswordHasher, email: str, password: str
) -> UserData:
    user = await user_port.get_by_email(email)
    if user is None:
        raise ValidationError(
            "No user registered with this email", field="email", reason="unregistered"
        )
    if not password or not await verify_credential(hasher, user, password):
        raise AuthError("Incorrect password")
    return user


async def login_user(
    user_port: UserRepository,
    hasher: PasswordHasher,
    signer: TokenSigner,
    email: str | None,
    password: str | None,
    *,
    client_ip: str | None = None,
) -> str:
    clean_email = validate_email(email)
    rate_limit_key = check_login_rate_limit(clean_email, client_ip)

    try:
        user = await _authenticate_user(user_port, hasher, clean_email, password or "")
    except (ValidationError, AuthError) as exc:
        record_login_failure(rate_limit_key)
        logger.info("login_failed code=%s client_ip=%s", exc.code, client_ip)
        raise

    reset_login_limit(rate_limit_key)
    logger.info("login_succeeded user_id=%s", user.id)
    return issue_session_token(signer, user)
