import logging
from collections.abc import AsyncGenerator, Callable, Coroutine
from typing import Any

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .auth.permissions import PermissionCatalog, get_permission_catalog
from .config import settings
from .crud.role import RoleRepository
from .crud.user import UserRepository
from .database import get_session
from .domain.access import ensure_authorized
from .domain.ports.role import RoleRepository as RoleRepositoryPort
from .domain.ports.services import EmailSender, ImageStore, PasswordHasher, TokenSigner
from .domain.ports.user import UserRepository as UserRepositoryPort, UserWithRole
from .errors import AuthError, PermissionError
from .infrastructure.email import SmtpEmailSender
from .infrastructure.images import CloudinaryImageStore
from .security.passwords import BcryptPasswordHasher
from .security.tokens import ExpiredTokenError, InvalidTokenError, JwtTokenSigner

logger = logging.getLogger("rbac.access")

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


# Both repositories resolve the same request-scoped session, so one commit
# covers user and role changes made in a single use case.
def get_user_port(db: AsyncSession = Depends(get_db)) -> UserRepositoryPort:
    return UserRepository(db)


def get_role_port(db: AsyncSession = Depends(get_db)) -> RoleRepositoryPort:
    return RoleRepository(db)


def get_password_hasher() -> PasswordHasher:
    return BcryptPasswordHasher()


def get_token_signer() -> TokenSigner:
    return JwtTokenSigner()


def get_image_store() -> ImageStore:
    return CloudinaryImageStore()


def get_email_sender() -> EmailSender:
    return SmtpEmailSender()


def get_catalog() -> PermissionCatalog:
    return get_permission_catalog()


def _extract_token(
    request: Request, credentials: HTTPAuthorizationCredentials | None
) -> str | None:
    cookie_token = request.cookies.get(settings.auth_cookie_name)
    if cookie_token:
        return cookie_token
    if credentials is not None and credentials.scheme.lower() == "bearer":
        return credentials.credentials
    return None


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    user_port: UserRepositoryPort = Depends(get_user_port),
    signer: TokenSigner = Depends(get_token_signer),
) -> UserWithRole:
    token = _extract_token(request, credentials)
    if not token:
        raise AuthError("Access denied. Token not provided")

    try:
        user_id = signer.verify(token)
    except ExpiredTokenError:
        raise AuthError("Access denied. Token has expired") from None
    except InvalidTokenError:
        raise AuthError("Access denied. Invalid token") from None

    subject = await user_port.get_with_role(user_id)
    if subject is None:
        raise AuthError("Access denied. User not found")

    request.state.user = subject
    return subject


def require_permission(
    permission: str,
) -> Callable[..., Coroutine[Any, Any, UserWithRole]]:
    catalog = get_permission_catalog()
    # Unknown permissions fail at route definition time
    catalog.describe(permission)

    async def dependency(
        request: Request,
        subject: UserWithRole = Depends(get_current_user),
    ) -> UserWithRole:
        try:
            ensure_authorized(subject, permission, catalog)
        except PermissionError as exc:
            logger.warning(
                "access_denied method=%s path=%s permission=%s user_id=%s code=%s",
                request.method,
                request.url.path,
                permission,
                subject.id,
                exc.code,
            )
            raise
        return subject

    return dependency
