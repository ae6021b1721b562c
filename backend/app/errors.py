from typing import Any

from fastapi import status


class AppError(Exception):
    code: str = "APP_ERROR"
    message: str = "Application error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    details: Any | None = None

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        status_code: int | None = None,
        details: Any | None = None,
    ):
        if message is not None:
            self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        if details is not None:
            self.details = details

        super().__init__(self.message)


class ValidationError(AppError):
    code = "VALIDATION_ERROR"
    message = "Validation error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str | None = None,
        *,
        field: str | None = None,
        reason: str | None = None,
        **kwargs: Any,
    ):
        self.field = field
        self.reason = reason
        if field is not None and "details" not in kwargs:
            kwargs["details"] = {"field": field, "reason": reason}
        super().__init__(message, **kwargs)


class UnknownPermissionError(ValidationError):
    code = "UNKNOWN_PERMISSION"
    message = "Unknown permission"


class InvalidOrExpiredTokenError(AppError):
    code = "INVALID_OR_EXPIRED_TOKEN"
    message = "Password reset token is invalid or has expired"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    code = "NOT_FOUND"
    message = "Resource not found"
    status_code = status.HTTP_404_NOT_FOUND


class AuthError(AppError):
    code = "UNAUTHENTICATED"
    message = "Authentication failed"
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionError(AppError):  # type: ignore[override]
    code = "PERMISSION_DENIED"
    message = "Insufficient permissions"
    status_code = status.HTTP_403_FORBIDDEN


class NoRoleError(PermissionError):
    code = "NO_ROLE"


class RoleInactiveError(PermissionError):
    code = "ROLE_INACTIVE"


class UserInactiveError(PermissionError):
    code = "USER_INACTIVE"


class MissingPermissionError(PermissionError):
    code = "MISSING_PERMISSION"


class SelfActionForbiddenError(PermissionError):
    code = "SELF_ACTION_FORBIDDEN"
    message = "This action can only be performed by other users"


class RootUserProtectionError(PermissionError):
    code = "ROOT_USER_PROTECTION"
    message = "Action would leave the system without a full administrator"


class ForbiddenModificationError(PermissionError):
    code = "FORBIDDEN_MODIFICATION"
    message = "The fully-privileged role cannot be modified this way"


class ConflictError(AppError):
    code = "CONFLICT_ERROR"
    message = "Resource conflict"
    status_code = status.HTTP_409_CONFLICT


class DuplicateRoleError(ConflictError):
    code = "DUPLICATE_ROLE"
    message = "A role with the same permissions already exists"


class TooManyRequestsError(AppError):
    code = "RATE_LIMITED"
    message = "Too many attempts, try again later"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class DependencyFailureError(AppError):
    code = "DEPENDENCY_FAILURE"
    message = "A required service is unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class InternalError(AppError):
    code = "INTERNAL_ERROR"
    message = "Internal server error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


ERROR_CODE_BY_STATUS: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: ValidationError.code,
    status.HTTP_401_UNAUTHORIZED: AuthError.code,
    status.HTTP_403_FORBIDDEN: PermissionError.code,
    status.HTTP_404_NOT_FOUND: NotFoundError.code,
    status.HTTP_409_CONFLICT: ConflictError.code,
    status.HTTP_422_UNPROCESSABLE_ENTITY: ValidationError.code,
    status.HTTP_429_TOO_MANY_REQUESTS: TooManyRequestsError.code,
    status.HTTP_503_SERVICE_UNAVAILABLE: DependencyFailureError.code,
}


def error_payload(
    code: str,
    message: str,
    details: Any | None = None,
) -> dict[str, Any]:
    return {"error": {"code": code, "message": message, "details": details}}


def resolve_error_code(status_code: int) -> str:
    if status_code in ERROR_CODE_BY_STATUS:
        return ERROR_CODE_BY_STATUS[status_code]
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        return InternalError.code
    return "UNKNOWN_ERROR"
