from fastapi import APIRouter, Depends, Request, Response, status

from ..config import settings
from ..dependencies import (
    get_current_user,
    get_email_sender,
    get_password_hasher,
    get_token_signer,
    get_user_port,
)
from ..domain.ports.user import UserWithRole
from ..schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    SignupResponse,
    TokenResponse,
)
from ..use_cases.auth.login_user import login_user
from ..use_cases.auth.password_reset import request_password_reset, reset_password
from ..use_cases.auth.signup_user import signup_user

router = APIRouter(prefix="/auth", tags=["auth"])

RESET_PASSWORD_PATH = "/reset-password"


def _client_ip(request: Request) -> str:
    client_host = request.client.host if request.client else None
    return client_host or "unknown-ip"


def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.auth_cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )


@router.post(
    "/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED
)
async def signup(
    payload: SignupRequest,
    user_port=Depends(get_user_port),
    hasher=Depends(get_password_hasher),
) -> SignupResponse:
    user = await signup_user(
        user_port,
        hasher,
        firstname=payload.firstname,
        lastname=payload.lastname,
        email=payload.email,
        phone=payload.phone,
        password=payload.password,
    )
    return SignupResponse.model_validate(user, from_attributes=True)


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    user_port=Depends(get_user_port),
    hasher=Depends(get_password_hasher),
    signer=Depends(get_token_signer),
) -> TokenResponse:
    token = await login_user(
        user_port,
        hasher,
        signer,
        payload.email,
        payload.password,
        client_ip=_client_ip(request),
    )
    set_auth_cookie(response, token)
    return TokenResponse(access_token=token)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    _subject: UserWithRole = Depends(get_current_user),
) -> MessageResponse:
    clear_auth_cookie(response)
    return MessageResponse(message="User logged out successfully")


@router.post("/password/forgot", response_model=MessageResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    user_port=Depends(get_user_port),
    email_sender=Depends(get_email_sender),
) -> MessageResponse:
    await request_password_reset(
        user_port,
        email_sender,
        payload.email,
        f"{settings.frontend_url}{RESET_PASSWORD_PATH}",
    )
    return MessageResponse(message="Password reset link sent to your email")


@router.put("/password/reset/{token}", response_model=MessageResponse)
async def password_reset(
    token: str,
    payload: ResetPasswordRequest,
    user_port=Depends(get_user_port),
    hasher=Depends(get_password_hasher),
) -> MessageResponse:
    await reset_password(user_port, hasher, token, payload.password)
    return MessageResponse(message="Password reset successfully")
