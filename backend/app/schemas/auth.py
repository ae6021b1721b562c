import uuid
from datetime import datetime

from pydantic import BaseModel


class SignupRequest(BaseModel):
    firstname: str | None = None
    lastname: str | None = None
    email: str | None = None
    phone: str | None = None
    password: str | None = None


class SignupResponse(BaseModel):
    id: uuid.UUID
    firstname: str
    lastname: str | None = None
    email: str
    phone: str
    created_at: datetime


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class ForgotPasswordRequest(BaseModel):
    email: str | None = None


class ResetPasswordRequest(BaseModel):
    password: str | None = None


class MessageResponse(BaseModel):
    message: str
