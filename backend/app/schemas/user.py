import uuid
from datetime import datetime

from pydantic import BaseModel

from ..domain.ports.user import UserWithRole
from ..domain.validation import fullname
from .role import RoleSummary


class UserRead(BaseModel):
    id: uuid.UUID
    firstname: str
    lastname: str | None = None
    fullname: str
    email: str
    phone: str
    avatar_url: str | None = None
    is_active: bool
    is_archived: bool
    role: RoleSummary | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_subject(cls, subject: UserWithRole) -> "UserRead":
        user = subject.user
        return cls(
            id=user.id,
            firstname=user.firstname,
            lastname=user.lastname,
            fullname=fullname(user.firstname, user.lastname),
            email=user.email,
            phone=user.phone,
            avatar_url=user.avatar_url,
            is_active=user.is_active,
            is_archived=user.is_archived,
            role=RoleSummary.model_validate(subject.role) if subject.role else None,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class ProfileUpdate(BaseModel):
    firstname: str | None = None
    lastname: str | None = None
    phone: str | None = None
    password: str | None = None


class RoleAssignment(BaseModel):
    role: uuid.UUID
