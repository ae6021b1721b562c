import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class RoleCreate(BaseModel):
    title: str | None = None
    permissions: list[str] | None = None


class RoleUpdate(BaseModel):
    title: str | None = None
    permissions: list[str] | None = None


class RoleSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    is_active: bool


class RoleResponse(RoleSummary):
    permissions: list[str]
    user_count: int
    created_at: datetime
    updated_at: datetime


class RoleDeletionResponse(BaseModel):
    role_id: uuid.UUID
    unassigned_user_ids: list[uuid.UUID]
    failed_user_ids: list[uuid.UUID]
