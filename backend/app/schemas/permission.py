from pydantic import BaseModel


class PermissionResponse(BaseModel):
    name: str
    subject: str
    description: str


class PermissionCatalogResponse(BaseModel):
    permissions: list[PermissionResponse]
