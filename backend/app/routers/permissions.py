from fastapi import APIRouter, Depends

from ..dependencies import get_catalog, get_current_user
from ..schemas.permission import PermissionCatalogResponse, PermissionResponse

router = APIRouter(prefix="/permissions", tags=["permissions"])


@router.get("", response_model=PermissionCatalogResponse)
async def list_permissions(
    catalog=Depends(get_catalog),
    _subject=Depends(get_current_user),
) -> PermissionCatalogResponse:
    return PermissionCatalogResponse(
        permissions=[
            PermissionResponse(
                name=permission,
                subject=subject.value,
                description=catalog.describe(permission),
            )
            for subject, permissions in catalog.by_subject().items()
            for permission in permissions
        ]
    )
