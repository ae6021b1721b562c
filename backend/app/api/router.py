from fastapi import APIRouter

from ..routers import auth, permissions, roles, users

API_PREFIX = "/api/v1"

router = APIRouter(prefix=API_PREFIX)

for _router in [auth.router, users.router, roles.router, permissions.router]:
    router.include_router(_router)
