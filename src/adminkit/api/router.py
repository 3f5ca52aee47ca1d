# adminkit/api/router.py

from fastapi import APIRouter
from adminkit.api.v1 import manage

# The host application mounts this router, e.g. app.include_router(router)
router = APIRouter(prefix="/admin")

router.include_router(
    manage.router,
    prefix="/manage",
    tags=["Admin - Manage"]
)
