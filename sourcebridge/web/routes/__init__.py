"""Route aggregators for the web application."""

from fastapi.routing import APIRouter

from sourcebridge.web.routes.api import router as api_router
from sourcebridge.web.routes.root import router as root_router

__all__ = ["router"]

router = APIRouter()

router.include_router(root_router, tags=["root"])
router.include_router(api_router, prefix="/api", tags=[])
