"""API routes."""

from fastapi.routing import APIRouter

from sourcebridge.web.routes.api.providers import router as providers_router
from sourcebridge.web.routes.api.resolve import router as resolve_router

__all__ = ["router"]

router = APIRouter()


router.include_router(providers_router, prefix="/providers", tags=["providers"])
router.include_router(resolve_router, prefix="/resolve", tags=["resolve"])
