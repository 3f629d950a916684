"""Service banner endpoint."""

from fastapi.routing import APIRouter
from pydantic import BaseModel

from sourcebridge import __version__

__all__ = ["router"]

INTRO = (
    "Welcome to SourceBridge, a multi-provider stream source resolver. Request "
    "/api/resolve with a TMDB id to get playable sources."
)
DOCUMENTATION = "See /docs for the interactive API documentation."


class BannerResponse(BaseModel):
    intro: str
    documentation: str
    version: str


router = APIRouter()


@router.get("/", response_model=BannerResponse)
async def banner() -> BannerResponse:
    """Describe the service."""
    return BannerResponse(intro=INTRO, documentation=DOCUMENTATION, version=__version__)
