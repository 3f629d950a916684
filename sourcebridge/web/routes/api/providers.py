"""Provider listing endpoint."""

from fastapi.routing import APIRouter
from pydantic import BaseModel

from sourcebridge.web.state import get_app_state

__all__ = ["ProvidersResponse", "router"]


class ProvidersResponse(BaseModel):
    """Registered providers and the order they are tried in."""

    mode: str
    registered: list[str]
    order: list[str]


router = APIRouter()


@router.get("", response_model=ProvidersResponse)
async def providers() -> ProvidersResponse:
    """List registered provider keys and the effective resolution order.

    Returns:
        ProvidersResponse: Resolver mode, registered keys and default order.
    """
    orchestrator = get_app_state().ensure_orchestrator()
    return ProvidersResponse(
        mode=orchestrator.mode.value,
        registered=sorted(orchestrator.registry.keys()),
        order=orchestrator.provider_order(),
    )
