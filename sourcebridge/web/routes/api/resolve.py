"""Source resolution endpoint."""

from typing import Any

from fastapi import Query
from fastapi.routing import APIRouter
from pydantic import BaseModel

from sourcebridge.core.matching import normalize_media_type
from sourcebridge.exceptions import InvalidRequestError
from sourcebridge.models.media import MediaType, Source, Subtitle
from sourcebridge.web.state import get_app_state

__all__ = ["ResolveResponse", "router"]


class ResolveResponse(BaseModel):
    """Sources from the winning provider plus every provider attempt."""

    provider: str
    mode: str
    sources: list[Source]
    subtitles: list[Subtitle]
    attempts: list[dict[str, Any]]


router = APIRouter()


def resolve_media_type(
    media_type: str | None, season: int | None, episode: int | None
) -> MediaType:
    """Work out the requested media type.

    Without an explicit type, a request carrying both season and episode is a show
    and anything else is a movie.

    Raises:
        InvalidRequestError: If the type is unknown or a show lacks season/episode.
    """
    if media_type is None or not media_type.strip():
        if season is not None and episode is not None:
            return MediaType.SHOW
        return MediaType.MOVIE

    resolved = normalize_media_type(media_type)
    if resolved is None:
        raise InvalidRequestError(
            f"Unknown media type '{media_type}'; expected 'movie' or 'show'"
        )
    if resolved == MediaType.SHOW and (season is None or episode is None):
        raise InvalidRequestError("Show requests need both 's' and 'e' parameters")
    return resolved


@router.get("", response_model=ResolveResponse)
async def resolve(
    id: str = Query(..., pattern=r"^\d+$", description="Numeric TMDB identifier"),
    type: str | None = Query(None, description="movie or show"),
    s: int | None = Query(None, ge=0, description="Season number"),
    e: int | None = Query(None, ge=0, description="Episode number"),
    provider: str | None = Query(None, description="Provider to try first"),
) -> ResolveResponse:
    """Resolve a TMDB title into playable sources.

    Returns:
        ResolveResponse: The winning provider's sources and all attempts.

    Raises:
        InvalidRequestError: For malformed parameters (400).
        UnknownProviderError: If `provider` is not registered (400).
        UpstreamMetadataUnavailableError: If TMDB cannot describe the id (502).
        ResolutionFailure: If no provider produced sources (404).
    """
    media_type = resolve_media_type(type, s, e)
    state = get_app_state()
    orchestrator = state.ensure_orchestrator()

    # Fail fast on an unknown provider before touching TMDB
    orchestrator.provider_order(provider)

    media = await state.ensure_metadata_client().fetch_media(id.strip(), media_type)
    if media_type == MediaType.MOVIE:
        s = e = None

    result = await orchestrator.resolve(
        media, season=s, episode=e, preferred_provider=provider
    )
    return ResolveResponse(
        provider=result.provider_key,
        mode=result.mode,
        sources=result.bundle.sources,
        subtitles=result.bundle.subtitles,
        attempts=[attempt.to_dict() for attempt in result.attempts],
    )
