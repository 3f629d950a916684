"""TMDB metadata client."""

from typing import Any

import aiohttp
from pydantic import ValidationError

from sourcebridge import __version__, log
from sourcebridge.exceptions import UpstreamMetadataUnavailableError
from sourcebridge.models.media import CanonicalMedia, MediaType

__all__ = ["TMDBClient"]


class TMDBClient:
    """Client for turning TMDB identifiers into canonical media descriptors.

    Failures of any kind (missing key, network errors, error statuses, unexpected
    payloads) surface as `UpstreamMetadataUnavailableError`. There are no retries.
    """

    API_URL = "https://api.themoviedb.org/3"

    def __init__(
        self, api_key: str | None, base_url: str | None = None, timeout: float = 10.0
    ) -> None:
        """Initialize the TMDB client.

        Args:
            api_key (str | None): TMDB v3 API key.
            base_url (str | None): Override for the TMDB API root.
            timeout (float): Total timeout for a single request, in seconds.
        """
        self.api_key = api_key
        self.base_url = (base_url or self.API_URL).rstrip("/")
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session.

        Returns:
            aiohttp.ClientSession: The active session for making HTTP requests.
        """
        if self._session is None or self._session.closed:
            headers = {
                "Accept": "application/json",
                "User-Agent": f"SourceBridge/{__version__}",
            }
            self._session = aiohttp.ClientSession(
                headers=headers, timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def close(self):
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def _make_request(self, path: str) -> dict[str, Any]:
        """Fetch a TMDB resource as JSON.

        Args:
            path (str): Resource path such as "/movie/27205".

        Returns:
            dict[str, Any]: The decoded JSON object.

        Raises:
            UpstreamMetadataUnavailableError: If the resource cannot be fetched.
        """
        if not self.api_key:
            raise UpstreamMetadataUnavailableError("TMDB API key is not configured")

        session = await self._get_session()
        try:
            async with session.get(
                f"{self.base_url}{path}", params={"api_key": self.api_key}
            ) as response:
                if response.status >= 400:
                    raise UpstreamMetadataUnavailableError(
                        f"TMDB answered HTTP {response.status} for {path}"
                    )
                payload = await response.json(content_type=None)
        except (TimeoutError, aiohttp.ClientError, ValueError) as exc:
            log.warning(f"Error requesting TMDB resource $$'{path}'$$: {exc}")
            raise UpstreamMetadataUnavailableError(
                f"TMDB request for {path} failed: {exc}"
            ) from exc

        if not isinstance(payload, dict):
            raise UpstreamMetadataUnavailableError(
                f"TMDB returned a non-object payload for {path}"
            )
        return payload

    async def fetch_media(
        self, tmdb_id: str | int, media_type: MediaType
    ) -> CanonicalMedia:
        """Fetch a movie or show and describe it canonically.

        Args:
            tmdb_id (str | int): TMDB identifier.
            media_type (MediaType): Whether the id refers to a movie or a show.

        Returns:
            CanonicalMedia: Descriptor without season/episode targeting.

        Raises:
            UpstreamMetadataUnavailableError: If TMDB cannot provide the record.
        """
        resource = "movie" if media_type == MediaType.MOVIE else "tv"
        payload = await self._make_request(f"/{resource}/{tmdb_id}")
        return self.parse_media(payload, media_type, tmdb_id)

    @staticmethod
    def parse_media(
        payload: dict[str, Any], media_type: MediaType, tmdb_id: str | int
    ) -> CanonicalMedia:
        """Build a descriptor from a TMDB movie or tv payload.

        Raises:
            UpstreamMetadataUnavailableError: If the payload lacks a title or is
                otherwise unusable.
        """
        title = payload.get("title") or payload.get("name")
        if not title:
            raise UpstreamMetadataUnavailableError(
                f"TMDB record {tmdb_id} has no title"
            )

        date = payload.get("release_date") or payload.get("first_air_date") or ""
        year = date[:4] if isinstance(date, str) and date[:4].isdigit() else None

        try:
            return CanonicalMedia(
                title=title,
                type=media_type,
                release_year=int(year) if year else None,
                total_seasons=payload.get("number_of_seasons")
                if media_type == MediaType.SHOW
                else None,
                tmdb_id=str(tmdb_id),
            )
        except ValidationError as exc:
            raise UpstreamMetadataUnavailableError(
                f"TMDB record {tmdb_id} could not be parsed: {exc}"
            ) from exc
