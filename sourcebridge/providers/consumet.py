"""Provider adapters backed by a Consumet API deployment."""

from collections.abc import Sequence
from typing import Any, ClassVar
from urllib.parse import quote

import aiohttp
from pydantic import ValidationError

from sourcebridge import __version__, log
from sourcebridge.exceptions import (
    ProviderConfigError,
    ProviderRequestError,
    ProviderResponseError,
)
from sourcebridge.models.media import (
    ProviderEpisode,
    ProviderMediaInfo,
    ProviderSearchItem,
    Source,
    SourceBundle,
    Subtitle,
)
from sourcebridge.providers.base import ProviderAdapter, provider_registry

__all__ = [
    "ConsumetProvider",
    "FlixHQProvider",
    "GokuProvider",
    "SFlixProvider",
]

DEFAULT_BASE_URL = "https://api.consumet.org"


class ConsumetProvider(ProviderAdapter):
    """Adapter for the `/movies/{name}` routes of a Consumet API deployment.

    Supported options (from `resolver.provider_config.<key>`):
        base_url: Root URL of the Consumet deployment.
        server: Optional streaming server name forwarded to the watch route.
    """

    NAMESPACE: ClassVar[str] = "consumet"
    PROVIDER_NAME: ClassVar[str] = ""

    def __init__(self, *, config: dict | None = None) -> None:
        """Initialize the Consumet adapter.

        Args:
            config (dict | None): Adapter options.

        Raises:
            ProviderConfigError: If no upstream provider name is known.
        """
        super().__init__(config=config)
        self.provider_name = str(self.config.get("name") or self.PROVIDER_NAME)
        if not self.provider_name:
            raise ProviderConfigError(
                f"{self.__class__.__name__} requires a 'name' option naming the "
                "Consumet movie provider"
            )
        self.base_url = str(self.config.get("base_url") or DEFAULT_BASE_URL).rstrip(
            "/"
        )
        self.server: str | None = self.config.get("server")
        self._session: aiohttp.ClientSession | None = None

    @property
    def root_url(self) -> str:
        """Base URL of this provider's routes on the deployment."""
        return f"{self.base_url}/movies/{self.provider_name}"

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
            self._session = aiohttp.ClientSession(headers=headers)
        return self._session

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def _request_json(
        self, path: str, params: dict[str, str] | None = None
    ) -> dict[str, Any]:
        """Issue a GET request against the provider routes and decode the JSON body.

        Args:
            path (str): Path relative to `root_url`, starting with a slash.
            params (dict[str, str] | None): Query string parameters.

        Returns:
            dict[str, Any]: The decoded JSON object.

        Raises:
            ProviderRequestError: If the request fails or returns an error status.
            ProviderResponseError: If the body is not a JSON object.
        """
        url = f"{self.root_url}{path}"
        session = await self._get_session()

        log.debug(f"Requesting $$'{url}'$$ with params $${params or {}}$$")
        try:
            async with session.get(url, params=params) as response:
                if response.status >= 400:
                    raise ProviderRequestError(
                        f"{self.provider_name} answered HTTP {response.status} "
                        f"for {path}"
                    )
                try:
                    payload = await response.json(content_type=None)
                except ValueError as exc:
                    raise ProviderResponseError(
                        f"{self.provider_name} returned invalid JSON for {path}"
                    ) from exc
        except aiohttp.ClientError as exc:
            raise ProviderRequestError(
                f"Could not reach {self.provider_name} at {url}: {exc}"
            ) from exc

        if not isinstance(payload, dict):
            raise ProviderResponseError(
                f"{self.provider_name} returned a non-object payload for {path}"
            )
        return payload

    async def search(self, query: str) -> Sequence[ProviderSearchItem]:
        """Search the provider's catalogue."""
        payload = await self._request_json(f"/{quote(query, safe='')}")
        results = payload.get("results") or []
        if not isinstance(results, list):
            raise ProviderResponseError(
                f"Malformed search results from {self.provider_name}: "
                f"expected a list, got {type(results).__name__}"
            )

        items: list[ProviderSearchItem] = []
        for result in results:
            try:
                items.append(
                    ProviderSearchItem(
                        id=str(result["id"]),
                        title=str(result.get("title") or ""),
                        type=result.get("type"),
                        year=str(result["releaseDate"])
                        if result.get("releaseDate") is not None
                        else None,
                        seasons=result.get("seasons"),
                    )
                )
            except (KeyError, TypeError, AttributeError, ValidationError) as exc:
                log.debug(
                    f"Skipping malformed search hit from {self.provider_name}: "
                    f"$${result!r}$$ ({exc})"
                )
        return items

    async def fetch_details(self, item_id: str) -> ProviderMediaInfo:
        """Fetch the detail record, including episodes, for a search hit."""
        payload = await self._request_json("/info", params={"id": item_id})
        try:
            episodes = [
                ProviderEpisode(
                    id=str(episode["id"]),
                    season=episode.get("season"),
                    number=episode.get("number"),
                )
                for episode in payload.get("episodes") or []
            ]
            media_id = payload.get("id")
            return ProviderMediaInfo(
                id=str(media_id) if media_id else None, episodes=episodes
            )
        except (KeyError, TypeError, AttributeError, ValidationError) as exc:
            raise ProviderResponseError(
                f"Malformed media info from {self.provider_name}: {exc}"
            ) from exc

    async def fetch_sources(self, episode_id: str, media_id: str) -> SourceBundle:
        """Fetch playable sources for an episode or a movie's single entry."""
        params = {"episodeId": episode_id, "mediaId": media_id}
        if self.server:
            params["server"] = self.server
        payload = await self._request_json("/watch", params=params)

        headers = payload.get("headers") or {}
        try:
            headers = {str(k): str(v) for k, v in headers.items()}
            sources = [
                Source(
                    url=source["url"],
                    quality=source.get("quality"),
                    is_playlist=bool(source.get("isM3U8", False)),
                    headers=headers,
                )
                for source in payload.get("sources") or []
            ]
            subtitles = [
                Subtitle(url=subtitle["url"], lang=subtitle.get("lang"))
                for subtitle in payload.get("subtitles") or []
            ]
        except (KeyError, TypeError, AttributeError, ValidationError) as exc:
            raise ProviderResponseError(
                f"Malformed sources from {self.provider_name}: {exc}"
            ) from exc

        return SourceBundle(
            provider_key=self.NAMESPACE, sources=sources, subtitles=subtitles
        )


@provider_registry.register()
class FlixHQProvider(ConsumetProvider):
    """FlixHQ through Consumet."""

    NAMESPACE = "flixhq"
    PROVIDER_NAME = "flixhq"


@provider_registry.register()
class SFlixProvider(ConsumetProvider):
    """SFlix through Consumet."""

    NAMESPACE = "sflix"
    PROVIDER_NAME = "sflix"


@provider_registry.register()
class GokuProvider(ConsumetProvider):
    """Goku through Consumet."""

    NAMESPACE = "goku"
    PROVIDER_NAME = "goku"
