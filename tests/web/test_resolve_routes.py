"""Tests for the HTTP API routes."""

from fastapi.testclient import TestClient

from sourcebridge.config.settings import ResolverConfig, ResolverMode, StageTimeouts
from sourcebridge.core.orchestrator import ResolutionOrchestrator
from sourcebridge.exceptions import UpstreamMetadataUnavailableError
from sourcebridge.models.media import CanonicalMedia, MediaType, ProviderMediaInfo
from sourcebridge.web.app import create_app
from sourcebridge.web.state import AppState
from tests.core.fakes import FakeRegistry, FakeScript, episodes, movie_item, show_item


class FakeMetadataClient:
    """Metadata client double that serves fixed descriptors by TMDB id."""

    def __init__(self, records: dict[str, CanonicalMedia]) -> None:
        """Store the records and track lookups."""
        self.records = records
        self.lookups: list[tuple[str, MediaType]] = []
        self.closed = False

    async def fetch_media(self, tmdb_id: str, media_type: MediaType) -> CanonicalMedia:
        """Return the stored record or fail like TMDB would."""
        self.lookups.append((tmdb_id, media_type))
        try:
            media = self.records[tmdb_id]
        except KeyError as exc:
            raise UpstreamMetadataUnavailableError(
                f"TMDB answered HTTP 404 for /{tmdb_id}"
            ) from exc
        return media.model_copy(update={"type": media_type})

    async def close(self) -> None:
        """Mark the client closed."""
        self.closed = True


RECORDS = {
    "27205": CanonicalMedia(title="Inception", type=MediaType.MOVIE, release_year=2010),
    "4607": CanonicalMedia(
        title="Lost", type=MediaType.SHOW, release_year=2004, total_seasons=6
    ),
}


def _setup(
    state: AppState, scripts: dict[str, FakeScript]
) -> tuple[TestClient, FakeRegistry, FakeMetadataClient]:
    registry = FakeRegistry(scripts)
    config = ResolverConfig(
        mode=ResolverMode.SEQUENTIAL,
        providers=list(scripts),
        timeouts=StageTimeouts(search=0.5, details=0.5, sources=0.5),
    )
    metadata = FakeMetadataClient(RECORDS)
    state.set_orchestrator(ResolutionOrchestrator(config, registry))
    state.set_metadata_client(metadata)  # type: ignore[arg-type]
    return TestClient(create_app()), registry, metadata


def _movie_script(**overrides) -> FakeScript:
    return FakeScript(
        search_results=[movie_item("movie/watch-inception-19764", "Inception", "2010")],
        info=ProviderMediaInfo(
            id="movie/watch-inception-19764", episodes=episodes(("19764", 1, 1))
        ),
        **overrides,
    )


def test_root_banner(_reset_app_state: AppState) -> None:
    """The root route describes the service."""
    client, _, _ = _setup(_reset_app_state, {"alpha": _movie_script()})

    response = client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert "intro" in body and "documentation" in body


def test_providers_listing(_reset_app_state: AppState) -> None:
    """The providers route reports registered keys and the effective order."""
    client, _, _ = _setup(
        _reset_app_state, {"beta": _movie_script(), "alpha": _movie_script()}
    )

    response = client.get("/api/providers")

    assert response.status_code == 200
    assert response.json() == {
        "mode": "sequential",
        "registered": ["alpha", "beta"],
        "order": ["beta", "alpha"],
    }


def test_resolve_movie(_reset_app_state: AppState) -> None:
    """A resolvable movie returns the winning provider's sources."""
    client, _, metadata = _setup(_reset_app_state, {"alpha": _movie_script()})

    response = client.get("/api/resolve", params={"id": "27205"})

    assert response.status_code == 200
    body = response.json()
    assert body["provider"] == "alpha"
    assert body["sources"][0]["url"] == "https://cdn.example/stream.m3u8"
    assert body["subtitles"] == []
    assert body["attempts"][0]["outcome"] == "success"
    assert metadata.lookups == [("27205", MediaType.MOVIE)]


def test_resolve_show_defaults_type_from_season_and_episode(
    _reset_app_state: AppState,
) -> None:
    """Season and episode without a type mean a show request."""
    script = FakeScript(
        search_results=[show_item("tv/watch-lost", "Lost", "2004", seasons=6)],
        info=ProviderMediaInfo(
            id="tv/watch-lost", episodes=episodes(("e0", 1, 1), ("e1", 2, 5))
        ),
    )
    client, registry, metadata = _setup(_reset_app_state, {"alpha": script})

    response = client.get("/api/resolve", params={"id": "4607", "s": 2, "e": 5})

    assert response.status_code == 200
    assert metadata.lookups == [("4607", MediaType.SHOW)]
    assert registry.built["alpha"][0].requested_episode == "e1"


def test_resolve_no_sources_is_404_with_attempts(_reset_app_state: AppState) -> None:
    """Exhausting every provider answers 404 with per-provider reasons."""
    client, _, _ = _setup(
        _reset_app_state,
        {"alpha": FakeScript(search_results=[]), "beta": FakeScript()},
    )

    response = client.get("/api/resolve", params={"id": "27205", "type": "movie"})

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "ResolutionFailure"
    assert body["path"] == "/api/resolve"
    assert [a["provider"] for a in body["attempts"]] == ["alpha", "beta"]
    assert {a["outcome"] for a in body["attempts"]} == {"no_match"}


def test_resolve_unknown_provider_is_400_without_lookups(
    _reset_app_state: AppState,
) -> None:
    """An unknown provider is rejected before metadata or providers are touched."""
    client, registry, metadata = _setup(_reset_app_state, {"alpha": _movie_script()})

    response = client.get(
        "/api/resolve", params={"id": "27205", "provider": "vidsrc"}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "UnknownProviderError"
    assert metadata.lookups == []
    assert registry.built == {}


def test_resolve_metadata_unavailable_is_502(_reset_app_state: AppState) -> None:
    """Metadata failures map to a bad gateway response."""
    client, registry, _ = _setup(_reset_app_state, {"alpha": _movie_script()})

    response = client.get("/api/resolve", params={"id": "999"})

    assert response.status_code == 502
    assert response.json()["error"] == "UpstreamMetadataUnavailableError"
    assert registry.built == {}


def test_resolve_bad_parameters_are_400(_reset_app_state: AppState) -> None:
    """Missing or malformed parameters are client errors."""
    client, _, _ = _setup(_reset_app_state, {"alpha": _movie_script()})

    missing_id = client.get("/api/resolve")
    bad_type = client.get("/api/resolve", params={"id": "1", "type": "podcast"})
    show_without_episode = client.get(
        "/api/resolve", params={"id": "4607", "type": "show", "s": 1}
    )
    bad_season = client.get("/api/resolve", params={"id": "4607", "s": "x", "e": 1})

    for response in (missing_id, bad_type, show_without_episode, bad_season):
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidRequestError"


def test_resolve_rejects_non_numeric_ids_without_lookups(
    _reset_app_state: AppState,
) -> None:
    """Ids that are not plain TMDB numbers never reach the metadata client."""
    client, _, metadata = _setup(_reset_app_state, {"alpha": _movie_script()})

    for tmdb_id in ("550/similar", "../configuration", "tt1375666", ""):
        response = client.get("/api/resolve", params={"id": tmdb_id})

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidRequestError"

    assert metadata.lookups == []


def test_cors_headers(_reset_app_state: AppState) -> None:
    """CORS follows the configured origins."""
    client, _, _ = _setup(_reset_app_state, {"alpha": _movie_script()})

    response = client.get("/", headers={"Origin": "https://example.org"})

    assert response.headers.get("access-control-allow-origin") == "*"


def test_lifespan_closes_metadata_client(_reset_app_state: AppState) -> None:
    """Shutting the app down releases the metadata client."""
    client, _, metadata = _setup(_reset_app_state, {"alpha": _movie_script()})

    with client:
        client.get("/")

    assert metadata.closed
