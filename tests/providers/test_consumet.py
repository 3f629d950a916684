"""Tests for the Consumet provider adapters."""

import aiohttp
import pytest

from sourcebridge.exceptions import (
    ProviderConfigError,
    ProviderRequestError,
    ProviderResponseError,
)
from sourcebridge.providers.consumet import (
    ConsumetProvider,
    FlixHQProvider,
    GokuProvider,
)
from tests.core.fakes import FakeResponse, FakeSession

BASE = "http://consumet.test"


def _provider(
    monkeypatch: pytest.MonkeyPatch,
    session: FakeSession,
    cls: type[ConsumetProvider] = FlixHQProvider,
    **options,
) -> ConsumetProvider:
    provider = cls(config={"base_url": BASE, **options})

    async def fake_get_session() -> FakeSession:
        return session

    monkeypatch.setattr(provider, "_get_session", fake_get_session)
    return provider


@pytest.mark.asyncio
async def test_search_parses_results(monkeypatch: pytest.MonkeyPatch) -> None:
    """Search hits carry id, title, type, year and season count."""
    session = FakeSession(
        {
            "/movies/flixhq/the%20office": FakeResponse(
                payload={
                    "currentPage": 1,
                    "results": [
                        {
                            "id": "tv/watch-the-office-38601",
                            "title": "The Office",
                            "releaseDate": "2005",
                            "type": "TV Series",
                            "seasons": 9,
                        },
                        {
                            "id": "movie/watch-the-office-1",
                            "title": "The Office",
                            "releaseDate": 2001,
                            "type": "Movie",
                        },
                    ],
                }
            )
        }
    )

    items = await _provider(monkeypatch, session).search("the office")

    assert [item.id for item in items] == [
        "tv/watch-the-office-38601",
        "movie/watch-the-office-1",
    ]
    assert items[0].seasons == 9
    assert items[0].type == "TV Series"
    assert items[1].year == "2001"
    assert items[1].seasons is None


@pytest.mark.asyncio
async def test_search_without_results(monkeypatch: pytest.MonkeyPatch) -> None:
    """A payload without results is an empty search."""
    session = FakeSession({"/movies/goku/nothing": FakeResponse(payload={})})

    assert await _provider(monkeypatch, session, GokuProvider).search("nothing") == []


@pytest.mark.asyncio
async def test_search_skips_malformed_hits(monkeypatch: pytest.MonkeyPatch) -> None:
    """One bad hit does not discard the valid ones around it."""
    session = FakeSession(
        {
            "/movies/flixhq/lost": FakeResponse(
                payload={
                    "results": [
                        {"title": "missing id"},
                        {"id": "tv/watch-lost-1", "title": "Lost", "seasons": "N/A"},
                        "not an object",
                        {"id": "tv/watch-lost-39497", "title": "Lost", "seasons": 6},
                    ]
                }
            )
        }
    )

    items = await _provider(monkeypatch, session).search("lost")

    assert [item.id for item in items] == ["tv/watch-lost-39497"]
    assert items[0].seasons == 6


@pytest.mark.asyncio
async def test_fetch_details(monkeypatch: pytest.MonkeyPatch) -> None:
    """Details include the media id and every listed episode."""
    session = FakeSession(
        {
            "/movies/flixhq/info": FakeResponse(
                payload={
                    "id": "tv/watch-lost-39258",
                    "title": "Lost",
                    "episodes": [
                        {"id": "1001", "title": "Pilot", "number": 1, "season": 1},
                        {"id": "2005", "number": 5, "season": 2},
                    ],
                }
            )
        }
    )

    info = await _provider(monkeypatch, session).fetch_details("tv/watch-lost-39258")

    assert info.id == "tv/watch-lost-39258"
    assert [(e.id, e.season, e.number) for e in info.episodes] == [
        ("1001", 1, 1),
        ("2005", 2, 5),
    ]
    assert session.requests[0][1] == {"id": "tv/watch-lost-39258"}


@pytest.mark.asyncio
async def test_fetch_sources(monkeypatch: pytest.MonkeyPatch) -> None:
    """Sources carry the referer headers and subtitles are kept."""
    session = FakeSession(
        {
            "/movies/flixhq/watch": FakeResponse(
                payload={
                    "headers": {"Referer": "https://rabbitstream.example/"},
                    "sources": [
                        {"url": "https://cdn/a.m3u8", "quality": "auto", "isM3U8": True},
                        {"url": "https://cdn/b.mp4", "quality": "1080"},
                    ],
                    "subtitles": [{"url": "https://cdn/en.vtt", "lang": "English"}],
                }
            )
        }
    )
    provider = _provider(monkeypatch, session, server="vidcloud")

    bundle = await provider.fetch_sources("19764", "movie/watch-inception-19764")

    assert bundle.provider_key == "flixhq"
    assert bundle.sources[0].is_playlist is True
    assert bundle.sources[1].is_playlist is False
    assert bundle.sources[0].headers == {"Referer": "https://rabbitstream.example/"}
    assert bundle.subtitles[0].lang == "English"
    assert session.requests[0][1] == {
        "episodeId": "19764",
        "mediaId": "movie/watch-inception-19764",
        "server": "vidcloud",
    }


@pytest.mark.asyncio
async def test_error_status_raises_request_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """HTTP error statuses surface as provider request errors."""
    session = FakeSession({"/movies/flixhq/info": FakeResponse(status=500)})

    with pytest.raises(ProviderRequestError):
        await _provider(monkeypatch, session).fetch_details("x")


@pytest.mark.asyncio
async def test_connection_error_raises_request_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Network failures surface as provider request errors."""
    session = FakeSession(
        {"/movies/flixhq/query": aiohttp.ClientConnectionError("refused")}
    )

    with pytest.raises(ProviderRequestError):
        await _provider(monkeypatch, session).search("query")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        ValueError("invalid json"),
        ["not", "an", "object"],
        {"results": "nope"},
        {"results": {"id": "m1"}},
    ],
)
async def test_malformed_search_raises_response_error(
    monkeypatch: pytest.MonkeyPatch, payload: object
) -> None:
    """Unparseable payloads surface as provider response errors."""
    session = FakeSession({"/movies/flixhq/query": FakeResponse(payload=payload)})

    with pytest.raises(ProviderResponseError):
        await _provider(monkeypatch, session).search("query")


@pytest.mark.asyncio
async def test_malformed_sources_raise_response_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Sources without URLs are rejected."""
    session = FakeSession(
        {"/movies/flixhq/watch": FakeResponse(payload={"sources": [{"quality": "1"}]})}
    )

    with pytest.raises(ProviderResponseError):
        await _provider(monkeypatch, session).fetch_sources("1", "m")


def test_base_class_requires_provider_name() -> None:
    """The generic adapter needs to know which Consumet provider to use."""
    with pytest.raises(ProviderConfigError):
        ConsumetProvider()

    provider = ConsumetProvider(config={"name": "flixhq"})
    assert provider.root_url.endswith("/movies/flixhq")


@pytest.mark.asyncio
async def test_close_without_session() -> None:
    """Closing an unused adapter is a no-op."""
    await FlixHQProvider().close()
