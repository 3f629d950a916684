"""Media descriptors shared by providers and the resolution engine."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from sourcebridge.config.settings import BaseStrEnum

__all__ = [
    "CanonicalMedia",
    "MediaType",
    "ProviderEpisode",
    "ProviderMediaInfo",
    "ProviderSearchItem",
    "Source",
    "SourceBundle",
    "Subtitle",
]


class MediaType(BaseStrEnum):
    """Kinds of media the resolver understands."""

    MOVIE = "movie"
    SHOW = "show"


class CanonicalMedia(BaseModel):
    """Provider-agnostic description of the movie or episode being resolved."""

    model_config = ConfigDict(frozen=True)

    title: str
    type: MediaType
    release_year: int | None = None
    total_seasons: int | None = None
    season: int | None = None
    episode: int | None = None
    tmdb_id: str | None = None

    def for_episode(
        self, season: int | None = None, episode: int | None = None
    ) -> CanonicalMedia:
        """Return a copy targeting the given season/episode.

        Arguments left as None keep the values already on the descriptor.
        """
        if season is None and episode is None:
            return self
        return self.model_copy(
            update={
                "season": season if season is not None else self.season,
                "episode": episode if episode is not None else self.episode,
            }
        )

    def __str__(self) -> str:
        """Short human-readable label used in log lines."""
        label = self.title
        if self.release_year:
            label = f"{label} ({self.release_year})"
        if self.type == MediaType.SHOW and self.season is not None:
            label = f"{label} S{self.season:02d}E{(self.episode or 0):02d}"
        return label


class ProviderSearchItem(BaseModel):
    """A single search hit as returned by a provider adapter."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    type: str | None = None
    year: str | None = None
    seasons: int | None = None


class ProviderEpisode(BaseModel):
    """An episode (or the single movie "episode") listed by a provider."""

    model_config = ConfigDict(frozen=True)

    id: str
    season: int | None = None
    number: int | None = None


class ProviderMediaInfo(BaseModel):
    """Provider-side detail record for a matched search item."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    episodes: list[ProviderEpisode] = Field(default_factory=list)


class Source(BaseModel):
    """A playable stream location."""

    url: str
    quality: str | None = None
    is_playlist: bool = False
    headers: dict[str, str] = Field(default_factory=dict)


class Subtitle(BaseModel):
    """An external subtitle track shipped alongside the sources."""

    url: str
    lang: str | None = None


class SourceBundle(BaseModel):
    """Every source one provider returned for the resolved media."""

    provider_key: str
    sources: list[Source] = Field(default_factory=list)
    subtitles: list[Subtitle] = Field(default_factory=list)
