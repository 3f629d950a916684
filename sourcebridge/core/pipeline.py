"""Single-provider resolution pipeline."""

import asyncio
import time
from collections.abc import Awaitable
from typing import TypeVar

from sourcebridge import log
from sourcebridge.config.settings import StageTimeouts
from sourcebridge.core.matching import DEFAULT_MIN_SCORE, normalize_title, select_best
from sourcebridge.exceptions import StageError, StageTimeoutError
from sourcebridge.models.media import (
    CanonicalMedia,
    MediaType,
    ProviderMediaInfo,
    SourceBundle,
)
from sourcebridge.models.resolution import Attempt, AttemptOutcome, PipelineStage
from sourcebridge.providers.base import ProviderAdapter

__all__ = ["ProviderPipeline", "NoMatch"]

T = TypeVar("T")


class NoMatch(Exception):
    """Internal signal that a stage legitimately found nothing."""

    def __init__(self, stage: PipelineStage, reason: str) -> None:
        """Record the stage that came up empty and why."""
        self.stage = stage
        self.reason = reason
        super().__init__(reason)


class ProviderPipeline:
    """Runs search, match, details, episode selection and source fetch for one
    provider.

    Every network stage gets its own deadline. Adapter exceptions are wrapped in
    `StageError`; expired deadlines raise `StageTimeoutError`. `run` converts all of
    these into an `Attempt` so one provider can never break a whole resolution.
    """

    def __init__(
        self,
        adapter: ProviderAdapter,
        provider_key: str,
        timeouts: StageTimeouts | None = None,
        min_score: int = DEFAULT_MIN_SCORE,
    ) -> None:
        """Initialize the pipeline.

        Args:
            adapter (ProviderAdapter): Adapter for the provider being queried.
            provider_key (str): Registry key of the provider.
            timeouts (StageTimeouts | None): Per-stage deadlines.
            min_score (int): Minimum match score accepted for the best candidate.
        """
        self.adapter = adapter
        self.provider_key = provider_key
        self.timeouts = timeouts or StageTimeouts()
        self.min_score = min_score

    async def _stage(
        self, stage: PipelineStage, timeout: float, call: Awaitable[T]
    ) -> T:
        """Await an adapter call under a deadline, normalizing its failures.

        Only an expired deadline counts as a stage timeout. A `TimeoutError` raised
        by the adapter itself (e.g. a socket read timeout) is a stage error.
        """
        deadline = asyncio.timeout(timeout)
        try:
            async with deadline:
                return await call
        except TimeoutError as exc:
            if deadline.expired():
                raise StageTimeoutError(stage.value, timeout) from exc
            raise StageError(stage.value, exc) from exc
        except Exception as exc:
            raise StageError(stage.value, exc) from exc

    async def resolve(self, media: CanonicalMedia) -> SourceBundle | None:
        """Resolve media into a source bundle from this provider.

        Args:
            media (CanonicalMedia): Media being resolved.

        Returns:
            SourceBundle | None: Sources on success, None when the provider has
                nothing usable for this media.

        Raises:
            StageTimeoutError: If a stage exceeded its deadline.
            StageError: If an adapter call raised.
        """
        result = await self._resolve_or_no_match(media)
        return None if isinstance(result, NoMatch) else result

    async def _resolve_or_no_match(
        self, media: CanonicalMedia
    ) -> SourceBundle | NoMatch:
        """Run the stages, returning the `NoMatch` signal instead of raising it."""
        try:
            return await self._resolve(media)
        except NoMatch as exc:
            log.debug(
                f"{self.provider_key}: no match at {exc.stage} for "
                f"$$'{media}'$$: {exc.reason}"
            )
            return exc

    async def _resolve(self, media: CanonicalMedia) -> SourceBundle:
        query = normalize_title(media.title)
        items = await self._stage(
            PipelineStage.SEARCH, self.timeouts.search, self.adapter.search(query)
        )
        if not items:
            raise NoMatch(PipelineStage.SEARCH, f"no search results for '{query}'")

        best = select_best(items, media)
        if best is None:
            raise NoMatch(PipelineStage.MATCH, "no titled search results")
        if best.score < self.min_score:
            raise NoMatch(
                PipelineStage.MATCH,
                f"best candidate '{best.item.title}' scored {best.score} "
                f"(minimum {self.min_score})",
            )
        log.debug(
            f"{self.provider_key}: matched $$'{best.item.title}'$$ "
            f"$${{id: {best.item.id}, score: {best.score}}}$$"
        )

        info = await self._stage(
            PipelineStage.DETAILS,
            self.timeouts.details,
            self.adapter.fetch_details(best.item.id),
        )
        if info is None or not info.id:
            raise NoMatch(PipelineStage.DETAILS, "detail record has no id")

        episode_id = self.select_episode(info, media)

        bundle = await self._stage(
            PipelineStage.SOURCES,
            self.timeouts.sources,
            self.adapter.fetch_sources(episode_id, info.id),
        )
        if bundle is None or not bundle.sources:
            raise NoMatch(PipelineStage.SOURCES, "provider returned no sources")

        if bundle.provider_key != self.provider_key:
            bundle = bundle.model_copy(update={"provider_key": self.provider_key})
        return bundle

    @staticmethod
    def select_episode(info: ProviderMediaInfo, media: CanonicalMedia) -> str:
        """Pick the id to request sources for.

        Movies use their single listed entry when the provider nests one, otherwise
        the detail id. Shows need an exact season and episode number match.

        Raises:
            NoMatch: If a show request has no target or the episode is missing.
        """
        if media.type == MediaType.MOVIE:
            if info.episodes:
                return info.episodes[0].id
            return str(info.id)

        if media.season is None or media.episode is None:
            raise NoMatch(PipelineStage.EPISODE, "show request has no season/episode")
        for episode in info.episodes:
            if episode.season == media.season and episode.number == media.episode:
                return episode.id
        raise NoMatch(
            PipelineStage.EPISODE,
            f"episode S{media.season:02d}E{media.episode:02d} not listed",
        )

    async def run(self, media: CanonicalMedia) -> Attempt:
        """Resolve media and record the outcome instead of raising.

        Cancellation still propagates so that race mode can stop losing pipelines.

        Args:
            media (CanonicalMedia): Media being resolved.

        Returns:
            Attempt: The recorded outcome for this provider.
        """
        started = time.monotonic()

        def elapsed() -> float:
            return time.monotonic() - started

        try:
            result = await self._resolve_or_no_match(media)
        except StageTimeoutError as exc:
            log.warning(f"{self.provider_key}: {exc}")
            return Attempt(
                self.provider_key,
                AttemptOutcome.TIMEOUT,
                stage=PipelineStage(exc.stage),
                reason=str(exc),
                elapsed=elapsed(),
            )
        except StageError as exc:
            log.warning(f"{self.provider_key}: {exc}")
            return Attempt(
                self.provider_key,
                AttemptOutcome.ERROR,
                stage=PipelineStage(exc.stage),
                reason=str(exc),
                elapsed=elapsed(),
            )
        except Exception as exc:
            log.warning(
                f"{self.provider_key}: unexpected pipeline failure: {exc}",
                exc_info=True,
            )
            return Attempt(
                self.provider_key,
                AttemptOutcome.ERROR,
                reason=f"{type(exc).__name__}: {exc}",
                elapsed=elapsed(),
            )

        if isinstance(result, NoMatch):
            return Attempt(
                self.provider_key,
                AttemptOutcome.NO_MATCH,
                stage=result.stage,
                reason=result.reason,
                elapsed=elapsed(),
            )

        log.debug(
            f"{self.provider_key}: resolved {len(result.sources)} source(s) for "
            f"$$'{media}'$$"
        )
        return Attempt(
            self.provider_key,
            AttemptOutcome.SUCCESS,
            stage=PipelineStage.SOURCES,
            bundle=result,
            elapsed=elapsed(),
        )
