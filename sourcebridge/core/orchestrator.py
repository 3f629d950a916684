"""Multi-provider resolution orchestrator."""

import asyncio
from collections.abc import Iterable

from sourcebridge import log
from sourcebridge.config.settings import ResolverConfig, ResolverMode
from sourcebridge.core.pipeline import ProviderPipeline
from sourcebridge.exceptions import ResolutionFailure, UnknownProviderError
from sourcebridge.models.media import CanonicalMedia
from sourcebridge.models.resolution import (
    Attempt,
    AttemptOutcome,
    ResolutionResult,
)
from sourcebridge.providers.base import (
    ProviderAdapter,
    ProviderRegistry,
    provider_registry,
)
from sourcebridge.providers.factory import build_provider, load_provider_modules

__all__ = ["ResolutionOrchestrator"]


class ResolutionOrchestrator:
    """Resolves canonical media into sources by fanning out over providers.

    In sequential mode providers are tried one after another in priority order. In
    race mode every provider runs concurrently and the first success wins; the
    remaining pipelines are cancelled. Each request builds fresh adapters and closes
    them before returning.
    """

    def __init__(
        self,
        config: ResolverConfig,
        registry: ProviderRegistry = provider_registry,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config (ResolverConfig): Resolver settings.
            registry (ProviderRegistry): Registry adapters are built from.
        """
        self.config = config
        self.registry = registry
        if registry is provider_registry:
            load_provider_modules(config)

    @property
    def mode(self) -> ResolverMode:
        """Configured orchestration mode."""
        return self.config.mode

    def provider_order(self, preferred_provider: str | None = None) -> list[str]:
        """Compute the effective provider order for a request.

        The configured priority list is filtered by the allow-list and by what the
        registry knows, then the preferred provider (if any) is moved to the front.

        Args:
            preferred_provider (str | None): Provider the caller wants tried first.

        Returns:
            list[str]: Provider keys in the order they will be tried.

        Raises:
            UnknownProviderError: If the preferred provider is not registered or is
                excluded by the allow-list.
        """
        allowed = self.config.allowed_providers
        order: list[str] = []
        for key in self.config.providers:
            if allowed is not None and key not in allowed:
                continue
            if key not in self.registry or key in order:
                continue
            order.append(key)

        if preferred_provider is None:
            return order

        preferred = preferred_provider.strip().lower()
        if preferred not in self.registry or (
            allowed is not None and preferred not in allowed
        ):
            raise UnknownProviderError(preferred, known=self._known_keys())
        return [preferred, *(key for key in order if key != preferred)]

    def _known_keys(self) -> list[str]:
        allowed = self.config.allowed_providers
        return [
            key for key in self.registry.keys() if allowed is None or key in allowed
        ]

    async def resolve(
        self,
        media: CanonicalMedia,
        season: int | None = None,
        episode: int | None = None,
        preferred_provider: str | None = None,
    ) -> ResolutionResult:
        """Resolve media into the first usable source bundle.

        Args:
            media (CanonicalMedia): Media being resolved.
            season (int | None): Season override for shows.
            episode (int | None): Episode override for shows.
            preferred_provider (str | None): Provider to try first.

        Returns:
            ResolutionResult: The winning bundle and every recorded attempt.

        Raises:
            UnknownProviderError: If the preferred provider is unknown; raised before
                any adapter is built.
            ResolutionFailure: If no provider produced sources.
        """
        order = self.provider_order(preferred_provider)
        target = media.for_episode(season, episode)
        mode = self.mode

        if not order:
            log.warning(f"No eligible providers to resolve $$'{target}'$$")
            raise ResolutionFailure([], mode.value)

        log.info(f"Resolving $$'{target}'$$ in {mode} mode across $${order}$$")
        if mode == ResolverMode.RACE:
            winner, attempts = await self._race(order, target)
        else:
            winner, attempts = await self._sequential(order, target)

        if winner is None or winner.bundle is None:
            failure = ResolutionFailure(attempts, mode.value)
            log.warning(
                f"Could not resolve $$'{target}'$$: {failure} "
                f"$${failure.reasons()}$$"
            )
            raise failure

        log.success(
            f"Resolved $$'{target}'$$ with $$'{winner.provider_key}'$$ "
            f"({len(winner.bundle.sources)} source(s))"
        )
        return ResolutionResult(
            bundle=winner.bundle, mode=mode.value, attempts=tuple(attempts)
        )

    async def _run_provider(self, key: str, media: CanonicalMedia) -> Attempt:
        """Build, run and close one provider's pipeline."""
        try:
            adapter = build_provider(key, self.config, self.registry)
        except Exception as exc:
            log.warning(f"Could not build provider $$'{key}'$$: {exc}")
            return Attempt(
                key,
                AttemptOutcome.ERROR,
                reason=f"{type(exc).__name__}: {exc}",
            )

        pipeline = ProviderPipeline(
            adapter,
            key,
            timeouts=self.config.timeouts,
            min_score=self.config.min_score,
        )
        try:
            return await pipeline.run(media)
        finally:
            await self._close_adapter(key, adapter)

    @staticmethod
    async def _close_adapter(key: str, adapter: ProviderAdapter) -> None:
        try:
            await adapter.close()
        except Exception:
            log.warning(f"Error closing provider $$'{key}'$$", exc_info=True)

    async def _sequential(
        self, order: Iterable[str], media: CanonicalMedia
    ) -> tuple[Attempt | None, list[Attempt]]:
        attempts: list[Attempt] = []
        for key in order:
            attempt = await self._run_provider(key, media)
            attempts.append(attempt)
            if attempt.succeeded:
                return attempt, attempts
        return None, attempts

    async def _race(
        self, order: list[str], media: CanonicalMedia
    ) -> tuple[Attempt | None, list[Attempt]]:
        tasks: dict[asyncio.Task[Attempt], str] = {
            asyncio.create_task(
                self._run_provider(key, media), name=f"resolve:{key}"
            ): key
            for key in order
        }
        # Done callbacks fire in completion order, unlike the set asyncio.wait returns
        completed: list[asyncio.Task[Attempt]] = []
        for task in tasks:
            task.add_done_callback(completed.append)

        pending: set[asyncio.Task[Attempt]] = set(tasks)
        finished: dict[str, Attempt] = {}
        winner: Attempt | None = None
        processed = 0

        try:
            while pending and winner is None:
                await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in completed[processed:]:
                    processed += 1
                    pending.discard(task)
                    attempt = task.result()
                    finished[tasks[task]] = attempt
                    if winner is None and attempt.succeeded:
                        winner = attempt
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        for task in pending:
            log.debug(f"Cancelled losing provider $$'{tasks[task]}'$$")

        attempts = [finished[key] for key in order if key in finished]
        return winner, attempts
