"""Global web application state utilities.

Holds references to the long-lived collaborators (metadata client, resolution
orchestrator) needed by route handlers. Provider adapters are never stored here;
they are built and closed per request by the orchestrator.
"""

from contextlib import suppress
from datetime import UTC, datetime
from functools import lru_cache

from sourcebridge import config
from sourcebridge.core.metadata import TMDBClient
from sourcebridge.core.orchestrator import ResolutionOrchestrator

__all__ = ["AppState", "get_app_state"]


class AppState:
    """Container for global web application state."""

    def __init__(self) -> None:
        """Initialize empty state containers and record process start time."""
        self.metadata: TMDBClient | None = None
        self.orchestrator: ResolutionOrchestrator | None = None
        self.started_at: datetime = datetime.now(UTC)

    def set_metadata_client(self, client: TMDBClient) -> None:
        """Replace the metadata client.

        Args:
            client (TMDBClient): The client route handlers should use.
        """
        self.metadata = client

    def set_orchestrator(self, orchestrator: ResolutionOrchestrator) -> None:
        """Replace the resolution orchestrator.

        Args:
            orchestrator (ResolutionOrchestrator): The orchestrator to use.
        """
        self.orchestrator = orchestrator

    def ensure_metadata_client(self) -> TMDBClient:
        """Get or create the shared TMDB client.

        Returns:
            TMDBClient: Client configured from the `tmdb` settings.
        """
        if self.metadata is None:
            api_key = config.tmdb.api_key
            self.metadata = TMDBClient(
                api_key=api_key.get_secret_value() if api_key else None,
                base_url=config.tmdb.base_url,
                timeout=config.tmdb.timeout,
            )
        return self.metadata

    def ensure_orchestrator(self) -> ResolutionOrchestrator:
        """Get or create the resolution orchestrator.

        Returns:
            ResolutionOrchestrator: Orchestrator configured from `resolver` settings.
        """
        if self.orchestrator is None:
            self.orchestrator = ResolutionOrchestrator(config.resolver)
        return self.orchestrator

    async def shutdown(self) -> None:
        """Release the metadata client's connections."""
        if self.metadata is not None:
            with suppress(Exception):
                await self.metadata.close()
            self.metadata = None


@lru_cache(maxsize=1)
def get_app_state() -> AppState:
    """Get the singleton application state instance.

    Returns:
        AppState: The application state instance.
    """
    return AppState()
