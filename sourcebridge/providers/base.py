"""Provider adapter protocol and registry."""

from collections.abc import Callable, Sequence
from typing import ClassVar, Protocol, runtime_checkable

from sourcebridge.models.media import (
    ProviderMediaInfo,
    ProviderSearchItem,
    SourceBundle,
)

__all__ = ["ProviderAdapter", "ProviderRegistry", "provider_registry"]


@runtime_checkable
class ProviderAdapter(Protocol):
    """Interface for a streaming provider that can search, describe and stream media.

    Adapters are created per request and closed once the request finishes, so they
    may hold connection state but never cross-request caches.
    """

    NAMESPACE: ClassVar[str]

    config: dict

    def __init__(self, *, config: dict | None = None) -> None:
        """Initialize the provider adapter.

        Args:
            config (dict | None): Optional configuration options for the provider.
        """
        self.config = config or {}

    async def search(self, query: str) -> Sequence[ProviderSearchItem]:
        """Search the provider's catalogue.

        Args:
            query (str): Free-text title query.

        Returns:
            Sequence[ProviderSearchItem]: Search hits in the provider's own order.
        """
        ...

    async def fetch_details(self, item_id: str) -> ProviderMediaInfo:
        """Fetch the detail record, including episodes, for a search hit.

        Args:
            item_id (str): The `id` of a search hit returned by `search`.

        Returns:
            ProviderMediaInfo: Detail record for the item.
        """
        ...

    async def fetch_sources(self, episode_id: str, media_id: str) -> SourceBundle:
        """Fetch playable sources for an episode (or a movie's single entry).

        Args:
            episode_id (str): Episode or movie entry identifier.
            media_id (str): Identifier of the parent media item.

        Returns:
            SourceBundle: Sources and subtitles offered by the provider.
        """
        ...

    async def close(self) -> None:
        """Close the provider and release any resources."""
        ...


ProviderFactory = Callable[..., ProviderAdapter]


class ProviderRegistry:
    """Maps provider keys to adapter classes."""

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._factories: dict[str, ProviderFactory] = {}

    def register(
        self, key: str | None = None
    ) -> Callable[[type[ProviderAdapter]], type[ProviderAdapter]]:
        """Class decorator registering an adapter under `key` (or its NAMESPACE).

        Args:
            key (str | None): Registry key; defaults to the class's NAMESPACE.

        Returns:
            Callable: Decorator that registers and returns the class unchanged.
        """

        def decorator(cls: type[ProviderAdapter]) -> type[ProviderAdapter]:
            self.add(key or cls.NAMESPACE, cls)
            return cls

        return decorator

    def add(self, key: str, factory: ProviderFactory) -> None:
        """Register a factory under a key, replacing any previous registration."""
        self._factories[key.strip().lower()] = factory

    def remove(self, key: str) -> None:
        """Unregister a key if present."""
        self._factories.pop(key.strip().lower(), None)

    def create(self, key: str, *, config: dict | None = None) -> ProviderAdapter:
        """Instantiate the adapter registered under a key.

        Args:
            key (str): Provider key.
            config (dict | None): Options passed to the adapter.

        Returns:
            ProviderAdapter: A fresh adapter instance.

        Raises:
            LookupError: If no adapter is registered for the key.
        """
        try:
            factory = self._factories[key.strip().lower()]
        except KeyError as exc:
            raise LookupError(f"No provider registered for key '{key}'") from exc
        return factory(config=config)

    def keys(self) -> list[str]:
        """Registered provider keys in registration order."""
        return list(self._factories)

    def __contains__(self, key: object) -> bool:
        """Whether a key is registered."""
        return isinstance(key, str) and key.strip().lower() in self._factories


provider_registry = ProviderRegistry()
