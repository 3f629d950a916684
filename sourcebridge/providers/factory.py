"""Provider loader helpers."""

from collections.abc import Iterable
from importlib import import_module

from sourcebridge.config.settings import ResolverConfig
from sourcebridge.exceptions import UnknownProviderError
from sourcebridge.providers.base import (
    ProviderAdapter,
    ProviderRegistry,
    provider_registry,
)

__all__ = ["build_provider", "load_provider_modules"]

_DEFAULT_PROVIDER_MODULES: tuple[str, ...] = ("sourcebridge.providers.consumet",)
_LOADED_MODULES: set[str] = set()


def _import_modules(modules: Iterable[str]) -> None:
    """Import provider modules, ensuring each module loads only once."""
    for module in modules:
        if not module or module in _LOADED_MODULES:
            continue
        import_module(module)
        _LOADED_MODULES.add(module)


def load_provider_modules(config: ResolverConfig) -> None:
    """Import the default adapter modules plus any configured extras.

    Args:
        config (ResolverConfig): Resolver settings naming extra modules.
    """
    _import_modules((*_DEFAULT_PROVIDER_MODULES, *config.provider_modules))


def build_provider(
    key: str,
    config: ResolverConfig,
    registry: ProviderRegistry = provider_registry,
) -> ProviderAdapter:
    """Instantiate the adapter registered under a provider key.

    Args:
        key (str): The provider key.
        config (ResolverConfig): Resolver settings holding per-provider options.
        registry (ProviderRegistry): Registry to build from.

    Returns:
        ProviderAdapter: A fresh adapter; the caller must close it.

    Raises:
        UnknownProviderError: If no adapter is registered for the key.
    """
    load_provider_modules(config)

    try:
        return registry.create(key, config=config.provider_config.get(key))
    except LookupError as exc:
        raise UnknownProviderError(key, known=registry.keys()) from exc
