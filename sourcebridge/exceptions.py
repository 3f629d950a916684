"""SourceBridge exception classes."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sourcebridge.models.resolution import Attempt


class SourceBridgeError(Exception):
    """Base class for all SourceBridge exceptions."""

    # Default HTTP status for API responses
    status_code: int = 500


# Configuration errors
class ConfigError(SourceBridgeError):
    """Base class for configuration-related errors."""

    status_code = 500


class ProviderConfigError(ConfigError, ValueError):
    """A provider adapter was configured with invalid or incomplete options."""

    status_code = 500


class UnknownProviderError(ConfigError, KeyError):
    """Requested provider key is not present in the provider registry."""

    status_code = 400

    def __init__(self, provider_key: str, known: list[str] | None = None) -> None:
        """Store the offending key alongside the known provider keys."""
        self.provider_key = provider_key
        self.known = sorted(known or [])
        super().__init__(
            f"Unknown provider '{provider_key}'. Available providers: {self.known}"
        )

    def __str__(self) -> str:
        """Avoid KeyError's quoted repr of the message."""
        return str(self.args[0])


# Request errors
class InvalidRequestError(SourceBridgeError, ValueError):
    """Inbound request parameters are missing or malformed."""

    status_code = 400


# Provider errors
class ProviderError(SourceBridgeError):
    """Base class for failures raised by provider adapters."""

    status_code = 502


class ProviderRequestError(ProviderError):
    """A provider endpoint could not be reached or answered with an error status."""

    status_code = 502


class ProviderResponseError(ProviderError, ValueError):
    """A provider endpoint answered with a payload that could not be parsed."""

    status_code = 502


class StageError(ProviderError):
    """A pipeline stage failed because its adapter call raised."""

    status_code = 502

    def __init__(self, stage: str, cause: BaseException) -> None:
        """Record the failing stage and the underlying cause."""
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage} failed: {type(cause).__name__}: {cause}")


class StageTimeoutError(ProviderError, TimeoutError):
    """A pipeline stage exceeded its configured deadline."""

    status_code = 504

    def __init__(self, stage: str, timeout: float) -> None:
        """Record the stage that timed out and its deadline in seconds."""
        self.stage = stage
        self.timeout = timeout
        super().__init__(f"{stage} timed out after {timeout:g}s")


# Metadata errors
class MetadataError(SourceBridgeError):
    """Base class for canonical media metadata failures."""

    status_code = 502


class UpstreamMetadataUnavailableError(MetadataError):
    """The canonical media database could not provide a descriptor."""

    status_code = 502


# Resolution errors
class ResolutionError(SourceBridgeError):
    """Base class for resolution outcomes that produced no sources."""

    status_code = 404


class ResolutionFailure(ResolutionError):
    """No provider produced a usable source bundle."""

    status_code = 404

    def __init__(self, attempts: list[Attempt], mode: str) -> None:
        """Keep every per-provider attempt for the failure response."""
        self.attempts = list(attempts)
        self.mode = mode
        if self.attempts:
            detail = f"No sources found after {len(self.attempts)} provider attempt(s)"
        else:
            detail = "No sources found; no providers are configured"
        super().__init__(detail)

    def reasons(self) -> dict[str, str]:
        """Map each attempted provider key to its failure reason."""
        return {attempt.provider_key: attempt.describe() for attempt in self.attempts}
