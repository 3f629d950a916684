"""Resolution attempt and result records."""

from __future__ import annotations

from dataclasses import dataclass, field

from sourcebridge.config.settings import BaseStrEnum
from sourcebridge.models.media import ProviderSearchItem, SourceBundle

__all__ = [
    "Attempt",
    "AttemptOutcome",
    "MatchCandidate",
    "PipelineStage",
    "ResolutionResult",
]


class PipelineStage(BaseStrEnum):
    """Stages of a single-provider pipeline."""

    SEARCH = "search"
    MATCH = "match"
    DETAILS = "details"
    EPISODE = "episode"
    SOURCES = "sources"


class AttemptOutcome(BaseStrEnum):
    """How one provider's pipeline run ended."""

    SUCCESS = "success"
    NO_MATCH = "no_match"
    TIMEOUT = "timeout"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class MatchCandidate:
    """A provider search item paired with its match score."""

    item: ProviderSearchItem
    score: int


@dataclass(frozen=True, slots=True)
class Attempt:
    """Outcome of one provider's pipeline run, kept only for diagnostics."""

    provider_key: str
    outcome: AttemptOutcome
    stage: PipelineStage | None = None
    reason: str | None = None
    bundle: SourceBundle | None = field(default=None, repr=False)
    elapsed: float = 0.0

    @property
    def succeeded(self) -> bool:
        """Whether the attempt produced a usable source bundle."""
        return self.outcome == AttemptOutcome.SUCCESS and self.bundle is not None

    @property
    def failed(self) -> bool:
        """Whether the attempt ended in a timeout or an adapter error."""
        return self.outcome in (AttemptOutcome.TIMEOUT, AttemptOutcome.ERROR)

    def describe(self) -> str:
        """One-line reason suitable for failure diagnostics."""
        if self.outcome == AttemptOutcome.SUCCESS:
            return "success"
        parts = [self.outcome.value]
        if self.stage is not None:
            parts.append(f"at {self.stage.value}")
        text = " ".join(parts)
        return f"{text}: {self.reason}" if self.reason else text

    def to_dict(self) -> dict[str, object]:
        """Serialize the attempt for API responses (the bundle is omitted)."""
        return {
            "provider": self.provider_key,
            "outcome": self.outcome.value,
            "stage": self.stage.value if self.stage is not None else None,
            "reason": self.reason,
            "elapsed": round(self.elapsed, 3),
        }


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """Successful resolution: the winning bundle plus every recorded attempt."""

    bundle: SourceBundle
    mode: str
    attempts: tuple[Attempt, ...] = ()

    @property
    def provider_key(self) -> str:
        """Key of the provider whose bundle won."""
        return self.bundle.provider_key
