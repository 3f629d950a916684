"""SourceBridge configuration settings."""

from __future__ import annotations

import os
from enum import StrEnum
from functools import cached_property, lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

__all__ = [
    "LogLevel",
    "ResolverConfig",
    "ResolverMode",
    "SourceBridgeConfig",
    "StageTimeouts",
    "TMDBConfig",
    "WebConfig",
    "find_yaml_config_file",
    "get_config",
]

DATA_PATH_ENV = "SB_DATA_PATH"


def find_yaml_config_file() -> Path:
    """Find the YAML configuration file in the data path.

    Returns:
        Path: The path to an existing YAML configuration file or the default location.
    """
    data_path = Path(os.getenv(DATA_PATH_ENV, "./data")).resolve()

    for ext in ("yaml", "yml"):
        yaml_file = data_path / f"config.{ext}"
        if yaml_file.exists():
            return yaml_file.resolve()
    return data_path / "config.yaml"


class BaseStrEnum(StrEnum):
    """String enumeration with case-insensitive lookup and a bare-value repr."""

    @classmethod
    def _missing_(cls, value: object) -> BaseStrEnum | None:
        """Handle case-insensitive lookup for enum values.

        Args:
            value: The value to look up in the enumeration

        Returns:
            BaseStrEnum | None: The matching enum member if found, None otherwise
        """
        value = value.lower() if isinstance(value, str) else value
        for member in cls:
            if member.lower() == value:
                return member
        return None

    def __repr__(self) -> str:
        """Return the string value of the enum member."""
        return self.value

    def __str__(self) -> str:
        """Return the string representation of the enum member."""
        return repr(self)


class LogLevel(BaseStrEnum):
    """Enumeration of available logging levels.

    Note: SUCCESS is a custom level used by this application.
    """

    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ResolverMode(BaseStrEnum):
    """Provider orchestration strategies.

    sequential: Try providers one at a time in priority order until one succeeds
    race: Query every provider concurrently; the first success wins
    """

    SEQUENTIAL = "sequential"
    RACE = "race"


class StageTimeouts(BaseModel):
    """Per-stage deadlines, in seconds, for a single provider pipeline."""

    search: float = Field(default=10.0, gt=0, description="Search stage timeout")
    details: float = Field(default=10.0, gt=0, description="Detail fetch timeout")
    sources: float = Field(default=15.0, gt=0, description="Source fetch timeout")

    @property
    def total(self) -> float:
        """Upper bound for one provider's pipeline across all stages."""
        return self.search + self.details + self.sources


class ResolverConfig(BaseModel):
    """Configuration for the provider resolution engine."""

    mode: ResolverMode = Field(
        default=ResolverMode.RACE, description="Orchestration mode (sequential, race)"
    )
    min_score: int = Field(
        default=20, ge=0, le=55, description="Minimum match score to accept a result"
    )
    timeouts: StageTimeouts = Field(
        default_factory=StageTimeouts, description="Per-stage timeouts"
    )
    providers: list[str] = Field(
        default_factory=lambda: ["flixhq", "sflix", "goku"],
        description="Provider keys in priority order",
    )
    allowed_providers: list[str] | None = Field(
        default=None,
        description="Optional allow-list; providers not listed are never queried",
    )
    provider_modules: list[str] = Field(
        default_factory=list,
        description="Additional module paths to load provider adapters from",
    )
    provider_config: dict[str, dict] = Field(
        default_factory=dict,
        repr=False,
        description="Adapter options by provider key",
    )

    @field_validator("providers", "allowed_providers")
    @classmethod
    def normalize_keys(cls, value: list[str] | None) -> list[str] | None:
        """Lowercase provider keys and drop duplicates, keeping the first position."""
        if value is None:
            return None
        seen: dict[str, None] = {}
        for key in value:
            key = key.strip().lower()
            if key:
                seen.setdefault(key, None)
        return list(seen)

    @field_validator("provider_config")
    @classmethod
    def normalize_config_keys(cls, value: dict[str, dict]) -> dict[str, dict]:
        """Lowercase adapter option keys so they match the normalized provider keys.

        Raises:
            ValueError: If two keys collapse to the same provider.
        """
        normalized: dict[str, dict] = {}
        for key, options in value.items():
            normalized_key = key.strip().lower()
            if normalized_key in normalized:
                raise ValueError(
                    f"Duplicate provider_config entry for '{normalized_key}'"
                )
            normalized[normalized_key] = options
        return normalized


class TMDBConfig(BaseModel):
    """Configuration for the TMDB metadata client."""

    api_key: SecretStr | None = Field(default=None, description="TMDB API key")
    base_url: str = Field(
        default="https://api.themoviedb.org/3", description="TMDB API base URL"
    )
    timeout: float = Field(default=10.0, gt=0, description="Request timeout")


class WebConfig(BaseModel):
    """Configuration for the embedded web server."""

    host: str = Field(default="0.0.0.0", description="Host for the web server")
    port: int = Field(default=3000, description="Port for the web server")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"], description="Origins allowed by CORS"
    )
    cors_methods: list[str] = Field(
        default_factory=lambda: ["GET", "POST"], description="Methods allowed by CORS"
    )


class SourceBridgeConfig(BaseSettings):
    """Configuration manager for the SourceBridge application.

    Configuration is sourced from a YAML file in the data path, optionally
    combined with parameters passed directly to the model.
    """

    log_level: LogLevel = Field(
        default=LogLevel.INFO, description="Logging level for the application"
    )
    resolver: ResolverConfig = Field(
        default_factory=ResolverConfig, description="Resolution engine settings"
    )
    tmdb: TMDBConfig = Field(
        default_factory=TMDBConfig, description="TMDB metadata client settings"
    )
    web: WebConfig = Field(
        default_factory=WebConfig, description="Embedded web server configuration"
    )

    @cached_property
    def data_path(self) -> Path:
        """Get the data path for SourceBridge.

        Returns:
            Path: The data path resolved from the environment or default location.
        """
        return Path(os.getenv(DATA_PATH_ENV, "./data")).resolve()

    @model_validator(mode="after")
    def validate_resolver(self) -> SourceBridgeConfig:
        """Validates that the allow-list does not exclude every provider.

        Returns:
            SourceBridgeConfig: Self with validated settings.

        Raises:
            ValueError: If an allow-list is set but shares no key with the
                provider priority list.
        """
        allowed = self.resolver.allowed_providers
        if allowed is not None and self.resolver.providers:
            if not set(allowed) & set(self.resolver.providers):
                raise ValueError(
                    "resolver.allowed_providers excludes every provider in "
                    "resolver.providers"
                )
        return self

    def __str__(self) -> str:
        """Creates a human-readable representation of the configuration.

        Returns:
            str: Configuration summary without secrets.
        """
        return (
            f"SourceBridge Config: MODE: {self.resolver.mode}, "
            f"PROVIDERS: {self.resolver.providers}, "
            f"MIN_SCORE: {self.resolver.min_score}, "
            f"DATA_PATH: {self.data_path}, LOG_LEVEL: {self.log_level}"
        )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the order of configuration sources.

        Explicit arguments win over `SB_`-prefixed environment variables, which
        win over the YAML file.
        """
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=find_yaml_config_file()),
        )

    model_config = SettingsConfigDict(
        extra="ignore", env_prefix="SB_", env_nested_delimiter="__"
    )


@lru_cache(maxsize=1)
def get_config() -> SourceBridgeConfig:
    """Get the singleton instance of SourceBridgeConfig.

    Returns:
        SourceBridgeConfig: The singleton configuration instance.
    """
    return SourceBridgeConfig()
