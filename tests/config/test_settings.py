"""Tests for settings configuration utilities."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from sourcebridge.config.settings import (
    LogLevel,
    ResolverConfig,
    ResolverMode,
    SourceBridgeConfig,
    StageTimeouts,
    find_yaml_config_file,
)


@pytest.fixture(autouse=True)
def isolate_working_directory(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Set the working directory to a temporary path for each test."""
    monkeypatch.chdir(tmp_path)


def test_find_yaml_config_file_prefers_data_path(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test that find_yaml_config_file prefers SB_DATA_PATH environment variable."""
    monkeypatch.setenv("SB_DATA_PATH", str(tmp_path))
    config_file = tmp_path / "config.yml"
    config_file.write_text("log_level: DEBUG", encoding="utf-8")

    result = find_yaml_config_file()

    assert result == config_file.resolve()


def test_find_yaml_config_file_defaults_when_missing(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Without a file the default location is returned."""
    monkeypatch.setenv("SB_DATA_PATH", str(tmp_path / "empty"))

    assert find_yaml_config_file() == (tmp_path / "empty" / "config.yaml").resolve()


def test_config_loads_yaml_file() -> None:
    """The session YAML file configures the TMDB key and resolver mode."""
    config = SourceBridgeConfig()

    assert config.tmdb.api_key is not None
    assert config.tmdb.api_key.get_secret_value() == "tmdb-key"
    assert config.resolver.mode == ResolverMode.SEQUENTIAL
    assert "tmdb-key" not in str(config)


def test_defaults() -> None:
    """Resolver defaults match the documented behaviour."""
    resolver = ResolverConfig()

    assert resolver.mode == ResolverMode.RACE
    assert resolver.min_score == 20
    assert resolver.providers == ["flixhq", "sflix", "goku"]
    assert resolver.allowed_providers is None
    assert resolver.timeouts.total == 35


def test_environment_overrides_yaml(monkeypatch: pytest.MonkeyPatch) -> None:
    """Prefixed environment variables win over the YAML file."""
    monkeypatch.setenv("SB_RESOLVER__MODE", "RACE")
    monkeypatch.setenv("SB_LOG_LEVEL", "debug")

    config = SourceBridgeConfig()

    assert config.resolver.mode == ResolverMode.RACE
    assert config.log_level == LogLevel.DEBUG


def test_provider_keys_are_normalized() -> None:
    """Keys are lowercased and deduplicated in first-seen order."""
    resolver = ResolverConfig(
        providers=["FlixHQ", " goku ", "flixhq", ""],
        allowed_providers=["GOKU"],
    )

    assert resolver.providers == ["flixhq", "goku"]
    assert resolver.allowed_providers == ["goku"]


def test_provider_config_keys_are_normalized() -> None:
    """Adapter options written with any casing reach the lowercase provider key."""
    resolver = ResolverConfig(
        provider_config={" FlixHQ ": {"base_url": "http://consumet.local"}}
    )

    assert resolver.provider_config == {
        "flixhq": {"base_url": "http://consumet.local"}
    }


def test_provider_config_duplicate_keys_are_rejected() -> None:
    """Two option blocks for the same provider are a config error."""
    with pytest.raises(ValidationError):
        ResolverConfig(provider_config={"FlixHQ": {}, "flixhq": {}})


def test_allow_list_excluding_everything_is_rejected() -> None:
    """An allow-list sharing no key with the priority list is a config error."""
    with pytest.raises(ValidationError):
        SourceBridgeConfig(
            resolver=ResolverConfig(providers=["flixhq"], allowed_providers=["goku"])
        )


@pytest.mark.parametrize(
    "timeouts", [{"search": 0}, {"details": -1}, {"sources": 0.0}]
)
def test_timeouts_must_be_positive(timeouts: dict[str, float]) -> None:
    """Stage deadlines must be strictly positive."""
    with pytest.raises(ValidationError):
        StageTimeouts(**timeouts)


@pytest.mark.parametrize("min_score", [-1, 56])
def test_min_score_range(min_score: int) -> None:
    """The threshold has to be reachable by the scorer."""
    with pytest.raises(ValidationError):
        ResolverConfig(min_score=min_score)


def test_mode_is_case_insensitive() -> None:
    """Enum values accept any casing."""
    assert ResolverConfig(mode="Sequential").mode == ResolverMode.SEQUENTIAL  # type: ignore[arg-type]
