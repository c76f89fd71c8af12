"""
Unit tests for configuration system.

These tests verify that the configuration system works correctly
and can load settings from environment variables.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from dialectics.config import Config, EngineConfig, LogConfig, RegistryConfig


def test_config_has_defaults() -> None:
    """Test that Config initializes with sensible defaults."""
    config = Config()

    assert config.engine.max_revisions == 3
    assert config.engine.unanswered_challenge_eliminates is True

    assert config.registry.store_dir == "outcome_data"
    assert config.registry.persist is False

    assert config.logging.level == "INFO"
    assert config.logging.enable_file_logging is False


def test_engine_config_rejects_negative_bound() -> None:
    """Test that a negative revision bound is invalid."""
    with pytest.raises(ValidationError):
        EngineConfig(max_revisions=-1)


def test_engine_config_rejects_unbounded_revisions() -> None:
    """Test that the revision bound stays reasonable."""
    with pytest.raises(ValidationError, match="should not exceed 100"):
        EngineConfig(max_revisions=101)


def test_engine_config_zero_bound_allowed() -> None:
    """Test that zero revisions is a valid bound."""
    assert EngineConfig(max_revisions=0).max_revisions == 0


def test_registry_store_path_is_absolute(tmp_path) -> None:
    """Test store_path resolution."""
    registry = RegistryConfig(store_dir=str(tmp_path / "outcomes"))

    assert registry.store_path.is_absolute()
    assert registry.store_path == (tmp_path / "outcomes").resolve()


def test_relative_store_path_resolves_against_cwd() -> None:
    """Test a relative store directory."""
    assert RegistryConfig().store_path == Path("outcome_data").resolve()


def test_log_config_rejects_unknown_level() -> None:
    """Test LogConfig level validation."""
    with pytest.raises(ValidationError):
        LogConfig(level="VERBOSE")


def test_config_from_env(monkeypatch) -> None:
    """Test loading configuration from environment variables."""
    monkeypatch.setenv("DIALECTICS_MAX_REVISIONS", "5")
    monkeypatch.setenv("DIALECTICS_UNANSWERED_ELIMINATES", "false")
    monkeypatch.setenv("DIALECTICS_STORE_DIR", "/tmp/dialectics-store")
    monkeypatch.setenv("DIALECTICS_PERSIST_OUTCOMES", "yes")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("DIALECTICS_FILE_LOGGING", "1")

    config = Config.from_env()

    assert config.engine.max_revisions == 5
    assert config.engine.unanswered_challenge_eliminates is False
    assert config.registry.store_dir == "/tmp/dialectics-store"
    assert config.registry.persist is True
    assert config.logging.level == "DEBUG"
    assert config.logging.enable_file_logging is True


def test_config_from_env_defaults(monkeypatch) -> None:
    """Test from_env falls back to defaults when variables are unset."""
    for name in (
        "DIALECTICS_MAX_REVISIONS",
        "DIALECTICS_UNANSWERED_ELIMINATES",
        "DIALECTICS_STORE_DIR",
        "DIALECTICS_PERSIST_OUTCOMES",
        "LOG_LEVEL",
        "DIALECTICS_FILE_LOGGING",
    ):
        monkeypatch.delenv(name, raising=False)

    config = Config.from_env()

    assert config.engine.max_revisions == 3
    assert config.registry.persist is False
    assert config.logging.level == "INFO"


def test_config_from_env_invalid_bound(monkeypatch) -> None:
    """Test that an out-of-range bound from the environment is rejected."""
    monkeypatch.setenv("DIALECTICS_MAX_REVISIONS", "500")

    with pytest.raises(ValidationError):
        Config.from_env()
