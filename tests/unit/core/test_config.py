"""Tests for settings models and loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from dagmanager.core.config import (
    DEFAULT_MAX_HOPS,
    DagSettings,
    DatabaseSettings,
    _expand_env_vars,
    load_settings,
)


class TestDagSettings:
    def test_defaults(self) -> None:
        settings = DagSettings()
        assert settings.max_hops == DEFAULT_MAX_HOPS == 5
        assert settings.default_connection == "default"
        assert settings.connection_settings().url == "sqlite:///./dag.db"
        assert settings.logging.level == "INFO"

    def test_negative_max_hops_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DagSettings(max_hops=-1)

    def test_zero_max_hops_allowed(self) -> None:
        assert DagSettings(max_hops=0).max_hops == 0

    def test_default_connection_must_exist(self) -> None:
        with pytest.raises(ValidationError, match="default_connection 'reporting' is not configured"):
            DagSettings(default_connection="reporting")

    def test_named_connection_lookup(self) -> None:
        settings = DagSettings(
            connections={
                "default": DatabaseSettings(url="sqlite:///a.db"),
                "reporting": DatabaseSettings(url="sqlite:///b.db", isolation_level="SERIALIZABLE"),
            }
        )
        assert settings.connection_settings("reporting").url == "sqlite:///b.db"
        assert settings.connection_settings("reporting").isolation_level == "SERIALIZABLE"

    def test_unknown_connection_raises_key_error(self) -> None:
        with pytest.raises(KeyError, match="nope"):
            DagSettings().connection_settings("nope")

    def test_frozen(self) -> None:
        settings = DagSettings()
        with pytest.raises(ValidationError):
            settings.max_hops = 9  # type: ignore[misc]

    def test_unknown_isolation_level_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DatabaseSettings(url="sqlite://", isolation_level="SOMETIMES")  # type: ignore[arg-type]


class TestExpandEnvVars:
    def test_expands_set_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DAG_DB_HOST", "db.internal")
        result = _expand_env_vars({"connections": {"default": {"url": "postgresql://${DAG_DB_HOST}/app"}}})
        assert result["connections"]["default"]["url"] == "postgresql://db.internal/app"

    def test_uses_default_when_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DAG_DB_HOST", raising=False)
        result = _expand_env_vars({"url": "postgresql://${DAG_DB_HOST:-localhost}/app"})
        assert result["url"] == "postgresql://localhost/app"

    def test_keeps_pattern_without_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DAG_DB_HOST", raising=False)
        result = _expand_env_vars({"url": "${DAG_DB_HOST}"})
        assert result["url"] == "${DAG_DB_HOST}"

    def test_non_strings_untouched(self) -> None:
        assert _expand_env_vars({"max_hops": 3, "items": [1, "x"]}) == {"max_hops": 3, "items": [1, "x"]}


class TestLoadSettings:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.yaml")

    def test_loads_yaml(self, tmp_path: Path) -> None:
        config = tmp_path / "settings.yaml"
        db_url = f"sqlite:///{tmp_path / 'dag.db'}"
        config.write_text(
            f"""
max_hops: 3
default_connection: main
connections:
  main:
    url: "{db_url}"
logging:
  level: DEBUG
"""
        )
        settings = load_settings(config)
        assert settings.max_hops == 3
        assert settings.connection_settings().url == db_url
        assert settings.logging.level == "DEBUG"

    def test_environment_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config = tmp_path / "settings.yaml"
        config.write_text("max_hops: 3\n")
        monkeypatch.setenv("DAGMANAGER_MAX_HOPS", "7")
        assert load_settings(config).max_hops == 7

    def test_invalid_values_fail_validation(self, tmp_path: Path) -> None:
        config = tmp_path / "settings.yaml"
        config.write_text("max_hops: -2\n")
        with pytest.raises(ValidationError):
            load_settings(config)
