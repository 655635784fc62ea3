"""Tests for configuration system."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from dune_query.config import (
    DEFAULT_BASE_URL,
    DuneSettings,
    OTelConfig,
    PollingConfig,
    get_settings,
    load_settings,
    reset_settings,
)

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Clean environment and reset settings before/after each test."""
    env_vars_to_remove = [key for key in os.environ if key.startswith("DUNE_")]
    for key in env_vars_to_remove:
        monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()


class TestPollingConfig:
    """Tests for PollingConfig."""

    def test_defaults(self) -> None:
        config = PollingConfig()
        assert config.interval == 5.0
        assert config.transport_retries == 0

    def test_custom_values(self) -> None:
        config = PollingConfig(interval=0.5, transport_retries=3)
        assert config.interval == 0.5
        assert config.transport_retries == 3

    def test_validation(self) -> None:
        with pytest.raises(ValueError):
            PollingConfig(interval=-1)
        with pytest.raises(ValueError):
            PollingConfig(transport_retries=-1)


class TestOTelConfig:
    """Tests for OTelConfig."""

    def test_defaults(self) -> None:
        config = OTelConfig()
        assert config.enabled is False
        assert config.endpoint == "http://localhost:4317"
        assert config.service_name == "dune-query"

    def test_enabled(self) -> None:
        config = OTelConfig(enabled=True, endpoint="http://otel:4317")
        assert config.enabled is True
        assert config.endpoint == "http://otel:4317"


class TestDuneSettings:
    """Tests for root DuneSettings."""

    def test_defaults(self) -> None:
        settings = DuneSettings()
        assert settings.api_key == ""
        assert settings.base_url == DEFAULT_BASE_URL
        assert settings.request_timeout == 30.0
        assert settings.polling.interval == 5.0
        assert settings.otel.enabled is False

    def test_api_key_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DUNE_API_KEY", "secret")
        settings = DuneSettings()
        assert settings.api_key == "secret"

    def test_timeout_validation(self) -> None:
        with pytest.raises(ValueError):
            DuneSettings(request_timeout=0)

    def test_load_from_json_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "config.json"
        config_data = {
            "base_url": "http://localhost:9000/api/v1",
            "polling": {"interval": 1.5, "transport_retries": 2},
        }
        config_file.write_text(json.dumps(config_data))

        monkeypatch.setenv("DUNE_CONFIG", str(config_file))
        settings = DuneSettings()

        assert settings.base_url == "http://localhost:9000/api/v1"
        assert settings.polling.interval == 1.5
        assert settings.polling.transport_retries == 2

    def test_config_file_not_found(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DUNE_CONFIG", str(tmp_path / "nonexistent.json"))
        with pytest.raises(ValueError, match="Config file not found"):
            DuneSettings()

    def test_env_var_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DUNE_POLLING__INTERVAL", "0.25")
        monkeypatch.setenv("DUNE_REQUEST_TIMEOUT", "12")

        settings = DuneSettings()
        assert settings.polling.interval == 0.25
        assert settings.request_timeout == 12.0

    def test_json_file_with_env_overrides(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_file = tmp_path / "config.json"
        config_data = {"polling": {"interval": 3.0, "transport_retries": 4}}
        config_file.write_text(json.dumps(config_data))

        monkeypatch.setenv("DUNE_CONFIG", str(config_file))
        monkeypatch.setenv("DUNE_POLLING__INTERVAL", "1.0")

        settings = DuneSettings()
        assert settings.polling.interval == 1.0  # Env var wins
        assert settings.polling.transport_retries == 4  # From file


class TestGetSettings:
    """Tests for get_settings function."""

    def test_caching(self) -> None:
        settings1 = get_settings()
        settings2 = get_settings()
        assert settings1 is settings2

    def test_reset_clears_cache(self) -> None:
        settings1 = get_settings()
        reset_settings()
        settings2 = get_settings()
        assert settings1 is not settings2


class TestLoadSettings:
    """Tests for load_settings function."""

    @pytest.fixture(autouse=True)
    def restore_config_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """load_settings writes DUNE_CONFIG; make sure it is removed afterwards."""
        monkeypatch.setenv("DUNE_CONFIG", "")

    def test_load_from_path(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"api_key": "from-file"}))

        settings = load_settings(config_file)
        assert settings.api_key == "from-file"
        assert get_settings() is settings

    def test_load_with_string_path(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"request_timeout": 5}))

        settings = load_settings(str(config_file))
        assert settings.request_timeout == 5.0
