"""Configuration system for the Dune query client.

Loads configuration from:
1. JSON file specified by DUNE_CONFIG env var
2. Environment variable overrides with DUNE_ prefix
   - The API key is read from DUNE_API_KEY
   - Nested keys use double underscore: DUNE_POLLING__INTERVAL
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://api.dune.com/api/v1"


class PollingConfig(BaseSettings):
    """Configuration for the execution status polling loop."""

    model_config = SettingsConfigDict(
        env_prefix="DUNE_POLLING__",
        env_nested_delimiter="__",
    )

    interval: float = Field(
        default=5.0, ge=0, description="Seconds to sleep before each status check"
    )
    transport_retries: int = Field(
        default=0,
        ge=0,
        description="Consecutive transport errors tolerated while polling (0 aborts immediately)",
    )


class OTelConfig(BaseSettings):
    """Configuration for OpenTelemetry."""

    model_config = SettingsConfigDict(
        env_prefix="DUNE_OTEL__",
        env_nested_delimiter="__",
    )

    enabled: bool = Field(default=False, description="Enable OpenTelemetry instrumentation")
    endpoint: str = Field(
        default="http://localhost:4317", description="OTLP exporter endpoint"
    )
    insecure: bool = Field(default=True, description="Use an insecure OTLP channel")
    service_name: str = Field(default="dune-query", description="Service name for traces")


class DuneSettings(BaseSettings):
    """Root configuration for the Dune query client."""

    model_config = SettingsConfigDict(
        env_prefix="DUNE_",
        env_nested_delimiter="__",
        env_file=None,
        extra="ignore",
    )

    api_key: str = Field(default="", description="Dune API key sent with every request")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Dune API base URL")
    request_timeout: float = Field(
        default=30.0, gt=0, description="HTTP request timeout in seconds"
    )
    polling: PollingConfig = Field(default_factory=PollingConfig)
    otel: OTelConfig = Field(default_factory=OTelConfig)

    @model_validator(mode="before")
    @classmethod
    def load_from_json_file(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Load configuration from JSON file if DUNE_CONFIG is set."""
        import os

        config_path = os.environ.get("DUNE_CONFIG")
        if config_path:
            path = Path(config_path)
            if not path.exists():
                raise ValueError(f"Config file not found: {config_path}")
            with path.open() as f:
                file_config = json.load(f)
            for key, value in file_config.items():
                if key not in data:
                    data[key] = value
                elif isinstance(value, dict) and isinstance(data.get(key), dict):
                    data[key] = {**value, **data[key]}
        return data


_settings: DuneSettings | None = None


def get_settings() -> DuneSettings:
    """Get the client settings (cached)."""
    global _settings
    if _settings is None:
        _settings = DuneSettings()
    return _settings


def load_settings(config_path: str | Path | None = None) -> DuneSettings:
    """Load settings, optionally from a specific config file.

    Args:
        config_path: Path to JSON config file. If None, uses DUNE_CONFIG env var.

    Returns:
        Loaded DuneSettings instance.
    """
    import os

    if config_path is not None:
        os.environ["DUNE_CONFIG"] = str(config_path)

    global _settings
    _settings = DuneSettings()
    return _settings


def reset_settings() -> None:
    """Reset cached settings (useful for testing)."""
    global _settings
    _settings = None
