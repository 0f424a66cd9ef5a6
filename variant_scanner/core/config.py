"""Configuration management for Variant Family Scanner."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_dir = Path.home() / ".variant-family-scanner"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_dir = get_config_dir() / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_db_path() -> Path:
    """Get the SQLite database file path."""
    return get_data_dir() / "scanner.db"


class ApiConfig(BaseModel):
    """Rainforest API configuration."""

    rainforest_api_key: str = ""
    amazon_domain: str = "amazon.com"
    base_url: str = "https://api.rainforestapi.com/request"
    timeout_seconds: int = 60
    mock_mode: bool = False


class ExportConfig(BaseModel):
    """Export configuration."""

    output_dir: str = ""  # Empty means <data dir>/exports
    default_format: Literal["csv", "xlsx"] = "csv"
    include_crosstab: bool = True


class StoreConfig(BaseModel):
    """Store catalog configuration."""

    expand_categories: bool = True  # One level only, never recursive
    max_products: int = 500


class WebConfig(BaseModel):
    """Web job server configuration."""

    host: str = "0.0.0.0"
    port: int = 3000
    job_ttl_seconds: int = 3600


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=str(get_config_dir() / ".env"),
        env_file_encoding="utf-8",
        env_prefix="VFS_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    api: ApiConfig = Field(default_factory=ApiConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    web: WebConfig = Field(default_factory=WebConfig)

    log_level: str = "INFO"
    debug_mode: bool = False

    def get_export_dir(self) -> Path:
        """Get the directory exports are written to."""
        if self.export.output_dir:
            export_dir = Path(self.export.output_dir).expanduser()
        else:
            export_dir = get_data_dir() / "exports"
        export_dir.mkdir(parents=True, exist_ok=True)
        return export_dir

    def save(self) -> None:
        """Save settings to the config file."""
        config_path = get_config_dir() / "settings.json"
        data = self.model_dump(mode="json")
        # The API key lives in .env only
        data["api"]["rainforest_api_key"] = ""
        with open(config_path, "w") as f:
            json.dump(data, f, indent=2)

    @classmethod
    def load(cls) -> "Settings":
        """Load settings from the config file or create defaults."""
        config_path = get_config_dir() / "settings.json"
        env_path = get_config_dir() / ".env"

        # Start with defaults
        settings = cls()

        # Load from JSON if exists
        if config_path.exists():
            try:
                with open(config_path) as f:
                    data = json.load(f)
                settings = cls.model_validate(data)
            except (OSError, ValueError) as e:
                logger.warning(f"Ignoring unreadable settings file {config_path}: {e}")

        # Override API settings from .env if present
        if env_path.exists():
            from dotenv import dotenv_values

            env_vars = dotenv_values(env_path)
            if env_vars.get("VFS_RAINFOREST_API_KEY"):
                settings.api.rainforest_api_key = env_vars["VFS_RAINFOREST_API_KEY"]
            if env_vars.get("VFS_AMAZON_DOMAIN"):
                settings.api.amazon_domain = env_vars["VFS_AMAZON_DOMAIN"]
            if env_vars.get("VFS_MOCK_MODE"):
                settings.api.mock_mode = env_vars["VFS_MOCK_MODE"].lower() in (
                    "true",
                    "1",
                    "yes",
                )

        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from disk."""
    global _settings
    _settings = Settings.load()
    return _settings
