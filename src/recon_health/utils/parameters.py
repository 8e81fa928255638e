"""
RECON Health settings.

One pydantic model per ``config.yaml`` section, gathered into ``AppConfig``.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from recon_health.utils.exceptions import ConfigurationError


class ProcessingConfig(BaseModel):
    """Calendar settings; the timezone decides what "today" is."""

    timezone: str = "UTC"


class CSVConfig(BaseModel):
    """Candidate encodings and delimiters for CSV exports."""

    encodings: list[str] = Field(default_factory=lambda: ["utf-8-sig", "utf-8", "latin-1"])
    delimiters: list[str] = Field(default_factory=lambda: [",", ";", "\t"])


class GoalDefaultsConfig(BaseModel):
    """Goal values used when the user has not saved any."""

    target_weight: float | None = 85.0
    target_date: str | None = None
    daily_steps: float | None = 10000
    daily_calories: float | None = 500
    daily_sleep: float | None = 420


class LocalStorageConfig(BaseModel):
    """Local JSON file storage configuration."""

    dir: str = "data"


class RemoteStorageConfig(BaseModel):
    """Remote REST storage configuration."""

    url: str = ""
    api_key: str = ""
    metrics_table: str = "daily_metrics"
    goals_table: str = "goals"
    timeout_seconds: float = 10.0
    page_size: int = Field(1000, gt=0, description="Rows fetched per metrics request")


class StorageConfig(BaseModel):
    """Storage adapter selection and settings."""

    backend: str = Field("local", pattern="^(local|remote|memory)$")
    identity: str = "default"
    local: LocalStorageConfig = Field(default_factory=LocalStorageConfig)
    remote: RemoteStorageConfig = Field(default_factory=RemoteStorageConfig)


class IngestionConfig(BaseModel):
    """HTTP ingestion configuration."""

    api_key: str | None = None

    def resolved_api_key(self) -> str | None:
        """Return the configured shared secret, falling back to the API_KEY variable."""
        return self.api_key or os.environ.get("API_KEY") or None


class LoggingConfig(BaseModel):
    """Handlers and level for the recon_health loggers."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str = ""
    console: bool = True


class AppConfig(BaseSettings):
    """All settings, from YAML plus ``RECON_`` environment variables."""

    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    csv: CSVConfig = Field(default_factory=CSVConfig)
    goals: GoalDefaultsConfig = Field(default_factory=GoalDefaultsConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="RECON_", env_nested_delimiter="__", case_sensitive=False
    )


def default_config() -> AppConfig:
    """Build a configuration made entirely of defaults."""
    return AppConfig()


class ParameterLoader:
    """
    Reads ``config.yaml`` into an ``AppConfig``.

    ``RECON_*`` environment variables fill in keys the file leaves unset, e.g.
    ``RECON_STORAGE__BACKEND=memory``.
    """

    def __init__(self, config_path: str = "config/config.yaml") -> None:
        """
        Load and validate a configuration file.

        Args:
            config_path: YAML file to read.

        Raises:
            ConfigurationError: If the file is missing, is not YAML or fails validation.
        """
        self.config_path = Path(config_path)
        self.config: AppConfig = self._read(self.config_path)

    @staticmethod
    def _read(path: Path) -> AppConfig:
        if not path.is_file():
            raise ConfigurationError(f"No configuration at {path}")

        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read {path}: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigurationError(f"{path} must hold a mapping, got {type(raw).__name__}")

        try:
            return AppConfig(**raw)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e

    def get_processing_config(self) -> ProcessingConfig:
        return self.config.processing

    def get_csv_config(self) -> CSVConfig:
        return self.config.csv

    def get_goal_defaults(self) -> GoalDefaultsConfig:
        return self.config.goals

    def get_storage_config(self) -> StorageConfig:
        return self.config.storage

    def get_ingestion_config(self) -> IngestionConfig:
        return self.config.ingestion

    def get_logging_config(self) -> LoggingConfig:
        return self.config.logging

    def get_raw_config(self) -> dict[str, Any]:
        """Configuration as plain data, secrets included."""
        return self.config.model_dump()
