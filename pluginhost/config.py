"""Configuration loading and validation using Pydantic models."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .plugins.constants import ARCHIVE_SUFFIXES, METADATA_FILENAME, PLUGIN_SYMBOL


class LoggingConfig(BaseModel):
    level: str = Field("INFO", description="Minimum log level for all sinks.")
    log_dir: Optional[Path] = Field(
        None,
        description="Directory for the rotating log file; console only when unset.",
    )
    file_name: str = Field("pluginhost.log", description="Log file name inside log_dir.")
    rotation: str = Field("10 MB", description="Loguru rotation policy for the log file.")
    retention: int = Field(5, ge=1, description="Rotated log files to keep.")


class HostConfig(BaseModel):
    archive_dir: Optional[Path] = Field(
        None,
        description="Directory holding the plugin zip archives.",
    )
    cache_dir: Optional[Path] = Field(
        None,
        description="Directory the archives are extracted into.",
    )
    metadata_filename: str = Field(
        METADATA_FILENAME,
        description="Fixed name of the metadata file at each plugin root.",
    )
    archive_suffixes: list[str] = Field(
        default_factory=lambda: list(ARCHIVE_SUFFIXES),
        description="File suffixes recognized as plugin archives.",
    )
    plugin_symbol: str = Field(
        PLUGIN_SYMBOL,
        description="Exported symbol resolved when the import path names none.",
    )
    logging: LoggingConfig = LoggingConfig()

    @field_validator("metadata_filename")
    @classmethod
    def _validate_metadata_filename(cls, value: str) -> str:
        if not value or "/" in value or "\\" in value:
            raise ValueError("metadata_filename must be a bare file name")
        return value

    @field_validator("archive_suffixes")
    @classmethod
    def _validate_suffixes(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("archive_suffixes must not be empty")
        normalized = []
        for suffix in value:
            suffix = suffix.lower()
            if not suffix.startswith("."):
                suffix = f".{suffix}"
            normalized.append(suffix)
        return normalized


def load_config(path: Path | str) -> HostConfig:
    """Load YAML configuration from disk."""

    config_path = Path(path)
    with config_path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    return HostConfig.model_validate(data or {})
