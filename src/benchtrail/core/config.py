"""Configuration management for benchtrail.

This module provides configuration classes using pydantic-settings
for environment variable management and validation.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables with
    the BENCHTRAIL_ prefix.

    Attributes:
        data_path: Location of the benchmark history file.
        repo_url: Repository URL recorded in new history files.
        window_size: Default number of recent entries used for statistics.
        threshold_stddevs: Default regression threshold in standard deviations.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).

    Example:
        >>> # export BENCHTRAIL_DATA_PATH=gh-pages/dev/bench/data.js
        >>> settings = Settings()
        >>> settings.data_path
        PosixPath('gh-pages/dev/bench/data.js')

    Environment Variables:
        BENCHTRAIL_DATA_PATH: History file (default: benchmark-data/data.js)
        BENCHTRAIL_REPO_URL: Repository URL (default: empty)
        BENCHTRAIL_WINDOW_SIZE: Statistics window (default: 20)
        BENCHTRAIL_THRESHOLD_STDDEVS: Regression threshold (default: 2.0)
        BENCHTRAIL_LOG_LEVEL: Logging level (default: WARNING)
    """

    model_config = SettingsConfigDict(
        env_prefix="BENCHTRAIL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    data_path: Path = Field(
        default=Path("benchmark-data/data.js"),
        description="Path to the benchmark history file (.js or .json)",
    )
    repo_url: str = Field(
        default="",
        description="Repository URL stored in newly created history files",
    )
    window_size: int = Field(
        default=20,
        ge=1,
        description="Default number of recent entries used for window statistics",
    )
    threshold_stddevs: float = Field(
        default=2.0,
        gt=0,
        description="Default regression threshold in standard deviations",
    )
    log_level: str = Field(
        default="WARNING",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
