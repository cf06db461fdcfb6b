"""energyindex configuration: Pydantic BaseSettings loaded from the environment / .env."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import canon, exceptions


class Settings(BaseSettings):
    log_level: str = "INFO"
    log_file: Optional[str] = None  # also write log records here when set
    error_log_file: Optional[str] = None  # WARNING and above only

    # Binary store used by the command line
    store_path: str = canon.DEFAULT_STORE_PATH

    # CSV import
    csv_path: str = canon.DEFAULT_CSV_PATH
    csv_delimiter: str = canon.DEFAULT_DELIMITER
    csv_timestamp_format: str = canon.DEFAULT_TIMESTAMP_FORMAT

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ENERGYINDEX_",
        extra="ignore",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalise_log_level(cls, value: str) -> str:
        level = str(value).strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level {value!r}")
        return level

    @field_validator("csv_delimiter")
    @classmethod
    def non_empty_delimiter(cls, value: str) -> str:
        if not value:
            raise ValueError("csv_delimiter must not be empty")
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as exc:
        raise exceptions.ConfigError(f"Invalid settings: {exc}") from exc
