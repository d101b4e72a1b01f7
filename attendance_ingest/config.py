"""
Configuration Module
====================

Loads application settings from environment variables and an optional
``.env`` file: log level, processing-year override, default sheet and
output naming for the command-line runner.
"""

from datetime import date
from typing import Optional

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class Settings(BaseSettings):
    """
    Application settings, populated from the environment.

    Attributes:
        LOG_LEVEL: level applied to the ``attendance_ingest`` logger tree
        PROCESSING_YEAR: year assigned to ``DD-MMM`` dates; current year if unset
        DEFAULT_SHEET: sheet name to read when no profile names one
        OUTPUT_JSON_NAME: file name of the CLI result document
    """
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    LOG_LEVEL: str = "INFO"
    PROCESSING_YEAR: Optional[int] = None
    DEFAULT_SHEET: Optional[str] = None
    OUTPUT_JSON_NAME: str = "attendance_result.json"

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = (v or "").strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}, got {v!r}")
        return level

    @field_validator("PROCESSING_YEAR")
    @classmethod
    def validate_processing_year(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and not 1900 <= v <= 9999:
            raise ValueError(f"PROCESSING_YEAR out of range: {v}")
        return v

    def processing_date(self, today: Optional[date] = None) -> date:
        """Reference date for year/month defaults, honouring PROCESSING_YEAR."""
        today = today or date.today()
        if self.PROCESSING_YEAR is None:
            return today
        return date(self.PROCESSING_YEAR, today.month, 1)


# Process-wide singleton
_settings_instance = None


def get_settings() -> Settings:
    """Return the cached settings, creating them on first use."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings_instance
    _settings_instance = None
