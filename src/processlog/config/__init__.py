"""
Processlog Configuration Module.

Nested settings: each concern is its own settings class with its own
environment variable prefix.

Usage:
    from processlog.config import settings

    settings.logging.level      # SeverityLevel.ERROR
    settings.logging.file_path  # "./process.log"
"""

from functools import cached_property

from pydantic_settings import BaseSettings, SettingsConfigDict

from .logging import LogFormat, LoggingSettings


class Settings(BaseSettings):
    """Composite settings aggregating the configuration domains."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @cached_property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


# Singleton instance
settings = Settings()

__all__ = [
    "LogFormat",
    "LoggingSettings",
    "Settings",
    "settings",
]
