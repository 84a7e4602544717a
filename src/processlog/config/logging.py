"""
Logging Configuration.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from processlog.levels import SeverityLevel
from processlog.sinks import DEFAULT_BACKUP_COUNT, DEFAULT_FILE_PATH, DEFAULT_MAX_BYTES


class LogFormat(str, Enum):
    CONSOLE = "console"
    JSON = "json"


class LoggingSettings(BaseSettings):
    """Process logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PL_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    level: SeverityLevel = Field(default=SeverityLevel.ERROR, description="Default logger threshold")
    sinks: str = Field(default="console,file", description="Comma-separated sink names (console, file)")
    console_format: LogFormat = Field(default=LogFormat.CONSOLE, description="Console output format")
    console_colorize: Optional[bool] = Field(default=None, description="Force console colors; unset = autodetect tty")
    console_level: Optional[SeverityLevel] = Field(default=None, description="Console sink minimum severity")
    file_path: str = Field(default=DEFAULT_FILE_PATH, description="Path for file sink")
    file_level: SeverityLevel = Field(default=SeverityLevel.VERBOSE, description="File sink minimum severity")
    file_max_bytes: int = Field(default=DEFAULT_MAX_BYTES, gt=0, description="Rotate once the file exceeds this size")
    file_backup_count: int = Field(default=DEFAULT_BACKUP_COUNT, ge=0, description="Rotated files to retain")

    @field_validator("level", "console_level", "file_level", mode="before")
    @classmethod
    def _parse_level(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        try:
            return SeverityLevel.parse(value)
        except KeyError as exc:
            raise ValueError(str(exc)) from exc

    @property
    def sink_names(self) -> list[str]:
        return [name.strip().lower() for name in self.sinks.split(",") if name.strip()]
