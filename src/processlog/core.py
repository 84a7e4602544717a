"""
Core logging configuration: the process-wide default sink set and the
diagnostics channel the library reports its own failures on.
"""

from __future__ import annotations

import logging
import sys
import threading
from typing import Any, Optional

import structlog

from .config import LoggingSettings, settings
from .levels import SeverityLevel
from .registry import SinkRegistry
from .sinks import ConsoleSink, FileSink, SinkConfig

# =============================================================================
# Global State
# =============================================================================

_default_registry: Optional[SinkRegistry] = None
_default_threshold: Optional[SeverityLevel] = None
_lock = threading.Lock()


# =============================================================================
# Diagnostics Channel
# =============================================================================


class _StderrLogger:
    """Writes rendered lines to the current ``sys.stderr``."""

    def msg(self, message: str) -> None:
        stream = sys.stderr
        if stream is None:
            return
        stream.write(message + "\n")
        stream.flush()

    log = debug = info = warning = error = critical = msg


def get_logger(name: str | None = None) -> Any:
    """Get the structured diagnostics logger.

    It renders straight to standard error and never routes through a sink
    registry. Global structlog configuration is left untouched.
    """
    return structlog.wrap_logger(
        _StderrLogger(),
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.KeyValueRenderer(
                key_order=["timestamp", "level", "logger", "event"], drop_missing=True
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
    ).bind(logger=name or "processlog")


# =============================================================================
# Configuration Logic
# =============================================================================


def build_registry(config: LoggingSettings | None = None) -> SinkRegistry:
    """Create a registry holding the builtin sinks named in ``config.sinks``."""
    config = config or settings.logging
    registry = SinkRegistry()

    for name in config.sink_names:
        if name == "console":
            registry.add(
                ConsoleSink(fmt=config.console_format.value, colorize=config.console_colorize),
                SinkConfig(level=config.console_level),
            )
        elif name == "file":
            registry.add(
                FileSink(config.file_path, config.file_max_bytes, config.file_backup_count),
                SinkConfig(level=config.file_level),
            )
        else:
            get_logger(__name__).warning("unknown sink name ignored", sink=name)

    return registry


def get_default_registry() -> SinkRegistry:
    """Return the shared sink set, building it from settings on first use."""
    global _default_registry
    with _lock:
        if _default_registry is None:
            _default_registry = build_registry()
        return _default_registry


def get_default_threshold() -> SeverityLevel:
    return _default_threshold if _default_threshold is not None else settings.logging.level


def configure_logging(
    *,
    level: SeverityLevel | str | None = None,
    sinks: str | None = None,
    console_format: str | None = None,
    console_colorize: bool | None = None,
    file_path: str | None = None,
    file_level: SeverityLevel | str | None = None,
    file_max_bytes: int | None = None,
    file_backup_count: int | None = None,
) -> SinkRegistry:
    """
    Rebuild the shared sink set. Unset arguments fall back to ``settings.logging``.

    Args:
        level: Default threshold for loggers created afterwards
        sinks: Comma-separated builtin sink names (console, file)
        console_format: Console output format (console, json)
        console_colorize: Force console colors on or off
        file_path: Path for file sink
        file_level: File sink minimum severity
        file_max_bytes: Rotation size for file sink
        file_backup_count: Rotated files retained by file sink
    """
    global _default_registry, _default_threshold

    overrides = {
        key: value
        for key, value in {
            "level": level,
            "sinks": sinks,
            "console_format": console_format,
            "console_colorize": console_colorize,
            "file_path": file_path,
            "file_level": file_level,
            "file_max_bytes": file_max_bytes,
            "file_backup_count": file_backup_count,
        }.items()
        if value is not None
    }
    config = LoggingSettings(**{**settings.logging.model_dump(), **overrides})
    registry = build_registry(config)

    with _lock:
        previous, _default_registry = _default_registry, registry
        _default_threshold = config.level

    if previous is not None:
        previous.close()
    return registry


def shutdown_logging() -> None:
    """Drain and close the shared sink set."""
    global _default_registry
    with _lock:
        previous, _default_registry = _default_registry, None
    if previous is not None:
        previous.close()
