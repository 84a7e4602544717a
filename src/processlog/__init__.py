"""
Structured per-process-instance logging for a workflow engine.

Provides level-filtered logging with two mutually exclusive output paths:
- structured records fanned out to sinks (console, rotating file, custom)
- single formatted lines handed to a caller-supplied raw appender

Library: structlog for the record pipeline + orjson for JSON serialization.
"""

from .context import ProcessContext
from .core import configure_logging, get_default_registry, get_logger, shutdown_logging
from .exceptions import FormatFailure, ProcessLogError, SinkWriteFailure, UnknownLevel
from .formatters import LogRecord
from .interceptors import ProcessLogHandler
from .levels import SeverityLevel, name_of, ordinal_of
from .logger import Logger
from .registry import SinkRegistry
from .sinks import BaseSink, ConsoleSink, FileSink, QueueSink, SinkConfig, SinkKind

__all__ = [
    "BaseSink",
    "ConsoleSink",
    "FileSink",
    "FormatFailure",
    "LogRecord",
    "Logger",
    "ProcessContext",
    "ProcessLogError",
    "ProcessLogHandler",
    "QueueSink",
    "SeverityLevel",
    "SinkConfig",
    "SinkKind",
    "SinkRegistry",
    "SinkWriteFailure",
    "UnknownLevel",
    "configure_logging",
    "get_default_registry",
    "get_logger",
    "name_of",
    "ordinal_of",
    "shutdown_logging",
]
