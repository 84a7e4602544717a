"""
Message formatting for process logs.

Two renderings of the same log call:
- structured: ``{"process", "id", "description", "data"?}`` serialized to one
  JSON string, wrapped in a LogRecord for the sinks
- raw: ``[level][process][id][description][data]`` for a caller-supplied appender

Plus the human-readable console rendering used by the console sink.
"""

from __future__ import annotations

import dataclasses
import time
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import orjson
from structlog.typing import EventDict, WrappedLogger

from .context import ProcessContext, ProcessId
from .exceptions import FormatFailure
from .levels import LEVEL_COLORS, SeverityLevel, name_of

# =============================================================================
# JSON Serialization
# =============================================================================


def orjson_dumps(v: Any) -> str:
    """Serialize with orjson, raising FormatFailure on unserializable input."""
    try:
        return orjson.dumps(v, default=_plain, option=orjson.OPT_NON_STR_KEYS).decode()
    except (orjson.JSONEncodeError, TypeError) as exc:
        raise FormatFailure(v, exc) from exc


def _plain(v: Any) -> str:
    try:
        return str(v)
    except Exception:
        return object.__repr__(v)


def _is_structured(v: Any) -> bool:
    if isinstance(v, (str, bytes, bytearray)):
        return False
    if isinstance(v, (Mapping, list, tuple, set, frozenset)):
        return True
    return dataclasses.is_dataclass(v) and not isinstance(v, type)


def render_payload(data: Any) -> str:
    """JSON for structured payloads, plain string form for everything else."""
    if not _is_structured(data):
        return _plain(data)
    try:
        return orjson_dumps(data)
    except FormatFailure as exc:
        _report_degraded(data, exc)
        return _plain(data)


def _report_degraded(payload: Any, failure: FormatFailure) -> None:
    try:
        from .core import get_logger

        get_logger(__name__).warning(
            "payload degraded", payload_type=type(payload).__name__, error=str(failure.cause)
        )
    except Exception:
        pass  # Diagnostics channel unavailable


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class LogRecord:
    """One accepted log call, as delivered to the sinks."""

    severity: int
    process: str
    id: ProcessId
    description: str
    message: str
    # The structured record serialized to a single JSON string.

    data: Any = None
    timestamp: float = dataclasses.field(default_factory=time.time)

    @property
    def level(self) -> str:
        return name_of(self.severity)

    def to_dict(self) -> dict[str, Any]:
        return build_structured_record(self.process, self.id, self.description, self.data)


def build_structured_record(
    process: str, process_id: ProcessId, description: str, data: Any = None
) -> dict[str, Any]:
    record: dict[str, Any] = {"process": process, "id": process_id, "description": description}
    if data is not None:
        record["data"] = data
    return record


def serialize_record(record: dict[str, Any]) -> str:
    """Serialize a structured record; unserializable values degrade to their string form."""
    try:
        return orjson_dumps(record)
    except FormatFailure as exc:
        _report_degraded(record.get("data", record), exc)

    degraded = dict(record)
    if "data" in degraded:
        degraded["data"] = _plain(degraded["data"])
        try:
            return orjson_dumps(degraded)
        except FormatFailure:
            pass
    return orjson_dumps({key: _plain(value) for key, value in degraded.items()})


def render_raw_line(
    severity: int, context: ProcessContext, description: str, data: Any = None
) -> str:
    """Render ``[level][process][id][description]`` plus ``[data]`` when a payload is given."""
    line = f"[{name_of(severity)}][{context.process_name}][{context.process_id}][{description}]"
    if data is not None:
        line += f"[{render_payload(data)}]"
    return line


# =============================================================================
# Structlog Processors
# =============================================================================


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp the event with the current epoch time."""
    event_dict.setdefault("timestamp", time.time())
    return event_dict


def render_structured_record(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> tuple[tuple[LogRecord], dict[str, Any]]:
    """Final processor: turn the event dict into the LogRecord handed to the registry."""
    process = event_dict["process"]
    process_id = event_dict["id"]
    description = event_dict.get("event", "")
    data = event_dict.get("data")
    message = serialize_record(build_structured_record(process, process_id, description, data))
    record = LogRecord(
        severity=event_dict["severity"],
        process=process,
        id=process_id,
        description=description,
        message=message,
        data=data,
        timestamp=event_dict.get("timestamp", time.time()),
    )
    return (record,), {}


# =============================================================================
# Console Formatter (Aligned Columns)
# =============================================================================


class ConsoleFormatter:
    """Human-readable console rendering: ``timestamp | level | message``."""

    _RESET = "\x1b[0m"
    _TIMESTAMP_COLOR = "\x1b[90m"

    def __init__(
        self,
        *,
        timestamp_format: str = "%Y-%m-%d %H:%M:%S",
        level_width: int = 7,
        separator: str = " | ",
    ) -> None:
        self.timestamp_format = timestamp_format
        self.level_width = level_width
        self.separator = separator

    @staticmethod
    def _fit_right(text: str, width: int) -> str:
        if width <= 0:
            return text
        if len(text) > width:
            text = text[:width]
        return f"{text:>{width}}"

    def _colorize_level(self, text: str, severity: int, use_color: bool) -> str:
        if not use_color:
            return text
        try:
            color = LEVEL_COLORS.get(SeverityLevel(severity))
        except ValueError:
            color = None
        if not color:
            return text
        return f"{color}{text}{self._RESET}"

    def format(self, record: LogRecord, *, use_color: bool = True) -> str:
        timestamp = datetime.fromtimestamp(record.timestamp).strftime(self.timestamp_format)
        if use_color:
            timestamp = f"{self._TIMESTAMP_COLOR}{timestamp}{self._RESET}"
        level_text = self._colorize_level(
            self._fit_right(record.level, self.level_width), record.severity, use_color
        )
        return self.separator.join([timestamp, level_text, record.message])
