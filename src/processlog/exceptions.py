"""
Process logging exception hierarchy.

Logging is diagnostic infrastructure: these exceptions are raised by strict
helpers and caught at the logger or registry boundary. None of them ever
propagates out of ``Logger.log``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ProcessLogError(Exception):
    """Root of all process logging errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}


class UnknownLevel(ProcessLogError, KeyError):
    """A severity name or ordinal has no mapping on the scale."""

    def __init__(self, value: Any) -> None:
        super().__init__(
            f"Unknown severity level: {value!r}",
            code="UNKNOWN_LEVEL",
            details={"value": value},
        )
        self.value = value

    def __str__(self) -> str:
        # KeyError would otherwise render the message quoted
        return str(self.args[0])


class SinkWriteFailure(ProcessLogError):
    """A sink failed to persist a record (I/O error, rotation failure)."""

    def __init__(self, sink: Any, cause: BaseException) -> None:
        super().__init__(
            f"Write to {type(sink).__name__} failed: {cause}",
            code="SINK_WRITE_FAILURE",
            details={"sink": type(sink).__name__},
        )
        self.sink = sink
        self.cause = cause


class FormatFailure(ProcessLogError):
    """A payload could not be serialized (e.g. circular structure)."""

    def __init__(self, payload: Any, cause: BaseException) -> None:
        super().__init__(
            f"Could not serialize payload of type {type(payload).__name__}: {cause}",
            code="FORMAT_FAILURE",
            details={"payload_type": type(payload).__name__},
        )
        self.payload = payload
        self.cause = cause
