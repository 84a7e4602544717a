"""
Log sink abstractions and concrete implementations.

Every sink carries a SinkKind tag. The registry keeps at most one CONSOLE and
one FILE sink active; CUSTOM sinks always coexist.
"""

from __future__ import annotations

import queue
import sys
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO, Any, Literal, Optional

from .formatters import ConsoleFormatter, LogRecord, orjson_dumps
from .levels import SeverityLevel

LogFormat = Literal["console", "json"]

DEFAULT_FILE_PATH = "./process.log"
DEFAULT_MAX_BYTES = 64 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 100


class SinkKind(Enum):
    CONSOLE = "console"
    FILE = "file"
    CUSTOM = "custom"


@dataclass(frozen=True)
class SinkConfig:
    """Registration options for a sink.

    ``kind`` and ``level`` default to the sink's own declaration when unset.
    """

    kind: Optional[SinkKind] = None
    level: Optional[SeverityLevel] = None


# =============================================================================
# Sink Abstraction (Strategy Pattern)
# =============================================================================


class BaseSink(ABC):
    """Abstract base class for log sinks."""

    kind: SinkKind = SinkKind.CUSTOM
    default_level: Optional[SeverityLevel] = None

    @abstractmethod
    def emit(self, record: LogRecord) -> None:
        """Persist or forward a record. May raise; the registry reports failures."""
        ...

    def close(self) -> None:
        """Close the sink and release resources."""


class ConsoleSink(BaseSink):
    """Standard I/O sink, colorized by severity.

    Args:
        fmt: "console" (aligned human-readable) or "json" (one record per line)
        stream: output stream (default: stdout at write time)
        colorize: force colors on/off; None colors only when the stream is a tty
    """

    kind = SinkKind.CONSOLE

    def __init__(
        self,
        fmt: LogFormat = "console",
        stream: Optional[IO[str]] = None,
        colorize: Optional[bool] = None,
        formatter: Optional[ConsoleFormatter] = None,
    ) -> None:
        self._fmt = fmt
        self._stream = stream
        self._colorize = colorize
        self._formatter = formatter or ConsoleFormatter()

    @property
    def stream(self) -> IO[str]:
        return self._stream or sys.stdout

    def _use_color(self, stream: IO[str]) -> bool:
        if self._colorize is not None:
            return self._colorize
        return bool(getattr(stream, "isatty", lambda: False)())

    def emit(self, record: LogRecord) -> None:
        stream = self.stream
        if self._fmt == "json":
            output = orjson_dumps({"level": record.level, "message": record.message})
        else:
            output = self._formatter.format(record, use_color=self._use_color(stream))

        stream.write(output + "\n")
        stream.flush()


class FileSink(BaseSink):
    """Local append-only file sink with size rotation (JSON lines).

    The file is opened on the first write. Once it grows past ``max_bytes`` it
    is renamed to ``<stem>.1<suffix>``, older backups shift up by one and
    anything beyond ``backup_count`` is discarded.
    """

    kind = SinkKind.FILE
    default_level = SeverityLevel.VERBOSE

    def __init__(
        self,
        path: str | Path = DEFAULT_FILE_PATH,
        max_bytes: int = DEFAULT_MAX_BYTES,
        backup_count: int = DEFAULT_BACKUP_COUNT,
    ) -> None:
        self._path = Path(path)
        self._max_bytes = max_bytes
        self._backup_count = backup_count
        self._file: Optional[IO[str]] = None
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def backup_path(self, index: int) -> Path:
        return self._path.with_name(f"{self._path.stem}.{index}{self._path.suffix}")

    def _open(self) -> IO[str]:
        if self._file is None or self._file.closed:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self._path, "a", encoding="utf-8")
        return self._file

    def emit(self, record: LogRecord) -> None:
        line = orjson_dumps(
            {
                "level": record.level,
                "message": record.message,
                "timestamp": int(record.timestamp * 1000),
            }
        )
        with self._lock:
            handle = self._open()
            handle.write(line + "\n")
            handle.flush()
            self._maybe_rotate()

    def _maybe_rotate(self) -> None:
        if self._path.stat().st_size <= self._max_bytes:
            return
        if self._file is not None:
            self._file.close()
            self._file = None
        if self._backup_count <= 0:
            self._path.unlink()
            return
        for i in range(self._backup_count - 1, 0, -1):
            src = self.backup_path(i)
            if src.exists():
                src.replace(self.backup_path(i + 1))
        self._path.replace(self.backup_path(1))

    def close(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None


class QueueSink(BaseSink):
    """Forwards records to a thread-safe queue (GUI viewers, tests).

    Never blocks: a full queue drops the record and reports the failure.
    """

    def __init__(self, target: Optional[queue.Queue[Any]] = None) -> None:
        self.queue: queue.Queue[Any] = target if target is not None else queue.Queue()

    def emit(self, record: LogRecord) -> None:
        self.queue.put_nowait(record)

    def drain(self) -> list[LogRecord]:
        records = []
        while True:
            try:
                records.append(self.queue.get_nowait())
            except queue.Empty:
                return records
