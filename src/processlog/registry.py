"""
Ordered, level-aware fan-out of log records to sinks.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Union

from .exceptions import SinkWriteFailure
from .formatters import LogRecord
from .levels import SeverityLevel, name_of
from .sinks import BaseSink, SinkConfig, SinkKind

_BUILTIN_KINDS = frozenset({SinkKind.CONSOLE, SinkKind.FILE})


@dataclass(eq=False)
class _SinkEntry:
    sink: BaseSink
    kind: SinkKind
    level: Optional[SeverityLevel]
    # One worker per sink: writes stay ordered per sink and a slow sink
    # never holds up the others.
    executor: ThreadPoolExecutor = field(
        default_factory=lambda: ThreadPoolExecutor(max_workers=1, thread_name_prefix="processlog-sink")
    )

    def accepts(self, severity: int) -> bool:
        return self.level is None or severity >= self.level


class SinkRegistry:
    """
    Ordered collection of sinks, each with its own minimum severity.

    ``write`` never blocks on I/O and never raises: records are handed to each
    sink's worker, and failures are reported on the diagnostics channel
    (standard error by default).
    """

    def __init__(self, sinks: Iterable[BaseSink] = (), *, fallback: Any = None) -> None:
        self._entries: list[_SinkEntry] = []
        self._lock = threading.Lock()
        self._fallback = fallback
        for sink in sinks:
            self.add(sink)

    @property
    def sinks(self) -> tuple[BaseSink, ...]:
        with self._lock:
            return tuple(entry.sink for entry in self._entries)

    def kinds(self) -> tuple[SinkKind, ...]:
        with self._lock:
            return tuple(entry.kind for entry in self._entries)

    def add(self, sink: BaseSink, config: Optional[SinkConfig] = None) -> None:
        """Register a sink; a console or file sink replaces the active one of its kind."""
        config = config or SinkConfig()
        kind = config.kind or sink.kind
        level = config.level if config.level is not None else sink.default_level
        entry = _SinkEntry(sink=sink, kind=kind, level=level)

        with self._lock:
            removed = [e for e in self._entries if e.kind is kind] if kind in _BUILTIN_KINDS else []
            self._entries = [e for e in self._entries if e not in removed]
            self._entries.append(entry)

        for old in removed:
            self._retire(old)

    def remove(self, target: Union[BaseSink, SinkKind]) -> int:
        """Remove a specific sink, or every sink of a kind. Returns how many were removed."""
        with self._lock:
            if isinstance(target, SinkKind):
                removed = [e for e in self._entries if e.kind is target]
            else:
                removed = [e for e in self._entries if e.sink is target]
            self._entries = [e for e in self._entries if e not in removed]

        for entry in removed:
            self._retire(entry)
        return len(removed)

    def write(self, record: LogRecord) -> None:
        """Submit a record to every sink whose minimum severity it meets, in registration order."""
        with self._lock:
            entries = list(self._entries)

        for entry in entries:
            if not entry.accepts(record.severity):
                continue
            try:
                entry.executor.submit(self._deliver, entry, record)
            except RuntimeError:
                # Sink was removed concurrently; the record is dropped for it.
                continue

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait for all submitted writes. Returns False if the timeout expired first."""
        with self._lock:
            entries = list(self._entries)

        markers: list[Future[None]] = []
        for entry in entries:
            try:
                markers.append(entry.executor.submit(lambda: None))
            except RuntimeError:
                continue
        _, pending = wait(markers, timeout=timeout)
        return not pending

    def close(self) -> None:
        """Drain and close every sink."""
        with self._lock:
            entries, self._entries = self._entries, []
        for entry in entries:
            self._retire(entry)

    # =========================================================================
    # Internals
    # =========================================================================

    def _deliver(self, entry: _SinkEntry, record: LogRecord) -> None:
        try:
            entry.sink.emit(record)
        except Exception as exc:
            self._report(
                "sink write failed",
                SinkWriteFailure(entry.sink, exc),
                kind=entry.kind.value,
                severity=name_of(record.severity),
            )

    def _retire(self, entry: _SinkEntry) -> None:
        entry.executor.shutdown(wait=True)
        try:
            entry.sink.close()
        except Exception as exc:
            self._report("sink close failed", SinkWriteFailure(entry.sink, exc), kind=entry.kind.value)

    def _report(self, event: str, failure: SinkWriteFailure, **kw: Any) -> None:
        try:
            fallback = self._fallback
            if fallback is None:
                from .core import get_logger

                fallback = get_logger("processlog.registry")
            fallback.error(event, sink=failure.details["sink"], error=str(failure.cause), **kw)
        except Exception:
            pass  # Nowhere left to report to
