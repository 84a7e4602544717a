"""
Per-process-instance logger used by the workflow engine.

The engine never formats log strings itself: it calls one of the ``log_*``
operations below, each of which fixes a severity and a description template
and delegates to ``Logger.log``.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable, Optional, Union

import structlog

from .context import Event, FlowObject, HostingProcess, ProcessContext
from .core import get_default_registry, get_default_threshold, get_logger
from .formatters import add_timestamp, render_raw_line, render_structured_record
from .levels import SeverityLevel
from .registry import SinkRegistry
from .sinks import BaseSink, SinkConfig, SinkKind

RawAppender = Callable[[str], Any]
LevelLike = Union[SeverityLevel, int, str]


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _name(obj: Any) -> str:
    if obj is None or isinstance(obj, str):
        return _text(obj)
    return _text(getattr(obj, "name", None))


def _attr(obj: Any, attr: str) -> str:
    return _text(getattr(obj, attr, None))


def _error_text(error: Any) -> str:
    if isinstance(error, BaseException):
        message = str(error)
        return f"{type(error).__name__}: {message}" if message else type(error).__name__
    return _text(error)


class Logger:
    """
    Logging facade bound to one process instance.

    Messages below ``threshold`` are dropped without formatting. Accepted
    messages go either to the raw appender (when installed) or, as structured
    records, to the sink registry; never both. Nothing raised while logging
    escapes to the caller.
    """

    def __init__(
        self,
        context: ProcessContext,
        *,
        threshold: Optional[LevelLike] = None,
        sinks: Optional[SinkRegistry] = None,
        raw_appender: Optional[RawAppender] = None,
    ) -> None:
        self._context = context
        self._threshold = SeverityLevel.parse(threshold) if threshold is not None else get_default_threshold()
        self._raw_appender = raw_appender
        self._pending_appends: set[asyncio.Future] = set()
        self._sinks = sinks if sinks is not None else get_default_registry()
        self._structured = structlog.BoundLogger(
            self._sinks,
            processors=[add_timestamp, render_structured_record],
            context={"process": context.process_name, "id": context.process_id},
        )

    @classmethod
    def for_process(cls, process: HostingProcess, **kwargs: Any) -> Logger:
        """Create the logger for a hosting process instance."""
        context = ProcessContext(
            process_name=process.process_definition.name,
            process_id=process.process_id,
        )
        return cls(context, **kwargs)

    # =========================================================================
    # Reconfiguration
    # =========================================================================

    @property
    def context(self) -> ProcessContext:
        return self._context

    @property
    def sinks(self) -> SinkRegistry:
        return self._sinks

    @property
    def threshold(self) -> SeverityLevel:
        return self._threshold

    @threshold.setter
    def threshold(self, value: LevelLike) -> None:
        self._threshold = SeverityLevel.parse(value)

    def set_threshold(self, value: LevelLike) -> None:
        self.threshold = value

    @property
    def raw_appender(self) -> Optional[RawAppender]:
        return self._raw_appender

    def install_appender(self, appender: RawAppender) -> None:
        self._raw_appender = appender

    def clear_appender(self) -> None:
        self._raw_appender = None

    def add_sink(self, sink: BaseSink, config: Optional[SinkConfig] = None) -> None:
        self._sinks.add(sink, config)

    def remove_sink(self, target: Union[BaseSink, SinkKind]) -> int:
        return self._sinks.remove(target)

    # =========================================================================
    # Generic Logging
    # =========================================================================

    def is_enabled(self, severity: int) -> bool:
        """True when a message at ``severity`` passes the threshold."""
        return self._threshold <= severity < SeverityLevel.NONE

    def log(self, severity: LevelLike, description: Any, data: Any = None) -> None:
        try:
            if isinstance(severity, str):
                severity = SeverityLevel.parse(severity)
            if not self.is_enabled(severity):
                return

            description = _text(description)
            appender = self._raw_appender
            if appender is not None:
                self._append(appender, render_raw_line(severity, self._context, description, data))
            else:
                self._structured.write(description, severity=int(severity), data=data)
        except Exception as exc:
            self._report("log call failed", exc)

    def _append(self, appender: RawAppender, line: str) -> None:
        result = appender(line)
        if not inspect.isawaitable(result):
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to run it on; the line is lost.
            if inspect.iscoroutine(result):
                result.close()
            self._report("async appender dropped line", RuntimeError("no running event loop"))
            return
        task = asyncio.ensure_future(result, loop=loop)
        self._pending_appends.add(task)
        task.add_done_callback(self._appender_done)

    def _appender_done(self, task: asyncio.Future) -> None:
        self._pending_appends.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._report("log call failed", exc)

    def _report(self, event: str, exc: BaseException) -> None:
        try:
            get_logger(__name__).error(
                event,
                process=self._context.process_name,
                id=self._context.process_id,
                error=f"{type(exc).__name__}: {exc}",
            )
        except Exception:
            pass  # Diagnostics channel unavailable

    # =========================================================================
    # Engine Events
    # =========================================================================

    def log_handler_error(self, handler_name: str, error: Any) -> None:
        self.log(SeverityLevel.ERROR, f"Error in handler '{_text(handler_name)}': {_error_text(error)}")

    def log_call_default_event_handler(
        self,
        event_type: str,
        flow_object_name: Optional[str],
        handler_name: str,
        reason: Any,
    ) -> None:
        self.log(
            SeverityLevel.ERROR,
            f"Unhandled event: '{_text(event_type)}' for flow object '{_text(flow_object_name)}'. "
            f"Handler name: {_text(handler_name)}. Reason: {_text(reason)}",
        )

    def log_send_message(
        self,
        message_flow_name: Optional[str],
        source: Union[FlowObject, str, None],
        target: Union[FlowObject, str, None],
        data: Any = None,
    ) -> None:
        """Missing flow or endpoint names render as empty strings."""
        self.log(
            SeverityLevel.TRACE,
            f"Send '{_text(message_flow_name)}' from '{_name(source)}' to '{_name(target)}'.",
            data,
        )

    def log_trigger_event(self, event: FlowObject, data: Any = None) -> None:
        self.log(SeverityLevel.TRACE, f"Trigger {_attr(event, 'type')} '{_name(event)}'", data)

    def log_task_done(self, task_name: str, data: Any = None) -> None:
        self.log(SeverityLevel.TRACE, f"Task '{_text(task_name)}' done.", data)

    def log_catch_boundary_event(self, event_name: str, data: Any = None) -> None:
        self.log(SeverityLevel.TRACE, f"Catch boundary event '{_text(event_name)}' done.", data)

    def log_trigger_deferred_events(self, event: Event) -> None:
        self.log(
            SeverityLevel.TRACE,
            f"Emit deferred events {_attr(event, 'type')} '{_name(event)}'",
            getattr(event, "data", None),
        )

    def log_call_handler(
        self,
        event_type: str,
        flow_object_name: Optional[str],
        handler_name: str,
        data: Any = None,
    ) -> None:
        self.log(
            SeverityLevel.TRACE,
            f"Call handler for: '{_text(event_type)}' for flow object '{_text(flow_object_name)}'. "
            f"Handler name: {_text(handler_name)}.",
            data,
        )

    def log_call_handler_done(self, event_type: str, flow_object_name: Optional[str], handler_name: str) -> None:
        self.log(
            SeverityLevel.TRACE,
            f"Call handlerDone for: '{_text(event_type)}' for flow object '{_text(flow_object_name)}'. "
            f"Handler name: {_text(handler_name)}.",
        )

    def log_put_token_at(self, flow_object_name: str, data: Any = None) -> None:
        self.log(SeverityLevel.DEBUG, f"Token was put on '{_text(flow_object_name)}'", data)

    def log_token_arrived_at(self, flow_object: FlowObject, data: Any = None) -> None:
        self.log(SeverityLevel.DEBUG, f"Token arrived at {_attr(flow_object, 'type')} '{_name(flow_object)}'", data)

    def log_done_saving(self, saved_data: Any = None) -> None:
        self.log(SeverityLevel.DEBUG, "SavedData", saved_data)
