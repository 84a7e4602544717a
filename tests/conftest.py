from types import SimpleNamespace

import pytest

from processlog import core
from processlog.context import ProcessContext
from processlog.formatters import LogRecord, build_structured_record, serialize_record
from processlog.levels import SeverityLevel
from processlog.logger import Logger
from processlog.registry import SinkRegistry
from processlog.sinks import QueueSink


@pytest.fixture(autouse=True)
def reset_default_logging(monkeypatch):
    """Isolates the process-wide default sink set between tests."""
    monkeypatch.setattr(core, "_default_threshold", None)
    yield
    core.shutdown_logging()


@pytest.fixture
def context() -> ProcessContext:
    return ProcessContext(process_name="P", process_id="42")


@pytest.fixture
def hosting_process():
    """A running process instance as the engine hands it over."""
    return SimpleNamespace(process_definition=SimpleNamespace(name="OrderProcess"), process_id=7)


@pytest.fixture
def queue_sink() -> QueueSink:
    return QueueSink()


@pytest.fixture
def registry(queue_sink):
    registry = SinkRegistry([queue_sink])
    yield registry
    registry.close()


@pytest.fixture
def lines() -> list[str]:
    return []


@pytest.fixture
def logger(context, registry) -> Logger:
    return Logger(context, threshold=SeverityLevel.SILLY, sinks=registry)


@pytest.fixture
def raw_logger(context, registry, lines) -> Logger:
    return Logger(context, threshold=SeverityLevel.SILLY, sinks=registry, raw_appender=lines.append)


@pytest.fixture
def make_record():
    def _make(severity=SeverityLevel.TRACE, description="X", data=None) -> LogRecord:
        return LogRecord(
            severity=int(severity),
            process="P",
            id="42",
            description=description,
            message=serialize_record(build_structured_record("P", "42", description, data)),
            data=data,
        )

    return _make
