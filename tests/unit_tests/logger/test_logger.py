"""
Logger 门面单元测试

测试阈值过滤、两条互斥输出路径、错误不外抛，以及引擎领域事件的描述模板。
"""

from __future__ import annotations

import asyncio
import sys
from types import SimpleNamespace

import orjson
import pytest

from processlog.context import ProcessContext
from processlog.levels import SeverityLevel
from processlog.logger import Logger
from processlog.sinks import QueueSink, SinkKind

LOGGABLE = [level for level in SeverityLevel if level is not SeverityLevel.NONE]


class TestThreshold:
    """阈值过滤测试"""

    def test_default_threshold_is_error(self, context, registry) -> None:
        assert Logger(context, sinks=registry).threshold is SeverityLevel.ERROR

    @pytest.mark.parametrize("threshold", list(SeverityLevel))
    def test_filter_is_monotonic(self, context, registry, threshold) -> None:
        """低于阈值的级别全部被过滤，达到阈值的级别全部通过"""
        logger = Logger(context, threshold=threshold, sinks=registry)
        for severity in LOGGABLE:
            assert logger.is_enabled(severity) == (severity >= threshold)

    def test_at_threshold_passes(self, context, registry, lines) -> None:
        logger = Logger(context, threshold="warn", sinks=registry, raw_appender=lines.append)
        logger.log(SeverityLevel.INFO, "below")
        logger.log(SeverityLevel.WARN, "at")
        logger.log(SeverityLevel.DEBUG, "above")
        assert lines == ["[warn][P][42][at]", "[debug][P][42][above]"]

    def test_none_suppresses_everything(self, raw_logger, lines) -> None:
        raw_logger.threshold = SeverityLevel.NONE
        for severity in list(SeverityLevel) + [99]:
            raw_logger.log(severity, "X", {"a": 1})
        assert lines == []

    def test_none_is_never_a_message_level(self, raw_logger, lines) -> None:
        raw_logger.log(SeverityLevel.NONE, "X")
        assert lines == []

    def test_filtered_call_does_not_format(self, context, registry, lines) -> None:
        """被过滤的调用不应触发任何格式化"""

        class Exploding:
            def __str__(self) -> str:
                raise AssertionError("formatted a filtered message")

        logger = Logger(context, sinks=registry, raw_appender=lines.append)
        logger.log(SeverityLevel.TRACE, Exploding(), Exploding())
        assert lines == []

    def test_set_threshold_accepts_names(self, logger) -> None:
        logger.set_threshold("trace")
        assert logger.threshold is SeverityLevel.TRACE
        logger.threshold = 2
        assert logger.threshold is SeverityLevel.INFO

    def test_string_severity(self, raw_logger, lines) -> None:
        raw_logger.log("verbose", "X")
        assert lines == ["[verbose][P][42][X]"]


class TestStructuredPath:
    """结构化输出路径测试"""

    def test_record_reaches_sinks(self, logger, registry, queue_sink) -> None:
        logger.log(SeverityLevel.ERROR, "X", {"a": 1})
        registry.flush()

        (record,) = queue_sink.drain()
        assert record.level == "error"
        assert orjson.loads(record.message) == {"process": "P", "id": "42", "description": "X", "data": {"a": 1}}

    def test_record_without_payload(self, logger, registry, queue_sink) -> None:
        logger.log(SeverityLevel.TRACE, "X")
        registry.flush()

        (record,) = queue_sink.drain()
        assert record.data is None
        assert orjson.loads(record.message) == {"process": "P", "id": "42", "description": "X"}

    def test_numeric_id_stays_numeric(self, registry, queue_sink) -> None:
        logger = Logger(ProcessContext("Order", 7), threshold="silly", sinks=registry)
        logger.log(SeverityLevel.INFO, "X")
        registry.flush()
        assert orjson.loads(queue_sink.drain()[0].message)["id"] == 7

    def test_circular_payload_is_logged_degraded(self, logger, registry, queue_sink, capsys) -> None:
        payload: dict = {}
        payload["self"] = payload
        logger.log(SeverityLevel.ERROR, "X", payload)
        registry.flush()

        parsed = orjson.loads(queue_sink.drain()[0].message)
        assert parsed["description"] == "X"
        assert parsed["data"] == str(payload)
        assert "payload degraded" in capsys.readouterr().err

    def test_records_are_timestamped(self, logger, registry, queue_sink) -> None:
        logger.log(SeverityLevel.INFO, "X")
        registry.flush()
        assert queue_sink.drain()[0].timestamp > 0


class TestRawPath:
    """原始输出路径测试"""

    def test_appender_excludes_sinks(self, raw_logger, registry, queue_sink, lines) -> None:
        """安装 raw appender 后，结构化输出端收不到任何记录"""
        raw_logger.log(SeverityLevel.TRACE, "X")
        raw_logger.log(SeverityLevel.ERROR, "Y", {"a": 1})
        registry.flush()

        assert lines == ["[trace][P][42][X]", '[error][P][42][Y][{"a":1}]']
        assert queue_sink.drain() == []

    def test_install_and_clear(self, logger, registry, queue_sink, lines) -> None:
        logger.install_appender(lines.append)
        assert logger.raw_appender is not None
        logger.log(SeverityLevel.INFO, "raw")

        logger.clear_appender()
        logger.log(SeverityLevel.INFO, "structured")
        registry.flush()

        assert lines == ["[info][P][42][raw]"]
        assert [r.description for r in queue_sink.drain()] == ["structured"]

    def test_async_appender_is_scheduled(self, logger, lines) -> None:
        """异步 appender 在当前事件循环上调度，调用方不等待"""
        async def appender(line: str) -> None:
            lines.append(line)

        async def main() -> None:
            logger.install_appender(appender)
            logger.log(SeverityLevel.INFO, "X")
            assert lines == []
            await asyncio.sleep(0.01)

        asyncio.run(main())
        assert lines == ["[info][P][42][X]"]

    def test_async_appender_failure_is_reported(self, logger, capsys) -> None:
        async def appender(line: str) -> None:
            raise RuntimeError("async appender down")

        async def main() -> None:
            logger.install_appender(appender)
            logger.log(SeverityLevel.ERROR, "X")
            await asyncio.sleep(0.01)

        asyncio.run(main())
        assert "async appender down" in capsys.readouterr().err

    def test_async_appender_without_event_loop(self, logger, lines, capsys) -> None:
        async def appender(line: str) -> None:
            lines.append(line)

        logger.install_appender(appender)
        logger.log(SeverityLevel.INFO, "X")

        assert lines == []
        assert "async appender dropped line" in capsys.readouterr().err


class TestNonFatal:
    """日志调用绝不向调用方抛出异常"""

    def test_failing_appender(self, logger, capsys) -> None:
        def appender(line: str) -> None:
            raise RuntimeError("appender down")

        logger.install_appender(appender)
        logger.log(SeverityLevel.ERROR, "X")

        err = capsys.readouterr().err
        assert "log call failed" in err
        assert "appender down" in err

    def test_unknown_severity_name(self, logger, capsys) -> None:
        logger.log("loud", "X")
        assert "log call failed" in capsys.readouterr().err

    def test_unsupported_severity_type(self, logger) -> None:
        logger.log(None, "X")  # type: ignore[arg-type]

    def test_stderr_unavailable(self, logger, monkeypatch) -> None:
        """诊断通道不可用时，失败报告本身也不能外抛"""
        def appender(line: str) -> None:
            raise RuntimeError("appender down")

        monkeypatch.setattr(sys, "stderr", None)
        logger.install_appender(appender)
        logger.log(SeverityLevel.ERROR, "X")
        logger.log("loud", "X")

    def test_domain_operation_with_malformed_objects(self, raw_logger, lines) -> None:
        raw_logger.log_trigger_event(object())
        raw_logger.log_token_arrived_at(None)
        assert lines == ["[trace][P][42][Trigger  '']", "[debug][P][42][Token arrived at  '']"]


class TestReconfiguration:
    """运行时重新配置测试"""

    def test_add_and_remove_sink(self, logger, registry, queue_sink) -> None:
        extra = QueueSink()
        logger.add_sink(extra)
        logger.log(SeverityLevel.INFO, "both")
        registry.flush()

        assert logger.remove_sink(extra) == 1
        logger.log(SeverityLevel.INFO, "one")
        registry.flush()

        assert [r.description for r in extra.drain()] == ["both"]
        assert [r.description for r in queue_sink.drain()] == ["both", "one"]
        assert logger.sinks.kinds() == (SinkKind.CUSTOM,)

    def test_for_process(self, hosting_process, registry, lines) -> None:
        logger = Logger.for_process(hosting_process, threshold="trace", sinks=registry, raw_appender=lines.append)
        assert logger.context == ProcessContext(process_name="OrderProcess", process_id=7)
        logger.log_task_done("Review")
        assert lines == ["[trace][OrderProcess][7][Task 'Review' done.]"]


class TestEngineEvents:
    """引擎领域事件的描述模板测试"""

    def test_handler_error(self, raw_logger, lines) -> None:
        raw_logger.log_handler_error("onReview", ValueError("boom"))
        assert lines == ["[error][P][42][Error in handler 'onReview': ValueError: boom]"]

    def test_unhandled_default_event(self, raw_logger, lines) -> None:
        raw_logger.log_call_default_event_handler("taskDone", None, "Review$done", "no handler defined")
        assert lines == [
            "[error][P][42][Unhandled event: 'taskDone' for flow object ''. "
            "Handler name: Review$done. Reason: no handler defined]"
        ]

    def test_send_message_with_missing_names(self, raw_logger, lines) -> None:
        """缺失的名称按空字符串渲染，不出现 "undefined" 或 "None" """
        raw_logger.log_send_message(None, SimpleNamespace(name="S"), None)
        raw_logger.log_send_message("Order", SimpleNamespace(name=None), SimpleNamespace(name="T"), {"n": 1})
        assert lines == [
            "[trace][P][42][Send '' from 'S' to ''.]",
            "[trace][P][42][Send 'Order' from '' to 'T'.][{\"n\":1}]",
        ]
        assert not any("undefined" in line or "None" in line for line in lines)

    def test_trigger_event(self, raw_logger, lines) -> None:
        raw_logger.log_trigger_event(SimpleNamespace(type="startEvent", name="Start"), {"x": 1})
        assert lines == ["[trace][P][42][Trigger startEvent 'Start'][{\"x\":1}]"]

    def test_task_done(self, raw_logger, lines) -> None:
        raw_logger.log_task_done("Review")
        assert lines == ["[trace][P][42][Task 'Review' done.]"]

    def test_catch_boundary_event(self, raw_logger, lines) -> None:
        raw_logger.log_catch_boundary_event("Timeout", {"t": 5})
        assert lines == ["[trace][P][42][Catch boundary event 'Timeout' done.][{\"t\":5}]"]

    def test_trigger_deferred_events_uses_event_data(self, raw_logger, lines) -> None:
        event = SimpleNamespace(type="intermediateCatchEvent", name="Wait", data={"k": "v"})
        raw_logger.log_trigger_deferred_events(event)
        assert lines == ["[trace][P][42][Emit deferred events intermediateCatchEvent 'Wait'][{\"k\":\"v\"}]"]

    def test_call_handler_and_done(self, raw_logger, lines) -> None:
        raw_logger.log_call_handler("taskDone", "Review", "Review$done", {"ok": True})
        raw_logger.log_call_handler_done("taskDone", "Review", "Review$done")
        assert lines == [
            "[trace][P][42][Call handler for: 'taskDone' for flow object 'Review'. "
            "Handler name: Review$done.][{\"ok\":true}]",
            "[trace][P][42][Call handlerDone for: 'taskDone' for flow object 'Review'. Handler name: Review$done.]",
        ]

    def test_token_movement(self, raw_logger, lines) -> None:
        raw_logger.log_put_token_at("Review")
        raw_logger.log_token_arrived_at(SimpleNamespace(type="task", name="Review"))
        assert lines == [
            "[debug][P][42][Token was put on 'Review']",
            "[debug][P][42][Token arrived at task 'Review']",
        ]

    def test_done_saving(self, raw_logger, lines) -> None:
        raw_logger.log_done_saving({"tokens": [], "state": "running"})
        assert lines == ['[debug][P][42][SavedData][{"tokens":[],"state":"running"}]']

    def test_debug_events_hidden_at_trace_threshold(self, raw_logger, lines) -> None:
        """debug 低于 trace，令牌事件在 trace 阈值下被过滤"""
        raw_logger.threshold = SeverityLevel.TRACE
        raw_logger.log_put_token_at("Review")
        raw_logger.log_task_done("Review")
        assert lines == ["[trace][P][42][Task 'Review' done.]"]

    def test_domain_events_reach_structured_sinks(self, logger, registry, queue_sink) -> None:
        logger.log_done_saving({"state": "done"})
        registry.flush()
        (record,) = queue_sink.drain()
        assert record.level == "debug"
        assert orjson.loads(record.message) == {
            "process": "P",
            "id": "42",
            "description": "SavedData",
            "data": {"state": "done"},
        }
