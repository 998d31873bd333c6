"""Tests for observability/logger.py and observability/metrics.py"""
import io
import json
import logging
import sys

from teamwerx.errors import ErrorCode, TeamwerxDivergedError
from teamwerx.observability import MetricsHook, NoopMetricsHook
from teamwerx.observability.logger import StructuredFormatter, get_logger, set_level


class TestStructuredFormatter:
    def _get_record(self, msg, level=logging.INFO, exc_info=None, extra_fields=None):
        record = logging.LogRecord(
            name="teamwerx.test",
            level=level,
            pathname="",
            lineno=0,
            msg=msg,
            args=(),
            exc_info=exc_info,
        )
        if extra_fields is not None:
            record.extra_fields = extra_fields
        return record

    def test_basic_format(self):
        result = json.loads(StructuredFormatter().format(self._get_record("hello world")))
        assert result["message"] == "hello world"
        assert result["level"] == "INFO"
        assert result["logger"] == "teamwerx.test"
        assert "ts" in result

    def test_ts_is_record_creation_time(self):
        record = self._get_record("msg")
        record.created = 0.0
        result = json.loads(StructuredFormatter().format(record))
        assert result["ts"] == "1970-01-01T00:00:00+00:00"

    def test_extra_fields_merged(self):
        record = self._get_record("msg", extra_fields={"domain": "auth", "ops": 3})
        result = json.loads(StructuredFormatter().format(record))
        assert result["domain"] == "auth"
        assert result["ops"] == 3

    def test_none_fields_dropped(self):
        record = self._get_record("msg", extra_fields={"domain": "auth", "change_id": None})
        result = json.loads(StructuredFormatter().format(record))
        assert "change_id" not in result
        assert list(result)[-1] == "domain"

    def test_non_json_values_stringified(self):
        record = self._get_record("msg", extra_fields={"path": object()})
        result = json.loads(StructuredFormatter().format(record))
        assert isinstance(result["path"], str)

    def test_exception_info_included(self):
        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()
        result = json.loads(StructuredFormatter().format(self._get_record("error msg", exc_info=exc_info)))
        assert "ValueError" in result["exception"]
        assert result["error_type"] == "ValueError"
        assert "error_code" not in result

    def test_teamwerx_error_code_included(self):
        try:
            raise TeamwerxDivergedError("spec changed", context={"domain": "auth"})
        except TeamwerxDivergedError:
            exc_info = sys.exc_info()
        result = json.loads(StructuredFormatter().format(self._get_record("failed", exc_info=exc_info)))
        assert result["error_type"] == "TeamwerxDivergedError"
        assert result["error_code"] == ErrorCode.DIVERGED.value == "DIVERGED"


class TestGetLogger:
    def test_root_has_single_handler(self):
        get_logger("obsroot1.child")
        get_logger("obsroot1.other")
        root = logging.getLogger("obsroot1")
        assert len(root.handlers) == 1
        assert root.propagate is False

    def test_string_level(self):
        get_logger("obsroot2", level="info")
        assert logging.getLogger("obsroot2").level == logging.INFO

    def test_custom_stream_receives_json(self):
        stream = io.StringIO()
        log = get_logger("obsroot3.merge", level=logging.DEBUG, stream=stream)
        log.info("delta merged", extra={"extra_fields": {"domain": "auth"}})
        line = stream.getvalue().strip()
        entry = json.loads(line)
        assert entry["message"] == "delta merged"
        assert entry["logger"] == "obsroot3.merge"
        assert entry["domain"] == "auth"

    def test_set_level(self):
        stream = io.StringIO()
        log = get_logger("obsroot4", level=logging.WARNING, stream=stream)
        log.info("hidden")
        set_level("DEBUG", "obsroot4")
        log.debug("shown")
        lines = stream.getvalue().splitlines()
        assert [json.loads(line)["message"] for line in lines] == ["shown"]


class TestMetricsHook:
    def test_noop_satisfies_protocol(self):
        hook = NoopMetricsHook()
        assert isinstance(hook, MetricsHook)
        assert hook.increment("teamwerx.merge_ops_total", tags={"op_type": "ADDED"}) is None
        assert hook.timing("teamwerx.merge_duration_ms", 1.5) is None

    def test_recording_hook_satisfies_protocol(self, metrics):
        assert isinstance(metrics, MetricsHook)

    def test_object_without_timing_is_rejected(self):
        class CounterOnly:
            def increment(self, name, value=1, tags=None):
                pass

        assert not isinstance(CounterOnly(), MetricsHook)

    def test_merge_emits_metrics(self, metrics):
        from teamwerx.config import TeamwerxConfig
        from teamwerx.merge.merger import merge_content
        from teamwerx.models import DeltaOperation, Requirement, SpecDelta

        delta = SpecDelta(
            domain="auth",
            operations=[DeltaOperation(type="ADDED", requirement=Requirement(title="MFA"))],
        )
        merge_content("", delta, config=TeamwerxConfig(metrics=metrics))
        assert {"name": "teamwerx.merge_ops_total", "value": 1, "tags": {"op_type": "ADDED"}} in metrics.increments
        assert [t["name"] for t in metrics.timings] == ["teamwerx.merge_duration_ms"]
