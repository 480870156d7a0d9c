"""
Tests for per-line orchestration and batch isolation
"""

import asyncio

import pytest

from log_ingest.models.records import LogFamily, Severity
from log_ingest.parsers import error_log
from log_ingest.services.dispatch import DispatchTarget
from log_ingest.services.processor import process_lines, split_lines

from conftest import ACCESS_LOG, APACHE_LINE, ERROR_LOG, FakeAlertSink, FakeIndexSink

ERROR_TARGET = DispatchTarget(LogFamily.ERROR, "error-logs")
ACCESS_TARGET = DispatchTarget(LogFamily.ACCESS, "access-logs")
APACHE_TARGET = DispatchTarget(LogFamily.APACHE_ACCESS, "apache-access-logs")


def run(coro):
    return asyncio.run(coro)


class TestSplitLines:
    def test_drops_blank_lines_and_carriage_returns(self):
        assert split_lines(b"a\r\n\n  \nb\n") == ["a", "b"]

    def test_invalid_utf8_is_replaced(self):
        assert split_lines(b"ok \xff\n") == ["ok \ufffd"]


class TestProcessLines:
    def test_error_batch_indexes_every_line(self, index_sink, alert_sink):
        summary = run(process_lines(split_lines(ERROR_LOG.encode()), ERROR_TARGET, ["critical"], index_sink, alert_sink))
        assert summary.lines == 2
        assert summary.indexed == 2
        assert [idx for idx, _ in index_sink.documents] == ["error-logs", "error-logs"]
        assert index_sink.documents[1][1]["repeat_count"] == 4
        assert alert_sink.alerts == []

    def test_critical_error_alerts(self, index_sink, alert_sink):
        lines = ["[2025-02-09T06:13:54.773313+00:00] critical error: database connection failed"]
        summary = run(process_lines(lines, ERROR_TARGET, ["critical"], index_sink, alert_sink))
        assert summary.alerts == 1
        assert alert_sink.alerts == [("Critical Error Detected: critical error: database connection failed", Severity.CRITICAL)]

    def test_access_5xx_warns(self, index_sink, alert_sink):
        lines = ACCESS_LOG.replace("|301|", "|502|").splitlines()
        run(process_lines(lines, ACCESS_TARGET, ["critical"], index_sink, alert_sink))
        assert alert_sink.alerts == [("High number of 5xx errors detected for jeremypollock.me", Severity.WARNING)]

    def test_unparsable_lines_are_skipped(self, index_sink, alert_sink):
        lines = ["This is not a valid log line", APACHE_LINE, "Neither is this"]
        summary = run(process_lines(lines, APACHE_TARGET, [], index_sink, alert_sink))
        assert summary.lines == 3
        assert summary.rejected == 2
        assert summary.indexed == 1
        assert alert_sink.alerts == []

    def test_out_of_range_timestamp_is_rejected_not_fatal(self, index_sink, alert_sink):
        lines = ["[0001-01-01T00:00:00+01:00] bad", "[2025-02-09T06:13:54+00:00] good"]
        summary = run(process_lines(lines, ERROR_TARGET, [], index_sink, alert_sink))
        assert summary.rejected == 1
        assert [doc["message"] for _, doc in index_sink.documents] == ["good"]

    def test_classifier_error_does_not_stop_the_batch(self, monkeypatch, index_sink, alert_sink):
        def flaky(line):
            if "explode" in line:
                raise ValueError("unexpected shape")
            return error_log.classify_error_line(line)

        monkeypatch.setattr("log_ingest.parsers.registry.classify_error_line", flaky)
        lines = [
            "[2025-02-09T06:13:54+00:00] first",
            "[2025-02-09T06:13:55+00:00] explode",
            "[2025-02-09T06:13:56+00:00] third",
        ]
        summary = run(process_lines(lines, ERROR_TARGET, [], index_sink, alert_sink))
        assert summary.rejected == 1
        assert summary.indexed == 2
        assert [doc["message"] for _, doc in index_sink.documents] == ["first", "third"]

    def test_index_failure_does_not_stop_the_batch(self, alert_sink):
        sink = FakeIndexSink(poison="poison")
        lines = [
            "[2025-02-09T06:13:54+00:00] first",
            "[2025-02-09T06:13:55+00:00] poison critical",
            "[2025-02-09T06:13:56+00:00] third",
        ]
        summary = run(process_lines(lines, ERROR_TARGET, ["critical"], sink, alert_sink))
        assert summary.index_failures == 1
        assert [doc["message"] for _, doc in sink.documents] == ["first", "third"]
        # the failing line still went through alert evaluation
        assert alert_sink.alerts == [("Critical Error Detected: poison critical", Severity.CRITICAL)]

    def test_index_timeout_counts_as_failure(self, alert_sink):
        sink = FakeIndexSink(delay=0.5)
        summary = run(process_lines(
            ["[2025-02-09T06:13:54+00:00] slow"], ERROR_TARGET, [], sink, alert_sink, index_timeout=0.01,
        ))
        assert summary.index_failures == 1
        assert summary.indexed == 0

    def test_order_is_preserved(self, index_sink, alert_sink):
        lines = [f"[2025-02-09T06:13:{i:02d}+00:00] line {i}" for i in range(10)]
        run(process_lines(lines, ERROR_TARGET, [], index_sink, alert_sink))
        assert [doc["message"] for _, doc in index_sink.documents] == [f"line {i}" for i in range(10)]

    def test_alert_failure_propagates(self, index_sink):
        with pytest.raises(ConnectionError):
            run(process_lines(
                ["[2025-02-09T06:13:54+00:00] fatal"], ERROR_TARGET, ["fatal"], index_sink, FakeAlertSink(fail=True),
            ))
