"""Tests for the built-in telemetry sinks."""

import json

import pytest
from structlog.testing import capture_logs

from telstore.contracts.enums import SinkLevel
from telstore.telemetry.errors import TelemetrySinkError
from telstore.telemetry.record import TelemetryRecord
from telstore.telemetry.sink import SinkEvent
from telstore.telemetry.sinks import ConsoleSink, StructlogSink
from tests.fixtures.telemetry import PROJECT_ID


class TestStructlogSink:
    def test_info_record_logged_at_info(self) -> None:
        sink = StructlogSink()
        sink.configure({})

        with capture_logs() as logs:
            TelemetryRecord(project=PROJECT_ID).emit(SinkEvent(sink, SinkLevel.INFO)).commit()

        assert logs == [
            {
                "event": "telemetry",
                "log_level": "info",
                "project": str(PROJECT_ID),
                "telemetry": "true",
            }
        ]

    def test_error_record_logged_at_error(self) -> None:
        sink = StructlogSink()
        sink.configure({"message": "business telemetry"})

        with capture_logs() as logs:
            SinkEvent(sink, SinkLevel.ERROR).string("telemetry", "true").commit()

        assert logs[0]["log_level"] == "error"
        assert logs[0]["event"] == "business telemetry"

    @pytest.mark.parametrize("options", [{"logger": ""}, {"message": 3}])
    def test_invalid_options_rejected(self, options: dict) -> None:
        with pytest.raises(TelemetrySinkError, match="non-empty string"):
            StructlogSink().configure(options)

    def test_name(self) -> None:
        assert StructlogSink().name == "structlog"


class TestConsoleSink:
    def test_writes_json_line_to_stdout(self, capsys: pytest.CaptureFixture[str]) -> None:
        sink = ConsoleSink()
        sink.configure({})

        TelemetryRecord(project=PROJECT_ID).emit(SinkEvent(sink, SinkLevel.INFO)).commit()

        out = capsys.readouterr().out.strip().splitlines()
        assert len(out) == 1
        assert json.loads(out[0]) == {"level": "info", "project": str(PROJECT_ID), "telemetry": "true"}

    def test_writes_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        sink = ConsoleSink()
        sink.configure({"output": "stderr"})

        SinkEvent(sink, SinkLevel.ERROR).string("telemetry", "true").commit()

        captured = capsys.readouterr()
        assert captured.out == ""
        assert json.loads(captured.err) == {"level": "error", "telemetry": "true"}

    @pytest.mark.parametrize("output", ["file", 1])
    def test_invalid_output_rejected(self, output: object) -> None:
        with pytest.raises(TelemetrySinkError, match="output"):
            ConsoleSink().configure({"output": output})

    def test_close_is_idempotent(self) -> None:
        sink = ConsoleSink()
        sink.close()
        sink.close()
