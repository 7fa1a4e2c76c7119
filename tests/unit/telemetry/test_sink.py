"""Tests for SinkEvent typed fields and commit semantics."""

from dataclasses import dataclass
from uuid import UUID

import pytest

from telstore.contracts.enums import SinkLevel
from telstore.telemetry.errors import TelemetrySinkError
from telstore.telemetry.sink import SinkEvent, SinkProtocol
from telstore.telemetry.sinks import ConsoleSink, StructlogSink
from tests.fixtures.telemetry import PROJECT_ID, MemorySink


class TestTypedFields:
    def test_setters_are_chainable(self) -> None:
        event = (
            SinkEvent(None, SinkLevel.INFO)
            .string("provider", "github")
            .integer("count", 3)
            .boolean("ok", True)
            .identifier("project", PROJECT_ID)
        )

        assert event.fields == {
            "provider": "github",
            "count": 3,
            "ok": True,
            "project": str(PROJECT_ID),
        }

    @pytest.mark.parametrize(
        ("method", "value"),
        [
            ("string", 1),
            ("integer", "1"),
            ("integer", True),
            ("integer", 1.5),
            ("boolean", 1),
            ("identifier", str(PROJECT_ID)),
        ],
    )
    def test_wrong_type_rejected(self, method: str, value: object) -> None:
        with pytest.raises(TypeError, match="expects"):
            getattr(SinkEvent(None, SinkLevel.INFO), method)("key", value)

    def test_integer_outside_int64_rejected(self) -> None:
        with pytest.raises(ValueError, match="int64"):
            SinkEvent(None, SinkLevel.INFO).integer("big", 2**63)

    def test_fields_returns_copy(self) -> None:
        event = SinkEvent(None, SinkLevel.INFO).string("a", "b")
        event.fields["a"] = "changed"
        assert event.fields == {"a": "b"}


class TestStructured:
    def test_nested_values_become_plain_data(self) -> None:
        event = SinkEvent(None, SinkLevel.INFO).structured(
            "value", {"id": PROJECT_ID, "tags": ("a", "b"), "n": 1}
        )

        assert event.fields["value"] == {"id": str(PROJECT_ID), "tags": ["a", "b"], "n": 1}

    def test_objects_with_to_dict(self) -> None:
        @dataclass
        class Ref:
            id: UUID

            def to_dict(self) -> dict[str, str]:
                return {"id": str(self.id)}

        event = SinkEvent(None, SinkLevel.INFO).structured("refs", [Ref(PROJECT_ID)])

        assert event.fields["refs"] == [{"id": str(PROJECT_ID)}]

    def test_unserializable_value_rejected(self) -> None:
        with pytest.raises(TypeError, match="not JSON serializable"):
            SinkEvent(None, SinkLevel.INFO).structured("bad", object())


class TestCommit:
    def test_commit_hands_event_to_sink(self, sink: MemorySink) -> None:
        event = SinkEvent(sink, SinkLevel.ERROR).string("a", "b")
        event.commit()

        assert sink.events == [event]
        assert event.committed is True
        assert sink.events[0].level == SinkLevel.ERROR

    def test_second_commit_raises(self, sink: MemorySink) -> None:
        event = SinkEvent(sink, SinkLevel.INFO)
        event.commit()

        with pytest.raises(TelemetrySinkError, match="already committed"):
            event.commit()

        assert len(sink.events) == 1

    def test_commit_without_sink(self) -> None:
        event = SinkEvent(None, SinkLevel.INFO)
        event.commit()
        assert event.committed is True


class TestProtocol:
    @pytest.mark.parametrize("sink_class", [StructlogSink, ConsoleSink, MemorySink])
    def test_sinks_satisfy_protocol(self, sink_class: type) -> None:
        assert isinstance(sink_class(), SinkProtocol)
