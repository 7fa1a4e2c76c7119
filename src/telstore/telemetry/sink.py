# src/telstore/telemetry/sink.py
"""Sink abstraction for committing telemetry records.

A sink is the structured-logging backend telemetry records end up in.
Telemetry builds one SinkEvent per unit of work - a level plus typed
key/value fields - and commits it exactly once.
"""

from __future__ import annotations

import json
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from telstore.contracts.enums import SinkLevel
from telstore.telemetry.errors import TelemetrySinkError


@runtime_checkable
class SinkProtocol(Protocol):
    """Protocol for telemetry sinks.

    Sinks are discovered via pluggy hooks and configured from settings.

    Lifecycle:
        1. Discovery: telstore_get_sinks hook returns sink classes
        2. Configuration: configure() called with sink-specific options
        3. Operation: commit() called once per telemetry record (must not raise)
        4. Shutdown: close() called when the host stops

    Thread Safety:
        commit() may be called concurrently from independent units of work.
    """

    @property
    def name(self) -> str:
        """Sink name used in configuration (sink.name)."""
        ...

    def configure(self, config: dict[str, Any]) -> None:
        """Configure the sink.

        Raises:
            TelemetrySinkError: If configuration is invalid
        """
        ...

    def commit(self, event: SinkEvent) -> None:
        """Write one telemetry record. MUST NOT raise - log errors instead."""
        ...

    def close(self) -> None:
        """Release resources. Must be idempotent."""
        ...


def _json_default(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class SinkEvent:
    """One telemetry record on its way to a sink.

    Field setters are chainable and type-checked. Structured values are
    normalized to plain JSON data (dicts, lists, strings, numbers) so every
    sink renders them the same way.

    Example:
        >>> event = SinkEvent(sink, SinkLevel.INFO)
        >>> event.string("provider", "github").integer("count", 2).commit()
    """

    __slots__ = ("_committed", "_fields", "_level", "_sink")

    def __init__(self, sink: SinkProtocol | None, level: SinkLevel) -> None:
        self._sink = sink
        self._level = level
        self._fields: dict[str, Any] = {}
        self._committed = False

    @property
    def level(self) -> SinkLevel:
        return self._level

    @property
    def fields(self) -> dict[str, Any]:
        """Copy of the fields set so far, in insertion order."""
        return dict(self._fields)

    @property
    def committed(self) -> bool:
        return self._committed

    def string(self, key: str, value: str) -> SinkEvent:
        if not isinstance(value, str):
            raise TypeError(f"field {key!r} expects str, got {type(value).__name__}")
        self._fields[key] = value
        return self

    def integer(self, key: str, value: int) -> SinkEvent:
        if type(value) is bool or not isinstance(value, int):
            raise TypeError(f"field {key!r} expects int, got {type(value).__name__}")
        if not -(2**63) <= value < 2**63:
            raise ValueError(f"field {key!r} does not fit in int64: {value}")
        self._fields[key] = value
        return self

    def boolean(self, key: str, value: bool) -> SinkEvent:
        if type(value) is not bool:
            raise TypeError(f"field {key!r} expects bool, got {type(value).__name__}")
        self._fields[key] = value
        return self

    def identifier(self, key: str, value: UUID) -> SinkEvent:
        if not isinstance(value, UUID):
            raise TypeError(f"field {key!r} expects UUID, got {type(value).__name__}")
        self._fields[key] = str(value)
        return self

    def structured(self, key: str, value: Any) -> SinkEvent:
        """Set a structured value, normalized through JSON."""
        self._fields[key] = json.loads(json.dumps(value, default=_json_default))
        return self

    def commit(self) -> None:
        """Hand the event to the sink.

        Raises:
            TelemetrySinkError: If the event was already committed
        """
        sink_name = self._sink.name if self._sink is not None else "none"
        if self._committed:
            raise TelemetrySinkError(sink_name, "event already committed")
        self._committed = True
        if self._sink is not None:
            self._sink.commit(self)

    def __repr__(self) -> str:
        return f"SinkEvent(level={self._level.value!r}, fields={self._fields!r})"
