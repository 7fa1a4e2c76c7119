# src/telstore/telemetry/errors.py
"""Telemetry-specific exceptions.

These exceptions are for telemetry subsystem errors only.
They should NOT be raised for rule evaluation or handler errors.
"""

from telstore.telemetry.record import TelemetryRecord


class TelemetrySinkError(Exception):
    """Raised when a sink is misconfigured or an event is misused.

    Raised during sink discovery and configuration, or when a sink event is
    committed twice. Sink commit() itself must not raise - it logs instead.

    Attributes:
        sink_name: Name of the sink that failed
        message: Human-readable error description
    """

    def __init__(self, sink_name: str, message: str) -> None:
        self.sink_name = sink_name
        self.message = message
        super().__init__(f"Sink '{sink_name}' failed: {message}")


class ProjectionError(Exception):
    """Raised when an entity envelope only partially projects onto a record.

    The record is still usable; callers log the error and carry on with it.

    Attributes:
        record: The record built before the failure
    """

    def __init__(self, message: str, record: TelemetryRecord) -> None:
        self.record = record
        super().__init__(message)
