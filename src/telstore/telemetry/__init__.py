# src/telstore/telemetry/__init__.py
"""Business telemetry store.

One TelemetryRecord per unit of work (an RPC call or one event handler
invocation), shared through the context, emitted once as a structured log
record when the unit of work ends.

Components:
- record: TelemetryRecord, the detached sentinel and the value types it holds
- binding: with_record() / business_record() context binding
- sink: SinkEvent and SinkProtocol
- sinks: built-in sinks (structlog, console), discovered via pluggy hooks
- factory: create_sink() from configuration
- projection: initial record from an entity event
- middleware: EventHandlerMiddleware for asynchronous event handlers
- scope: telemetry_scope() for synchronous request handlers

Usage:
    from telstore.telemetry import business_record

    business_record().append_rule_evaluation(params, rule_type_name)
"""

from telstore.telemetry.binding import business_record, with_record
from telstore.telemetry.errors import ProjectionError, TelemetrySinkError
from telstore.telemetry.factory import create_sink
from telstore.telemetry.middleware import EventHandlerMiddleware
from telstore.telemetry.projection import record_from_entity
from telstore.telemetry.record import (
    DETACHED_RECORD,
    DetachedRecord,
    Profile,
    ProjectTombstone,
    RuleEvaluationEntry,
    RuleEvaluationParams,
    RuleType,
    TelemetryRecord,
)
from telstore.telemetry.scope import export_project_tombstone, hash_login, telemetry_scope
from telstore.telemetry.sink import SinkEvent, SinkProtocol
from telstore.telemetry.sinks import ConsoleSink, StructlogSink

__all__ = [
    "DETACHED_RECORD",
    "ConsoleSink",
    "DetachedRecord",
    "EventHandlerMiddleware",
    "Profile",
    "ProjectTombstone",
    "ProjectionError",
    "RuleEvaluationEntry",
    "RuleEvaluationParams",
    "RuleType",
    "SinkEvent",
    "SinkProtocol",
    "StructlogSink",
    "TelemetryRecord",
    "TelemetrySinkError",
    "business_record",
    "create_sink",
    "export_project_tombstone",
    "hash_login",
    "record_from_entity",
    "telemetry_scope",
    "with_record",
]
