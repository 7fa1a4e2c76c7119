# src/telstore/telemetry/sinks/__init__.py
"""Built-in telemetry sinks.

Available sinks:
- StructlogSink ("structlog"): one structlog event per record (default)
- ConsoleSink ("console"): one JSON line per record on stdout/stderr

Plugin registration:
    BuiltinSinksPlugin registers both through the telstore_get_sinks hook.
"""

from telstore.telemetry.hookspecs import hookimpl
from telstore.telemetry.sinks.console import ConsoleSink
from telstore.telemetry.sinks.structlog_sink import StructlogSink


class BuiltinSinksPlugin:
    """Plugin that registers built-in telemetry sinks."""

    @hookimpl
    def telstore_get_sinks(self) -> list[type]:
        return [StructlogSink, ConsoleSink]


__all__ = [
    "BuiltinSinksPlugin",
    "ConsoleSink",
    "StructlogSink",
]
