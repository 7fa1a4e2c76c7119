# src/telstore/telemetry/hookspecs.py
"""pluggy hook specifications for telemetry sinks.

Sinks implement these hooks to register themselves. create_sink() calls
them to discover the sinks it can build from configuration.

Usage (implementing a sink plugin):
    from telstore.telemetry.hookspecs import hookimpl

    class MySinkPlugin:
        @hookimpl
        def telstore_get_sinks(self):
            return [MySink]
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from telstore.telemetry.sink import SinkProtocol

PROJECT_NAME = "telstore"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)

hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class TelstoreSinkSpec:
    """Hook specifications for telemetry sink plugins."""

    @hookspec
    def telstore_get_sinks(self) -> list[type["SinkProtocol"]]:  # type: ignore[empty-body]
        """Return telemetry sink classes (not instances).

        Each class names itself with a non-empty ``_name`` class attribute,
        the value selected by ``sink.name`` in settings.
        """
