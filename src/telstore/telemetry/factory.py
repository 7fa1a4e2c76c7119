# src/telstore/telemetry/factory.py
"""Factory for building the configured telemetry sink.

Glue between configuration (SinkSettings) and a ready-to-use sink:
1. Discover sink classes via the telstore_get_sinks pluggy hook
2. Look up the configured sink by name
3. Instantiate and configure it

Usage:
    from telstore.core.config import load_settings
    from telstore.telemetry.factory import create_sink

    settings = load_settings(Path("telstore.yaml"))
    sink = create_sink(settings.sink)
    middleware = EventHandlerMiddleware(sink)
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import pluggy
import structlog

from telstore.core.config import SinkSettings
from telstore.telemetry.errors import TelemetrySinkError
from telstore.telemetry.hookspecs import PROJECT_NAME, TelstoreSinkSpec
from telstore.telemetry.sink import SinkProtocol
from telstore.telemetry.sinks import BuiltinSinksPlugin

logger = structlog.get_logger(__name__)


def _sink_name(sink_class: type[SinkProtocol]) -> str:
    """Configuration name of a sink class, read from its ``_name`` attribute."""
    name = getattr(sink_class, "_name", None)
    if not isinstance(name, str) or not name:
        raise TelemetrySinkError(
            getattr(sink_class, "__name__", repr(sink_class)),
            f"Sink class must define _name as a non-empty string, got {name!r}",
        )
    return name


def _discover_sink_registry(sink_plugins: Iterable[Any] = ()) -> dict[str, type[SinkProtocol]]:
    """Map sink names to classes for the built-in sinks plus sink_plugins.

    Raises:
        TelemetrySinkError: If a plugin implements an unknown hook, the hook
            fails or returns something other than classes, or two sinks
            share a name
    """
    plugin_manager = pluggy.PluginManager(PROJECT_NAME)
    plugin_manager.add_hookspecs(TelstoreSinkSpec)
    for plugin in (BuiltinSinksPlugin(), *sink_plugins):
        try:
            plugin_manager.register(plugin)
            plugin_manager.check_pending()
        except pluggy.PluginValidationError as e:
            raise TelemetrySinkError("telemetry_plugins", f"Invalid telemetry sink plugin {type(plugin).__name__}: {e}") from e

    try:
        contributions = plugin_manager.hook.telstore_get_sinks()
    except Exception as e:
        raise TelemetrySinkError("telemetry_plugins", f"telstore_get_sinks failed: {e}") from e

    registry: dict[str, type[SinkProtocol]] = {}
    for sink_classes in contributions:
        if isinstance(sink_classes, (str, bytes)) or not isinstance(sink_classes, Iterable):
            raise TelemetrySinkError(
                "telemetry_plugins",
                f"telstore_get_sinks returned {type(sink_classes).__name__}; expected iterable of sink classes",
            )
        for sink_class in sink_classes:
            name = _sink_name(sink_class)
            if name in registry:
                raise TelemetrySinkError(
                    name,
                    f"Duplicate telemetry sink name '{name}': {registry[name].__name__} and {sink_class.__name__}",
                )
            registry[name] = sink_class
    return registry


def create_sink(settings: SinkSettings, *, sink_plugins: Iterable[Any] = ()) -> SinkProtocol:
    """Create and configure the sink named in settings.

    Args:
        settings: Sink selection and options
        sink_plugins: Extra plugin objects implementing telstore_get_sinks

    Raises:
        TelemetrySinkError: If discovery fails, the name is unknown, or the
            sink rejects its options
    """
    registry = _discover_sink_registry(sink_plugins)

    try:
        sink_class = registry[settings.name]
    except KeyError:
        raise TelemetrySinkError(
            settings.name,
            f"Unknown sink. Available sinks: {sorted(registry)}",
        ) from None

    sink = sink_class()
    sink.configure(dict(settings.options))
    logger.debug("sink_configured", sink=settings.name, options_keys=list(settings.options.keys()))
    return sink
