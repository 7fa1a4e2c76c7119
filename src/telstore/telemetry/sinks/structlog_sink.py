# src/telstore/telemetry/sinks/structlog_sink.py
"""Sink that writes each telemetry record as one structlog event."""

from __future__ import annotations

from typing import Any

import structlog

from telstore.contracts.enums import SinkLevel
from telstore.telemetry.errors import TelemetrySinkError
from telstore.telemetry.sink import SinkEvent

logger = structlog.get_logger(__name__)

_DEFAULT_LOGGER_NAME = "telstore.telemetry"
_DEFAULT_MESSAGE = "telemetry"


class StructlogSink:
    """Commit telemetry records through structlog.

    Each commit is a single ``info`` or ``error`` log call whose keyword
    arguments are the record's fields, so the configured renderer (JSON in
    production) decides the final wire format.

    Configuration options:
        logger: Logger name (default "telstore.telemetry")
        message: Event message (default "telemetry")
    """

    _name = "structlog"

    def __init__(self) -> None:
        self._logger_name = _DEFAULT_LOGGER_NAME
        self._message = _DEFAULT_MESSAGE
        self._logger: Any = structlog.get_logger(self._logger_name)

    @property
    def name(self) -> str:
        return self._name

    def configure(self, config: dict[str, Any]) -> None:
        for key in ("logger", "message"):
            value = config.get(key)
            if value is not None and (not isinstance(value, str) or not value):
                raise TelemetrySinkError(self._name, f"'{key}' must be a non-empty string, got {value!r}")

        self._logger_name = config.get("logger") or _DEFAULT_LOGGER_NAME
        self._message = config.get("message") or _DEFAULT_MESSAGE
        self._logger = structlog.get_logger(self._logger_name)

    def commit(self, event: SinkEvent) -> None:
        try:
            if event.level == SinkLevel.ERROR:
                self._logger.error(self._message, **event.fields)
            else:
                self._logger.info(self._message, **event.fields)
        except Exception as e:
            # Commit MUST NOT raise
            logger.warning("Failed to commit telemetry record", sink=self._name, error=str(e))

    def close(self) -> None:
        pass
