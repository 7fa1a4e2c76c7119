# src/telstore/telemetry/sinks/console.py
"""Console sink for telemetry records.

Writes one JSON object per line to stdout or stderr. Used for local
debugging and by the replay command.
"""

from __future__ import annotations

import json
import sys
from typing import Any, Literal, TextIO, TypeGuard

import structlog

from telstore.telemetry.errors import TelemetrySinkError
from telstore.telemetry.sink import SinkEvent

logger = structlog.get_logger(__name__)


def _is_valid_output(v: str) -> TypeGuard[Literal["stdout", "stderr"]]:
    return v in {"stdout", "stderr"}


class ConsoleSink:
    """Write telemetry records to stdout/stderr as JSON lines.

    Each line holds the record fields plus ``level``.

    Configuration options:
        output: Output stream - "stdout" (default) or "stderr"
    """

    _name = "console"

    _VALID_OUTPUTS: frozenset[str] = frozenset({"stdout", "stderr"})

    def __init__(self) -> None:
        self._output: Literal["stdout", "stderr"] = "stdout"

    @property
    def name(self) -> str:
        return self._name

    @property
    def _stream(self) -> TextIO:
        # Looked up per write so redirected streams are honoured
        return sys.stdout if self._output == "stdout" else sys.stderr

    def configure(self, config: dict[str, Any]) -> None:
        output_value = config.get("output", "stdout")
        if not isinstance(output_value, str):
            raise TelemetrySinkError(
                self._name,
                f"'output' must be a string, got {type(output_value).__name__}",
            )
        if _is_valid_output(output_value):
            self._output = output_value
        else:
            raise TelemetrySinkError(
                self._name,
                f"Invalid output '{output_value}'. Must be one of: {', '.join(sorted(self._VALID_OUTPUTS))}",
            )

    def commit(self, event: SinkEvent) -> None:
        try:
            line = json.dumps({"level": event.level.value, **event.fields})
            print(line, file=self._stream, flush=True)
        except Exception as e:
            logger.warning("Failed to commit telemetry record", sink=self._name, error=str(e))

    def close(self) -> None:
        pass
