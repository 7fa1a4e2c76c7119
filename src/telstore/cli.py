# src/telstore/cli.py
"""telstore Command Line Interface.

Entry point for the telstore CLI tool.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
import yaml
from pydantic import ValidationError

from telstore import __version__
from telstore.contracts.enums import SinkLevel
from telstore.core.config import SinkSettings, TelstoreSettings, load_settings
from telstore.core.logging import configure_logging
from telstore.events.entity import EntityEventError, parse_entity_event
from telstore.events.message import Message
from telstore.telemetry.errors import ProjectionError, TelemetrySinkError
from telstore.telemetry.factory import create_sink
from telstore.telemetry.middleware import EventHandlerMiddleware
from telstore.telemetry.projection import record_from_entity
from telstore.telemetry.sink import SinkEvent

__all__ = ["app"]

app = typer.Typer(
    name="telstore",
    help="telstore: business telemetry for event handlers.",
    no_args_is_help=True,
)


class ReplayHandlerError(Exception):
    """Raised by the replay handler when --fail is given."""


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"telstore version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """telstore: business telemetry for event handlers."""


def _format_error(title: str, message: str, *, details: list[str] | None = None, hint: str | None = None) -> None:
    typer.secho(f"Error: {title}", fg=typer.colors.RED, err=True)
    typer.echo(f"  {message}", err=True)
    for detail in details or []:
        typer.echo(f"    - {detail}", err=True)
    if hint:
        typer.echo(f"  Hint: {hint}", err=True)


def _load_settings_or_exit(settings: str | None) -> TelstoreSettings:
    if settings is None:
        return TelstoreSettings()

    settings_path = Path(settings).expanduser()
    try:
        return load_settings(settings_path)
    except FileNotFoundError:
        _format_error(
            "File Not Found",
            f"Settings file does not exist: {settings}",
            hint="Check the path and ensure the file exists.",
        )
        raise typer.Exit(1) from None
    except ValidationError as e:
        details = [f"{'.'.join(str(x) for x in err['loc'])}: {err['msg']}" for err in e.errors()]
        _format_error(
            "Configuration Validation Failed",
            f"Invalid settings in {settings_path.name}",
            details=details,
            hint="Check field names, types, and required values.",
        )
        raise typer.Exit(1) from None


def _encode_payload(payload: Any) -> bytes:
    if payload is None:
        return b""
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return json.dumps(payload).encode("utf-8")


def _read_event_file(event_file: Path) -> Message:
    """Read an event document ({uuid?, metadata, payload?}) into a Message.

    Raises:
        typer.Exit: If the file is missing or malformed
    """
    if not event_file.exists():
        _format_error("File Not Found", f"Event file does not exist: {event_file}")
        raise typer.Exit(1)

    try:
        document = yaml.safe_load(event_file.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        _format_error("Event Parse Error", f"Failed to parse {event_file.name}", details=[str(e)])
        raise typer.Exit(1) from None

    if not isinstance(document, dict) or not isinstance(document.get("metadata"), dict):
        _format_error(
            "Invalid Event",
            f"{event_file.name} must be a mapping with a 'metadata' mapping",
            hint="Expected keys: metadata (required), payload, uuid.",
        )
        raise typer.Exit(1)

    # null, booleans and nested values have no single string form
    invalid = [(k, v) for k, v in document["metadata"].items() if isinstance(v, bool) or not isinstance(v, (str, int, float))]
    if invalid:
        _format_error(
            "Invalid Event",
            f"{event_file.name}: metadata values must be strings or numbers",
            details=[f"{key}: {value!r}" for key, value in invalid],
        )
        raise typer.Exit(1)

    msg = Message(
        metadata={str(k): str(v) for k, v in document["metadata"].items()},
        payload=_encode_payload(document.get("payload")),
    )
    if document.get("uuid"):
        msg.uuid = str(document["uuid"])
    return msg


@app.command()
def replay(
    event_file: Path = typer.Argument(..., help="Event document (YAML or JSON)."),
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    sink_name: str | None = typer.Option(
        None,
        "--sink",
        help="Override the configured sink (e.g. 'console').",
    ),
    fail: bool = typer.Option(
        False,
        "--fail",
        help="Make the handler fail so the record is committed at error level.",
    ),
) -> None:
    """Run an event through the telemetry middleware with a no-op handler."""
    config = _load_settings_or_exit(settings)
    configure_logging(json_output=config.logging.json_output, level=config.logging.level)

    sink_settings = config.sink
    if sink_name is not None:
        sink_settings = SinkSettings(name=sink_name, options=dict(config.sink.options) if sink_name == config.sink.name else {})

    try:
        sink = create_sink(sink_settings)
    except TelemetrySinkError as e:
        _format_error("Sink Configuration Error", str(e))
        raise typer.Exit(1) from None

    msg = _read_event_file(event_file)

    def _handler(m: Message) -> list[Message]:
        if fail:
            raise ReplayHandlerError("replay handler failure requested")
        return []

    handler = EventHandlerMiddleware(sink)(_handler)
    try:
        handler(msg)
    except EntityEventError as e:
        _format_error("Invalid Entity Event", str(e))
        raise typer.Exit(1) from None
    except ReplayHandlerError as e:
        typer.secho(f"Handler failed: {e}", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(1) from None
    finally:
        sink.close()


@app.command()
def project(
    event_file: Path = typer.Argument(..., help="Event document (YAML or JSON)."),
) -> None:
    """Print the telemetry fields an event would start with, as JSON."""
    msg = _read_event_file(event_file)

    try:
        eiw = parse_entity_event(msg)
    except EntityEventError as e:
        _format_error("Invalid Entity Event", str(e))
        raise typer.Exit(1) from None

    try:
        record = record_from_entity(eiw)
    except ProjectionError as e:
        typer.secho(f"Warning: {e}", fg=typer.colors.YELLOW, err=True)
        record = e.record

    event = record.emit(SinkEvent(None, SinkLevel.INFO))
    typer.echo(json.dumps(event.fields, indent=2))


if __name__ == "__main__":
    app()
