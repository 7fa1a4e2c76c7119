# src/telstore/core/config.py
"""
Configuration schema and loading for telstore.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

import os
import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


class LoggingSettings(BaseModel):
    """Structured logging output configuration."""

    model_config = {"frozen": True}

    json_output: bool = Field(default=False, description="Render log lines as JSON")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        """Accept lowercase level names from env vars."""
        if isinstance(v, str):
            return v.upper()
        return v


class SinkSettings(BaseModel):
    """Telemetry sink selection.

    ``name`` selects a sink registered through the telstore_get_sinks hook;
    ``options`` are passed to its configure() unchanged.
    """

    model_config = {"frozen": True}

    name: str = Field(default="structlog", description="Sink name (structlog, console, ...)")
    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Sink-specific configuration options",
    )

    @field_validator("name")
    @classmethod
    def validate_name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("sink name cannot be empty")
        return v


class TelstoreSettings(BaseModel):
    """Top-level telstore configuration."""

    model_config = {"frozen": True}

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    sink: SinkSettings = Field(default_factory=SinkSettings)


# ${VAR} or ${VAR:-default}; unset variables without a default are left as written
_ENV_REFERENCE = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


def _substitute_env(match: re.Match[str]) -> str:
    name, default = match.group(1), match.group(2)
    value = os.environ.get(name, default)
    return match.group(0) if value is None else value


def _expand_env_vars(value: Any) -> Any:
    """Expand environment references in every string of a nested config value."""
    match value:
        case str():
            return _ENV_REFERENCE.sub(_substitute_env, value)
        case dict():
            return {k: _expand_env_vars(v) for k, v in value.items()}
        case list():
            return [_expand_env_vars(item) for item in value]
        case _:
            return value


def _normalize_section(section: dict[str, Any]) -> dict[str, Any]:
    """Lowercase a section's own keys; ``options`` contents stay as written."""
    normalized: dict[str, Any] = {}
    for key, value in section.items():
        key = str(key).lower()
        normalized[key] = dict(value) if key == "options" and isinstance(value, dict) else value
    return normalized


def load_settings(config_path: Path) -> TelstoreSettings:
    """Load settings from a YAML file with environment variable overrides.

    Precedence, highest first:
    1. Environment variables, e.g. TELSTORE_SINK__NAME=console
    2. The YAML file
    3. Model defaults

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated TelstoreSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf ignores missing settings files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    loaded = Dynaconf(
        envvar_prefix="TELSTORE",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    ).as_dict()

    raw_config: dict[str, Any] = {}
    for key in TelstoreSettings.model_fields:
        section = loaded.get(key.upper(), loaded.get(key))
        if isinstance(section, dict):
            raw_config[key] = _normalize_section(section)
        elif section is not None:
            raw_config[key] = section

    return TelstoreSettings(**_expand_env_vars(raw_config))
