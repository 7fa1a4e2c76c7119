# src/telstore/core/__init__.py
"""Ambient infrastructure: configuration and logging."""

from telstore.core.config import LoggingSettings, SinkSettings, TelstoreSettings, load_settings
from telstore.core.logging import configure_logging, get_logger

__all__ = [
    "LoggingSettings",
    "SinkSettings",
    "TelstoreSettings",
    "configure_logging",
    "get_logger",
    "load_settings",
]
