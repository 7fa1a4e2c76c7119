# src/telstore/events/__init__.py
"""Event messages and the entity event envelope."""

from telstore.events.entity import (
    ENTITY_ID_EVENT_KEY,
    ENTITY_TYPE_EVENT_KEY,
    EXECUTION_ID_KEY,
    PROJECT_ID_EVENT_KEY,
    PROVIDER_ID_EVENT_KEY,
    EntityEventError,
    EntityInfoWrapper,
    parse_entity_event,
)
from telstore.events.message import AsyncHandlerFunc, HandlerFunc, Message

__all__ = [
    "ENTITY_ID_EVENT_KEY",
    "ENTITY_TYPE_EVENT_KEY",
    "EXECUTION_ID_KEY",
    "PROJECT_ID_EVENT_KEY",
    "PROVIDER_ID_EVENT_KEY",
    "AsyncHandlerFunc",
    "EntityEventError",
    "EntityInfoWrapper",
    "HandlerFunc",
    "Message",
    "parse_entity_event",
]
