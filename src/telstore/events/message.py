# src/telstore/events/message.py
"""Event messages as delivered to asynchronous event handlers.

A Message carries two things a handler observes: string metadata plus an
opaque payload, and the contextvars.Context the handler runs in. Middleware
replaces ``context`` with a derived one to make values visible downstream.
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any, TypeAlias


def _new_message_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Message:
    """A single event message.

    Attributes:
        uuid: Message identifier (not the entity id)
        metadata: String key/value headers describing the event
        payload: Opaque body, JSON for entity events
        context: Context the handler runs in
    """

    uuid: str = field(default_factory=_new_message_id)
    metadata: dict[str, str] = field(default_factory=dict)
    payload: bytes = b""
    context: contextvars.Context = field(default_factory=contextvars.copy_context, repr=False, compare=False)

    def copy(self) -> Message:
        """Copy metadata and payload; the context is shared, not copied."""
        return Message(
            uuid=self.uuid,
            metadata=dict(self.metadata),
            payload=self.payload,
            context=self.context,
        )


HandlerFunc: TypeAlias = Callable[[Message], list[Message]]
AsyncHandlerFunc: TypeAlias = Callable[[Message], Coroutine[Any, Any, list[Message]]]
