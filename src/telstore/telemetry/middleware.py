# src/telstore/telemetry/middleware.py
"""Event handler middleware that brackets each event with a telemetry record.

For every message the wrapped handler receives:

    RECEIVED -> PARSED -> BOUND -> HANDLED -> EMITTED -> RETURNED

1. Parse the payload as an entity event. A parse failure is raised as-is
   and nothing is emitted.
2. Project the envelope onto a fresh TelemetryRecord. A projection failure
   is logged as an info breadcrumb; the (possibly empty) record is used.
3. Bind the record to a context derived from msg.context and store that
   context on the message.
4. Run the inner handler in the bound context.
5. Commit exactly one sink event - info on success, error otherwise - then
   return the handler's result or re-raise its exception unchanged.

Both plain functions and coroutine functions can be wrapped. Coroutines run
as a task created with the bound context; cancellation counts as failure.

Example:
    >>> middleware = EventHandlerMiddleware(sink)
    >>> handle = middleware(handle_entity_event)
    >>> handle(msg)
"""

from __future__ import annotations

import asyncio
import functools
import inspect
from typing import overload

import structlog

from telstore.contracts.enums import SinkLevel
from telstore.events.entity import parse_entity_event
from telstore.events.message import AsyncHandlerFunc, HandlerFunc, Message
from telstore.telemetry.errors import ProjectionError
from telstore.telemetry.projection import record_from_entity
from telstore.telemetry.record import TelemetryRecord
from telstore.telemetry.sink import SinkEvent, SinkProtocol

logger = structlog.get_logger(__name__)


def _is_async_handler(handler: object) -> bool:
    """True for coroutine functions and objects with an async __call__."""
    if inspect.iscoroutinefunction(handler):
        return True
    return not inspect.isroutine(handler) and inspect.iscoroutinefunction(getattr(handler, "__call__", None))


class EventHandlerMiddleware:
    """Wraps event handlers so each invocation emits one telemetry record.

    Thread Safety:
        Holds no per-message state; one instance can wrap handlers that run
        concurrently. Each invocation gets its own record.
    """

    def __init__(self, sink: SinkProtocol) -> None:
        self._sink = sink

    @overload
    def __call__(self, handler: AsyncHandlerFunc) -> AsyncHandlerFunc: ...

    @overload
    def __call__(self, handler: HandlerFunc) -> HandlerFunc: ...

    def __call__(self, handler: HandlerFunc | AsyncHandlerFunc) -> HandlerFunc | AsyncHandlerFunc:
        if _is_async_handler(handler):
            return self._wrap_async(handler)
        return self._wrap_sync(handler)  # type: ignore[arg-type]

    def _bind_record(self, msg: Message) -> TelemetryRecord:
        """Parse msg, build its record and bind it onto msg.context.

        Raises:
            EntityEventError: If the payload is not an entity event
        """
        eiw = parse_entity_event(msg)

        try:
            record = record_from_entity(eiw)
        except ProjectionError as e:
            logger.bind(message_id=msg.uuid).info(
                "error creating telemetry store from entity",
                entity_type=eiw.entity_kind.value,
                error=str(e),
            )
            record = e.record

        msg.context = record.bind(msg.context)
        return record

    def _commit(self, record: TelemetryRecord, level: SinkLevel) -> None:
        record.emit(SinkEvent(self._sink, level)).commit()

    def _wrap_sync(self, handler: HandlerFunc) -> HandlerFunc:
        @functools.wraps(handler)
        def wrapped(msg: Message) -> list[Message]:
            record = self._bind_record(msg)
            level = SinkLevel.ERROR
            try:
                out = msg.context.run(handler, msg)
                level = SinkLevel.INFO
                return out
            finally:
                self._commit(record, level)

        return wrapped

    def _wrap_async(self, handler: AsyncHandlerFunc) -> AsyncHandlerFunc:
        @functools.wraps(handler)
        async def wrapped(msg: Message) -> list[Message]:
            record = self._bind_record(msg)
            level = SinkLevel.ERROR
            try:
                task = asyncio.get_running_loop().create_task(handler(msg), context=msg.context)
                out = await task
                level = SinkLevel.INFO
                return out
            finally:
                self._commit(record, level)

        return wrapped
