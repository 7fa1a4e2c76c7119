# src/telstore/telemetry/binding.py
"""Binding telemetry records to contexts.

Records travel with a contextvars.Context. ``with_record`` derives a new
context carrying a record; ``business_record`` looks it up, falling back to
the detached sentinel so call sites can write unconditionally:

    business_record().project = project_id
    business_record(msg.context).append_rule_evaluation(params, "rule_name")

The binding key is a ContextVar private to this module, so no other
subsystem's context values can collide with it.
"""

from __future__ import annotations

import contextvars

from telstore.telemetry.record import DETACHED_RECORD, TelemetryRecord

_TELEMETRY_RECORD: contextvars.ContextVar[TelemetryRecord] = contextvars.ContextVar("telstore_telemetry_record")


def with_record(ctx: contextvars.Context, record: TelemetryRecord) -> contextvars.Context:
    """Return a copy of ctx in which business_record() yields record.

    ctx itself is left untouched. The record is shared, not copied. Binding
    the detached sentinel returns ctx unchanged.
    """
    if record.detached:
        return ctx
    derived = ctx.copy()
    derived.run(_TELEMETRY_RECORD.set, record)
    return derived


def business_record(ctx: contextvars.Context | None = None) -> TelemetryRecord:
    """Return the record bound to ctx, or the detached sentinel.

    Args:
        ctx: Context to inspect. None means the current (ambient) context.
    """
    if ctx is None:
        return _TELEMETRY_RECORD.get(DETACHED_RECORD)
    return ctx.get(_TELEMETRY_RECORD, DETACHED_RECORD)


def bind_current(record: TelemetryRecord) -> contextvars.Token[TelemetryRecord] | None:
    """Bind record in the current context; returns the token for unbind_current().

    Returns None when record is the detached sentinel (nothing was bound).
    """
    if record.detached:
        return None
    return _TELEMETRY_RECORD.set(record)


def unbind_current(token: contextvars.Token[TelemetryRecord] | None) -> None:
    """Undo bind_current()."""
    if token is not None:
        _TELEMETRY_RECORD.reset(token)
