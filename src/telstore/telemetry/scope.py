# src/telstore/telemetry/scope.py
"""Telemetry for synchronous request handlers.

RPC handlers do not go through the event middleware. They open a scope at
the request boundary instead; everything called inside it sees the record
through business_record():

    with telemetry_scope(sink) as record:
        record.login_hash = hash_login(subject)
        service.delete_project(project_id)  # may set project_tombstone
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from uuid import UUID

from telstore.contracts.enums import SinkLevel
from telstore.telemetry.binding import bind_current, unbind_current
from telstore.telemetry.record import ProjectTombstone, TelemetryRecord
from telstore.telemetry.sink import SinkEvent, SinkProtocol


@contextmanager
def telemetry_scope(sink: SinkProtocol) -> Iterator[TelemetryRecord]:
    """Bind a fresh record for the duration of the block and commit it once.

    The event is committed at info level when the block completes and at
    error level when it raises; the exception is not swallowed.
    """
    record = TelemetryRecord()
    token = bind_current(record)
    level = SinkLevel.ERROR
    try:
        yield record
        level = SinkLevel.INFO
    finally:
        unbind_current(token)
        record.emit(SinkEvent(sink, level)).commit()


def hash_login(subject: str) -> str:
    """Pseudonymize a login subject for the login_sha field."""
    return hashlib.sha256(subject.encode("utf-8")).hexdigest()


def export_project_tombstone(
    project_id: UUID,
    *,
    profile_count: int,
    repositories_count: int,
    entitlements: Iterable[str] = (),
) -> ProjectTombstone:
    """Build the tombstone recorded when a project is deleted."""
    if profile_count < 0 or repositories_count < 0:
        raise ValueError(
            f"counts must be non-negative, got profile_count={profile_count}, repositories_count={repositories_count}"
        )
    return ProjectTombstone(
        project=project_id,
        profile_count=profile_count,
        repositories_count=repositories_count,
        entitlements=tuple(entitlements),
    )
