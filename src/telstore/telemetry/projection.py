# src/telstore/telemetry/projection.py
"""Projection of an entity event envelope onto an initial telemetry record."""

from __future__ import annotations

from telstore.contracts.enums import EntityKind
from telstore.events.entity import EntityEventError, EntityInfoWrapper
from telstore.telemetry.errors import ProjectionError
from telstore.telemetry.record import TelemetryRecord


def record_from_entity(eiw: EntityInfoWrapper) -> TelemetryRecord:
    """Build the initial record for an entity event.

    Sets project and provider id, plus the one entity id field matching the
    event's kind. Kinds without a dedicated field leave all entity ids unset.

    Raises:
        ProjectionError: If the entity id cannot be determined. The error
            carries the (empty) record so the caller can carry on with it.
    """
    record = TelemetryRecord()

    try:
        entity_id = eiw.get_id()
    except EntityEventError as e:
        raise ProjectionError(f"error getting entity ID: {e}", record) from e

    record.provider_id = eiw.provider_id
    record.project = eiw.project_id

    match eiw.entity_kind:
        case EntityKind.REPOSITORY:
            record.repository = entity_id
        case EntityKind.ARTIFACT:
            record.artifact = entity_id
        case EntityKind.PULL_REQUEST:
            record.pull_request = entity_id
        case _:
            # Acknowledged kinds with no entity field in the wire schema
            pass

    return record
