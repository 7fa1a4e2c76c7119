# src/telstore/events/entity.py
"""Entity events: the envelope describing which entity an event concerns.

Entity events identify the project, the provider instance and the entity
through message metadata:

- project_id, provider_id: required, UUIDs
- entity_type: one of EntityKind's values
- entity_id: UUID of the entity instance (preferred)
- repository_id / artifact_id / pull_request_id: legacy per-kind keys,
  consulted only when entity_id is missing
- execution_id: set when the entity lock is acquired

The payload is the JSON encoding of the entity itself; telemetry never
looks inside it.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

import structlog

from telstore.contracts.enums import EntityKind
from telstore.events.message import Message

logger = structlog.get_logger(__name__)

ENTITY_TYPE_EVENT_KEY = "entity_type"
ENTITY_ID_EVENT_KEY = "entity_id"
PROVIDER_ID_EVENT_KEY = "provider_id"
PROJECT_ID_EVENT_KEY = "project_id"
REPOSITORY_ID_EVENT_KEY = "repository_id"
ARTIFACT_ID_EVENT_KEY = "artifact_id"
PULL_REQUEST_ID_EVENT_KEY = "pull_request_id"
EXECUTION_ID_KEY = "execution_id"

# Legacy per-kind metadata keys; only these kinds can fall back to them
_LEGACY_ID_KEYS: dict[EntityKind, str] = {
    EntityKind.REPOSITORY: REPOSITORY_ID_EVENT_KEY,
    EntityKind.ARTIFACT: ARTIFACT_ID_EVENT_KEY,
    EntityKind.PULL_REQUEST: PULL_REQUEST_ID_EVENT_KEY,
}


class EntityEventError(Exception):
    """Raised when an entity event cannot be parsed or identified."""


@dataclass
class EntityInfoWrapper:
    """Decoded entity event.

    Attributes:
        provider_id: Provider instance the entity belongs to
        project_id: Project the entity belongs to
        entity_kind: Kind of entity
        entity_id: Entity instance id, when the event carries one
        entity: Decoded JSON payload
        ownership_data: Legacy per-kind id keys and any extra ownership metadata
        execution_id: Execution id, once the entity lock is held
    """

    provider_id: UUID | None = None
    project_id: UUID | None = None
    entity_kind: EntityKind = EntityKind.UNSPECIFIED
    entity_id: UUID | None = None
    entity: dict[str, Any] = field(default_factory=dict)
    ownership_data: dict[str, str] = field(default_factory=dict)
    execution_id: UUID | None = None

    def get_id(self) -> UUID:
        """Return the id of the entity this event concerns.

        Prefers the explicit entity id and falls back to the legacy
        ownership key for the entity kind.

        Raises:
            EntityEventError: If no id can be determined
        """
        if self.entity_id is not None and self.entity_id.int != 0:
            return self.entity_id

        key = _LEGACY_ID_KEYS.get(self.entity_kind)
        if key is not None and key in self.ownership_data:
            try:
                return UUID(self.ownership_data[key])
            except ValueError as e:
                raise EntityEventError(f"malformed {key} {self.ownership_data[key]!r}") from e

        raise EntityEventError("no entity ID found")

    def with_execution_id_from_message(self, msg: Message) -> EntityInfoWrapper:
        """Set execution_id from message metadata.

        Raises:
            EntityEventError: If the key is missing or malformed
        """
        raw = msg.metadata.get(EXECUTION_ID_KEY, "")
        if not raw:
            raise EntityEventError(f"{EXECUTION_ID_KEY} not found in metadata")
        self.execution_id = _parse_uuid(raw, EXECUTION_ID_KEY)
        return self

    def to_message(self, msg: Message) -> None:
        """Write this envelope into msg's metadata and payload.

        Raises:
            EntityEventError: If project or provider id is missing
        """
        if self.project_id is None or self.project_id.int == 0:
            raise EntityEventError("project ID is required")
        if self.provider_id is None or self.provider_id.int == 0:
            raise EntityEventError("provider ID is required")

        if self.entity_id is not None and self.entity_id.int != 0:
            msg.metadata[ENTITY_ID_EVENT_KEY] = str(self.entity_id)
        if self.execution_id is not None:
            msg.metadata[EXECUTION_ID_KEY] = str(self.execution_id)

        msg.metadata[PROVIDER_ID_EVENT_KEY] = str(self.provider_id)
        msg.metadata[ENTITY_TYPE_EVENT_KEY] = self.entity_kind.value
        msg.metadata[PROJECT_ID_EVENT_KEY] = str(self.project_id)
        msg.metadata.update(self.ownership_data)
        msg.payload = json.dumps(self.entity).encode("utf-8")

    def build_message(self) -> Message:
        """Build a fresh message carrying this envelope."""
        msg = Message(uuid=str(uuid.uuid1()))
        self.to_message(msg)
        return msg


def _parse_uuid(raw: str, key: str) -> UUID:
    try:
        return UUID(raw)
    except ValueError as e:
        raise EntityEventError(f"malformed {key} {raw!r}") from e


def _required_uuid(msg: Message, key: str) -> UUID:
    raw = msg.metadata.get(key, "")
    if not raw:
        raise EntityEventError(f"{key} not found in metadata")
    return _parse_uuid(raw, key)


def _copy_legacy_id(msg: Message, out: EntityInfoWrapper, key: str, *, required: bool) -> None:
    raw = msg.metadata.get(key, "")
    if raw:
        out.ownership_data[key] = raw
    elif required:
        raise EntityEventError(f"error parsing {key}: {key} not found in metadata")


def _decode_payload(payload: bytes) -> dict[str, Any]:
    if not payload:
        return {}
    try:
        decoded = json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise EntityEventError(f"error unmarshalling payload: {e}") from e
    if not isinstance(decoded, dict):
        raise EntityEventError(f"error unmarshalling payload: expected JSON object, got {type(decoded).__name__}")
    return decoded


def parse_entity_event(msg: Message) -> EntityInfoWrapper:
    """Parse an entity event message into an EntityInfoWrapper.

    Raises:
        EntityEventError: If required metadata is missing or malformed, the
            entity type is unspecified, or the payload is not a JSON object
    """
    out = EntityInfoWrapper()
    out.project_id = _required_uuid(msg, PROJECT_ID_EVENT_KEY)
    out.provider_id = _required_uuid(msg, PROVIDER_ID_EVENT_KEY)

    raw_entity_id = msg.metadata.get(ENTITY_ID_EVENT_KEY, "")
    if raw_entity_id:
        out.entity_id = _parse_uuid(raw_entity_id, ENTITY_ID_EVENT_KEY)
    else:
        # Not fatal: the legacy per-kind keys may still identify the entity
        logger.debug("message does not contain entity ID", message_id=msg.uuid)

    kind = EntityKind.from_string(msg.metadata.get(ENTITY_TYPE_EVENT_KEY, ""))
    out.entity_kind = kind

    match kind:
        case EntityKind.REPOSITORY:
            if out.entity_id is None:
                _copy_legacy_id(msg, out, REPOSITORY_ID_EVENT_KEY, required=True)
        case EntityKind.ARTIFACT:
            if out.entity_id is None:
                _copy_legacy_id(msg, out, ARTIFACT_ID_EVENT_KEY, required=True)
                # The repository is not always present
                _copy_legacy_id(msg, out, REPOSITORY_ID_EVENT_KEY, required=False)
        case EntityKind.PULL_REQUEST:
            if out.entity_id is None:
                _copy_legacy_id(msg, out, PULL_REQUEST_ID_EVENT_KEY, required=True)
                _copy_legacy_id(msg, out, REPOSITORY_ID_EVENT_KEY, required=True)
        case EntityKind.UNSPECIFIED:
            raise EntityEventError("entity type unspecified")
        case _:
            # No legacy fallback for other kinds
            if out.entity_id is None:
                raise EntityEventError("entity ID not found")

    out.entity = _decode_payload(msg.payload)
    return out
