# src/telstore/contracts/enums.py
"""Status codes, kinds and levels shared across subsystem boundaries.

Values are the literal strings written to the telemetry wire record, so
renaming a member is a breaking change for downstream log consumers.
"""

from enum import StrEnum


class EntityKind(StrEnum):
    """Kind of entity an event refers to.

    Values match the ``entity_type`` metadata key on event messages.
    """

    UNSPECIFIED = "unspecified"
    REPOSITORY = "repository"
    ARTIFACT = "artifact"
    PULL_REQUEST = "pull_request"
    BUILD_ENVIRONMENT = "build_environment"
    RELEASE = "release"
    PIPELINE_RUN = "pipeline_run"
    TASK_RUN = "task_run"
    BUILD = "build"
    ORGANIZATION = "organization"

    @classmethod
    def from_string(cls, value: str) -> "EntityKind":
        """Parse a metadata value, mapping unknown strings to UNSPECIFIED."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNSPECIFIED


class ActionKind(StrEnum):
    """Kinds of action a rule evaluation can trigger."""

    REMEDIATE = "remediate"
    ALERT = "alert"


class ActionOpt(StrEnum):
    """Configured on/off state of an action for a profile."""

    ON = "on"
    OFF = "off"
    DRY_RUN = "dry_run"
    UNKNOWN = "unknown"


class EvalResult(StrEnum):
    """Categorical outcome of a rule evaluation."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILURE = "failure"
    PENDING = "pending"
    ERROR = "error"


class ActionResult(StrEnum):
    """Categorical outcome of a remediation or alert action."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    NOT_NEEDED = "not_needed"
    ERROR = "error"


class SinkLevel(StrEnum):
    """Level a telemetry record is committed at."""

    INFO = "info"
    ERROR = "error"
