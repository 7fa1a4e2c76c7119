# src/telstore/telemetry/record.py
"""The business telemetry record.

A TelemetryRecord accumulates observational data for one unit of work (an
RPC call or one event handler invocation). It is bound to a context at the
top of the unit of work, mutated by any code running under that context,
and emitted exactly once as a single structured log event at the end.

Wire schema (keys present only when populated):

    project, provider, provider_id, login_sha, repository, artifact, pr, entity,
    profile {id, name}, ruletype {id, name}, project_tombstone, rules,
    telemetry = "true" (always)

Thread Safety:
    The record is shared by aliasing. Mutating operations
    (append_rule_evaluation, update) take a per-record lock, so handlers that
    fan out across threads can share it; appends from one thread keep their
    call order. Plain attribute assignment is also supported for
    single-writer code.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any
from uuid import UUID

from telstore.contracts.enums import ActionKind, ActionOpt
from telstore.contracts.errors import ActionsError, action_result_of, eval_result_of

if TYPE_CHECKING:
    import contextvars

    from telstore.telemetry.sink import SinkEvent


def _is_set(value: UUID | None) -> bool:
    return value is not None and value.int != 0


def _id_str(value: UUID | None) -> str:
    return str(value if value is not None else UUID(int=0))


@dataclass(frozen=True, slots=True)
class Profile:
    """Profile reference recorded in telemetry."""

    id: UUID | None = None
    name: str = ""

    def is_zero(self) -> bool:
        return not _is_set(self.id) and self.name == ""

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "id": _id_str(self.id)}


@dataclass(frozen=True, slots=True)
class RuleType:
    """Rule type reference recorded in telemetry."""

    id: UUID | None = None
    name: str = ""

    def is_zero(self) -> bool:
        return not _is_set(self.id) and self.name == ""

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "id": _id_str(self.id)}


@dataclass(frozen=True, slots=True)
class ActionEvalData:
    """Configured state and outcome of one action."""

    state: str
    result: str

    def to_dict(self) -> dict[str, str]:
        return {"state": self.state, "result": self.result}


@dataclass(frozen=True, slots=True)
class RuleEvaluationEntry:
    """Outcome of evaluating one rule for one profile."""

    rule_type: RuleType
    profile: Profile
    eval_result: str
    actions: dict[str, ActionEvalData]

    def to_dict(self) -> dict[str, Any]:
        return {
            "ruletype": self.rule_type.to_dict(),
            "profile": self.profile.to_dict(),
            "eval_result": self.eval_result,
            "actions": {kind: data.to_dict() for kind, data in self.actions.items()},
        }


@dataclass(frozen=True, slots=True)
class ProjectTombstone:
    """Summary of a project recorded when the project is deleted.

    Equality is plain value equality over every field, entitlements compared
    in order. The default instance is the "zero" tombstone, which is never
    emitted.
    """

    project: UUID | None = None
    profile_count: int = 0
    repositories_count: int = 0
    entitlements: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # The nil UUID and None both mean "no project"
        if self.project is not None and self.project.int == 0:
            object.__setattr__(self, "project", None)
        # Accept any sequence, store an immutable one so equality stays stable
        if not isinstance(self.entitlements, tuple):
            object.__setattr__(self, "entitlements", tuple(self.entitlements))

    def is_zero(self) -> bool:
        return self == _ZERO_TOMBSTONE

    def to_dict(self) -> dict[str, Any]:
        return {
            "project": _id_str(self.project),
            "profile_count": self.profile_count,
            "repositories_count": self.repositories_count,
            "entitlements": list(self.entitlements),
        }


_ZERO_TOMBSTONE = ProjectTombstone()


@dataclass(frozen=True, slots=True)
class RuleEvaluationParams:
    """Result of one rule evaluation as produced by the rule engine.

    The engine's rule object only carries the rule type id; the handler
    supplies the rule type name when recording.

    Attributes:
        rule_type_id: Rule type that was evaluated
        profile: Profile the rule belongs to
        eval_err: Evaluation error, None on success
        action_opts: Configured state per action kind
        actions_err: Per-action errors
    """

    rule_type_id: UUID
    profile: Profile
    eval_err: BaseException | None = None
    action_opts: dict[ActionKind, ActionOpt] = field(default_factory=dict)
    actions_err: ActionsError = field(default_factory=ActionsError)


@dataclass(eq=False)
class TelemetryRecord:
    """Mutable per-unit-of-work telemetry.

    Attributes:
        project: Project the unit of work concerns
        provider: Provider name (RPC paths)
        provider_id: Provider instance id
        login_hash: Pseudonymized subject, see hash_login()
        repository: Repository id (at most one entity id is set by projection)
        artifact: Artifact id
        pull_request: Pull request id
        entity: Generic entity instance id (entity-instance RPCs)
        profile: Profile touched by the unit of work
        rule_type: Rule type touched by the unit of work
        project_tombstone: Set by project deletion flows
    """

    project: UUID | None = None
    provider: str = ""
    provider_id: UUID | None = None
    login_hash: str = ""
    repository: UUID | None = None
    artifact: UUID | None = None
    pull_request: UUID | None = None
    entity: UUID | None = None
    profile: Profile = field(default_factory=Profile)
    rule_type: RuleType = field(default_factory=RuleType)
    project_tombstone: ProjectTombstone = field(default_factory=ProjectTombstone)
    _evaluations: list[RuleEvaluationEntry] = field(default_factory=list, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def detached(self) -> bool:
        """True only for the sentinel returned when nothing is bound."""
        return False

    @property
    def evaluations(self) -> list[RuleEvaluationEntry]:
        """Snapshot of the recorded evaluations, in append order.

        A copy: record evaluations with append_rule_evaluation().
        """
        with self._lock:
            return list(self._evaluations)

    def append_rule_evaluation(self, params: RuleEvaluationParams, rule_type_name: str) -> None:
        """Record one rule evaluation outcome."""
        actions: dict[str, ActionEvalData] = {
            ActionKind.REMEDIATE.value: ActionEvalData(
                state=ActionOpt(params.action_opts.get(ActionKind.REMEDIATE, ActionOpt.UNKNOWN)).value,
                result=action_result_of(params.actions_err.remediate_err).value,
            ),
            ActionKind.ALERT.value: ActionEvalData(
                state=ActionOpt(params.action_opts.get(ActionKind.ALERT, ActionOpt.UNKNOWN)).value,
                result=action_result_of(params.actions_err.alert_err).value,
            ),
        }
        entry = RuleEvaluationEntry(
            rule_type=RuleType(id=params.rule_type_id, name=rule_type_name),
            profile=params.profile,
            eval_result=eval_result_of(params.eval_err).value,
            actions=actions,
        )
        with self._lock:
            self._evaluations.append(entry)

    def update(self, **values: Any) -> None:
        """Set several fields at once under the record lock.

        Raises:
            AttributeError: If a name is not a settable record field
        """
        settable = _SETTABLE_FIELDS
        for name in values:
            if name not in settable:
                raise AttributeError(f"{type(self).__name__} has no settable field {name!r}")
        with self._lock:
            for name, value in values.items():
                setattr(self, name, value)

    def bind(self, ctx: contextvars.Context) -> contextvars.Context:
        """Return a context derived from ctx that carries this record."""
        from telstore.telemetry.binding import with_record

        return with_record(ctx, self)

    def emit(self, event: SinkEvent) -> SinkEvent:
        """Write the populated fields onto event and return it.

        Does not commit; the caller commits in the scope that built the event.
        """
        with self._lock:
            if _is_set(self.project):
                event.identifier("project", self.project)  # type: ignore[arg-type]
            if self.provider:
                event.string("provider", self.provider)
            if _is_set(self.provider_id):
                event.identifier("provider_id", self.provider_id)  # type: ignore[arg-type]
            if self.login_hash:
                event.string("login_sha", self.login_hash)
            if _is_set(self.repository):
                event.identifier("repository", self.repository)  # type: ignore[arg-type]
            if _is_set(self.artifact):
                event.identifier("artifact", self.artifact)  # type: ignore[arg-type]
            if _is_set(self.pull_request):
                event.identifier("pr", self.pull_request)  # type: ignore[arg-type]
            if _is_set(self.entity):
                event.identifier("entity", self.entity)  # type: ignore[arg-type]
            if not self.profile.is_zero():
                event.structured("profile", self.profile.to_dict())
            if not self.rule_type.is_zero():
                event.structured("ruletype", self.rule_type.to_dict())
            if not self.project_tombstone.is_zero():
                event.structured("project_tombstone", self.project_tombstone.to_dict())
            if self._evaluations:
                event.structured("rules", [entry.to_dict() for entry in self._evaluations])

        # Marker so downstream can filter telemetry records
        event.string("telemetry", "true")
        return event


_SETTABLE_FIELDS = frozenset(f.name for f in fields(TelemetryRecord) if not f.name.startswith("_"))


class DetachedRecord(TelemetryRecord):
    """Record returned by business_record() when no record is bound.

    Same shape as TelemetryRecord so call sites never check for it: every
    write is discarded, append_rule_evaluation does nothing, bind() returns
    the context unchanged and emit() only writes the telemetry marker.
    """

    def __init__(self) -> None:
        super().__init__()
        object.__setattr__(self, "_sealed", True)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_sealed", False):
            return
        object.__setattr__(self, name, value)

    @property
    def detached(self) -> bool:
        return True

    @property
    def evaluations(self) -> list[RuleEvaluationEntry]:
        return []

    def append_rule_evaluation(self, params: RuleEvaluationParams, rule_type_name: str) -> None:
        return None

    def update(self, **values: Any) -> None:
        return None

    def bind(self, ctx: contextvars.Context) -> contextvars.Context:
        return ctx

    def emit(self, event: SinkEvent) -> SinkEvent:
        event.string("telemetry", "true")
        return event

    def __repr__(self) -> str:
        return "DetachedRecord()"


DETACHED_RECORD = DetachedRecord()

__all__ = [
    "DETACHED_RECORD",
    "ActionEvalData",
    "DetachedRecord",
    "Profile",
    "ProjectTombstone",
    "RuleEvaluationEntry",
    "RuleEvaluationParams",
    "RuleType",
    "TelemetryRecord",
]
