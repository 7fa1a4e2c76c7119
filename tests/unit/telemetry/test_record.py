"""Tests for TelemetryRecord emission and rule evaluation recording.

Covers:
- Field omission for unset values
- Rule evaluation entries and their wire shape
- ProjectTombstone value equality and emission
- The detached sentinel
"""

import threading
from uuid import UUID, uuid4

import pytest
from hypothesis import given
from hypothesis import strategies as st

from telstore.contracts.enums import ActionKind, ActionOpt, SinkLevel
from telstore.contracts.errors import (
    ActionFailedError,
    ActionsError,
    ActionTurnedOffError,
    EvaluationFailedError,
    EvaluationSkippedError,
)
from telstore.telemetry.record import (
    DETACHED_RECORD,
    Profile,
    ProjectTombstone,
    RuleEvaluationParams,
    RuleType,
    TelemetryRecord,
)
from telstore.telemetry.sink import SinkEvent

ONE = UUID("00000000-0000-0000-0000-000000000001")


def _emit(record: TelemetryRecord, level: SinkLevel = SinkLevel.INFO) -> dict:
    return record.emit(SinkEvent(None, level)).fields


def _params(
    *,
    rule_type_id: UUID = ONE,
    profile: Profile | None = None,
    eval_err: BaseException | None = None,
    remediate: ActionOpt = ActionOpt.OFF,
    alert: ActionOpt = ActionOpt.OFF,
    actions_err: ActionsError | None = None,
) -> RuleEvaluationParams:
    return RuleEvaluationParams(
        rule_type_id=rule_type_id,
        profile=profile or Profile(id=ONE, name="profile"),
        eval_err=eval_err,
        action_opts={ActionKind.REMEDIATE: remediate, ActionKind.ALERT: alert},
        actions_err=actions_err or ActionsError(),
    )


class TestEmitOmission:
    def test_empty_record_emits_only_marker(self) -> None:
        assert _emit(TelemetryRecord()) == {"telemetry": "true"}

    def test_nil_uuids_are_omitted(self) -> None:
        record = TelemetryRecord(project=UUID(int=0), repository=UUID(int=0))
        assert _emit(record) == {"telemetry": "true"}

    def test_all_fields_use_wire_keys(self) -> None:
        ids = [uuid4() for _ in range(6)]
        record = TelemetryRecord(
            project=ids[0],
            provider="github",
            provider_id=ids[1],
            login_hash="abc123",
            repository=ids[2],
            artifact=ids[3],
            pull_request=ids[4],
            entity=ids[5],
            profile=Profile(id=ONE, name="p"),
            rule_type=RuleType(id=ONE, name="r"),
        )

        fields = _emit(record)

        assert fields == {
            "project": str(ids[0]),
            "provider": "github",
            "provider_id": str(ids[1]),
            "login_sha": "abc123",
            "repository": str(ids[2]),
            "artifact": str(ids[3]),
            "pr": str(ids[4]),
            "entity": str(ids[5]),
            "profile": {"name": "p", "id": str(ONE)},
            "ruletype": {"name": "r", "id": str(ONE)},
            "telemetry": "true",
        }

    def test_emission_is_a_pure_read(self) -> None:
        record = TelemetryRecord(project=ONE)
        record.append_rule_evaluation(_params(), "rule")

        first = _emit(record)
        second = _emit(record, SinkLevel.ERROR)

        assert first == second
        assert len(record.evaluations) == 1

    def test_emit_does_not_commit(self, sink) -> None:
        event = TelemetryRecord().emit(SinkEvent(sink, SinkLevel.INFO))
        assert sink.events == []
        assert event.committed is False


class TestRuleEvaluation:
    def test_rpc_scenario_entry_shape(self) -> None:
        record = TelemetryRecord()
        record.project = ONE
        record.repository = ONE
        record.append_rule_evaluation(
            _params(
                profile=Profile(id=ONE, name="artifact_profile"),
                eval_err=EvaluationFailedError("failure"),
                remediate=ActionOpt.ON,
                alert=ActionOpt.OFF,
                actions_err=ActionsError(remediate_err=None, alert_err=ActionTurnedOffError()),
            ),
            "artifact_signature",
        )

        fields = _emit(record)

        assert fields["project"] == str(ONE)
        assert fields["repository"] == str(ONE)
        assert fields["telemetry"] == "true"
        assert fields["rules"] == [
            {
                "ruletype": {"name": "artifact_signature", "id": str(ONE)},
                "profile": {"name": "artifact_profile", "id": str(ONE)},
                "eval_result": "failure",
                "actions": {
                    "remediate": {"state": "on", "result": "success"},
                    "alert": {"state": "off", "result": "skipped"},
                },
            }
        ]

    def test_missing_action_opt_is_unknown(self) -> None:
        record = TelemetryRecord()
        params = RuleEvaluationParams(rule_type_id=ONE, profile=Profile(id=ONE, name="p"))

        record.append_rule_evaluation(params, "rule")

        entry = record.evaluations[0]
        assert entry.actions["remediate"].state == "unknown"
        assert entry.actions["alert"].state == "unknown"
        assert entry.eval_result == "success"

    def test_dry_run_and_action_failure(self) -> None:
        record = TelemetryRecord()
        record.append_rule_evaluation(
            _params(
                eval_err=EvaluationSkippedError(),
                remediate=ActionOpt.DRY_RUN,
                alert=ActionOpt.ON,
                actions_err=ActionsError(remediate_err=ActionTurnedOffError(), alert_err=ActionFailedError()),
            ),
            "rule",
        )

        entry = record.evaluations[0].to_dict()
        assert entry["eval_result"] == "skipped"
        assert entry["actions"]["remediate"] == {"state": "dry_run", "result": "skipped"}
        assert entry["actions"]["alert"] == {"state": "on", "result": "error"}

    def test_duplicates_are_preserved(self) -> None:
        record = TelemetryRecord()
        params = _params()
        record.append_rule_evaluation(params, "rule")
        record.append_rule_evaluation(params, "rule")

        assert len(_emit(record)["rules"]) == 2

    @given(names=st.lists(st.text(min_size=1, max_size=12), min_size=1, max_size=20))
    def test_append_order_preserved(self, names: list[str]) -> None:
        record = TelemetryRecord()
        for name in names:
            record.append_rule_evaluation(_params(), name)

        emitted = [rule["ruletype"]["name"] for rule in _emit(record)["rules"]]
        assert emitted == names

    def test_concurrent_appends_are_all_kept(self) -> None:
        record = TelemetryRecord()
        per_thread = 200

        def writer(prefix: str) -> None:
            for i in range(per_thread):
                record.append_rule_evaluation(_params(), f"{prefix}-{i}")

        threads = [threading.Thread(target=writer, args=(f"t{n}",)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        names = [entry.rule_type.name for entry in record.evaluations]
        assert len(names) == 4 * per_thread
        # Each thread's own appends keep their call order
        for n in range(4):
            own = [name for name in names if name.startswith(f"t{n}-")]
            assert own == [f"t{n}-{i}" for i in range(per_thread)]


class TestEvaluationsSnapshot:
    def test_evaluations_is_a_copy(self) -> None:
        record = TelemetryRecord()
        record.append_rule_evaluation(_params(), "rule")

        record.evaluations.append(record.evaluations[0])
        record.evaluations.clear()

        assert len(record.evaluations) == 1
        assert len(_emit(record)["rules"]) == 1

    def test_evaluations_cannot_be_assigned(self) -> None:
        with pytest.raises(AttributeError):
            TelemetryRecord().evaluations = []  # type: ignore[misc]


class TestUpdate:
    def test_update_sets_fields(self) -> None:
        record = TelemetryRecord()
        record.update(project=ONE, provider="github")
        assert record.project == ONE
        assert record.provider == "github"

    @pytest.mark.parametrize("name", ["evaluations", "_lock", "nonexistent"])
    def test_update_rejects_unknown_or_protected_fields(self, name: str) -> None:
        with pytest.raises(AttributeError):
            TelemetryRecord().update(**{name: None})

    def test_last_write_wins(self) -> None:
        record = TelemetryRecord()
        other = uuid4()
        record.project = ONE
        record.project = other
        assert _emit(record)["project"] == str(other)


class TestProjectTombstone:
    def test_equality_over_all_fields(self) -> None:
        a = ProjectTombstone(project=ONE, profile_count=2, repositories_count=3, entitlements=["a", "b"])
        b = ProjectTombstone(project=ONE, profile_count=2, repositories_count=3, entitlements=("a", "b"))
        assert a == b

    @pytest.mark.parametrize(
        "other",
        [
            ProjectTombstone(project=uuid4(), profile_count=2, repositories_count=3, entitlements=("a", "b")),
            ProjectTombstone(project=ONE, profile_count=1, repositories_count=3, entitlements=("a", "b")),
            ProjectTombstone(project=ONE, profile_count=2, repositories_count=4, entitlements=("a", "b")),
            ProjectTombstone(project=ONE, profile_count=2, repositories_count=3, entitlements=("b", "a")),
            ProjectTombstone(project=ONE, profile_count=2, repositories_count=3, entitlements=("a",)),
        ],
    )
    def test_any_difference_breaks_equality(self, other: ProjectTombstone) -> None:
        base = ProjectTombstone(project=ONE, profile_count=2, repositories_count=3, entitlements=("a", "b"))
        assert base != other

    @given(
        entitlements=st.lists(st.text(max_size=8), max_size=5),
        other=st.lists(st.text(max_size=8), max_size=5),
    )
    def test_entitlements_compared_in_order(self, entitlements: list[str], other: list[str]) -> None:
        a = ProjectTombstone(project=ONE, entitlements=entitlements)
        b = ProjectTombstone(project=ONE, entitlements=other)
        assert (a == b) == (entitlements == other)

    def test_tombstone_emitted_when_set(self) -> None:
        tombstone_project = uuid4()
        record = TelemetryRecord(
            project_tombstone=ProjectTombstone(
                project=tombstone_project, profile_count=2, repositories_count=3, entitlements=["a", "b"]
            )
        )

        assert _emit(record)["project_tombstone"] == {
            "project": str(tombstone_project),
            "profile_count": 2,
            "repositories_count": 3,
            "entitlements": ["a", "b"],
        }

    def test_zero_tombstone_not_emitted(self) -> None:
        record = TelemetryRecord(project_tombstone=ProjectTombstone())
        assert "project_tombstone" not in _emit(record)

    def test_nil_project_tombstone_is_zero(self) -> None:
        tombstone = ProjectTombstone(project=UUID(int=0))

        assert tombstone == ProjectTombstone()
        assert tombstone.is_zero()
        assert "project_tombstone" not in _emit(TelemetryRecord(project_tombstone=tombstone))


class TestDetachedRecord:
    def test_is_detached(self) -> None:
        assert DETACHED_RECORD.detached is True
        assert TelemetryRecord().detached is False

    def test_writes_are_discarded(self) -> None:
        DETACHED_RECORD.project = ONE
        DETACHED_RECORD.update(provider="github")
        DETACHED_RECORD.append_rule_evaluation(_params(), "rule")

        assert DETACHED_RECORD.project is None
        assert DETACHED_RECORD.provider == ""
        assert len(DETACHED_RECORD.evaluations) == 0

    def test_list_style_writes_are_discarded(self) -> None:
        DETACHED_RECORD.evaluations.append("entry")

        assert DETACHED_RECORD.evaluations == []
        assert _emit(DETACHED_RECORD) == {"telemetry": "true"}

    def test_emits_only_marker(self) -> None:
        DETACHED_RECORD.project = ONE
        assert _emit(DETACHED_RECORD) == {"telemetry": "true"}

    def test_bind_returns_context_unchanged(self) -> None:
        import contextvars

        ctx = contextvars.copy_context()
        assert DETACHED_RECORD.bind(ctx) is ctx
