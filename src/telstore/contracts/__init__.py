# src/telstore/contracts/__init__.py
"""Types that cross the engine <-> telemetry boundary.

The rule engine raises the errors defined here; the telemetry store only
classifies them.
"""

from telstore.contracts.enums import (
    ActionKind,
    ActionOpt,
    ActionResult,
    EntityKind,
    EvalResult,
    SinkLevel,
)
from telstore.contracts.errors import (
    ActionError,
    ActionFailedError,
    ActionNotAvailableError,
    ActionPendingError,
    ActionsError,
    ActionSkippedError,
    ActionTurnedOffError,
    EvaluationError,
    EvaluationFailedError,
    EvaluationPendingError,
    EvaluationSkippedError,
    EvaluationSkipSilentlyError,
    action_result_of,
    eval_result_of,
    is_action_fatal,
    is_action_informative,
)

__all__ = [
    "ActionError",
    "ActionFailedError",
    "ActionKind",
    "ActionNotAvailableError",
    "ActionOpt",
    "ActionPendingError",
    "ActionResult",
    "ActionSkippedError",
    "ActionTurnedOffError",
    "ActionsError",
    "EntityKind",
    "EvalResult",
    "EvaluationError",
    "EvaluationFailedError",
    "EvaluationPendingError",
    "EvaluationSkipSilentlyError",
    "EvaluationSkippedError",
    "SinkLevel",
    "action_result_of",
    "eval_result_of",
    "is_action_fatal",
    "is_action_informative",
]
