# src/telstore/contracts/errors.py
"""Rule evaluation and action errors, and their telemetry classification.

The rule engine signals outcomes by raising (or returning) these exceptions.
Telemetry never raises them itself; it only maps them onto the categorical
strings recorded per evaluation:

- eval_result_of(): evaluation error -> EvalResult
- action_result_of(): remediation/alert error -> ActionResult

Matching is by isinstance against the error and every exception in its
``__cause__`` chain, so ``raise RuntimeError(...) from EvaluationFailedError(...)``
still classifies as a failure. Anything unrecognised is ``error``.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from telstore.contracts.enums import ActionResult, EvalResult


class EvaluationError(Exception):
    """Base class for rule evaluation outcomes that are not plain errors.

    Attributes:
        details: Human-readable explanation of the outcome
    """

    default_message = "evaluation error"

    def __init__(self, details: str = "") -> None:
        self.details = details
        message = f"{self.default_message}: {details}" if details else self.default_message
        super().__init__(message)


class EvaluationFailedError(EvaluationError):
    """The entity does not conform to the rule."""

    default_message = "evaluation failure"


class EvaluationSkippedError(EvaluationError):
    """The rule does not apply to the entity."""

    default_message = "evaluation skipped"


class EvaluationSkipSilentlyError(EvaluationSkippedError):
    """Skipped, and the skip should not be surfaced to the user."""

    default_message = "evaluation skipped silently"


class EvaluationPendingError(EvaluationError):
    """Data the rule needs is not available yet."""

    default_message = "evaluation pending"


class ActionError(Exception):
    """Base class for remediation and alert action outcomes."""

    default_message = "action error"

    def __init__(self, details: str = "") -> None:
        self.details = details
        message = f"{self.default_message}: {details}" if details else self.default_message
        super().__init__(message)


class ActionSkippedError(ActionError):
    """The action is on but there was nothing to do."""

    default_message = "action not performed"


class ActionPendingError(ActionError):
    """The action was performed and completes asynchronously (e.g. a PR was opened)."""

    default_message = "action pending"


class ActionFailedError(ActionError):
    """The action was attempted and failed."""

    default_message = "action failed"


class ActionNotAvailableError(ActionError):
    """The rule type does not define this action."""

    default_message = "action not available"


class ActionTurnedOffError(ActionError):
    """The action is configured off (or dry-run) for the profile."""

    default_message = "action turned off"


@dataclass(frozen=True, slots=True)
class ActionsError:
    """Per-action results of one rule evaluation.

    Not an exception: it bundles the outcome of each action kind so the
    caller can record them together.
    """

    remediate_err: BaseException | None = None
    remediate_meta: dict[str, Any] | None = None
    alert_err: BaseException | None = None
    alert_meta: dict[str, Any] | None = None


def _cause_chain(err: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = err
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__


def _matches(err: BaseException, *types: type[BaseException]) -> bool:
    return any(isinstance(e, types) for e in _cause_chain(err))


def eval_result_of(err: BaseException | None) -> EvalResult:
    """Classify a rule evaluation error.

    First match wins: no error, skipped, failure, pending, anything else.
    """
    if err is None:
        return EvalResult.SUCCESS
    if _matches(err, EvaluationSkippedError):
        return EvalResult.SKIPPED
    if _matches(err, EvaluationFailedError):
        return EvalResult.FAILURE
    if _matches(err, EvaluationPendingError):
        return EvalResult.PENDING
    return EvalResult.ERROR


def action_result_of(err: BaseException | None) -> ActionResult:
    """Classify a remediation or alert error.

    First match wins: no error (or pending completion), turned off / not
    available, nothing to do, anything else.
    """
    if err is None or _matches(err, ActionPendingError):
        return ActionResult.SUCCESS
    if _matches(err, ActionTurnedOffError, ActionNotAvailableError):
        return ActionResult.SKIPPED
    if _matches(err, ActionSkippedError):
        return ActionResult.NOT_NEEDED
    return ActionResult.ERROR


def is_action_informative(err: BaseException | None) -> bool:
    """True if the action error is informational and not worth reporting."""
    if err is None:
        return False
    return _matches(err, ActionSkippedError, ActionNotAvailableError, ActionTurnedOffError, ActionPendingError)


def is_action_fatal(err: BaseException | None) -> bool:
    """True if the action error should be reported to the user."""
    return err is not None and not is_action_informative(err)
