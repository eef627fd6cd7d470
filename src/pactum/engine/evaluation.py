# src/pactum/engine/evaluation.py
"""Ordered, short-circuiting evaluation of a condition phase.

Conditions run in declaration order and evaluation stops at the first one
that is false. Its index is what every violation reports.
"""

from collections.abc import Sequence

from pactum.contracts.conditions import Condition, ConditionContext
from pactum.contracts.enums import Phase
from pactum.contracts.errors import ContractError, EvaluationError
from pactum.core.mode import ModeSnapshot
from pactum.telemetry.reporter import report_violation

_NOTHING_SKIPPED: frozenset[int] = frozenset()


def first_failure(
    conditions: Sequence[Condition],
    context: ConditionContext,
    *,
    phase: Phase,
    unit: str,
    skip: frozenset[int] = _NOTHING_SKIPPED,
) -> int | None:
    """Return the index of the first false condition, or None if all hold.

    Indices in ``skip`` are not evaluated.

    Raises:
        EvaluationError: If a condition cannot be bound to the context or its
            predicate raises. The failing index and phase are attached.
    """
    for index, condition in enumerate(conditions):
        if index in skip:
            continue
        try:
            holds = condition.evaluate(context)
        except EvaluationError as e:
            raise EvaluationError(
                str(e),
                phase=phase,
                condition_index=index,
                unit=unit,
                description=condition.description,
            ) from e
        except Exception as e:
            raise EvaluationError(
                f"{phase.value} {index} of {unit} raised {type(e).__name__}: {e}",
                phase=phase,
                condition_index=index,
                unit=unit,
                description=condition.description,
            ) from e
        if not holds:
            return index
    return None


def announce(violation: ContractError, snapshot: ModeSnapshot) -> ContractError:
    """Report a violation to logs and observers; the caller raises it."""
    report_violation(violation, log=snapshot.log_violations)
    return violation
