"""Error taxonomy for contract enforcement.

Broken contracts and invariants are programming defects, not recoverable
runtime conditions. They derive from AssertionError so they read as failed
assertions in tracebacks and test reports, and nothing in pactum retries or
swallows them.

Hierarchy:
    ContractError (AssertionError)
        EvaluationError    - malformed condition or crashing predicate
        ContractViolation  - broken precondition/postcondition
        InvariantViolation - broken object invariant
    InternalFailure (Exception) - wrapped body failure (opt-in)
"""

from typing import Any, NotRequired, TypedDict

from pactum.contracts.enums import CONTRACT_PHASES, INVARIANT_PHASES, Phase, ViolationKind


class ErrorReason(TypedDict):
    """Plain-dict view of a violation for logs and observers."""

    reason: str
    violation_type: str
    phase: str | None
    condition_index: int | None
    unit: str | None
    condition: str | None
    operation: NotRequired[str]
    poisoned: NotRequired[bool]


class ContractError(AssertionError):
    """Base class for every defect pactum detects.

    Attributes:
        kind: Which promise was broken (None for evaluation errors)
        phase: Phase the failing condition belonged to, if known
        condition_index: Declaration-order index of the failing condition
        unit: Qualified name of the callable or class being checked
        description: Human-readable text of the failing condition
    """

    kind: ViolationKind | None = None

    def __init__(
        self,
        message: str,
        *,
        phase: Phase | None = None,
        condition_index: int | None = None,
        unit: str | None = None,
        description: str | None = None,
    ) -> None:
        self.phase = phase
        self.condition_index = condition_index
        self.unit = unit
        self.description = description
        super().__init__(message)

    def to_error_reason(self) -> ErrorReason:
        """Convert to a dict suitable for structured logging."""
        return {
            "reason": self.kind.value if self.kind is not None else "evaluation_error",
            "violation_type": type(self).__name__,
            "phase": self.phase.value if self.phase is not None else None,
            "condition_index": self.condition_index,
            "unit": self.unit,
            "condition": self.description,
        }


class EvaluationError(ContractError):
    """A condition is malformed or could not be evaluated.

    Raised at declaration time when a predicate references context the
    wrapped unit can never provide (e.g. a precondition naming ``result``),
    and at evaluation time when the predicate itself raises.
    """


class ContractViolation(ContractError):
    """A callable's precondition or postcondition evaluated false.

    PRECONDITION failures are the caller's fault and the body never ran.
    POSTCONDITION failures are the callee's fault and its result was discarded.
    """

    kind = ViolationKind.CONTRACT

    def __init__(
        self,
        *,
        phase: Phase,
        condition_index: int,
        unit: str,
        description: str,
    ) -> None:
        if phase not in CONTRACT_PHASES:
            raise ValueError(f"ContractViolation phase must be precondition or postcondition, got {phase.value}")
        super().__init__(
            f"{phase.value} {condition_index} of {unit} violated: {description}",
            phase=phase,
            condition_index=condition_index,
            unit=unit,
            description=description,
        )


class InvariantViolation(ContractError):
    """An enforced object's invariant evaluated false.

    Attributes:
        operation: Name of the operation being checked (e.g. "__init__",
            "scale", "set a")
        poisoned: True when raised because the object was already INVALID;
            no condition was evaluated and the operation did not run.

    condition_index is None only for poisoned objects whose constructor
    raised before any invariant was evaluated.
    """

    kind = ViolationKind.INVARIANT

    def __init__(
        self,
        *,
        phase: Phase,
        condition_index: int | None,
        unit: str,
        description: str,
        operation: str,
        poisoned: bool = False,
    ) -> None:
        if phase not in INVARIANT_PHASES:
            raise ValueError(f"InvariantViolation phase must be an invariant phase, got {phase.value}")
        self.operation = operation
        self.poisoned = poisoned
        if poisoned:
            message = f"{unit} is invalid ({description}); refusing {operation}"
        else:
            message = f"invariant {condition_index} of {unit} violated at {phase.value} of {operation}: {description}"
        super().__init__(
            message,
            phase=phase,
            condition_index=condition_index,
            unit=unit,
            description=description,
        )

    def to_error_reason(self) -> ErrorReason:
        reason = super().to_error_reason()
        reason["operation"] = self.operation
        reason["poisoned"] = self.poisoned
        return reason


class InternalFailure(Exception):
    """The wrapped body failed for reasons unrelated to its contract.

    Only raised when ``wrap_internal_failures`` is enabled; by default body
    exceptions propagate unchanged. The original exception is available as
    ``cause`` and as ``__cause__``.
    """

    def __init__(self, unit: str, cause: BaseException) -> None:
        self.unit = unit
        self.cause = cause
        super().__init__(f"{unit} failed: {type(cause).__name__}: {cause}")

    def to_error_reason(self) -> dict[str, Any]:
        return {
            "reason": "internal_failure",
            "violation_type": type(self).__name__,
            "unit": self.unit,
            "cause": type(self.cause).__name__,
        }
