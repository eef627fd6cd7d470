"""All phases, kinds, modes and states used across subsystem boundaries.

These values appear on raised violations and in structured log events, so
their string values are part of the public failure surface.
"""

from enum import StrEnum


class EnforcementMode(StrEnum):
    """Process-wide enforcement mode.

    CHECKED evaluates every declared condition. UNCHECKED turns every
    wrapper into a passthrough that never builds a context record.
    """

    CHECKED = "checked"
    UNCHECKED = "unchecked"


class ViolationKind(StrEnum):
    """Which kind of promise was broken."""

    CONTRACT = "contract_violation"
    INVARIANT = "invariant_violation"


class Phase(StrEnum):
    """Where in a unit's lifecycle a condition was evaluated.

    Values:
        PRECONDITION: Before a callable body runs (caller's promise)
        POSTCONDITION: After a callable body returned (callee's promise)
        POST_CONSTRUCTION: After the outermost constructor completed
        PRE_OPERATION: Before a public operation on an enforced object
        POST_OPERATION: After a public operation on an enforced object
        PRE_DESTRUCTION: Immediately before an enforced object is torn down
    """

    PRECONDITION = "precondition"
    POSTCONDITION = "postcondition"
    POST_CONSTRUCTION = "post_construction"
    PRE_OPERATION = "pre_operation"
    POST_OPERATION = "post_operation"
    PRE_DESTRUCTION = "pre_destruction"


CONTRACT_PHASES = frozenset({Phase.PRECONDITION, Phase.POSTCONDITION})
INVARIANT_PHASES = frozenset(
    {
        Phase.POST_CONSTRUCTION,
        Phase.PRE_OPERATION,
        Phase.POST_OPERATION,
        Phase.PRE_DESTRUCTION,
    }
)


class ConditionTarget(StrEnum):
    """How a condition's predicate receives its inputs.

    ARGUMENTS: predicate parameters are bound by name from the call's
        arguments (plus ``result`` for postconditions)
    RECEIVER: predicate is called with the object as its only argument
    """

    ARGUMENTS = "arguments"
    RECEIVER = "receiver"


class ObjectState(StrEnum):
    """Lifecycle state of an enforced object.

    INVALID is terminal: an object that broke an invariant (or whose
    constructor failed) rejects every later operation.
    """

    UNINITIALIZED = "uninitialized"
    VALID = "valid"
    INVALID = "invalid"
    DESTROYED = "destroyed"
