"""Shared contract types.

This package is a LEAF MODULE with no outbound dependencies to core, engine,
telemetry or cli. Everything that crosses those boundaries (conditions,
specs, enums, errors) is defined here.

Import patterns:
    from pactum.contracts import Condition, ContractSpec, InvariantSpec
    from pactum.contracts import ContractViolation, InvariantViolation
"""

from pactum.contracts.conditions import (
    EMPTY_ARGUMENTS,
    RESULT,
    Condition,
    ConditionContext,
    describe_predicate,
)
from pactum.contracts.enums import (
    CONTRACT_PHASES,
    INVARIANT_PHASES,
    ConditionTarget,
    EnforcementMode,
    ObjectState,
    Phase,
    ViolationKind,
)
from pactum.contracts.errors import (
    ContractError,
    ContractViolation,
    ErrorReason,
    EvaluationError,
    InternalFailure,
    InvariantViolation,
)
from pactum.contracts.sentinels import MISSING, MissingSentinel
from pactum.contracts.specs import (
    EMPTY_CONTRACT,
    EMPTY_INVARIANTS,
    EMPTY_PLAN,
    ContractSpec,
    InvariantSpec,
    MergedCheckPlan,
    extend,
)

__all__ = [
    "CONTRACT_PHASES",
    "EMPTY_ARGUMENTS",
    "EMPTY_CONTRACT",
    "EMPTY_INVARIANTS",
    "EMPTY_PLAN",
    "INVARIANT_PHASES",
    "MISSING",
    "RESULT",
    "Condition",
    "ConditionContext",
    "ConditionTarget",
    "ContractError",
    "ContractSpec",
    "ContractViolation",
    "EnforcementMode",
    "ErrorReason",
    "EvaluationError",
    "InternalFailure",
    "InvariantSpec",
    "InvariantViolation",
    "MergedCheckPlan",
    "MissingSentinel",
    "ObjectState",
    "Phase",
    "ViolationKind",
    "describe_predicate",
    "extend",
]
