"""pactum: design-by-contract enforcement for Python.

Preconditions and postconditions on callables, invariants on classes, and a
single process-wide switch that turns all checking off.

    from pactum import ensure, invariant, require

    @invariant(lambda self: self.balance >= 0)
    class Account:
        def __init__(self, balance: int = 0) -> None:
            self.balance = balance

        @require(lambda amount: amount > 0)
        @ensure(lambda self, result: result == self.balance)
        def deposit(self, amount: int) -> int:
            self.balance += amount
            return self.balance
"""

__version__ = "0.1.0"

from pactum.contracts import (
    Condition,
    ContractError,
    ContractSpec,
    ContractViolation,
    EnforcementMode,
    EvaluationError,
    InternalFailure,
    InvariantSpec,
    InvariantViolation,
    ObjectState,
    Phase,
    extend,
)
from pactum.core import configure, current, enforcement, is_checked, set_mode
from pactum.engine import (
    contract_of,
    enforce,
    ensure,
    invariant,
    invariants_of,
    permits,
    require,
    state_of,
    verify,
    wrap,
)
from pactum.telemetry import hookimpl, register_observer, unregister_observer

__all__ = [
    "Condition",
    "ContractError",
    "ContractSpec",
    "ContractViolation",
    "EnforcementMode",
    "EvaluationError",
    "InternalFailure",
    "InvariantSpec",
    "InvariantViolation",
    "ObjectState",
    "Phase",
    "__version__",
    "configure",
    "contract_of",
    "current",
    "enforce",
    "enforcement",
    "ensure",
    "extend",
    "hookimpl",
    "invariant",
    "invariants_of",
    "is_checked",
    "permits",
    "register_observer",
    "require",
    "set_mode",
    "state_of",
    "unregister_observer",
    "verify",
    "wrap",
]
