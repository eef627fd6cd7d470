"""Enforcement engine: contract wrapping, invariant enforcement, merged checks.

Components:
- wrapper: Contract Wrapper (require / ensure / permits / wrap)
- enforcer: Invariant Enforcer (invariant / enforce)
- merge: MergedCheckPlan construction and caching
- evaluation: ordered, short-circuiting condition evaluation
"""

from pactum.engine.enforcer import enforce, invariant, invariants_of, state_of, verify
from pactum.engine.merge import build_plan, clear_plan_cache, plan_for
from pactum.engine.wrapper import contract_binding, contract_of, ensure, permits, require, wrap

__all__ = [
    "build_plan",
    "clear_plan_cache",
    "contract_binding",
    "contract_of",
    "enforce",
    "ensure",
    "invariant",
    "invariants_of",
    "permits",
    "plan_for",
    "require",
    "state_of",
    "verify",
    "wrap",
]
