# src/pactum/engine/merge.py
"""MergedCheckPlan construction.

After a method returns, its postconditions have just been evaluated against
the same receiver state the post-operation invariant check is about to see.
An invariant whose predicate is literally one of those postconditions is
therefore already proved and can be skipped.

Only syntactic identity counts as proof (see Condition.implies). No attempt
is made to reason about implication between different predicates, so a plan
is never wrong, only sometimes smaller than it could be.
"""

import functools

from pactum.contracts.specs import EMPTY_PLAN, ContractSpec, InvariantSpec, MergedCheckPlan


def build_plan(
    invariants: InvariantSpec,
    contract: ContractSpec,
    receiver_name: str | None,
) -> MergedCheckPlan:
    """Compute which invariant indices ``contract``'s postconditions prove."""
    if not contract.postconditions:
        return EMPTY_PLAN
    skipped = frozenset(
        index
        for index, condition in enumerate(invariants.conditions)
        if any(post.implies(condition, receiver_name) for post in contract.postconditions)
    )
    return MergedCheckPlan(skipped=skipped) if skipped else EMPTY_PLAN


@functools.lru_cache(maxsize=4096)
def _cached_plan(
    invariants: InvariantSpec,
    contract: ContractSpec,
    receiver_name: str | None,
) -> MergedCheckPlan:
    return build_plan(invariants, contract, receiver_name)


def plan_for(
    invariants: InvariantSpec,
    contract: ContractSpec,
    receiver_name: str | None,
) -> MergedCheckPlan:
    """Cached build_plan.

    Specs holding unhashable predicates (callable instances defining
    ``__eq__`` without ``__hash__``) are planned on every call.
    """
    try:
        return _cached_plan(invariants, contract, receiver_name)
    except TypeError:
        return build_plan(invariants, contract, receiver_name)


def clear_plan_cache() -> None:
    """Drop every cached plan."""
    _cached_plan.cache_clear()
