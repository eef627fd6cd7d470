# tests/unit/engine/test_merge.py
"""Tests for merged post-operation checks.

A method's postconditions run against the same state the post-operation
invariant check sees, so invariants identical to one of them are skipped.
Skipping must never change what a caller observes.
"""

from collections import Counter
from typing import Any

import pytest

from pactum.contracts.conditions import Condition
from pactum.contracts.enums import Phase
from pactum.contracts.errors import InvariantViolation
from pactum.contracts.specs import EMPTY_CONTRACT, EMPTY_PLAN, ContractSpec, InvariantSpec
from pactum.core.mode import enforcement
from pactum.engine.enforcer import invariant, invariants_of
from pactum.engine.merge import build_plan, plan_for
from pactum.engine.wrapper import contract_binding, ensure

CALLS: Counter[str] = Counter()


def non_negative(self: Any) -> bool:
    CALLS["non_negative"] += 1
    return self.balance >= 0


def bounded(self: Any) -> bool:
    CALLS["bounded"] += 1
    return self.balance <= 1000


@invariant(non_negative, bounded)
class Wallet:
    def __init__(self) -> None:
        self.balance = 0

    @ensure(bounded)
    def add(self, amount: int) -> int:
        self.balance += amount
        return self.balance

    def add_unchecked(self, amount: int) -> int:
        self.balance += amount
        return self.balance


class TestBuildPlan:
    """Tests for plan construction."""

    def test_identical_predicate_skipped(self) -> None:
        """An invariant whose predicate is a postcondition of the method is skipped."""
        spec = invariants_of(Wallet)
        binding = contract_binding(Wallet.add)

        assert spec is not None and binding is not None
        plan = build_plan(spec, binding.spec, binding.receiver_name)

        assert plan.skipped == frozenset({1})

    def test_no_postconditions_empty_plan(self) -> None:
        """Without postconditions nothing is skipped."""
        spec = invariants_of(Wallet)

        assert spec is not None
        assert build_plan(spec, EMPTY_CONTRACT, "self") is EMPTY_PLAN

    def test_postcondition_on_other_parameter_not_merged(self) -> None:
        """A postcondition over a non-receiver parameter proves nothing about the object."""
        spec = InvariantSpec(own=(Condition.over_receiver(bounded),))

        def check(other: Any) -> bool:
            return bounded(other)

        contract = ContractSpec(postconditions=(Condition.over_arguments(bounded),))
        unrelated = ContractSpec(postconditions=(Condition.over_arguments(check),))

        assert build_plan(spec, contract, "this") is EMPTY_PLAN
        assert build_plan(spec, unrelated, "self") is EMPTY_PLAN

    def test_plan_for_is_cached(self) -> None:
        """plan_for returns the same plan object for the same inputs."""
        spec = invariants_of(Wallet)
        binding = contract_binding(Wallet.add)

        assert spec is not None and binding is not None
        first = plan_for(spec, binding.spec, binding.receiver_name)
        second = plan_for(spec, binding.spec, binding.receiver_name)

        assert first is second

    def test_plan_for_unhashable_predicates(self) -> None:
        """Unhashable predicates are planned without the cache."""

        class Check:
            __hash__ = None  # type: ignore[assignment]

            def __call__(self, obj: Any) -> bool:
                return True

            def __eq__(self, other: object) -> bool:
                return self is other

        predicate = Check()
        spec = InvariantSpec(own=(Condition.over_receiver(predicate),))
        contract = ContractSpec(postconditions=(Condition.over_arguments(lambda self: True),))

        assert plan_for(spec, contract, "self") is EMPTY_PLAN


class TestMergedExecution:
    """Tests for the effect of plans on evaluation."""

    def test_merged_invariant_evaluated_once_less(self) -> None:
        """With merging, the proved invariant is not re-evaluated after the call."""
        wallet = Wallet()
        CALLS.clear()

        wallet.add(5)

        # pre-operation: both; postcondition: bounded; post-operation: non_negative
        assert CALLS == Counter({"non_negative": 2, "bounded": 2})

    def test_unmerged_evaluates_everything(self) -> None:
        """With merging off, every invariant runs after the call."""
        wallet = Wallet()
        CALLS.clear()

        with enforcement(merge_postconditions=False):
            wallet.add(5)

        assert CALLS == Counter({"non_negative": 2, "bounded": 3})

    def test_method_without_postconditions_checks_everything(self) -> None:
        """Plain methods get the full post-operation check."""
        wallet = Wallet()
        CALLS.clear()

        wallet.add_unchecked(5)

        assert CALLS == Counter({"non_negative": 2, "bounded": 2})

    @pytest.mark.parametrize("merge", [True, False])
    def test_transparent_on_violation(self, merge: bool) -> None:
        """The caller sees the same failure whether or not merging is on."""
        wallet = Wallet()

        with enforcement(merge_postconditions=merge), pytest.raises(InvariantViolation) as exc_info:
            wallet.add(5000)

        assert exc_info.value.phase is Phase.POST_OPERATION
        assert exc_info.value.condition_index == 1

    @pytest.mark.parametrize("merge", [True, False])
    def test_transparent_on_success(self, merge: bool) -> None:
        """Successful calls return the same values with or without merging."""
        wallet = Wallet()

        with enforcement(merge_postconditions=merge):
            assert [wallet.add(1) for _ in range(3)] == [1, 2, 3]
