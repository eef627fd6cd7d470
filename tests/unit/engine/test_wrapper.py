# tests/unit/engine/test_wrapper.py
"""Tests for the Contract Wrapper (require / ensure / permits / wrap).

Tests cover:
- Declaration-order evaluation and first-failure index reporting
- Body never invoked on precondition failure
- Result discarded on postcondition failure
- Declaration-time rejection of malformed conditions
- UNCHECKED passthrough
- Methods, classmethods and staticmethods
- Opt-in InternalFailure wrapping and permitted errors
"""

import functools
from typing import Any

import pytest

from pactum.contracts.conditions import Condition
from pactum.contracts.enums import EnforcementMode, Phase
from pactum.contracts.errors import ContractViolation, EvaluationError, InternalFailure
from pactum.contracts.specs import EMPTY_CONTRACT, ContractSpec
from pactum.core.mode import enforcement
from pactum.engine.wrapper import contract_binding, contract_of, ensure, permits, require, wrap


class TestPreconditions:
    """Tests for precondition evaluation."""

    def test_passing_call_returns_result(self) -> None:
        """All preconditions true: the body's result is returned."""

        @require(lambda amount: amount > 0)
        def deposit(amount: int) -> int:
            return amount * 2

        assert deposit(5) == 10

    def test_first_failing_index_reported(self) -> None:
        """[false, true] reports index 0."""

        @require(lambda x: x > 100)
        @require(lambda x: x > 0)
        def f(x: int) -> int:
            return x

        with pytest.raises(ContractViolation) as exc_info:
            f(5)

        assert exc_info.value.phase is Phase.PRECONDITION
        assert exc_info.value.condition_index == 0

    def test_order_follows_declaration(self) -> None:
        """[true, false] reports index 1."""

        @require(lambda x: x > 0)
        @require(lambda x: x > 100)
        def f(x: int) -> int:
            return x

        with pytest.raises(ContractViolation) as exc_info:
            f(5)

        assert exc_info.value.condition_index == 1
        assert "x > 100" in (exc_info.value.description or "")

    def test_evaluation_stops_at_first_failure(self) -> None:
        """Conditions after the failing one are not evaluated."""
        evaluated: list[int] = []

        def record(index: int, outcome: bool) -> Any:
            def predicate(x: int) -> bool:
                evaluated.append(index)
                return outcome

            return predicate

        @require(record(0, True))
        @require(record(1, False))
        @require(record(2, True))
        def f(x: int) -> int:
            return x

        with pytest.raises(ContractViolation):
            f(1)

        assert evaluated == [0, 1]

    def test_body_not_invoked_on_precondition_failure(self) -> None:
        """A precondition failure means the body never runs."""
        calls: list[int] = []

        @require(lambda amount: amount > 0)
        def deposit(amount: int) -> None:
            calls.append(amount)

        with pytest.raises(ContractViolation):
            deposit(-1)

        assert calls == []

    def test_defaults_are_bound(self) -> None:
        """Predicates see parameter defaults."""

        @require(lambda limit: limit == 3)
        def f(x: int, limit: int = 3) -> int:
            return x

        assert f(1) == 1
        with pytest.raises(ContractViolation):
            f(1, limit=4)

    def test_bad_arguments_raise_type_error(self) -> None:
        """Arguments that do not fit the signature fail like a normal call."""

        @require(lambda x: x > 0)
        def f(x: int) -> int:
            return x

        with pytest.raises(TypeError):
            f()  # type: ignore[call-arg]

    def test_var_keyword_arguments_visible(self) -> None:
        """Keys collected by **kwargs can be named by predicates."""

        @require(lambda mode: mode in ("r", "w"))
        def open_it(path: str, **options: Any) -> str:
            return path

        assert open_it("a", mode="r") == "a"
        with pytest.raises(ContractViolation):
            open_it("a", mode="x")


class TestPostconditions:
    """Tests for postcondition evaluation."""

    def test_result_and_arguments_visible(self) -> None:
        """Postconditions see the result and the bound arguments."""

        @ensure(lambda result, amount: result >= amount)
        def deposit(amount: int) -> int:
            return amount + 1

        assert deposit(3) == 4

    def test_failure_discards_result(self) -> None:
        """A false postcondition raises instead of returning."""
        calls: list[int] = []

        @ensure(lambda result: result > 0)
        def broken(x: int) -> int:
            calls.append(x)
            return -x

        with pytest.raises(ContractViolation) as exc_info:
            broken(2)

        assert exc_info.value.phase is Phase.POSTCONDITION
        assert exc_info.value.condition_index == 0
        assert calls == [2]

    def test_none_result(self) -> None:
        """A None result is a real value, not an absent one."""

        @ensure(lambda result: result is None)
        def nothing() -> None:
            return None

        assert nothing() is None

    def test_pre_and_post_indices_are_separate(self) -> None:
        """Each phase numbers its own conditions from zero."""

        @require(lambda x: True)
        @require(lambda x: True)
        @ensure(lambda result: result > 0)
        @ensure(lambda result: result > 10)
        def f(x: int) -> int:
            return x

        with pytest.raises(ContractViolation) as exc_info:
            f(5)

        assert exc_info.value.phase is Phase.POSTCONDITION
        assert exc_info.value.condition_index == 1

    def test_idempotent_for_pure_functions(self) -> None:
        """Repeated checked calls of a pure function return the same value."""

        @require(lambda n: n >= 0)
        @ensure(lambda result, n: result == n * n)
        def square(n: int) -> int:
            return n * n

        assert [square(7) for _ in range(3)] == [49, 49, 49]


class TestDeclaration:
    """Tests for declaration-time validation."""

    def test_precondition_cannot_use_result(self) -> None:
        """A precondition naming result is rejected when declared."""
        with pytest.raises(EvaluationError, match="does not exist before the call"):

            @require(lambda result: result > 0)
            def f(x: int) -> int:
                return x

    def test_unknown_parameter_rejected(self) -> None:
        """Predicates may only name the callable's parameters."""
        with pytest.raises(EvaluationError, match="unknown parameter"):

            @require(lambda y: y > 0)
            def f(x: int) -> int:
                return x

    def test_parameter_named_result_is_ambiguous(self) -> None:
        """A callable with a parameter called result cannot use result in postconditions."""
        with pytest.raises(EvaluationError, match="parameter named 'result'"):

            @ensure(lambda result: result)
            def f(result: int) -> int:
                return result

    def test_permits_rejects_non_types(self) -> None:
        """permits() takes exception classes only."""
        with pytest.raises(EvaluationError, match="exception types"):
            permits("KeyError")  # type: ignore[arg-type]


class TestPredicateErrors:
    """Tests for predicates that raise."""

    def test_raising_predicate_is_evaluation_error(self) -> None:
        """A crashing predicate becomes an EvaluationError naming its index."""

        @require(lambda x: True)
        @require(lambda x: 1 / x > 0)
        def f(x: int) -> int:
            return x

        with pytest.raises(EvaluationError) as exc_info:
            f(0)

        assert exc_info.value.phase is Phase.PRECONDITION
        assert exc_info.value.condition_index == 1
        assert isinstance(exc_info.value.__cause__, ZeroDivisionError)


class TestUnchecked:
    """Tests for the UNCHECKED passthrough."""

    def test_no_predicate_evaluated(self) -> None:
        """UNCHECKED never calls a predicate."""
        evaluated: list[str] = []

        def spy(x: int) -> bool:
            evaluated.append("pre")
            return False

        @require(spy)
        @ensure(lambda result: evaluated.append("post") is None and False)
        def f(x: int) -> int:
            return x + 1

        with enforcement(EnforcementMode.UNCHECKED):
            assert f(1) == 2

        assert evaluated == []

    def test_mode_read_per_call(self) -> None:
        """Switching back to CHECKED re-enables checking for later calls."""

        @require(lambda x: x > 0)
        def f(x: int) -> int:
            return x

        with enforcement(EnforcementMode.UNCHECKED):
            assert f(-1) == -1
        with pytest.raises(ContractViolation):
            f(-1)


class TestStacking:
    """Tests for non-nesting decorator composition."""

    def test_single_wrapper_around_original(self) -> None:
        """Stacked decorators produce one wrapper around the original function."""

        def raw(x: int) -> int:
            return x

        wrapped = require(lambda x: x > 0)(ensure(lambda result: result > 0)(raw))

        binding = contract_binding(wrapped)
        assert binding is not None
        assert binding.function is raw
        assert wrapped.__wrapped__ is raw  # type: ignore[attr-defined]
        assert len(binding.spec.preconditions) == 1
        assert len(binding.spec.postconditions) == 1

    def test_contract_of(self) -> None:
        """contract_of returns the combined spec in declaration order."""

        @require(lambda x: x > 0, "first")
        @require(lambda x: x < 10, "second")
        @permits(KeyError)
        def f(x: int) -> int:
            return x

        spec = contract_of(f)
        assert [c.description for c in spec.preconditions] == ["first", "second"]
        assert spec.permitted_errors == (KeyError,)

    def test_contract_of_plain_function(self) -> None:
        """Undecorated callables have the empty contract."""

        def plain() -> None:
            pass

        assert contract_of(plain) is EMPTY_CONTRACT

    def test_wrap_with_explicit_spec(self) -> None:
        """wrap() accepts a prebuilt ContractSpec and a custom unit name."""
        spec = ContractSpec(preconditions=(Condition.over_arguments(lambda n: n > 0, "n positive"),))

        def f(n: int) -> int:
            return n

        checked = wrap(f, spec, unit="custom.unit")

        with pytest.raises(ContractViolation, match="precondition 0 of custom.unit violated: n positive"):
            checked(0)

    def test_foreign_decorator_in_between(self) -> None:
        """A third-party wrapper over a checked function is wrapped, not merged."""
        calls: list[str] = []

        @require(lambda x: x > 0)
        def inner(x: int) -> int:
            return x

        @functools.wraps(inner)
        def logged(*args: Any, **kwargs: Any) -> int:
            calls.append("logged")
            return inner(*args, **kwargs)

        outer = require(lambda x: x < 10)(logged)

        assert outer(5) == 5
        assert calls == ["logged"]
        with pytest.raises(ContractViolation):
            outer(-1)

    def test_metadata_preserved(self) -> None:
        """The wrapper keeps name and docstring."""

        @require(lambda x: True)
        def documented(x: int) -> int:
            """Docstring."""
            return x

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Docstring."


class TestMethods:
    """Tests for contracts on methods."""

    def test_receiver_bound_by_name(self) -> None:
        """Method predicates name the receiver like any other parameter."""

        class Account:
            def __init__(self) -> None:
                self.balance = 0

            @require(lambda amount: amount > 0)
            @ensure(lambda self, result: result == self.balance)
            def deposit(self, amount: int) -> int:
                self.balance += amount
                return self.balance

        account = Account()
        assert account.deposit(5) == 5
        with pytest.raises(ContractViolation):
            account.deposit(0)
        assert account.balance == 5

    def test_classmethod(self) -> None:
        """Contracts apply to classmethods, decorator above or below."""

        class Factory:
            @require(lambda size: size > 0)
            @classmethod
            def make(cls, size: int) -> list[int]:
                return [0] * size

            @classmethod
            @require(lambda size: size > 0)
            def make_inner(cls, size: int) -> list[int]:
                return [0] * size

        assert Factory.make(2) == [0, 0]
        assert Factory.make_inner(1) == [0]
        with pytest.raises(ContractViolation):
            Factory.make(0)
        with pytest.raises(ContractViolation):
            Factory.make_inner(0)

    def test_staticmethod(self) -> None:
        """Contracts apply to staticmethods."""

        class Maths:
            @ensure(lambda result: result >= 0)
            @staticmethod
            def absolute(x: int) -> int:
                return x if x >= 0 else -x

        assert Maths.absolute(-3) == 3
        assert contract_of(Maths.__dict__["absolute"]).postconditions


class TestInternalFailures:
    """Tests for body exceptions."""

    def test_body_exception_propagates_by_default(self) -> None:
        """Without wrapping, body exceptions pass through unchanged."""

        @require(lambda key: True)
        def load(key: str) -> str:
            raise KeyError(key)

        with pytest.raises(KeyError):
            load("a")

    def test_wrapped_when_enabled(self) -> None:
        """wrap_internal_failures turns undeclared exceptions into InternalFailure."""

        @require(lambda key: True)
        def load(key: str) -> str:
            raise KeyError(key)

        with enforcement(wrap_internal_failures=True), pytest.raises(InternalFailure) as exc_info:
            load("a")

        assert isinstance(exc_info.value.__cause__, KeyError)
        assert exc_info.value.cause is exc_info.value.__cause__

    def test_permitted_errors_pass_through(self) -> None:
        """Declared exception types are valid outcomes."""

        @permits(KeyError)
        def load(key: str) -> str:
            raise KeyError(key)

        with enforcement(wrap_internal_failures=True), pytest.raises(KeyError):
            load("a")

    def test_permitted_subclasses_pass_through(self) -> None:
        """Permitting a base class permits its subclasses."""

        @permits(LookupError)
        def load(key: str) -> str:
            raise KeyError(key)

        with enforcement(wrap_internal_failures=True), pytest.raises(KeyError):
            load("a")

    def test_nested_violations_never_wrapped(self) -> None:
        """A violation from a callee is not an internal failure of the caller."""

        @require(lambda x: x > 0)
        def inner(x: int) -> int:
            return x

        @require(lambda x: True)
        def outer(x: int) -> int:
            return inner(x)

        with enforcement(wrap_internal_failures=True), pytest.raises(ContractViolation):
            outer(-1)
