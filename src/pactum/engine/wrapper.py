# src/pactum/engine/wrapper.py
"""Contract Wrapper: preconditions and postconditions around a callable.

Declaration surface:

    @require(lambda amount: amount > 0)
    @ensure(lambda result, amount: result >= amount)
    def deposit(amount: int) -> int:
        ...

Decorators stack without nesting: each one returns a single wrapper around
the original function whose spec holds every declared condition, evaluated
in the top-to-bottom order they are written in.

Per invocation the wrapper reads the mode snapshot once. UNCHECKED calls
go straight to the function; no context record is built and no condition
runs. CHECKED calls bind arguments, evaluate preconditions, call the body
exactly once, then evaluate postconditions against the result.
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, TypeVar

from pactum.contracts.conditions import RESULT, Condition, ConditionContext
from pactum.contracts.enums import Phase
from pactum.contracts.errors import ContractError, ContractViolation, EvaluationError, InternalFailure
from pactum.contracts.sentinels import MISSING
from pactum.contracts.specs import EMPTY_CONTRACT, ContractSpec
from pactum.core import mode
from pactum.core.mode import ModeSnapshot
from pactum.engine.evaluation import announce, first_failure

F = TypeVar("F", bound=Callable[..., Any])

CONTRACT_ATTR = "__pactum_contract__"


def _default_unit(function: Callable[..., Any]) -> str:
    module = getattr(function, "__module__", None)
    qualname = getattr(function, "__qualname__", None) or getattr(function, "__name__", None) or repr(function)
    return f"{module}.{qualname}" if module else qualname


def _receiver_name(function: Callable[..., Any], signature: inspect.Signature) -> str | None:
    """Name of the receiver parameter if ``function`` is defined in a class body."""
    qualname = getattr(function, "__qualname__", "")
    owner, _, _ = qualname.rpartition(".")
    if not owner or owner.endswith("<locals>"):
        return None
    for param in signature.parameters.values():
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            return param.name
        break
    return None


@dataclass(frozen=True, slots=True)
class BoundContract:
    """A ContractSpec resolved against one callable's signature.

    Attributes:
        spec: The declared contract
        function: The original, unwrapped callable
        signature: Signature used to bind call arguments
        unit: Qualified name reported in violations
        receiver_name: Receiver parameter for methods, else None
    """

    spec: ContractSpec
    function: Callable[..., Any]
    signature: inspect.Signature
    unit: str
    receiver_name: str | None
    var_keyword: str | None

    @classmethod
    def resolve(cls, function: Callable[..., Any], spec: ContractSpec, unit: str | None = None) -> BoundContract:
        """Validate ``spec`` against ``function`` at declaration time.

        Raises:
            EvaluationError: If a condition references context the callable
                can never provide
        """
        try:
            signature = inspect.signature(function)
        except (TypeError, ValueError) as e:
            raise EvaluationError(f"cannot attach a contract to {function!r}: {e}") from e
        unit = unit or _default_unit(function)
        var_keyword = next(
            (p.name for p in signature.parameters.values() if p.kind is inspect.Parameter.VAR_KEYWORD),
            None,
        )
        _validate(spec, signature, unit, accepts_any=var_keyword is not None)
        return cls(
            spec=spec,
            function=function,
            signature=signature,
            unit=unit,
            receiver_name=_receiver_name(function, signature),
            var_keyword=var_keyword,
        )

    @property
    def has_conditions(self) -> bool:
        return bool(self.spec.preconditions or self.spec.postconditions)

    def _arguments(self, args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> Mapping[str, Any]:
        bound = self.signature.bind(*args, **kwargs)
        bound.apply_defaults()
        arguments = dict(bound.arguments)
        if self.var_keyword is not None:
            # Named parameters win over keys collected by **kwargs
            arguments = {**arguments[self.var_keyword], **arguments}
        return MappingProxyType(arguments)

    def enter(self, args: tuple[Any, ...], kwargs: Mapping[str, Any], snapshot: ModeSnapshot) -> ConditionContext:
        """Bind arguments and evaluate preconditions.

        Raises:
            TypeError: If the arguments do not fit the signature
            ContractViolation: On the first false precondition
        """
        context = ConditionContext(arguments=self._arguments(args, kwargs))
        index = first_failure(self.spec.preconditions, context, phase=Phase.PRECONDITION, unit=self.unit)
        if index is not None:
            raise announce(self._violation(Phase.PRECONDITION, index), snapshot)
        return context

    def leave(self, context: ConditionContext, result: Any, snapshot: ModeSnapshot) -> Any:
        """Evaluate postconditions; return ``result`` only if all hold."""
        if not self.spec.postconditions:
            return result
        receiver = context.arguments[self.receiver_name] if self.receiver_name is not None else MISSING
        post_context = context.with_result(result, receiver)
        index = first_failure(self.spec.postconditions, post_context, phase=Phase.POSTCONDITION, unit=self.unit)
        if index is not None:
            raise announce(self._violation(Phase.POSTCONDITION, index), snapshot)
        return result

    def wraps_failure(self, error: Exception, snapshot: ModeSnapshot) -> bool:
        """Whether a body exception should be re-raised as InternalFailure."""
        if not snapshot.wrap_internal_failures:
            return False
        if isinstance(error, (ContractError, InternalFailure)):
            return False
        return not isinstance(error, self.spec.permitted_errors)

    def call(self, args: tuple[Any, ...], kwargs: Mapping[str, Any], snapshot: ModeSnapshot) -> Any:
        """Run one fully checked invocation."""
        context = self.enter(args, kwargs, snapshot) if self.has_conditions else None
        try:
            result = self.function(*args, **kwargs)
        except Exception as e:
            if self.wraps_failure(e, snapshot):
                raise InternalFailure(self.unit, e) from e
            raise
        if context is None:
            return result
        return self.leave(context, result, snapshot)

    async def acall(self, args: tuple[Any, ...], kwargs: Mapping[str, Any], snapshot: ModeSnapshot) -> Any:
        """Run one fully checked invocation of a coroutine function."""
        context = self.enter(args, kwargs, snapshot) if self.has_conditions else None
        try:
            result = await self.function(*args, **kwargs)
        except Exception as e:
            if self.wraps_failure(e, snapshot):
                raise InternalFailure(self.unit, e) from e
            raise
        if context is None:
            return result
        return self.leave(context, result, snapshot)

    def _violation(self, phase: Phase, index: int) -> ContractViolation:
        conditions = self.spec.preconditions if phase is Phase.PRECONDITION else self.spec.postconditions
        return ContractViolation(
            phase=phase,
            condition_index=index,
            unit=self.unit,
            description=conditions[index].description,
        )


def _validate(spec: ContractSpec, signature: inspect.Signature, unit: str, *, accepts_any: bool) -> None:
    names = set(signature.parameters)
    phases: tuple[tuple[Phase, tuple[Condition, ...]], ...] = (
        (Phase.PRECONDITION, spec.preconditions),
        (Phase.POSTCONDITION, spec.postconditions),
    )
    for phase, conditions in phases:
        for index, condition in enumerate(conditions):
            if condition.uses_result and phase is Phase.PRECONDITION:
                raise EvaluationError(
                    f"precondition {index} of {unit} references 'result', which does not exist before the call",
                    phase=phase,
                    condition_index=index,
                    unit=unit,
                    description=condition.description,
                )
            if condition.uses_result and RESULT in names:
                raise EvaluationError(
                    f"{unit} has a parameter named 'result'; condition {index} cannot tell it from the return value",
                    phase=phase,
                    condition_index=index,
                    unit=unit,
                    description=condition.description,
                )
            unknown = sorted(condition.required - names - {RESULT})
            if unknown and not accepts_any:
                raise EvaluationError(
                    f"{phase.value} {index} of {unit} references unknown parameter(s) {unknown}",
                    phase=phase,
                    condition_index=index,
                    unit=unit,
                    description=condition.description,
                )


def _sync_wrapper(contract: BoundContract) -> Callable[..., Any]:
    function = contract.function

    @functools.wraps(function)
    def checked(*args: Any, **kwargs: Any) -> Any:
        snapshot = mode.current()
        if not snapshot.checked:
            return function(*args, **kwargs)
        return contract.call(args, kwargs, snapshot)

    return checked


def _async_wrapper(contract: BoundContract) -> Callable[..., Any]:
    function = contract.function

    @functools.wraps(function)
    async def checked(*args: Any, **kwargs: Any) -> Any:
        snapshot = mode.current()
        if not snapshot.checked:
            return await function(*args, **kwargs)
        return await contract.acall(args, kwargs, snapshot)

    return checked


def contract_binding(obj: Any) -> BoundContract | None:
    """Return the BoundContract attached to a wrapped callable, if any."""
    if isinstance(obj, (classmethod, staticmethod)):
        obj = obj.__func__
    binding = getattr(obj, CONTRACT_ATTR, None)
    return binding if isinstance(binding, BoundContract) else None


def direct_binding(obj: Any) -> BoundContract | None:
    """Like contract_binding, but only for the wrapper that binding created.

    ``functools.wraps`` copies ``__dict__``, so a third-party decorator
    applied over a checked function carries the attribute too. Such outer
    callables are not the checked wrapper and must be treated as plain.
    """
    if isinstance(obj, (classmethod, staticmethod)):
        obj = obj.__func__
    binding = contract_binding(obj)
    if binding is not None and getattr(obj, "__wrapped__", None) is binding.function:
        return binding
    return None


def contract_of(obj: Any) -> ContractSpec:
    """Return the ContractSpec of a callable (empty if it declares none)."""
    binding = contract_binding(obj)
    return binding.spec if binding is not None else EMPTY_CONTRACT


def wrap(function: F, spec: ContractSpec = EMPTY_CONTRACT, *, unit: str | None = None) -> F:
    """Attach ``spec`` to ``function`` and return the checked callable.

    Wrapping an already wrapped callable does not nest: the result wraps
    the original function with ``spec``'s conditions placed in front of the
    existing ones.

    Args:
        function: Plain function, coroutine function, classmethod or
            staticmethod
        spec: Contract to enforce
        unit: Name reported in violations (defaults to module.qualname)

    Raises:
        EvaluationError: If the spec does not fit the function's signature
    """
    if isinstance(function, (classmethod, staticmethod)):
        rewrapped = wrap(function.__func__, spec, unit=unit)
        return type(function)(rewrapped)  # type: ignore[return-value]

    existing = direct_binding(function)
    target: Callable[..., Any] = function
    if existing is not None:
        spec = existing.spec.combined(spec)
        target = existing.function
        unit = unit or existing.unit

    contract = BoundContract.resolve(target, spec, unit)
    wrapper = _async_wrapper(contract) if inspect.iscoroutinefunction(target) else _sync_wrapper(contract)
    setattr(wrapper, CONTRACT_ATTR, contract)
    return wrapper  # type: ignore[return-value]


def require(predicate: Callable[..., Any], description: str | None = None) -> Callable[[F], F]:
    """Declare a precondition. Parameters of ``predicate`` bind by name to the call's arguments."""
    condition = Condition.over_arguments(predicate, description)

    def decorator(function: F) -> F:
        return wrap(function, EMPTY_CONTRACT.with_precondition(condition))

    return decorator


def ensure(predicate: Callable[..., Any], description: str | None = None) -> Callable[[F], F]:
    """Declare a postcondition. ``result`` binds the return value; other names bind arguments."""
    condition = Condition.over_arguments(predicate, description)

    def decorator(function: F) -> F:
        return wrap(function, EMPTY_CONTRACT.with_postcondition(condition))

    return decorator


def permits(*error_types: type[BaseException]) -> Callable[[F], F]:
    """Declare exception types that are valid outcomes, never InternalFailure."""
    for error_type in error_types:
        if not (isinstance(error_type, type) and issubclass(error_type, BaseException)):
            raise EvaluationError(f"permits() expects exception types, got {error_type!r}")

    def decorator(function: F) -> F:
        return wrap(function, EMPTY_CONTRACT.with_permitted(*error_types))

    return decorator
