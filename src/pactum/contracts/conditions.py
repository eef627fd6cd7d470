"""Conditions and the read-only context record they are evaluated against.

A Condition wraps a pure predicate. Predicates never close over mutable
state to see the call; instead they declare what they need:

    # ARGUMENTS target: parameters bound by name from the call
    Condition.over_arguments(lambda amount: amount > 0)
    Condition.over_arguments(lambda result, amount: result >= amount)

    # RECEIVER target: the object is passed positionally
    Condition.over_receiver(lambda self: self.balance >= 0)

The special parameter name ``result`` always binds the return value.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from pactum.contracts.enums import ConditionTarget
from pactum.contracts.errors import EvaluationError
from pactum.contracts.sentinels import MISSING

RESULT = "result"

EMPTY_ARGUMENTS: Mapping[str, Any] = MappingProxyType({})

_FORBIDDEN_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


@dataclass(frozen=True, slots=True)
class ConditionContext:
    """Immutable record a condition is evaluated against.

    Attributes:
        arguments: Read-only mapping of parameter name to bound value
            (defaults applied)
        result: Return value, or MISSING outside the postcondition phase
        receiver: The object for methods and invariants, or MISSING
    """

    # mappingproxy is unhashable before 3.12, which dataclasses reject as a plain default
    arguments: Mapping[str, Any] = field(default_factory=lambda: EMPTY_ARGUMENTS)
    result: Any = MISSING
    receiver: Any = MISSING

    @classmethod
    def for_receiver(cls, receiver: Any) -> ConditionContext:
        return cls(receiver=receiver)

    def with_result(self, result: Any, receiver: Any = MISSING) -> ConditionContext:
        """Return the postcondition context for this call."""
        return ConditionContext(arguments=self.arguments, result=result, receiver=receiver)


def describe_predicate(predicate: Callable[..., Any]) -> str:
    """Best-effort human-readable text for a predicate.

    Named functions use their qualified name. Lambdas use their source text
    when it is available, since ``<lambda>`` says nothing useful:

        @require(lambda amount: amount > 0)  ->  "lambda amount: amount > 0"
    """
    name = getattr(predicate, "__qualname__", None) or repr(predicate)
    if getattr(predicate, "__name__", None) != "<lambda>":
        return name
    try:
        lines, _ = inspect.getsourcelines(predicate)
    except (OSError, TypeError):
        return name
    # Only the first line: for a lambda in a decorator, getsourcelines
    # returns the whole decorated block
    text = " ".join(lines[0].split())
    start = text.find("lambda")
    if start < 0:
        return text
    text = text[start:]
    while text.endswith((")", ",")) and text.count(")") > text.count("("):
        text = text[:-1].rstrip()
    return text.rstrip(",")


def _signature_of(predicate: Callable[..., Any]) -> inspect.Signature:
    if not callable(predicate):
        raise EvaluationError(f"condition predicate must be callable, got {type(predicate).__name__}")
    try:
        return inspect.signature(predicate)
    except (TypeError, ValueError) as e:
        raise EvaluationError(f"cannot inspect condition predicate {predicate!r}: {e}") from e


@dataclass(frozen=True, slots=True)
class Condition:
    """A single boolean predicate over a ConditionContext.

    Immutable once created. Its identity inside a spec is its declaration
    order index, assigned by the spec that holds it.

    Attributes:
        predicate: The callable evaluated against the context
        description: Text used in violations and log events
        target: How the predicate receives its inputs
        parameters: Parameter names (ARGUMENTS target only)
        required: Parameter names without defaults (ARGUMENTS target only)
    """

    predicate: Callable[..., Any]
    description: str
    target: ConditionTarget
    parameters: tuple[str, ...] = ()
    required: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def over_arguments(cls, predicate: Callable[..., Any], description: str | None = None) -> Condition:
        """Create a condition whose parameters are bound by name.

        Raises:
            EvaluationError: If the predicate is not callable or declares
                ``*args`` / ``**kwargs``
        """
        signature = _signature_of(predicate)
        names: list[str] = []
        required: set[str] = set()
        for param in signature.parameters.values():
            if param.kind in _FORBIDDEN_KINDS:
                raise EvaluationError(f"condition {describe_predicate(predicate)} may not declare *args or **kwargs")
            if param.kind is inspect.Parameter.POSITIONAL_ONLY:
                raise EvaluationError(
                    f"condition {describe_predicate(predicate)} binds by name; '{param.name}' is positional-only"
                )
            names.append(param.name)
            if param.default is inspect.Parameter.empty:
                required.add(param.name)
        return cls(
            predicate=predicate,
            description=description or describe_predicate(predicate),
            target=ConditionTarget.ARGUMENTS,
            parameters=tuple(names),
            required=frozenset(required),
        )

    @classmethod
    def over_receiver(cls, predicate: Callable[..., Any], description: str | None = None) -> Condition:
        """Create an invariant condition called with the object.

        Raises:
            EvaluationError: If the predicate cannot accept exactly one
                positional argument
        """
        signature = _signature_of(predicate)
        positional = [
            p
            for p in signature.parameters.values()
            if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        ]
        extra_required = [
            p
            for p in signature.parameters.values()
            if p.default is inspect.Parameter.empty and p.kind not in _FORBIDDEN_KINDS
        ][1:]
        if not positional or extra_required:
            raise EvaluationError(
                f"invariant {describe_predicate(predicate)} must take the object as its single positional argument"
            )
        return cls(
            predicate=predicate,
            description=description or describe_predicate(predicate),
            target=ConditionTarget.RECEIVER,
            parameters=(positional[0].name,),
            required=frozenset({positional[0].name}),
        )

    @property
    def uses_result(self) -> bool:
        return self.target is ConditionTarget.ARGUMENTS and RESULT in self.parameters

    def bind(self, context: ConditionContext) -> tuple[tuple[Any, ...], dict[str, Any]]:
        """Resolve the predicate's inputs from a context record.

        Returns:
            (args, kwargs) to call the predicate with

        Raises:
            EvaluationError: If a required input is absent from the context
        """
        if self.target is ConditionTarget.RECEIVER:
            if context.receiver is MISSING:
                raise EvaluationError(f"invariant {self.description} evaluated without a receiver")
            return (context.receiver,), {}

        kwargs: dict[str, Any] = {}
        for name in self.parameters:
            value = context.result if name == RESULT else context.arguments.get(name, MISSING)
            if value is MISSING:
                if name in self.required:
                    raise EvaluationError(f"condition {self.description} references '{name}', which is not available here")
                continue
            kwargs[name] = value
        return (), kwargs

    def evaluate(self, context: ConditionContext) -> bool:
        """Evaluate the predicate; exceptions from the predicate propagate."""
        args, kwargs = self.bind(context)
        return bool(self.predicate(*args, **kwargs))

    def implies(self, other: Condition, receiver_name: str | None) -> bool:
        """Whether passing this condition proves ``other`` holds.

        Only syntactic identity is treated as proof: the same predicate
        object, evaluated on the same receiver. ``receiver_name`` is the
        name the wrapped method gives its receiver parameter.
        """
        if self.predicate is not other.predicate:
            return False
        if self.target is other.target:
            return True
        return (
            receiver_name is not None
            and self.target is ConditionTarget.ARGUMENTS
            and other.target is ConditionTarget.RECEIVER
            and self.parameters == (receiver_name,)
        )
