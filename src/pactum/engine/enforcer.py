# src/pactum/engine/enforcer.py
"""Invariant Enforcer: class invariants around construction, access and teardown.

Declaration surface:

    @invariant(lambda self: self.a > 0 and self.b > 0 and self.c > 0)
    @invariant(lambda self: self.a + self.b > self.c and self.a + self.c > self.b and self.b + self.c > self.a)
    class Triangle:
        def __init__(self, a, b, c):
            self.a, self.b, self.c = a, b, c

Per-instance lifecycle:

    UNINITIALIZED --ctor ok + invariants hold--> VALID --teardown--> DESTROYED
          |                                        |
          +--ctor raised / invariant broken--> INVALID (terminal)

Wrapped operations on an enforced class:
- ``__init__``: invariants checked once the outermost constructor returns
- public methods and property accessors: invariants checked before and
  after; the after-check skips conditions the method's own postconditions
  already proved (see pactum.engine.merge)
- public attribute assignment and deletion: checked like an operation
- ``__del__``: invariants checked, then the original teardown always runs

Calls made while another operation on the same object is running
(``self.helper()`` inside a method, or a predicate calling a public method)
skip invariant checks. The outermost operation checks on the way out, which
lets methods break invariants temporarily.

Thread Safety:
    The enforcer takes no locks. Per-object bookkeeping (state and nesting
    depth) lives on the instance. Objects shared between threads must be
    synchronised by their owner so that no other thread mutates them while
    an operation's before/after checks run; otherwise the checks may observe
    torn state and nesting depth may be misattributed.

Instances must have a ``__dict__``; classes declaring ``__slots__`` without
``__dict__`` cannot be enforced.
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from pactum.contracts.conditions import Condition, ConditionContext
from pactum.contracts.enums import INVARIANT_PHASES, ObjectState, Phase
from pactum.contracts.errors import ContractError, EvaluationError, InvariantViolation
from pactum.contracts.specs import EMPTY_CONTRACT, EMPTY_INVARIANTS, EMPTY_PLAN, InvariantSpec, extend
from pactum.core import mode
from pactum.core.mode import ModeSnapshot
from pactum.engine.evaluation import announce, first_failure
from pactum.engine.merge import plan_for
from pactum.engine.wrapper import BoundContract, direct_binding

C = TypeVar("C", bound=type)

INVARIANTS_ATTR = "__pactum_invariants__"
DECLARED_ATTR = "__pactum_declared__"
ENFORCED_ATTR = "__pactum_enforced__"
RECORD_ATTR = "_pactum_record"


@dataclass(slots=True)
class InstanceRecord:
    """Per-object enforcement bookkeeping.

    Attributes:
        owner_id: id() of the object this record belongs to; a mismatch
            means the record was copied along with ``__dict__``
        state: Lifecycle state
        depth: Number of enforced operations currently running on the object
        failure: The violation or evaluation error that made the object INVALID
    """

    owner_id: int
    state: ObjectState
    depth: int = 0
    failure: ContractError | None = None


def _namespace(obj: Any) -> dict[str, Any]:
    namespace: dict[str, Any] = object.__getattribute__(obj, "__dict__")
    return namespace


def _record(obj: Any, *, constructing: bool = False) -> InstanceRecord:
    namespace = _namespace(obj)
    record = namespace.get(RECORD_ATTR)
    if record is None or record.owner_id != id(obj):
        # Objects created while unchecked, unpickled or copied start as VALID;
        # their first checked operation verifies that
        record = InstanceRecord(
            owner_id=id(obj),
            state=ObjectState.UNINITIALIZED if constructing else ObjectState.VALID,
        )
        namespace[RECORD_ATTR] = record
    return record


def _unit(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def _is_enforced(obj: Any) -> bool:
    return bool(getattr(obj, ENFORCED_ATTR, False))


def _mark(function: Callable[..., Any]) -> Callable[..., Any]:
    setattr(function, ENFORCED_ATTR, True)
    return function


def invariants_of(cls: type) -> InvariantSpec | None:
    """Return the InvariantSpec materialised for ``cls``, or None if not enforced."""
    spec = getattr(cls, INVARIANTS_ATTR, None)
    return spec if isinstance(spec, InvariantSpec) else None


def state_of(obj: Any) -> ObjectState:
    """Lifecycle state of an enforced object.

    Objects the enforcer has not observed yet (created while UNCHECKED) are
    reported VALID.
    """
    record = _namespace(obj).get(RECORD_ATTR)
    if record is None or record.owner_id != id(obj):
        return ObjectState.VALID
    state: ObjectState = record.state
    return state


def _inherited_spec(cls: type) -> InvariantSpec | None:
    """Combine the specs of every enforced base, append-only, in MRO order."""
    specs = [base.__dict__[INVARIANTS_ATTR] for base in cls.__mro__[1:] if INVARIANTS_ATTR in base.__dict__]
    if not specs:
        return None
    combined: InvariantSpec = specs[0]
    for other in specs[1:]:
        if combined.extends(other):
            continue
        missing = [condition for condition in other.conditions if condition not in combined.conditions]
        combined = extend(combined, missing, owner=other.owner)
    return combined


# =============================================================================
# Checking
# =============================================================================


def _check(
    obj: Any,
    record: InstanceRecord,
    phase: Phase,
    operation: str,
    snapshot: ModeSnapshot,
    *,
    skip: frozenset[int] = frozenset(),
    cause: BaseException | None = None,
) -> None:
    """Evaluate the object's invariants; poison and raise on the first false one."""
    cls = type(obj)
    spec = invariants_of(cls)
    if spec is None or not spec.conditions:
        return
    unit = _unit(cls)
    # Predicates may call public methods; those must not re-enter checking
    record.depth += 1
    try:
        index = first_failure(
            spec.conditions,
            ConditionContext.for_receiver(obj),
            phase=phase,
            unit=unit,
            skip=skip,
        )
    except EvaluationError as e:
        # An invariant that cannot be evaluated does not hold
        record.state = ObjectState.INVALID
        record.failure = e
        raise
    finally:
        record.depth -= 1
    if index is None:
        return
    violation = InvariantViolation(
        phase=phase,
        condition_index=index,
        unit=unit,
        description=spec.conditions[index].description,
        operation=operation,
    )
    record.state = ObjectState.INVALID
    record.failure = violation
    raise announce(violation, snapshot) from cause


def _refuse_if_invalid(obj: Any, record: InstanceRecord, operation: str, snapshot: ModeSnapshot) -> None:
    if record.state is not ObjectState.INVALID:
        return
    failure = record.failure
    if failure is None:
        phase, index, description = Phase.POST_CONSTRUCTION, None, "constructor did not complete"
    else:
        phase = failure.phase if failure.phase in INVARIANT_PHASES else Phase.POST_CONSTRUCTION
        index, description = failure.condition_index, failure.description or ""
    violation = InvariantViolation(
        phase=phase,
        condition_index=index,
        unit=_unit(type(obj)),
        description=description,
        operation=operation,
        poisoned=True,
    )
    raise announce(violation, snapshot) from failure


def verify(obj: Any) -> None:
    """Check an enforced object's invariants now.

    For code that manipulated private state directly and wants the breach
    reported at that point rather than at the next public operation. Does
    nothing while UNCHECKED.

    Raises:
        InvariantViolation: As a PRE_OPERATION failure of operation "verify"
    """
    snapshot = mode.current()
    if not snapshot.checked:
        return
    record = _record(obj)
    _refuse_if_invalid(obj, record, "verify", snapshot)
    _check(obj, record, Phase.PRE_OPERATION, "verify", snapshot)


# =============================================================================
# Operation wrappers
# =============================================================================


def _binding_for(function: Callable[..., Any]) -> BoundContract | None:
    """The function's declared contract, or an implicit empty one."""
    binding = direct_binding(function)
    if binding is not None:
        return binding
    try:
        return BoundContract.resolve(function, EMPTY_CONTRACT)
    except EvaluationError:
        return None


def _skipped(record_spec: InvariantSpec | None, binding: BoundContract | None, snapshot: ModeSnapshot) -> frozenset[int]:
    if record_spec is None or binding is None or not snapshot.merge_postconditions:
        return EMPTY_PLAN.skipped
    return plan_for(record_spec, binding.spec, binding.receiver_name).skipped


def _operation(function: Callable[..., Any], operation: str) -> Callable[..., Any]:
    binding = _binding_for(function)
    raw = binding.function if binding is not None else function

    def invoke(args: tuple[Any, ...], kwargs: dict[str, Any], snapshot: ModeSnapshot) -> Any:
        if binding is None:
            return raw(*args, **kwargs)
        return binding.call(args, kwargs, snapshot)

    if inspect.iscoroutinefunction(raw):
        return _async_operation(function, raw, binding, operation)

    @functools.wraps(function)
    def enforced(self: Any, *args: Any, **kwargs: Any) -> Any:
        snapshot = mode.current()
        if not snapshot.checked:
            return raw(self, *args, **kwargs)
        record = _record(self)
        if record.depth or record.state is ObjectState.UNINITIALIZED:
            return invoke((self, *args), kwargs, snapshot)
        _refuse_if_invalid(self, record, operation, snapshot)
        _check(self, record, Phase.PRE_OPERATION, operation, snapshot)
        record.depth += 1
        try:
            result = invoke((self, *args), kwargs, snapshot)
        except BaseException as error:
            # Includes cancellation and interrupts: the depth must always unwind
            record.depth -= 1
            _check(self, record, Phase.POST_OPERATION, operation, snapshot, cause=error)
            raise
        record.depth -= 1
        skip = _skipped(invariants_of(type(self)), binding, snapshot)
        _check(self, record, Phase.POST_OPERATION, operation, snapshot, skip=skip)
        return result

    return _mark(enforced)


def _async_operation(
    function: Callable[..., Any],
    raw: Callable[..., Any],
    binding: BoundContract | None,
    operation: str,
) -> Callable[..., Any]:
    async def invoke(args: tuple[Any, ...], kwargs: dict[str, Any], snapshot: ModeSnapshot) -> Any:
        if binding is None:
            return await raw(*args, **kwargs)
        return await binding.acall(args, kwargs, snapshot)

    @functools.wraps(function)
    async def enforced(self: Any, *args: Any, **kwargs: Any) -> Any:
        snapshot = mode.current()
        if not snapshot.checked:
            return await raw(self, *args, **kwargs)
        record = _record(self)
        if record.depth or record.state is ObjectState.UNINITIALIZED:
            return await invoke((self, *args), kwargs, snapshot)
        _refuse_if_invalid(self, record, operation, snapshot)
        _check(self, record, Phase.PRE_OPERATION, operation, snapshot)
        record.depth += 1
        try:
            result = await invoke((self, *args), kwargs, snapshot)
        except BaseException as error:
            # Includes cancellation and interrupts: the depth must always unwind
            record.depth -= 1
            _check(self, record, Phase.POST_OPERATION, operation, snapshot, cause=error)
            raise
        record.depth -= 1
        skip = _skipped(invariants_of(type(self)), binding, snapshot)
        _check(self, record, Phase.POST_OPERATION, operation, snapshot, skip=skip)
        return result

    return _mark(enforced)


def _enforced_property(prop: property, name: str) -> property:
    return property(
        fget=_operation(prop.fget, name) if prop.fget is not None else None,
        fset=_operation(prop.fset, f"set {name}") if prop.fset is not None else None,
        fdel=_operation(prop.fdel, f"delete {name}") if prop.fdel is not None else None,
        doc=prop.__doc__,
    )


def _mutator(previous: Callable[..., Any], verb: str) -> Callable[..., Any]:
    """Wrap __setattr__ / __delattr__ so public attribute changes are operations."""

    @functools.wraps(previous)
    def mutate(self: Any, name: str, *value: Any) -> None:
        snapshot = mode.current()
        if not snapshot.checked or name.startswith("_"):
            previous(self, name, *value)
            return
        record = _record(self)
        if record.depth or record.state is ObjectState.UNINITIALIZED:
            previous(self, name, *value)
            return
        operation = f"{verb} {name}"
        _refuse_if_invalid(self, record, operation, snapshot)
        _check(self, record, Phase.PRE_OPERATION, operation, snapshot)
        record.depth += 1
        try:
            previous(self, name, *value)
        except BaseException as error:
            # Includes cancellation and interrupts: the depth must always unwind
            record.depth -= 1
            _check(self, record, Phase.POST_OPERATION, operation, snapshot, cause=error)
            raise
        record.depth -= 1
        _check(self, record, Phase.POST_OPERATION, operation, snapshot)

    return _mark(mutate)


def _constructor(init: Callable[..., Any]) -> Callable[..., Any]:
    binding = _binding_for(init)
    raw = binding.function if binding is not None else init

    @functools.wraps(init)
    def __init__(self: Any, *args: Any, **kwargs: Any) -> None:
        snapshot = mode.current()
        if not snapshot.checked:
            raw(self, *args, **kwargs)
            return
        record = _record(self, constructing=True)
        if record.depth:
            # super().__init__() from a subclass constructor
            if binding is None:
                raw(self, *args, **kwargs)
            else:
                binding.call((self, *args), kwargs, snapshot)
            return
        _refuse_if_invalid(self, record, "__init__", snapshot)
        record.state = ObjectState.UNINITIALIZED
        record.depth += 1
        try:
            if binding is None:
                raw(self, *args, **kwargs)
            else:
                binding.call((self, *args), kwargs, snapshot)
        except BaseException:
            record.state = ObjectState.INVALID
            raise
        finally:
            record.depth -= 1
        _check(self, record, Phase.POST_CONSTRUCTION, "__init__", snapshot)
        record.state = ObjectState.VALID

    return _mark(__init__)


def _destructor(previous: Callable[..., Any] | None) -> Callable[..., Any]:
    def __del__(self: Any) -> None:
        # A violation raised here is reported by Python's unraisable hook;
        # the original teardown runs regardless
        try:
            snapshot = mode.current()
            if snapshot.checked:
                record = _namespace(self).get(RECORD_ATTR)
                if (
                    record is not None
                    and record.owner_id == id(self)
                    and record.state is ObjectState.VALID
                    and not record.depth
                ):
                    try:
                        _check(self, record, Phase.PRE_DESTRUCTION, "__del__", snapshot)
                    finally:
                        if record.state is ObjectState.VALID:
                            record.state = ObjectState.DESTROYED
        finally:
            if previous is not None:
                previous(self)

    return _mark(__del__)


def _install_subclass_hook(cls: type) -> None:
    """Make subclasses of ``cls`` enforced with the inherited spec."""
    if _is_enforced(getattr(cls.__init_subclass__, "__func__", None)):
        return
    previous = cls.__dict__.get("__init_subclass__")

    def __init_subclass__(subclass: type, **kwargs: Any) -> None:
        if previous is not None:
            previous.__func__(subclass, **kwargs)
        else:
            super(cls, subclass).__init_subclass__(**kwargs)  # type: ignore[misc]
        inherited = _inherited_spec(subclass)
        if inherited is not None:
            _attach(subclass, inherited, declared=False)

    _mark(__init_subclass__)
    cls.__init_subclass__ = classmethod(__init_subclass__)  # type: ignore[assignment]


def _wrap_members(cls: type) -> None:
    for name in dir(cls):
        if name.startswith("_"):
            continue
        try:
            attr = inspect.getattr_static(cls, name)
        except AttributeError:
            continue
        if isinstance(attr, property):
            accessors = (attr.fget, attr.fset, attr.fdel)
            if not any(_is_enforced(accessor) for accessor in accessors if accessor is not None):
                setattr(cls, name, _enforced_property(attr, name))
        elif inspect.isfunction(attr) and not _is_enforced(attr):
            setattr(cls, name, _operation(attr, name))

    if not _is_enforced(cls.__init__):
        cls.__init__ = _constructor(cls.__init__)  # type: ignore[misc]
    if not _is_enforced(cls.__setattr__):
        cls.__setattr__ = _mutator(cls.__setattr__, "set")  # type: ignore[method-assign,assignment]
    if not _is_enforced(cls.__delattr__):
        cls.__delattr__ = _mutator(cls.__delattr__, "delete")  # type: ignore[method-assign,assignment]
    previous_del = getattr(cls, "__del__", None)
    if not _is_enforced(previous_del):
        cls.__del__ = _destructor(previous_del)  # type: ignore[attr-defined]
    _install_subclass_hook(cls)


# =============================================================================
# Declaration surface
# =============================================================================


def enforce(cls: C, invariant_spec: InvariantSpec) -> C:
    """Attach ``invariant_spec`` to ``cls`` and wrap its public surface.

    The spec is materialised once per class. Inherited conditions must be
    kept: the spec has to extend the combined spec of every enforced base.

    Raises:
        TypeError: If ``cls`` is not a class or its instances have no __dict__
        EvaluationError: If the spec would drop inherited invariants
    """
    if not isinstance(cls, type):
        raise TypeError(f"enforce() expects a class, got {type(cls).__name__}")
    return _attach(cls, invariant_spec, declared=True)


def _attach(cls: C, invariant_spec: InvariantSpec, *, declared: bool) -> C:
    """Materialise the spec on cls; ``declared`` is False for inherited-only specs."""
    if not cls.__dictoffset__:
        raise TypeError(f"{_unit(cls)} instances have no __dict__ and cannot be enforced")
    inherited = _inherited_spec(cls)
    if inherited is not None and not invariant_spec.extends(inherited):
        raise EvaluationError(
            f"invariants for {_unit(cls)} do not extend the inherited ones; subclasses may add invariants but never drop them",
            unit=_unit(cls),
        )
    setattr(cls, INVARIANTS_ATTR, invariant_spec)
    setattr(cls, DECLARED_ATTR, declared)
    _wrap_members(cls)
    return cls


def invariant(*predicates: Callable[..., Any], description: str | None = None) -> Callable[[C], C]:
    """Declare class invariants; each predicate receives the object.

    Stacked decorators keep top-to-bottom order. On a subclass the new
    conditions are appended after every inherited one.
    """
    if not predicates:
        raise EvaluationError("invariant() needs at least one predicate")
    if description is not None and len(predicates) > 1:
        raise EvaluationError("description applies to a single predicate; declare invariants separately")
    conditions = tuple(Condition.over_receiver(predicate, description) for predicate in predicates)

    def decorator(cls: C) -> C:
        current = cls.__dict__.get(INVARIANTS_ATTR)
        if cls.__dict__.get(DECLARED_ATTR) and isinstance(current, InvariantSpec):
            spec = InvariantSpec(
                own=(*conditions, *current.own),
                inherited_from=current.inherited_from,
                owner=_unit(cls),
            )
        else:
            inherited = _inherited_spec(cls) if isinstance(cls, type) else None
            spec = extend(inherited if inherited is not None else EMPTY_INVARIANTS, conditions, owner=_unit(cls))
        return enforce(cls, spec)

    return decorator
