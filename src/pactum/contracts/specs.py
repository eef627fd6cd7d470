"""Contract and invariant specifications.

Both spec types are frozen: every "mutation" returns a new instance, so a
spec attached to a callable or class can never change underneath it.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from pactum.contracts.conditions import Condition
from pactum.contracts.enums import ConditionTarget


@dataclass(frozen=True, slots=True)
class ContractSpec:
    """Preconditions and postconditions attached to exactly one callable.

    Attributes:
        preconditions: Evaluated in order before the body runs
        postconditions: Evaluated in order after the body returns
        permitted_errors: Exception types that are declared outcomes of the
            callable rather than internal failures
    """

    preconditions: tuple[Condition, ...] = ()
    postconditions: tuple[Condition, ...] = ()
    permitted_errors: tuple[type[BaseException], ...] = ()

    def __post_init__(self) -> None:
        for condition in (*self.preconditions, *self.postconditions):
            if condition.target is not ConditionTarget.ARGUMENTS:
                raise TypeError(f"contract conditions must bind arguments by name: {condition.description}")

    @property
    def is_empty(self) -> bool:
        return not (self.preconditions or self.postconditions or self.permitted_errors)

    def with_precondition(self, condition: Condition) -> ContractSpec:
        """Return a new spec with ``condition`` evaluated first.

        Decorators apply bottom-up, so prepending keeps evaluation order
        equal to the top-to-bottom order they are written in.
        """
        return ContractSpec(
            preconditions=(condition, *self.preconditions),
            postconditions=self.postconditions,
            permitted_errors=self.permitted_errors,
        )

    def with_postcondition(self, condition: Condition) -> ContractSpec:
        """Return a new spec with ``condition`` evaluated first among postconditions."""
        return ContractSpec(
            preconditions=self.preconditions,
            postconditions=(condition, *self.postconditions),
            permitted_errors=self.permitted_errors,
        )

    def with_permitted(self, *error_types: type[BaseException]) -> ContractSpec:
        merged = tuple(dict.fromkeys((*error_types, *self.permitted_errors)))
        return ContractSpec(
            preconditions=self.preconditions,
            postconditions=self.postconditions,
            permitted_errors=merged,
        )

    def combined(self, outer: ContractSpec) -> ContractSpec:
        """Return this spec with ``outer``'s declarations placed in front."""
        return ContractSpec(
            preconditions=(*outer.preconditions, *self.preconditions),
            postconditions=(*outer.postconditions, *self.postconditions),
            permitted_errors=tuple(dict.fromkeys((*outer.permitted_errors, *self.permitted_errors))),
        )


EMPTY_CONTRACT = ContractSpec()


@dataclass(frozen=True, slots=True)
class InvariantSpec:
    """Ordered invariant conditions for a class.

    Extension is append-only: ``conditions`` is always the inherited
    conditions followed by this level's own, so a subclass can add to its
    parent's invariants but never remove them.

    Attributes:
        own: Conditions declared at this level
        inherited_from: Parent spec, or None for a root
        owner: Qualified name of the class that declared ``own`` (display only)
        conditions: Derived full ordered sequence
    """

    own: tuple[Condition, ...] = ()
    inherited_from: InvariantSpec | None = None
    owner: str | None = field(default=None, compare=False)
    conditions: tuple[Condition, ...] = field(init=False, repr=False, compare=False, hash=False)

    def __post_init__(self) -> None:
        for condition in self.own:
            if condition.target is not ConditionTarget.RECEIVER:
                raise TypeError(f"invariant conditions must take the object as receiver: {condition.description}")
        inherited = self.inherited_from.conditions if self.inherited_from is not None else ()
        object.__setattr__(self, "conditions", (*inherited, *self.own))

    def __len__(self) -> int:
        return len(self.conditions)

    def __iter__(self) -> Iterator[Condition]:
        return iter(self.conditions)

    def lineage(self) -> Iterator[InvariantSpec]:
        """Yield this spec and every spec it extends, nearest first."""
        spec: InvariantSpec | None = self
        while spec is not None:
            yield spec
            spec = spec.inherited_from

    def extends(self, other: InvariantSpec) -> bool:
        """Whether ``other``'s conditions are a prefix of this spec's."""
        if any(spec is other for spec in self.lineage()):
            return True
        return self.conditions[: len(other.conditions)] == other.conditions

    def origin_of(self, index: int) -> str | None:
        """Owner name of the level that declared condition ``index``."""
        levels = list(self.lineage())
        levels.reverse()
        offset = 0
        for level in levels:
            if index < offset + len(level.own):
                return level.owner
            offset += len(level.own)
        raise IndexError(index)


EMPTY_INVARIANTS = InvariantSpec()


def extend(
    base: InvariantSpec,
    additional: Iterable[Condition],
    *,
    owner: str | None = None,
) -> InvariantSpec:
    """Return a spec whose conditions are ``base.conditions ++ additional``.

    Extending with nothing still produces a new level, so chains stay
    associative: ``extend(extend(a, [b]), [c])`` and ``extend(a, [b, c])``
    have identical ``conditions``.
    """
    return InvariantSpec(own=tuple(additional), inherited_from=base, owner=owner)


@dataclass(frozen=True, slots=True)
class MergedCheckPlan:
    """Invariant indices a method's postconditions already proved.

    A pure optimisation: the post-operation invariant check may skip these
    indices. An empty plan is always correct.
    """

    skipped: frozenset[int] = frozenset()

    def __bool__(self) -> bool:
        return bool(self.skipped)


EMPTY_PLAN = MergedCheckPlan()
