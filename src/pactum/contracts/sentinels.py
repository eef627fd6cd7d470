"""Sentinel for context fields that were not provided.

A postcondition may legitimately see ``result is None``; a precondition must
never see a result at all. MISSING keeps the two cases apart:

    context = ConditionContext(arguments=args)
    assert context.result is MISSING
"""

from typing import Final


class MissingSentinel:
    """Singleton marker for an absent context field.

    Use the MISSING instance and compare with ``is``.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return "<MISSING>"

    def __bool__(self) -> bool:
        return False


MISSING: Final[MissingSentinel] = MissingSentinel()
