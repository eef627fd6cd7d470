# src/pactum/core/mode.py
"""Process-wide enforcement mode.

The mode and its companion switches live in one immutable ModeSnapshot that
is replaced as a whole. Every wrapper reads the snapshot exactly once per
invocation, so a mode change racing with a call yields either a fully
checked or a fully unchecked call, never a mixture.

The snapshot is initialised from load_settings() on import. Changing it is
start-of-process configuration; no lock is taken.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace

import structlog

from pactum.contracts.enums import EnforcementMode
from pactum.core.config import EnforcementSettings, load_settings

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ModeSnapshot:
    """Everything a single invocation needs to know about enforcement."""

    checked: bool
    merge_postconditions: bool = True
    wrap_internal_failures: bool = False
    log_violations: bool = True

    @property
    def mode(self) -> EnforcementMode:
        return EnforcementMode.CHECKED if self.checked else EnforcementMode.UNCHECKED

    @classmethod
    def from_settings(cls, settings: EnforcementSettings) -> ModeSnapshot:
        return cls(
            checked=settings.enabled,
            merge_postconditions=settings.merge_postconditions,
            wrap_internal_failures=settings.wrap_internal_failures,
            log_violations=settings.log_violations,
        )


class _ModeHolder:
    __slots__ = ("snapshot",)

    def __init__(self, snapshot: ModeSnapshot) -> None:
        self.snapshot = snapshot


_HOLDER = _ModeHolder(ModeSnapshot.from_settings(load_settings()))


def current() -> ModeSnapshot:
    """Return the active snapshot. Read it once and keep it for the call."""
    return _HOLDER.snapshot


def is_checked() -> bool:
    return _HOLDER.snapshot.checked


def _install(snapshot: ModeSnapshot) -> ModeSnapshot:
    previous = _HOLDER.snapshot
    _HOLDER.snapshot = snapshot
    logger.debug("Enforcement configured", mode=snapshot.mode.value, merge=snapshot.merge_postconditions)
    return previous


def configure(settings: EnforcementSettings) -> ModeSnapshot:
    """Install settings as the process-wide snapshot.

    Returns:
        The snapshot that was replaced
    """
    return _install(ModeSnapshot.from_settings(settings))


def set_mode(mode: EnforcementMode) -> ModeSnapshot:
    """Switch between CHECKED and UNCHECKED, keeping the other switches.

    Returns:
        The snapshot that was replaced
    """
    return _install(replace(_HOLDER.snapshot, checked=mode is EnforcementMode.CHECKED))


@contextmanager
def enforcement(
    mode: EnforcementMode | None = None,
    *,
    merge_postconditions: bool | None = None,
    wrap_internal_failures: bool | None = None,
    log_violations: bool | None = None,
) -> Iterator[ModeSnapshot]:
    """Temporarily install a modified snapshot, restoring the previous one on exit.

    Intended for tests and for embedding applications that decide the mode
    around a well-defined start-up block. Not thread-safe.

    Example:
        with enforcement(EnforcementMode.UNCHECKED):
            run_benchmark()
    """
    previous = _HOLDER.snapshot
    changes: dict[str, bool] = {}
    if mode is not None:
        changes["checked"] = mode is EnforcementMode.CHECKED
    if merge_postconditions is not None:
        changes["merge_postconditions"] = merge_postconditions
    if wrap_internal_failures is not None:
        changes["wrap_internal_failures"] = wrap_internal_failures
    if log_violations is not None:
        changes["log_violations"] = log_violations
    snapshot = replace(previous, **changes)
    _install(snapshot)
    try:
        yield snapshot
    finally:
        _install(previous)
