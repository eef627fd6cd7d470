"""Violation telemetry.

Components:
- hookspecs: pluggy hook specification for violation observers
- reporter: ViolationReporter, logging plus observer fan-out

Usage:
    from pactum.telemetry import hookimpl, register_observer

    class Recorder:
        @hookimpl
        def pactum_violation(self, violation):
            ...
"""

from pactum.telemetry.hookspecs import PactumViolationSpec, hookimpl, hookspec
from pactum.telemetry.reporter import (
    DEFAULT_REPORTER,
    ViolationReporter,
    register_observer,
    report_violation,
    unregister_observer,
)

__all__ = [
    "DEFAULT_REPORTER",
    "PactumViolationSpec",
    "ViolationReporter",
    "hookimpl",
    "hookspec",
    "register_observer",
    "report_violation",
    "unregister_observer",
]
