# src/pactum/telemetry/hookspecs.py
"""pluggy hook specifications for violation observers.

Observers are notified of every violation before it is raised, e.g. to
forward defects to an error tracker. They cannot suppress or replace the
violation.

Usage (implementing an observer):
    from pactum.telemetry.hookspecs import hookimpl

    class SentryObserver:
        @hookimpl
        def pactum_violation(self, violation):
            sentry_sdk.capture_exception(violation)

    register_observer(SentryObserver())
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from pactum.contracts.errors import ContractError

PROJECT_NAME = "pactum"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)

hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class PactumViolationSpec:
    """Hook specifications for violation observers."""

    @hookspec
    def pactum_violation(self, violation: "ContractError") -> None:
        """Observe a contract or invariant violation.

        Called synchronously on the thread that detected the violation,
        immediately before it is raised.

        Args:
            violation: The ContractViolation or InvariantViolation about to
                propagate
        """
