# src/pactum/telemetry/reporter.py
"""ViolationReporter: logs violations and fans them out to observers.

Design principles:
- Reporting happens BEFORE the violation is raised, on the detecting thread
- Individual observer failures are logged and isolated; they never replace,
  suppress or delay the violation itself
- No observers and logging disabled means no work at all
"""

from typing import Any

import pluggy
import structlog

from pactum.contracts.errors import ContractError
from pactum.telemetry.hookspecs import PROJECT_NAME, PactumViolationSpec

logger = structlog.get_logger(__name__)


class ViolationReporter:
    """Dispatches violations to registered pluggy observers.

    Example:
        >>> reporter = ViolationReporter()
        >>> reporter.register(MyObserver())
        >>> reporter.report(violation, log=True)
    """

    def __init__(self) -> None:
        self._plugin_manager = pluggy.PluginManager(PROJECT_NAME)
        self._plugin_manager.add_hookspecs(PactumViolationSpec)
        self._observer_failures = 0

    @property
    def observer_failures(self) -> int:
        """Number of observer calls that raised since creation."""
        return self._observer_failures

    @property
    def observers(self) -> list[Any]:
        return [impl.plugin for impl in self._plugin_manager.hook.pactum_violation.get_hookimpls()]

    def register(self, observer: object, name: str | None = None) -> str | None:
        """Register an object implementing ``pactum_violation``.

        Raises:
            ValueError: If the observer is already registered
        """
        return self._plugin_manager.register(observer, name=name)

    def unregister(self, observer: object) -> None:
        self._plugin_manager.unregister(observer)

    def report(self, violation: ContractError, *, log: bool) -> None:
        """Log the violation and notify every observer."""
        if log:
            reason = violation.to_error_reason()
            logger.error(
                "Invariant violated" if reason["reason"] == "invariant_violation" else "Contract violated",
                **reason,
            )

        for impl in self._plugin_manager.hook.pactum_violation.get_hookimpls():
            try:
                impl.function(violation=violation)
            except Exception as e:
                self._observer_failures += 1
                logger.warning(
                    "Violation observer failed",
                    observer=impl.plugin_name,
                    error=str(e),
                    error_type=type(e).__name__,
                )


DEFAULT_REPORTER = ViolationReporter()


def register_observer(observer: object, name: str | None = None) -> str | None:
    """Register a process-wide violation observer."""
    return DEFAULT_REPORTER.register(observer, name=name)


def unregister_observer(observer: object) -> None:
    DEFAULT_REPORTER.unregister(observer)


def report_violation(violation: ContractError, *, log: bool = True) -> None:
    DEFAULT_REPORTER.report(violation, log=log)
