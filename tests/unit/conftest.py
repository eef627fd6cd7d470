# tests/unit/conftest.py
"""Unit test fixtures.

Every unit test runs CHECKED with default switches and violation logging
off, and starts with an empty merged-plan cache. Tests that need logging or
other switches install them with enforcement() themselves.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from pactum.contracts.enums import EnforcementMode
from pactum.core.mode import ModeSnapshot, enforcement
from pactum.engine.merge import clear_plan_cache


@pytest.fixture(autouse=True)
def checked_mode() -> Iterator[ModeSnapshot]:
    """Install a known CHECKED snapshot and restore the previous one afterwards."""
    clear_plan_cache()
    with enforcement(
        EnforcementMode.CHECKED,
        merge_postconditions=True,
        wrap_internal_failures=False,
        log_violations=False,
    ) as snapshot:
        yield snapshot


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Undo configure_logging(): its handler, the root level and structlog config."""
    import logging

    import structlog
    from structlog.stdlib import ProcessorFormatter

    root = logging.getLogger()
    level = root.level
    try:
        yield
    finally:
        # pytest re-adds its own capture handlers per phase; only drop ours
        for handler in list(root.handlers):
            if isinstance(handler.formatter, ProcessorFormatter):
                root.removeHandler(handler)
        root.setLevel(level)
        structlog.reset_defaults()
