# src/pactum/core/__init__.py
"""Core infrastructure: Configuration, Enforcement Mode, Logging."""

from pactum.core.config import EnforcementSettings, load_settings, resolve_config
from pactum.core.logging import configure_logging, get_logger
from pactum.core.mode import (
    ModeSnapshot,
    configure,
    current,
    enforcement,
    is_checked,
    set_mode,
)

__all__ = [
    "EnforcementSettings",
    "ModeSnapshot",
    "configure",
    "configure_logging",
    "current",
    "enforcement",
    "get_logger",
    "is_checked",
    "load_settings",
    "resolve_config",
    "set_mode",
]
