# src/pactum/core/config.py
"""
Enforcement settings and their loading.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction: enforcement is decided
once at process start, never toggled as a runtime control path.
"""

import sys
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from pactum.contracts.enums import EnforcementMode

ENVVAR_PREFIX = "PACTUM"

# Dynaconf injects these into as_dict(); they are not settings
_DYNACONF_INTERNAL_KEYS = frozenset({"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES", "ENVVAR_PREFIX"})


def _default_enabled() -> bool:
    # `python -O` is the conventional release switch
    return sys.flags.optimize == 0


class EnforcementSettings(BaseModel):
    """Process-wide enforcement configuration.

    Example YAML:
        enabled: true
        merge_postconditions: true
        wrap_internal_failures: false

    Environment overrides use the PACTUM_ prefix, e.g. PACTUM_ENABLED=false.
    """

    model_config = {"frozen": True}

    enabled: bool = Field(
        default_factory=_default_enabled,
        description="Evaluate conditions (CHECKED). Defaults to false under python -O.",
    )
    merge_postconditions: bool = Field(
        default=True,
        description="Skip post-operation invariants already proved by a method's postconditions",
    )
    wrap_internal_failures: bool = Field(
        default=False,
        description="Re-raise undeclared body exceptions as InternalFailure",
    )
    log_violations: bool = Field(
        default=True,
        description="Emit a structured log event for every violation",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Log level used when pactum configures logging itself (CLI)",
    )
    json_logs: bool = Field(default=False, description="Emit JSON log lines instead of console output")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v

    @property
    def mode(self) -> EnforcementMode:
        return EnforcementMode.CHECKED if self.enabled else EnforcementMode.UNCHECKED


def load_settings(config_path: Path | None = None) -> EnforcementSettings:
    """Load settings from an optional file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (PACTUM_*) - highest priority
    2. Config file (YAML/TOML), if given
    3. Defaults from the Pydantic model - lowest priority

    Args:
        config_path: Optional path to a settings file

    Returns:
        Validated EnforcementSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config_path is given but doesn't exist
    """
    from dynaconf import Dynaconf

    # Explicit check for file existence (Dynaconf silently accepts missing files)
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix=ENVVAR_PREFIX,
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; convert to lowercase for Pydantic
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in _DYNACONF_INTERNAL_KEYS}
    return EnforcementSettings(**raw_config)


def resolve_config(settings: EnforcementSettings) -> dict[str, Any]:
    """Convert settings to a plain dict (defaults included) for display."""
    config_dict = settings.model_dump(mode="json")
    config_dict["mode"] = settings.mode.value
    return config_dict
