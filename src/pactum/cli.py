# src/pactum/cli.py
"""pactum Command Line Interface.

Entry point for the pactum CLI tool: shows the resolved enforcement settings
and the contracts declared on a callable or class.
"""

from __future__ import annotations

import importlib
import inspect as pyinspect
import json
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError

from pactum import __version__
from pactum.contracts.specs import ContractSpec, InvariantSpec
from pactum.core.config import EnforcementSettings, load_settings, resolve_config
from pactum.engine.enforcer import invariants_of
from pactum.engine.merge import build_plan
from pactum.engine.wrapper import BoundContract, contract_binding

__all__ = ["app"]

app = typer.Typer(
    name="pactum",
    help="pactum: design-by-contract enforcement.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"pactum version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging.",
    ),
    json_logs: bool | None = typer.Option(
        None,
        "--json-logs/--console-logs",
        help="Output structured JSON logs (default from PACTUM_JSON_LOGS).",
    ),
) -> None:
    """pactum: design-by-contract enforcement."""
    from pactum.core.logging import configure_logging

    # Logging defaults come from the environment, never from a settings file
    defaults = _load_or_exit(None)
    configure_logging(
        json_output=defaults.json_logs if json_logs is None else json_logs,
        level="DEBUG" if verbose else defaults.log_level,
    )


def _load_or_exit(settings_path: Path | None) -> EnforcementSettings:
    try:
        return load_settings(settings_path)
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings_path}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


@app.command()
def mode(
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to a settings file (YAML or TOML).",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print the settings as JSON.",
    ),
) -> None:
    """Show the enforcement settings this process would start with.

    Environment variables (PACTUM_*) override values from the settings file.
    """
    config = _load_or_exit(settings.expanduser() if settings is not None else None)
    resolved = resolve_config(config)
    if json_output:
        typer.echo(json.dumps(resolved, indent=2, sort_keys=True))
        return
    for key in sorted(resolved):
        typer.echo(f"{key}: {resolved[key]}")


def _import_target(target: str) -> Any:
    """Resolve ``package.module:Name.attr`` to an object.

    Raises:
        ValueError: If target is not in MODULE:NAME form
        ImportError: If the module cannot be imported
        AttributeError: If the name does not exist in the module
    """
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name or not attr_path:
        raise ValueError(f"expected MODULE:NAME, got {target!r}")
    obj: Any = importlib.import_module(module_name)
    for part in attr_path.split("."):
        obj = getattr(obj, part)
    return obj


def _contract_lines(spec: ContractSpec, indent: str) -> list[str]:
    lines: list[str] = []
    for index, condition in enumerate(spec.preconditions):
        lines.append(f"{indent}require[{index}] {condition.description}")
    for index, condition in enumerate(spec.postconditions):
        lines.append(f"{indent}ensure[{index}] {condition.description}")
    if spec.permitted_errors:
        names = ", ".join(error.__name__ for error in spec.permitted_errors)
        lines.append(f"{indent}permits {names}")
    return lines


def _invariant_lines(spec: InvariantSpec) -> list[str]:
    lines: list[str] = []
    for index, condition in enumerate(spec.conditions):
        origin = spec.origin_of(index)
        suffix = f"  (from {origin})" if origin else ""
        lines.append(f"  invariant[{index}] {condition.description}{suffix}")
    return lines


def _methods(cls: type) -> list[tuple[str, BoundContract]]:
    found: list[tuple[str, BoundContract]] = []
    for name in sorted(dir(cls)):
        if name.startswith("_") and name != "__init__":
            continue
        try:
            attr = pyinspect.getattr_static(cls, name)
        except AttributeError:
            continue
        binding = contract_binding(attr)
        if binding is not None:
            found.append((name, binding))
    return found


def _describe_class(cls: type) -> list[str]:
    lines = [f"class {cls.__module__}.{cls.__qualname__}"]
    spec = invariants_of(cls)
    if spec is None:
        lines.append("  not enforced")
    elif not spec.conditions:
        lines.append("  no invariants")
    else:
        lines.extend(_invariant_lines(spec))
    for name, binding in _methods(cls):
        lines.append(f"  {name}")
        lines.extend(_contract_lines(binding.spec, "    "))
        if spec is not None and spec.conditions:
            plan = build_plan(spec, binding.spec, binding.receiver_name)
            if plan:
                skipped = ", ".join(str(index) for index in sorted(plan.skipped))
                lines.append(f"    skips invariant(s) {skipped} after return")
    return lines


def _describe_callable(obj: Any) -> list[str]:
    binding = contract_binding(obj)
    if binding is None:
        return [f"{getattr(obj, '__qualname__', repr(obj))}: no contract"]
    lines = [binding.unit]
    lines.extend(_contract_lines(binding.spec, "  ") or ["  no conditions"])
    return lines


@app.command()
def inspect(
    target: str = typer.Argument(
        ...,
        help="Object to inspect, as MODULE:NAME (e.g. myapp.bank:Account).",
    ),
) -> None:
    """Show the contract of a callable or the invariants of a class."""
    try:
        obj = _import_target(target)
    except (ValueError, ImportError, AttributeError) as e:
        typer.echo(f"Error: cannot load {target}: {e}", err=True)
        raise typer.Exit(1) from None

    lines = _describe_class(obj) if isinstance(obj, type) else _describe_callable(obj)
    for line in lines:
        typer.echo(line)
