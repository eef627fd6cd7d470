# src/pactum/core/logging.py
"""Structured logging setup for pactum.

Library modules log with ``structlog.get_logger(__name__)`` and never touch
handlers themselves. Whoever owns the process (an application, the CLI or a
test) calls configure_logging() once to decide where events go.

Violation events carry their ErrorReason fields as keys, so a JSON renderer
yields one self-describing line per broken contract.

Both structlog events and plain ``logging`` records pass through the same
ProcessorFormatter, so an application mixing the two gets one format.
"""

import logging
import sys
from typing import IO, Any

import structlog
from structlog.stdlib import ProcessorFormatter

# Keys ProcessorFormatter adds for its own bookkeeping
_FORMATTER_KEYS = ("_record", "_from_structlog")


def _strip_formatter_keys(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    for key in _FORMATTER_KEYS:
        del event_dict[key]
    return event_dict


def _drop_unset(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Drop None-valued keys (e.g. the phase of an evaluation error raised at declaration)."""
    return {key: value for key, value in event_dict.items() if value is not None}


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
    stream: IO[str] | None = None,
) -> None:
    """Route structlog and stdlib logging to a single handler.

    Args:
        json_output: One JSON object per line instead of console rendering
        level: Root log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Destination, defaulting to the current ``sys.stdout``
    """
    log_level = logging.getLevelNamesMapping()[level.upper()]

    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
    ]

    renderer: Any = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=False)
    render_chain: list[Any] = [_strip_formatter_keys, _drop_unset]
    if json_output:
        render_chain.append(structlog.processors.format_exc_info)
    render_chain.append(renderer)

    structlog.configure(
        processors=[*pre_chain, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Module-level loggers must see later reconfiguration
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(ProcessorFormatter(processors=render_chain, foreign_pre_chain=pre_chain))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name`` (typically ``__name__``)."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
