# src/dagmanager/core/logging.py
"""Structured logging for dagmanager.

structlog renders every event. Records from stdlib loggers (SQLAlchemy's
engine echo, the host application) are routed through the same
processors with ProcessorFormatter, so a closure write and the SQL
behind it come out in one format.

Closure operations bind ``operation`` and their arguments as structlog
contextvars for the length of their transaction (``operation_context``),
so every event emitted inside it, SQLAlchemy records included,
carries them.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import IO, Any

import structlog
from structlog.stdlib import ProcessorFormatter

from dagmanager.core.config import LoggingSettings

# Root handler installed by configure_logging; replaced on reconfigure,
# handlers owned by the host application are left alone
HANDLER_NAME = "dagmanager"

# Statement logging is DatabaseSettings.echo's job; keep these quiet otherwise
_SQLALCHEMY_LOGGERS: tuple[str, ...] = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "sqlalchemy.pool",
)


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]


def _renderers(json_output: bool) -> list[Any]:
    if json_output:
        return [
            ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [
        ProcessorFormatter.remove_processors_meta,
        structlog.dev.ConsoleRenderer(colors=True),
    ]


def _resolve_level(name: str) -> int:
    levels = logging.getLevelNamesMapping()
    key = name.upper()
    if key not in levels:
        raise ValueError(f"Unknown log level {name!r}")
    return levels[key]


def configure_logging(
    settings: LoggingSettings | None = None,
    *,
    json_output: bool | None = None,
    level: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Configure structlog and the root stdlib logger.

    Args:
        settings: ``logging`` section of DagSettings (defaults when None)
        json_output: Overrides settings.json_output
        level: Overrides settings.level
        stream: Destination (sys.stderr at call time when None, so
            command output on stdout stays parseable)
    """
    resolved = settings if settings is not None else LoggingSettings()
    as_json = resolved.json_output if json_output is None else json_output
    log_level = _resolve_level(level if level is not None else resolved.level)

    shared = _shared_processors()
    structlog.configure(
        processors=[*shared, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Tests reconfigure logging; cached loggers would keep the old chain
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(ProcessorFormatter(processors=_renderers(as_json), foreign_pre_chain=shared))

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)

    # Never looser than the root level
    sql_level = max(log_level, logging.WARNING)
    for logger_name in _SQLALCHEMY_LOGGERS:
        logging.getLogger(logger_name).setLevel(sql_level)


@contextmanager
def operation_context(operation: str, **fields: Any) -> Iterator[None]:
    """Bind ``operation`` and ``fields`` to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(operation=operation, **fields):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Bound structlog logger for a module (pass ``__name__``)."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
