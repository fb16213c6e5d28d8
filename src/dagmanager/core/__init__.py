"""Core infrastructure: configuration, logging, and the closure table."""

from dagmanager.core.config import DagSettings, DatabaseSettings, LoggingSettings, load_settings
from dagmanager.core.logging import configure_logging, get_logger, operation_context

__all__ = [
    "DagSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "configure_logging",
    "get_logger",
    "load_settings",
    "operation_context",
]
