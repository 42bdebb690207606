"""
Telemetry module - Diagnostic logging.

Provides structured, context-aware logging that writes to stderr.
"""

from linepipe.telemetry.logger import (
    JsonFormatter,
    LinepipeLogger,
    LogContext,
    LogLevel,
    TextFormatter,
    clear_log_context,
    get_log_context,
    get_logger,
    set_log_context,
)

__all__ = [
    "JsonFormatter",
    "LinepipeLogger",
    "LogContext",
    "LogLevel",
    "TextFormatter",
    "clear_log_context",
    "get_log_context",
    "get_logger",
    "set_log_context",
]
