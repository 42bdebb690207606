"""
Structured logging for linepipe.

Diagnostics always go to stderr so they never interleave with pipeline
output on stdout. Every record carries the current run's context (its id
and the stages it runs) plus any keyword fields given at the call site.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, TextIO

_log_context: ContextVar[LogContext | None] = ContextVar("log_context", default=None)


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    def to_logging_level(self) -> int:
        """Convert to standard logging level."""
        return getattr(logging, self.value)

    @classmethod
    def parse(cls, value: str | LogLevel) -> LogLevel:
        """Parse a level name case-insensitively.

        Raises:
            ValueError: If the name is not a known level
        """
        if isinstance(value, LogLevel):
            return value
        return cls(value.strip().upper())


@dataclass(frozen=True)
class LogContext:
    """Run-scoped logging context.

    Attributes:
        run_id: Identifier of the current run
        stages: Stage kinds of the assembled pipeline, comma separated
    """

    run_id: str | None = None
    stages: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Non-empty fields, for attaching to a record."""
        return {
            key: value
            for key, value in (("run_id", self.run_id), ("stages", self.stages))
            if value
        }


def get_log_context() -> LogContext:
    """Get the logging context of the current run."""
    return _log_context.get() or LogContext()


def set_log_context(context: LogContext) -> None:
    """Set the logging context for the current async context."""
    _log_context.set(context)


def clear_log_context() -> None:
    """Clear logging context."""
    _log_context.set(None)


def _record_fields(record: logging.LogRecord) -> dict[str, Any]:
    fields = get_log_context().to_dict()
    fields.update(getattr(record, "fields", {}))
    return fields


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        data: dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        data.update(_record_fields(record))
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter.

    Context and call-site fields are appended as ``key=value`` pairs.
    """

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _record_fields(record)
        if not fields:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in fields.items())
        # Tracebacks are appended by the base class; keep fields on line one.
        head, sep, tail = line.partition("\n")
        return f"{head} | {pairs}{sep}{tail}"


class LinepipeLogger:
    """Logger for linepipe with structured logging support.

    All loggers share one stderr handler, so :meth:`configure` changes the
    level and format of every logger at once, including ones created earlier.

    Example:
        >>> logger = LinepipeLogger.get_logger("linepipe.engine")
        >>> logger.debug("Source completed", source="a.txt", bytes=128)
    """

    _loggers: ClassVar[dict[str, logging.Logger]] = {}
    _level: ClassVar[LogLevel] = LogLevel.WARNING
    _handler: ClassVar[logging.Handler | None] = None

    @classmethod
    def configure(
        cls,
        level: LogLevel = LogLevel.WARNING,
        format: str = "text",
        stream: TextIO | None = None,
    ) -> None:
        """Configure global logging settings.

        Args:
            level: Minimum level to emit
            format: Output format ('json' or 'text')
            stream: Output stream (default: stderr)
        """
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(JsonFormatter() if format == "json" else TextFormatter())

        cls._level = level
        cls._handler = handler
        for logger in cls._loggers.values():
            cls._attach(logger)

    @classmethod
    def _attach(cls, logger: logging.Logger) -> None:
        if cls._handler is None:
            cls._handler = logging.StreamHandler(sys.stderr)
            cls._handler.setFormatter(TextFormatter())
        logger.handlers[:] = [cls._handler]
        logger.setLevel(cls._level.to_logging_level())
        logger.propagate = False

    @classmethod
    def get_logger(cls, name: str) -> LinepipeLogger:
        """Get or create a logger.

        Args:
            name: Logger name

        Returns:
            Logger instance
        """
        if name not in cls._loggers:
            logger = logging.getLogger(name)
            cls._attach(logger)
            cls._loggers[name] = logger
        return cls(cls._loggers[name])

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _log(self, level: int, msg: str, exc_info: bool = False, **fields: Any) -> None:
        self._logger.log(level, msg, exc_info=exc_info, extra={"fields": fields})

    def debug(self, msg: str, **fields: Any) -> None:
        """Log debug message."""
        self._log(logging.DEBUG, msg, **fields)

    def info(self, msg: str, **fields: Any) -> None:
        """Log info message."""
        self._log(logging.INFO, msg, **fields)

    def warning(self, msg: str, **fields: Any) -> None:
        """Log warning message."""
        self._log(logging.WARNING, msg, **fields)

    def exception(self, msg: str, **fields: Any) -> None:
        """Log an error with the active exception's traceback."""
        self._log(logging.ERROR, msg, exc_info=True, **fields)


def get_logger(name: str) -> LinepipeLogger:
    """Get a logger instance.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    return LinepipeLogger.get_logger(name)
