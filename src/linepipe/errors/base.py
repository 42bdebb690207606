"""错误基类：提供分层错误体系和结构化错误上下文。

Base error classes for linepipe.

Provides a layered error hierarchy:
- LinepipeError: Base class for all linepipe errors
- ExpressionError: Invalid user expression (syntax or undefined name)
- EvaluationError: User expression raised while evaluating a line
- InputError: Unreadable or missing input source
- PipelineError: Pipeline assembly and unexpected internal errors
- ConfigError: Invalid configuration file or option values
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ErrorContext:
    """Structured error context for diagnostics.

    Provides actionable information for debugging and error handling.
    """

    field_path: str | None = None
    """Path to the problematic field (e.g., 'reduce' or 'map')"""

    details: dict[str, Any] = field(default_factory=dict)
    """Additional details about the error"""

    source: str | None = None
    """Error source (e.g., 'expression', 'input', 'pipeline')"""

    hint: str | None = None
    """Actionable hint for resolving the error"""

    def __str__(self) -> str:
        parts = []
        if self.source:
            parts.append(f"[{self.source}]")
        if self.field_path:
            parts.append(f"at '{self.field_path}'")
        if self.hint:
            parts.append(f"(hint: {self.hint})")
        return " ".join(parts)


class LinepipeError(Exception):
    """Base class for all linepipe errors.

    All errors raised by the engine inherit from this class, making it easy
    to catch all of them with a single except clause.

    Attributes:
        message: Human-readable error message
        context: Optional structured error context
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
    ) -> None:
        self.message = message
        self.context = context or ErrorContext()
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the full error message."""
        ctx_str = str(self.context)
        if ctx_str:
            return f"{self.message} {ctx_str}"
        return self.message

    def with_hint(self, hint: str) -> LinepipeError:
        """Add a hint to this error."""
        self.context.hint = hint
        self.args = (self._format_message(),)
        return self


class ExpressionError(LinepipeError):
    """A user-supplied expression is invalid.

    Raised when:
    - The expression is empty
    - The expression has a syntax error
    - The expression references an undefined name
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        expression: str | None = None,
        stage: str | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="expression")
        if stage:
            ctx.field_path = stage
        if expression is not None:
            ctx.details["expression"] = expression
        super().__init__(message, ctx)
        self.expression = expression
        self.stage = stage


class EvaluationError(LinepipeError):
    """A valid expression failed while processing a line.

    Raised when user code raises anything other than a name error, or when a
    built-in reducer cannot coerce a value.
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        stage: str | None = None,
        index: int | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="evaluation")
        if stage:
            ctx.field_path = stage
        if index is not None:
            ctx.details["index"] = index
        super().__init__(message, ctx)
        self.stage = stage
        self.index = index


class InputError(LinepipeError):
    """An input source could not be read.

    Raised when:
    - A file does not exist
    - A file is not readable
    - Reading a stream fails mid-way
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        source_name: str | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="input")
        if source_name:
            ctx.details["source_name"] = source_name
        super().__init__(message, ctx)
        self.source_name = source_name


class PipelineError(LinepipeError):
    """Error during pipeline assembly or processing.

    Raised when:
    - A stage is configured twice or out of order
    - An unexpected internal error escapes a stage
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        operator: str | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="pipeline")
        if operator:
            ctx.details["operator"] = operator
        super().__init__(message, ctx)
        self.operator = operator


class ConfigError(LinepipeError):
    """Invalid configuration file or option values."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        config_path: str | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="config")
        if config_path:
            ctx.details["config_path"] = config_path
        super().__init__(message, ctx)
        self.config_path = config_path
