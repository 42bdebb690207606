"""退出码分类模块：将异常映射到进程退出状态。

Exit status classification.

Maps exceptions raised during a run onto the three process exit statuses.
"""

from __future__ import annotations

from enum import IntEnum

from linepipe.errors.base import ExpressionError


class ExitCode(IntEnum):
    """Process exit statuses."""

    OK = 0
    """The pipeline ran to completion."""

    FAILURE = 1
    """Any failure that is not an invalid expression."""

    INVALID_EXPRESSION = 3
    """A user expression has a syntax error or references an undefined name."""


def classify_exception(exc: BaseException | None) -> ExitCode:
    """Classify an exception into an exit status.

    Args:
        exc: The exception that ended the run, or None on success

    Returns:
        The exit status for the process
    """
    if exc is None:
        return ExitCode.OK
    if isinstance(exc, ExpressionError):
        return ExitCode.INVALID_EXPRESSION
    return ExitCode.FAILURE


def is_expression_error(exc: BaseException) -> bool:
    """Check if an exception means the user's expression is invalid."""
    return classify_exception(exc) is ExitCode.INVALID_EXPRESSION
