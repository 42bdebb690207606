"""错误体系：提供结构化错误类型与退出码分类。

Error hierarchy for linepipe.

Provides structured error types and their exit status classification.
"""

from linepipe.errors.base import (
    ConfigError,
    ErrorContext,
    EvaluationError,
    ExpressionError,
    InputError,
    LinepipeError,
    PipelineError,
)
from linepipe.errors.classification import (
    ExitCode,
    classify_exception,
    is_expression_error,
)

__all__ = [
    # Base errors
    "ConfigError",
    "ErrorContext",
    "EvaluationError",
    "ExpressionError",
    "InputError",
    "LinepipeError",
    "PipelineError",
    # Classification
    "ExitCode",
    "classify_exception",
    "is_expression_error",
]
