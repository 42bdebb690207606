"""行流处理器：用 Python 表达式对文本行做 filter / map / reduce。

linepipe: a line-oriented stream processor.

Reads text from standard input or files, splits it into lines and runs them
through a filter, map and reduce pipeline of Python expressions.
"""
from __future__ import annotations

from linepipe.config import PipelineOptions, load_options
from linepipe.engine import RunResult, run, run_sync
from linepipe.errors import ExitCode, ExpressionError, LinepipeError
from linepipe.expression import CompiledExpression, compile_expression
from linepipe.pipeline import Pipeline, Stage, StageKind
from linepipe.sources import InputContinuityManager
from linepipe.types import Line

__version__ = "0.1.0"

__all__ = [
    # Config
    "PipelineOptions",
    "load_options",
    # Engine
    "RunResult",
    "run",
    "run_sync",
    # Errors
    "ExitCode",
    "ExpressionError",
    "LinepipeError",
    # Expressions
    "CompiledExpression",
    "compile_expression",
    # Pipeline
    "InputContinuityManager",
    "Line",
    "Pipeline",
    "Stage",
    "StageKind",
    # Version
    "__version__",
]
