"""
Expression layer - Compiles user expressions against a fixed variable contract.
"""

from linepipe.expression.compiler import (
    CURRENT_VARIABLE,
    INDEX_VARIABLE,
    LINE_IMPLICIT_ARGS,
    LINE_PARAMS,
    LINE_VARIABLE,
    PREVIOUS_VARIABLE,
    REDUCE_IMPLICIT_ARGS,
    REDUCE_PARAMS,
    CompiledExpression,
    compile_expression,
    parse_expression,
    point_free,
    rewrite_point_free,
)
from linepipe.expression.scope import LIBRARY_NAMES, build_scope

__all__ = [
    "CURRENT_VARIABLE",
    "INDEX_VARIABLE",
    "LIBRARY_NAMES",
    "LINE_IMPLICIT_ARGS",
    "LINE_PARAMS",
    "LINE_VARIABLE",
    "PREVIOUS_VARIABLE",
    "REDUCE_IMPLICIT_ARGS",
    "REDUCE_PARAMS",
    "CompiledExpression",
    "build_scope",
    "compile_expression",
    "parse_expression",
    "point_free",
    "rewrite_point_free",
]
