"""
Expression compiler.

Turns a user-supplied Python expression into a callable evaluated once per
line. Every expression sees a fixed set of variables:

- filter and map: ``line`` (current value) and ``i`` (index)
- reduce: ``prev`` (accumulator), ``curr`` (current value) and ``i``

plus the function library from :mod:`linepipe.expression.scope`.
"""

from __future__ import annotations

import ast
from typing import TYPE_CHECKING, Any

from linepipe.errors import EvaluationError, ExpressionError, LinepipeError
from linepipe.expression.scope import LIBRARY_NAMES, build_scope

if TYPE_CHECKING:
    from collections.abc import Sequence

LINE_VARIABLE = "line"
INDEX_VARIABLE = "i"
PREVIOUS_VARIABLE = "prev"
CURRENT_VARIABLE = "curr"

# (all bound variables, arguments passed by the point-free rewrite)
LINE_PARAMS: tuple[str, ...] = (LINE_VARIABLE, INDEX_VARIABLE)
LINE_IMPLICIT_ARGS: tuple[str, ...] = (LINE_VARIABLE,)
REDUCE_PARAMS: tuple[str, ...] = (PREVIOUS_VARIABLE, CURRENT_VARIABLE, INDEX_VARIABLE)
REDUCE_IMPLICIT_ARGS: tuple[str, ...] = (PREVIOUS_VARIABLE, CURRENT_VARIABLE)


def parse_expression(source: str, stage: str | None = None) -> ast.Expression:
    """Parse an expression into an AST.

    Args:
        source: Expression text
        stage: Stage the expression belongs to, for error reporting

    Returns:
        The parsed expression tree

    Raises:
        ExpressionError: If the text is empty or not a valid expression
    """
    if source is None or not source.strip():
        raise ExpressionError("Expression is empty", expression=source, stage=stage)

    try:
        return ast.parse(source.strip(), filename="<expression>", mode="eval")
    except SyntaxError as e:
        raise ExpressionError(
            f"Invalid expression: {e.msg}", expression=source, stage=stage
        ) from e
    except ValueError as e:
        # Null bytes in the source
        raise ExpressionError(
            f"Invalid expression: {e}", expression=source, stage=stage
        ) from e


def _is_library_reference(node: ast.AST, library_names: frozenset[str]) -> bool:
    """Check for a qualified reference like ``R.to_upper`` or ``_.str.trim``."""
    if not isinstance(node, ast.Attribute):
        return False
    while isinstance(node, ast.Attribute):
        node = node.value
    return isinstance(node, ast.Name) and node.id in library_names


def _lambda_arity(node: ast.Lambda, available: int) -> int:
    args = node.args
    if args.vararg is not None:
        return available
    return min(len(args.posonlyargs) + len(args.args), available)


def rewrite_point_free(
    tree: ast.Expression,
    params: Sequence[str] = LINE_PARAMS,
    implicit_args: Sequence[str] = LINE_IMPLICIT_ARGS,
    library_names: frozenset[str] = LIBRARY_NAMES,
) -> tuple[ast.Expression, bool]:
    """Append an implicit invocation to a bare function reference.

    ``R.to_upper`` becomes ``R.to_upper(line)``. A top-level lambda is called
    with as many of ``params`` as it declares. Anything else, including an
    expression that already ends in a call, is returned unchanged.

    Args:
        tree: Parsed expression
        params: All variables bound for the stage, in order
        implicit_args: Variables passed to a bare library reference
        library_names: Names that refer to the function library

    Returns:
        Tuple of (tree, whether it was rewritten)
    """
    body = tree.body
    if _is_library_reference(body, library_names):
        names = implicit_args
    elif isinstance(body, ast.Lambda):
        names = params[: _lambda_arity(body, len(params))]
    else:
        return tree, False

    call = ast.Call(
        func=body,
        args=[ast.Name(id=name, ctx=ast.Load()) for name in names],
        keywords=[],
    )
    rewritten = ast.Expression(body=call)
    ast.copy_location(call, body)
    ast.fix_missing_locations(rewritten)
    return rewritten, True


def point_free(
    source: str,
    params: Sequence[str] = LINE_PARAMS,
    implicit_args: Sequence[str] = LINE_IMPLICIT_ARGS,
) -> str:
    """Return the source text an expression is evaluated as.

    Example:
        >>> point_free("R.to_upper")
        'R.to_upper(line)'
        >>> point_free("R.to_upper(line)")
        'R.to_upper(line)'
    """
    tree, rewritten = rewrite_point_free(parse_expression(source), params, implicit_args)
    if not rewritten:
        return source
    return ast.unparse(tree)


class CompiledExpression:
    """A compiled expression bound to a variable contract.

    Example:
        >>> expr = CompiledExpression("line.upper()")
        >>> expr("abc", 0)
        'ABC'
    """

    def __init__(
        self,
        source: str,
        params: Sequence[str] = LINE_PARAMS,
        implicit_args: Sequence[str] = LINE_IMPLICIT_ARGS,
        *,
        stage: str | None = None,
        scope: dict[str, Any] | None = None,
    ) -> None:
        """Compile the expression.

        Args:
            source: Expression text
            params: Variable names bound positionally on each call
            implicit_args: Arguments for the point-free rewrite
            stage: Stage name used in error messages
            scope: Extra names to bind next to the function library

        Raises:
            ExpressionError: If the expression is not valid
        """
        self.source = source
        self.params = tuple(params)
        self.stage = stage

        tree, self.rewritten = rewrite_point_free(
            parse_expression(source, stage), self.params, implicit_args
        )
        self.effective_source = ast.unparse(tree) if self.rewritten else source.strip()

        try:
            self._code = compile(tree, "<expression>", "eval")
        except SyntaxError as e:
            raise ExpressionError(
                f"Invalid expression: {e.msg}", expression=source, stage=stage
            ) from e

        # Evaluated with a single globals dict so lambdas and comprehensions
        # inside the expression can see the bound variables.
        self._namespace = build_scope(scope)

    def __call__(self, *args: Any) -> Any:
        """Evaluate against positional values for ``params``.

        Raises:
            ExpressionError: If the expression references an undefined name
            EvaluationError: If the expression raises anything else
        """
        namespace = self._namespace
        for name, value in zip(self.params, args):
            namespace[name] = value

        try:
            return eval(self._code, namespace)
        except NameError as e:
            raise ExpressionError(
                f"Undefined name in expression: {e}",
                expression=self.source,
                stage=self.stage,
            ) from e
        except LinepipeError:
            raise
        except Exception as e:
            raise EvaluationError(
                f"Expression raised {type(e).__name__}: {e}",
                stage=self.stage,
                index=namespace.get(INDEX_VARIABLE),
            ) from e

    def __repr__(self) -> str:
        return f"CompiledExpression({self.effective_source!r})"


def compile_expression(
    source: str,
    params: Sequence[str] = LINE_PARAMS,
    implicit_args: Sequence[str] = LINE_IMPLICIT_ARGS,
    *,
    stage: str | None = None,
    scope: dict[str, Any] | None = None,
) -> CompiledExpression:
    """Compile an expression for a stage.

    Args:
        source: Expression text
        params: Variable names bound positionally on each call
        implicit_args: Arguments for the point-free rewrite
        stage: Stage name used in error messages
        scope: Extra names to bind next to the function library

    Returns:
        Callable compiled expression
    """
    return CompiledExpression(
        source, params, implicit_args, stage=stage, scope=scope
    )
