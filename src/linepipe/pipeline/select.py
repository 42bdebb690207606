"""
Filter stage.

Keeps the lines for which a user expression is truthy.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from linepipe.expression import CompiledExpression, compile_expression
from linepipe.pipeline.base import Stage, StageKind

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from linepipe.types import Line


class FilterStage(Stage):
    """Stage that drops lines failing a predicate expression.

    Example:
        >>> stage = FilterStage("'error' in line")
        >>> async for line in stage.process(lines):
        ...     handle(line)  # Only lines mentioning 'error'
    """

    kind = StageKind.FILTER

    def __init__(self, expression: str | CompiledExpression) -> None:
        """Initialize the stage.

        Args:
            expression: Predicate over ``line`` and ``i``

        Raises:
            ExpressionError: If the expression is not valid
        """
        super().__init__()
        if isinstance(expression, CompiledExpression):
            self._expression = expression
        else:
            self._expression = compile_expression(expression, stage=self.kind.value)

    @property
    def expression(self) -> CompiledExpression:
        """The compiled predicate."""
        return self._expression

    def matches(self, line: Line) -> bool:
        """Check if a line passes the predicate."""
        return bool(self._expression(line.value, line.index))

    async def process(self, lines: AsyncIterator[Line]) -> AsyncIterator[Line]:
        """Filter lines based on the expression.

        Args:
            lines: Async iterator of lines

        Yields:
            Lines that match the expression, unchanged
        """
        async for line in lines:
            if self.matches(line):
                yield line


def create_filter(expression: str | None) -> FilterStage | None:
    """Create a filter stage from an expression.

    Args:
        expression: Predicate expression, or None for no filtering

    Returns:
        FilterStage instance, or None if no filtering needed
    """
    if expression is None:
        return None

    return FilterStage(expression)
