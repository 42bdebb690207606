"""
Map stage.

Replaces each line's value with the result of a user expression.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from linepipe.expression import CompiledExpression, compile_expression
from linepipe.pipeline.base import Stage, StageKind

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from linepipe.types import Line


class MapStage(Stage):
    """Stage that substitutes each value with an expression result.

    The result may be of any type; it keeps the index of the line it was
    computed from.
    """

    kind = StageKind.MAP

    def __init__(self, expression: str | CompiledExpression) -> None:
        super().__init__()
        if isinstance(expression, CompiledExpression):
            self._expression = expression
        else:
            self._expression = compile_expression(expression, stage=self.kind.value)

    @property
    def expression(self) -> CompiledExpression:
        """The compiled mapping expression."""
        return self._expression

    async def process(self, lines: AsyncIterator[Line]) -> AsyncIterator[Line]:
        async for line in lines:
            yield line.with_value(self._expression(line.value, line.index))


def create_map(expression: str | None) -> MapStage | None:
    """Create a map stage, or None if no expression was given."""
    if expression is None:
        return None

    return MapStage(expression)
