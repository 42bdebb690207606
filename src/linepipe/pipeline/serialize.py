"""
JSON output stage.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from linepipe.pipeline.base import Stage, StageKind
from linepipe.pipeline.encode import render_json

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from linepipe.types import Line


class JsonStage(Stage):
    """Serializes each arriving value as a JSON document.

    Without a reduce stage upstream this emits one document per line
    (newline-delimited JSON). After a reduce stage it sees, and emits,
    exactly one value.
    """

    kind = StageKind.JSON

    def __init__(self, pretty: bool = False) -> None:
        """Initialize the stage.

        Args:
            pretty: Indent nested structures
        """
        super().__init__()
        self.pretty = pretty

    async def process(self, lines: AsyncIterator[Line]) -> AsyncIterator[Line]:
        async for line in lines:
            yield line.with_value(render_json(line.value, self.pretty))


def create_json(enabled: bool, pretty: bool = False) -> JsonStage | None:
    """Create a JSON stage when JSON output is enabled."""
    if not enabled:
        return None

    return JsonStage(pretty=pretty)
