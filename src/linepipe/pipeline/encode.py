"""
Output encoding for line values.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from linepipe.types import Line


def render_text(value: Any) -> str:
    """Render a value as a plain-text line.

    Strings are written as they are; everything else is written in its
    compact JSON form, so ``True`` becomes ``true`` and ``None`` ``null``.
    """
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, default=str)


def render_json(value: Any, pretty: bool = False) -> str:
    """Serialize a value as a JSON document.

    Args:
        value: Value to serialize; non-JSON types fall back to ``str()``
        pretty: Indent nested structures by two spaces

    Returns:
        JSON text without a trailing newline
    """
    return json.dumps(
        value,
        ensure_ascii=False,
        default=str,
        indent=2 if pretty else None,
    )


async def render_lines(lines: AsyncIterator[Line]) -> AsyncIterator[str]:
    """Render each line's value as newline-terminated text."""
    async for line in lines:
        yield render_text(line.value) + "\n"
