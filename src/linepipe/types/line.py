"""
Line records flowing through the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True)
class Line:
    """A single record in the stream.

    Attributes:
        value: The line text as read, or whatever a map stage produced
        index: Position of the line in the whole run, starting at 0. The
            decoder assigns it once and it never resets between sources.
    """

    value: Any
    index: int

    def with_value(self, value: Any) -> Line:
        """Return a copy carrying a new value at the same index."""
        return replace(self, value=value)
