"""
Type definitions for linepipe.
"""

from linepipe.types.line import Line

__all__ = [
    "Line",
]
