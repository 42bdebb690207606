"""
Input sources - Files and streams chained into one logical input.
"""

from linepipe.sources.continuity import (
    STDIN_PATH,
    ByteSource,
    FileSource,
    InputContinuityManager,
    StreamSource,
    stdin_source,
)

__all__ = [
    "STDIN_PATH",
    "ByteSource",
    "FileSource",
    "InputContinuityManager",
    "StreamSource",
    "stdin_source",
]
