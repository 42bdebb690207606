"""
Line decoder.

Splits a byte stream into indexed lines. The decoder keeps its buffer and
line counter for the whole stream, so input concatenated from several
sources is numbered continuously.
"""

from __future__ import annotations

import codecs
from typing import TYPE_CHECKING

from linepipe.pipeline.base import Decoder
from linepipe.types import Line

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


class LineDecoder(Decoder):
    """Newline-delimited text decoder.

    Handles ``\\n`` and ``\\r\\n`` endings, multi-byte characters split
    across chunks, and a final line without a trailing newline.

    Attributes:
        skip_blank: Drop whitespace-only lines before they get an index
        encoding: Text encoding of the byte stream
    """

    def __init__(
        self,
        skip_blank: bool = False,
        encoding: str = "utf-8",
        delimiter: str = "\n",
    ) -> None:
        """Initialize the decoder.

        Args:
            skip_blank: Drop whitespace-only lines
            encoding: Text encoding (malformed bytes are replaced)
            delimiter: Line delimiter
        """
        self.skip_blank = skip_blank
        self.encoding = encoding
        self._delimiter = delimiter

    async def decode(self, byte_stream: AsyncIterator[bytes]) -> AsyncIterator[Line]:
        """Decode a byte stream into lines.

        Args:
            byte_stream: Async iterator of raw bytes

        Yields:
            Lines numbered from 0
        """
        text_decoder = codecs.getincrementaldecoder(self.encoding)(errors="replace")
        buffer = ""
        index = 0

        async for chunk in byte_stream:
            buffer += text_decoder.decode(chunk)
            if self._delimiter not in buffer:
                continue

            *complete, buffer = buffer.split(self._delimiter)
            for raw in complete:
                text = raw[:-1] if raw.endswith("\r") else raw
                if self.skip_blank and not text.strip():
                    continue
                yield Line(text, index)
                index += 1

        # Process any remaining data in buffer
        buffer += text_decoder.decode(b"", final=True)
        if buffer:
            text = buffer[:-1] if buffer.endswith("\r") else buffer
            if not (self.skip_blank and not text.strip()):
                yield Line(text, index)
