"""
Input sources and the continuity manager.

The manager reads several sources one after another and presents them to
the pipeline as a single byte stream. The stream only ends after the last
source is exhausted, so line numbering and reduce state carry across
source boundaries.
"""

from __future__ import annotations

import asyncio
import os
import sys
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, BinaryIO

from linepipe.config import DEFAULT_CHUNK_SIZE
from linepipe.errors import InputError
from linepipe.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Sequence

logger = get_logger("linepipe.sources")

STDIN_PATH = "-"


def _resolve(future: asyncio.Future[Any], result: Any, error: Exception | None) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)


async def read_detached(read: Callable[[int], Any], size: int) -> Any:
    """Run a blocking read on a daemon thread and await its result.

    Unlike the default executor, a daemon thread left blocked in ``read``
    neither delays loop shutdown nor interpreter exit, so an interrupted run
    can end while the read is still waiting for input.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[Any] = loop.create_future()

    def worker() -> None:
        result: Any = None
        error: Exception | None = None
        try:
            result = read(size)
        except Exception as e:
            error = e
        try:
            loop.call_soon_threadsafe(_resolve, future, result, error)
        except RuntimeError:
            # Loop closed while the read was blocked; nobody awaits the result.
            return

    threading.Thread(target=worker, name="linepipe-reader", daemon=True).start()
    return await future


class ByteSource(ABC):
    """Abstract source of raw bytes."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self.chunk_size = chunk_size

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable source name."""
        ...

    @abstractmethod
    def read(self) -> AsyncIterator[bytes]:
        """Yield the source's bytes in chunks until it is exhausted.

        Raises:
            InputError: If the source cannot be read
        """
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class FileSource(ByteSource):
    """Reads a file from disk."""

    def __init__(self, path: str | Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        super().__init__(chunk_size)
        self.path = Path(path)

    @property
    def name(self) -> str:
        return str(self.path)

    async def read(self) -> AsyncIterator[bytes]:
        try:
            handle = await asyncio.to_thread(self.path.open, "rb")
        except OSError as e:
            raise InputError(
                f"Cannot open {self.path}: {e.strerror or e}", source_name=self.name
            ) from e

        try:
            while True:
                try:
                    chunk = await asyncio.to_thread(handle.read, self.chunk_size)
                except OSError as e:
                    raise InputError(
                        f"Cannot read {self.path}: {e.strerror or e}",
                        source_name=self.name,
                    ) from e
                if not chunk:
                    return
                yield chunk
        finally:
            handle.close()


class StreamSource(ByteSource):
    """Reads an already-open binary stream such as standard input.

    Streams backed by a file descriptor are read with ``os.read``, which
    returns as soon as any input arrives. Other streams use ``read1`` when
    they have it, and ``read`` otherwise. Each read runs on a daemon thread.
    """

    def __init__(
        self,
        stream: BinaryIO | Any,
        name: str = "<stdin>",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        super().__init__(chunk_size)
        self._stream = stream
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def _reader(self) -> Callable[[int], Any]:
        try:
            fd = self._stream.fileno()
        except (AttributeError, OSError, ValueError):
            return getattr(self._stream, "read1", self._stream.read)
        return lambda size: os.read(fd, size)

    async def read(self) -> AsyncIterator[bytes]:
        read = self._reader()
        while True:
            try:
                chunk = await read_detached(read, self.chunk_size)
            except OSError as e:
                raise InputError(
                    f"Cannot read {self._name}: {e.strerror or e}",
                    source_name=self._name,
                ) from e
            if not chunk:
                return
            if isinstance(chunk, str):
                chunk = chunk.encode("utf-8")
            yield chunk


def stdin_source(chunk_size: int = DEFAULT_CHUNK_SIZE) -> StreamSource:
    """Create a source over the process's standard input."""
    stream = getattr(sys.stdin, "buffer", sys.stdin)
    return StreamSource(stream, chunk_size=chunk_size)


class InputContinuityManager:
    """Sequences sources into one logical byte stream.

    Source *n+1* is opened only after source *n* is exhausted. The stream
    returned by :meth:`stream` stays open across source boundaries and ends
    only after the last source completes, which is the single end-of-input
    signal for the pipeline.

    Example:
        >>> manager = InputContinuityManager.from_paths(["a.txt", "b.txt"])
        >>> async for chunk in pipeline.process(manager.stream()):
        ...     sys.stdout.write(chunk)
    """

    def __init__(self, sources: Sequence[ByteSource]) -> None:
        """Initialize the manager.

        Args:
            sources: Sources to read, in order
        """
        self._sources = tuple(sources)
        self._completed = 0
        self._bytes_read = 0

    @classmethod
    def from_paths(
        cls,
        paths: Sequence[str | Path] | None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> InputContinuityManager:
        """Create a manager from file paths.

        No paths means standard input; the path ``-`` also means standard
        input.
        """
        if not paths:
            return cls([stdin_source(chunk_size)])

        sources: list[ByteSource] = []
        for path in paths:
            if str(path) == STDIN_PATH:
                sources.append(stdin_source(chunk_size))
            else:
                sources.append(FileSource(path, chunk_size))
        return cls(sources)

    @property
    def sources(self) -> tuple[ByteSource, ...]:
        """Sources in reading order."""
        return self._sources

    @property
    def completed(self) -> int:
        """Number of sources read to exhaustion."""
        return self._completed

    @property
    def bytes_read(self) -> int:
        """Total bytes forwarded so far."""
        return self._bytes_read

    @property
    def finished(self) -> bool:
        """Whether every source has been exhausted."""
        return self._completed == len(self._sources)

    async def stream(self) -> AsyncIterator[bytes]:
        """Yield the bytes of every source, strictly in order.

        Yields:
            Raw byte chunks

        Raises:
            InputError: If a source cannot be read
        """
        for source in self._sources:
            logger.debug("Source opened", source=source.name)
            size = 0
            async for chunk in source.read():
                size += len(chunk)
                self._bytes_read += len(chunk)
                yield chunk
            self._completed += 1
            logger.debug("Source completed", source=source.name, bytes=size)

        logger.debug("End of input", sources=self._completed, bytes=self._bytes_read)
