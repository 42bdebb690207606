"""Tests for input sources and the continuity manager."""

import io
import os

import pytest

from linepipe.config import PipelineOptions
from linepipe.errors import InputError
from linepipe.pipeline import Pipeline
from linepipe.sources import (
    ByteSource,
    FileSource,
    InputContinuityManager,
    StreamSource,
)


async def collect(stream) -> list:
    return [item async for item in stream]


class RecordingSource(ByteSource):
    """Source that records when it is opened and finished."""

    def __init__(self, name: str, chunks: list[bytes], events: list[str]) -> None:
        super().__init__()
        self._name = name
        self._chunks = chunks
        self._events = events

    @property
    def name(self) -> str:
        return self._name

    async def read(self):
        self._events.append(f"open {self._name}")
        for chunk in self._chunks:
            yield chunk
        self._events.append(f"close {self._name}")


class TestFileSource:
    """Tests for file sources."""

    @pytest.mark.asyncio
    async def test_read_in_chunks(self, write_file) -> None:
        """Test a file is read completely in chunk-sized pieces."""
        path = write_file("a.txt", "abcdefg")
        chunks = await collect(FileSource(path, chunk_size=3).read())

        assert chunks == [b"abc", b"def", b"g"]

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path) -> None:
        """Test a missing file raises InputError."""
        source = FileSource(tmp_path / "missing.txt")

        with pytest.raises(InputError) as exc_info:
            await collect(source.read())

        assert exc_info.value.source_name == str(tmp_path / "missing.txt")

    @pytest.mark.asyncio
    async def test_directory(self, tmp_path) -> None:
        """Test a directory raises InputError."""
        with pytest.raises(InputError):
            await collect(FileSource(tmp_path).read())


class TestStreamSource:
    """Tests for stream sources."""

    @pytest.mark.asyncio
    async def test_read_binary_stream(self) -> None:
        """Test reading an open binary stream."""
        source = StreamSource(io.BytesIO(b"a\nb\n"), name="<test>")
        chunks = await collect(source.read())

        assert b"".join(chunks) == b"a\nb\n"
        assert source.name == "<test>"

    @pytest.mark.asyncio
    async def test_read_text_stream(self) -> None:
        """Test text streams are encoded to bytes."""
        source = StreamSource(io.StringIO("é\n"))
        chunks = await collect(source.read())

        assert b"".join(chunks) == "é\n".encode()

    @pytest.mark.asyncio
    async def test_read_file_descriptor(self) -> None:
        """Test streams with a descriptor are read directly from it."""
        read_fd, write_fd = os.pipe()
        os.write(write_fd, b"a\nb\n")
        os.close(write_fd)

        with os.fdopen(read_fd, "rb") as stream:
            chunks = await collect(StreamSource(stream).read())

        assert b"".join(chunks) == b"a\nb\n"

    @pytest.mark.asyncio
    async def test_read_failure(self) -> None:
        """Test a failing read raises InputError."""

        class BrokenStream:
            def read(self, size: int) -> bytes:
                raise OSError(5, "Input/output error")

        with pytest.raises(InputError) as exc_info:
            await collect(StreamSource(BrokenStream(), name="<broken>").read())

        assert exc_info.value.source_name == "<broken>"


class TestInputContinuityManager:
    """Tests for the continuity manager."""

    @pytest.mark.asyncio
    async def test_sources_read_strictly_in_order(self) -> None:
        """Test source n+1 opens only after source n is exhausted."""
        events: list[str] = []
        manager = InputContinuityManager(
            [
                RecordingSource("a", [b"1", b"2"], events),
                RecordingSource("b", [b"3"], events),
            ]
        )

        data = b"".join(await collect(manager.stream()))

        assert data == b"123"
        assert events == ["open a", "close a", "open b", "close b"]
        assert manager.finished
        assert manager.completed == 2
        assert manager.bytes_read == 3

    @pytest.mark.asyncio
    async def test_not_finished_between_sources(self) -> None:
        """Test the stream stays open at a source boundary."""
        events: list[str] = []
        manager = InputContinuityManager(
            [
                RecordingSource("a", [b"x"], events),
                RecordingSource("b", [b"y"], events),
            ]
        )

        stream = manager.stream()
        assert await stream.__anext__() == b"x"
        assert await stream.__anext__() == b"y"
        assert manager.completed == 1
        assert not manager.finished

        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()
        assert manager.finished

    def test_from_paths_defaults_to_stdin(self) -> None:
        """Test no paths means standard input."""
        manager = InputContinuityManager.from_paths([])

        assert len(manager.sources) == 1
        assert isinstance(manager.sources[0], StreamSource)

    def test_from_paths_dash_is_stdin(self, write_file) -> None:
        """Test '-' is standard input among files."""
        path = write_file("a.txt", "a\n")
        manager = InputContinuityManager.from_paths([path, "-"])

        assert isinstance(manager.sources[0], FileSource)
        assert isinstance(manager.sources[1], StreamSource)

    @pytest.mark.asyncio
    async def test_missing_file_after_good_one(self, write_file, tmp_path) -> None:
        """Test the first file is forwarded before the second one fails."""
        path = write_file("a.txt", "a\n")
        manager = InputContinuityManager.from_paths([path, tmp_path / "nope.txt"])
        received = []

        with pytest.raises(InputError):
            async for chunk in manager.stream():
                received.append(chunk)

        assert received == [b"a\n"]


class TestMultiFilePipeline:
    """Tests for pipelines fed from several files."""

    @pytest.mark.asyncio
    async def test_indices_continue_across_files(self, write_file) -> None:
        """Test line indices never reset between files."""
        a = write_file("a.txt", "a1\na2\n")
        b = write_file("b.txt", "b1\nb2\n")
        manager = InputContinuityManager.from_paths([a, b])
        pipeline = Pipeline.from_options(PipelineOptions(map="f'{i}:{line}'"))

        output = "".join(await collect(pipeline.process(manager.stream())))

        assert output == "0:a1\n1:a2\n2:b1\n3:b2\n"

    @pytest.mark.asyncio
    async def test_reduce_spans_files(self, write_file) -> None:
        """Test one reduction covers every file."""
        a = write_file("a.txt", "a1\na2\n")
        b = write_file("b.txt", "b1\nb2\n")
        manager = InputContinuityManager.from_paths([a, b])
        pipeline = Pipeline.from_options(PipelineOptions(reduce="length"))

        output = "".join(await collect(pipeline.process(manager.stream())))

        assert output == "4\n"

    @pytest.mark.asyncio
    async def test_unterminated_last_line_joins_next_file(self, write_file) -> None:
        """Test files form one byte stream, not separate line streams."""
        a = write_file("a.txt", "a1\na2")
        b = write_file("b.txt", "b1\n")
        manager = InputContinuityManager.from_paths([a, b])
        pipeline = Pipeline.from_options(PipelineOptions(reduce="length"))

        output = "".join(await collect(pipeline.process(manager.stream())))

        assert output == "2\n"
