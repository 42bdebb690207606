"""
Base abstractions for the pipeline layer.

Defines the core interfaces that all pipeline stages implement and the
assembler that wires them together.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, ClassVar

from linepipe.errors import PipelineError
from linepipe.pipeline.encode import render_lines
from linepipe.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from linepipe.config import PipelineOptions
    from linepipe.types import Line

logger = get_logger("linepipe.pipeline")


class StageKind(str, Enum):
    """Kinds of stage, declared in the only order they may appear."""

    FILTER = "filter"
    MAP = "map"
    REDUCE = "reduce"
    JSON = "json"

    @property
    def position(self) -> int:
        """Position of this kind in the fixed stage order."""
        return list(StageKind).index(self)


class Decoder(ABC):
    """Abstract decoder that converts a byte stream to lines."""

    @abstractmethod
    async def decode(self, byte_stream: AsyncIterator[bytes]) -> AsyncIterator[Line]:
        """Decode a byte stream into indexed lines.

        Args:
            byte_stream: Async iterator of raw bytes

        Yields:
            Lines in arrival order
        """
        ...


class Stage(ABC):
    """Abstract pipeline stage.

    Stages consume an async stream of lines and yield lines. They hold no
    state about where they sit in a pipeline, so one stage object can be
    shared by several pipelines.
    """

    kind: ClassVar[StageKind]

    @abstractmethod
    async def process(self, lines: AsyncIterator[Line]) -> AsyncIterator[Line]:
        """Process a stream of lines.

        Args:
            lines: Async iterator of lines from the previous stage

        Yields:
            Lines for the next stage
        """
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class Pipeline:
    """Complete pipeline for processing line-oriented input.

    A pipeline consists of:
    1. A decoder (bytes -> lines)
    2. Zero or more stages, in the order filter, map, reduce, json
    3. Text rendering of the final stage's output

    Example:
        >>> pipeline = Pipeline.from_options(PipelineOptions(map="line.upper()"))
        >>> async for chunk in pipeline.process(byte_stream):
        ...     sys.stdout.write(chunk)
    """

    def __init__(self, decoder: Decoder, stages: Sequence[Stage] | None = None) -> None:
        """Initialize the pipeline.

        Args:
            decoder: The decoder to convert bytes to lines
            stages: Stages to apply, at most one per kind, in stage order

        Raises:
            PipelineError: If stages repeat a kind or are out of order
        """
        self._decoder = decoder
        self._stages: tuple[Stage, ...] = tuple(stages or ())

        positions = [stage.kind.position for stage in self._stages]
        if len(set(positions)) != len(positions):
            raise PipelineError(
                "Each stage kind may appear only once",
                operator=",".join(self.kinds),
            )
        if positions != sorted(positions):
            raise PipelineError(
                "Stages must be ordered filter, map, reduce, json",
                operator=",".join(self.kinds),
            )

    @property
    def stages(self) -> tuple[Stage, ...]:
        """The ordered stages."""
        return self._stages

    @property
    def kinds(self) -> list[str]:
        """Stage kinds in order."""
        return [stage.kind.value for stage in self._stages]

    async def process(self, byte_stream: AsyncIterator[bytes]) -> AsyncIterator[str]:
        """Process a byte stream through the complete pipeline.

        Args:
            byte_stream: Async iterator of raw bytes

        Yields:
            Output text chunks, each ending in a newline
        """
        # Stage 1: Decode bytes to lines
        stream = self._decoder.decode(byte_stream)

        # Stage 2: Apply stages in sequence
        for stage in self._stages:
            stream = stage.process(stream)

        # Stage 3: Render whatever the last stage produced
        async for chunk in render_lines(stream):
            yield chunk

    @classmethod
    def from_options(cls, options: PipelineOptions) -> Pipeline:
        """Create a pipeline from run options.

        Args:
            options: Which stages to build and how to render output

        Returns:
            Configured Pipeline instance

        Raises:
            ExpressionError: If any stage expression is invalid
        """
        from linepipe.pipeline.accumulate import create_reduce
        from linepipe.pipeline.decode import LineDecoder
        from linepipe.pipeline.select import create_filter
        from linepipe.pipeline.serialize import create_json
        from linepipe.pipeline.transform import create_map

        candidates = [
            create_filter(options.filter),
            create_map(options.map),
            create_reduce(options.reduce),
            create_json(options.json_output, pretty=options.pretty),
        ]
        stages = [stage for stage in candidates if stage is not None]

        pipeline = cls(
            decoder=LineDecoder(skip_blank=options.ignore_blank),
            stages=stages,
        )
        logger.debug("Pipeline assembled", stages=",".join(pipeline.kinds) or "none")
        return pipeline

    def with_stage(self, stage: Stage) -> Pipeline:
        """Add a stage to the pipeline.

        Args:
            stage: Stage to add

        Returns:
            New Pipeline with the stage added
        """
        return Pipeline(decoder=self._decoder, stages=[*self._stages, stage])
