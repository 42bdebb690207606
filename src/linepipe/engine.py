"""
Run boundary.

:func:`run` assembles a pipeline, feeds it from the input sources and writes
its output. It is the one place where failures are caught: whatever goes
wrong is classified and returned in a :class:`RunResult` instead of being
raised.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, TextIO

from linepipe.errors import ExitCode, LinepipeError, PipelineError, classify_exception
from linepipe.pipeline import Pipeline
from linepipe.sources import InputContinuityManager
from linepipe.telemetry import LogContext, clear_log_context, get_logger, set_log_context

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from linepipe.config import PipelineOptions

logger = get_logger("linepipe.engine")


@dataclass
class RunResult:
    """Outcome of a run.

    Attributes:
        exit_code: Process exit status for the outcome
        error: The error that ended the run, if any
        values_written: Number of rendered values written to the output
        bytes_read: Number of input bytes consumed
        output_closed: The output was closed by the reader before the end
    """

    exit_code: ExitCode = ExitCode.OK
    error: LinepipeError | None = None
    values_written: int = 0
    bytes_read: int = 0
    output_closed: bool = False

    @property
    def ok(self) -> bool:
        """Whether the run completed successfully."""
        return self.exit_code is ExitCode.OK


async def run(
    options: PipelineOptions,
    inputs: InputContinuityManager | Sequence[str | Path] | None,
    output: TextIO,
) -> RunResult:
    """Run one pipeline over the given inputs.

    Args:
        options: Stages to build and how to render output
        inputs: A continuity manager, or file paths (None or empty for stdin)
        output: Text stream receiving the rendered output

    Returns:
        The classified outcome; pipeline failures are never raised
    """
    run_id = uuid.uuid4().hex[:12]
    set_log_context(LogContext(run_id=run_id))

    manager: InputContinuityManager | None = None
    error: LinepipeError | None = None
    written = 0
    output_closed = False

    try:
        pipeline = Pipeline.from_options(options)
        set_log_context(
            LogContext(
                run_id=run_id,
                stages=",".join(pipeline.kinds) or "none",
            )
        )

        if isinstance(inputs, InputContinuityManager):
            manager = inputs
        else:
            manager = InputContinuityManager.from_paths(inputs, options.chunk_size)

        async for chunk in pipeline.process(manager.stream()):
            output.write(chunk)
            written += 1
        output.flush()

    except BrokenPipeError:
        # The reader went away (e.g. piped into 'head'); not a failure.
        logger.debug("Output closed by reader", values_written=written)
        output_closed = True
    except LinepipeError as e:
        error = e
        logger.debug("Run failed", error=type(e).__name__)
    except Exception as e:
        logger.exception("Unexpected failure")
        error = PipelineError(f"Unexpected {type(e).__name__}: {e}")
        error.__cause__ = e
    finally:
        clear_log_context()

    return RunResult(
        exit_code=classify_exception(error),
        error=error,
        values_written=written,
        bytes_read=manager.bytes_read if manager else 0,
        output_closed=output_closed,
    )


def run_sync(
    options: PipelineOptions,
    inputs: InputContinuityManager | Sequence[str | Path] | None,
    output: TextIO,
) -> RunResult:
    """Blocking wrapper around :func:`run`."""
    return asyncio.run(run(options, inputs, output))
