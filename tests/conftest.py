"""Root pytest fixtures for linepipe tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from linepipe.telemetry import LinepipeLogger, LogLevel, clear_log_context


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str | bytes], Path]:
    """Write a file under tmp_path and return its path."""

    def _write(name: str, content: str | bytes) -> Path:
        path = tmp_path / name
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Keep log configuration and context from leaking between tests."""
    yield
    LinepipeLogger.configure(level=LogLevel.WARNING)
    clear_log_context()
