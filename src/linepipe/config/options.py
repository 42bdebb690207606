"""
Pipeline options.

These Pydantic models describe which stages a run requests and how output
is rendered. They are filled from a YAML config file, command-line flags,
or both.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CHUNK_SIZE = 64 * 1024


class PipelineOptions(BaseModel):
    """Options for a single run."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    filter: str | None = Field(default=None, description="Filter expression")
    map: str | None = Field(default=None, description="Map expression")
    reduce: str | None = Field(
        default=None, description="Built-in reducer name or accumulator expression"
    )
    ignore_blank: bool = Field(
        default=False, alias="ignore", description="Drop blank lines before filtering"
    )
    json_output: bool = Field(
        default=False, alias="json", description="Render output as JSON"
    )
    pretty: bool = Field(default=False, description="Indent JSON output")
    chunk_size: int = Field(
        default=DEFAULT_CHUNK_SIZE, gt=0, description="Bytes per source read"
    )

    @property
    def has_actions(self) -> bool:
        """Whether any processing stage was requested."""
        return any(v is not None for v in (self.filter, self.map, self.reduce))

    @property
    def wants_output(self) -> bool:
        """Whether a run should process input at all.

        Without any action and without JSON output there is nothing to do.
        """
        return self.has_actions or self.json_output

    def merged(self, **overrides: Any) -> PipelineOptions:
        """Return a copy with every non-None override applied.

        Boolean flags only override when True, so an unset CLI switch never
        turns off a value that came from a config file.
        """
        data = self.model_dump()
        for key, value in overrides.items():
            if value is None or value is False:
                continue
            data[key] = value
        return PipelineOptions.model_validate(data)
