"""
Pipeline layer - Line processing stages.

This module implements the stage pipeline for line-oriented input:
- Decoder: Splits raw bytes into indexed lines
- FilterStage: Keeps lines for which an expression is truthy
- MapStage: Replaces line values with an expression result
- ReduceStage: Folds all lines into one value
- JsonStage: Serializes values as JSON documents

The pipeline is assembled once per run from PipelineOptions.
"""

from linepipe.pipeline.accumulate import (
    AvgReducer,
    ConcatReducer,
    ExpressionReducer,
    LengthReducer,
    MaxReducer,
    MinReducer,
    Reducer,
    ReduceStage,
    SumReducer,
    builtin_reducers,
    create_reduce,
    create_reducer,
    to_number,
)
from linepipe.pipeline.base import Decoder, Pipeline, Stage, StageKind
from linepipe.pipeline.decode import LineDecoder
from linepipe.pipeline.encode import render_json, render_lines, render_text
from linepipe.pipeline.select import FilterStage, create_filter
from linepipe.pipeline.serialize import JsonStage, create_json
from linepipe.pipeline.transform import MapStage, create_map

__all__ = [
    # Base abstractions
    "Decoder",
    "Pipeline",
    "Stage",
    "StageKind",
    # Decoding and encoding
    "LineDecoder",
    "render_json",
    "render_lines",
    "render_text",
    # Stages
    "FilterStage",
    "JsonStage",
    "MapStage",
    "ReduceStage",
    "create_filter",
    "create_json",
    "create_map",
    "create_reduce",
    # Reducers
    "AvgReducer",
    "ConcatReducer",
    "ExpressionReducer",
    "LengthReducer",
    "MaxReducer",
    "MinReducer",
    "Reducer",
    "SumReducer",
    "builtin_reducers",
    "create_reducer",
    "to_number",
]
