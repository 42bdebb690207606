"""
Configuration - Pipeline options and config file loading.
"""

from linepipe.config.loader import load_options
from linepipe.config.options import DEFAULT_CHUNK_SIZE, PipelineOptions

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "PipelineOptions",
    "load_options",
]
