"""
Function library bound into every expression.
"""

from __future__ import annotations

import builtins
import functools
import itertools
import json
import math
import operator
import re
from typing import Any

import pydash

# Names that refer to the function library. Attribute references rooted at
# one of these are eligible for the point-free rewrite.
LIBRARY_NAMES: frozenset[str] = frozenset({"R", "_"})


def build_scope(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build the global namespace an expression is evaluated in.

    Args:
        extra: Additional names to bind, overriding the defaults

    Returns:
        A fresh dictionary usable as ``globals`` for ``eval()``
    """
    scope: dict[str, Any] = {
        "__builtins__": builtins,
        "R": pydash,
        "_": pydash,
        "chain": pydash.chain,
        "it": itertools,
        "op": operator,
        "reduce": functools.reduce,
        "re": re,
        "json": json,
        "math": math,
    }
    if extra:
        scope.update(extra)
    return scope
