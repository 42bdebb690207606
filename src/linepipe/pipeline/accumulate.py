"""
Reducers for stateful stream processing.

A reduce stage folds every incoming line into a single accumulator and
emits it once, after the input is exhausted. Built-in reducers are looked
up by name; anything else is compiled as an accumulator expression over
``prev``, ``curr`` and ``i``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from linepipe.errors import EvaluationError
from linepipe.expression import (
    REDUCE_IMPLICIT_ARGS,
    REDUCE_PARAMS,
    CompiledExpression,
    compile_expression,
)
from linepipe.pipeline.base import Stage, StageKind
from linepipe.telemetry import get_logger
from linepipe.types import Line

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger("linepipe.pipeline.accumulate")

_BUILTIN_REDUCERS: dict[str, type[Reducer]] = {}

# Marks an accumulator that has not seen a value yet
_NO_VALUE = object()


def to_number(value: Any, *, reducer: str = "reduce", index: int | None = None) -> int | float:
    """Coerce a line value to a number.

    Strings are parsed as ``int`` first, then as ``float``.

    Raises:
        EvaluationError: If the value is not numeric
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            pass
    raise EvaluationError(
        f"'{reducer}' expects numeric values, got {value!r}",
        stage=StageKind.REDUCE.value,
        index=index,
    )


class Reducer(ABC):
    """Folds values into an accumulator.

    Subclasses declared with ``name=...`` are registered as built-ins.
    """

    name: ClassVar[str | None] = None

    def __init_subclass__(cls, name: str | None = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.name = name
        if name is not None:
            _BUILTIN_REDUCERS[name] = cls

    @abstractmethod
    def initial(self) -> Any:
        """Return a fresh accumulator."""
        ...

    @abstractmethod
    def step(self, acc: Any, value: Any, index: int) -> Any:
        """Fold one value into the accumulator and return the new one."""
        ...

    def finalize(self, acc: Any) -> Any:
        """Turn the accumulator into the emitted value."""
        return acc


class LengthReducer(Reducer, name="length"):
    """Counts lines."""

    def initial(self) -> int:
        return 0

    def step(self, acc: int, value: Any, index: int) -> int:
        return acc + 1


class MinReducer(Reducer, name="min"):
    """Smallest numeric value, or None for no input."""

    def initial(self) -> Any:
        return None

    def step(self, acc: Any, value: Any, index: int) -> Any:
        number = to_number(value, reducer="min", index=index)
        if acc is None or number < acc:
            return number
        return acc


class MaxReducer(Reducer, name="max"):
    """Largest numeric value, or None for no input."""

    def initial(self) -> Any:
        return None

    def step(self, acc: Any, value: Any, index: int) -> Any:
        number = to_number(value, reducer="max", index=index)
        if acc is None or number > acc:
            return number
        return acc


class SumReducer(Reducer, name="sum"):
    """Numeric sum, 0 for no input."""

    def initial(self) -> int | float:
        return 0

    def step(self, acc: int | float, value: Any, index: int) -> int | float:
        return acc + to_number(value, reducer="sum", index=index)


class AvgReducer(Reducer, name="avg"):
    """Arithmetic mean.

    Tracks a running (sum, count) pair and divides at finalization. The mean
    of no values is None.
    """

    def initial(self) -> tuple[int | float, int]:
        return (0, 0)

    def step(
        self, acc: tuple[int | float, int], value: Any, index: int
    ) -> tuple[int | float, int]:
        total, count = acc
        return (total + to_number(value, reducer="avg", index=index), count + 1)

    def finalize(self, acc: tuple[int | float, int]) -> float | None:
        total, count = acc
        if count == 0:
            return None
        return total / count


@dataclass
class _ConcatState:
    items: list[Any] = field(default_factory=list)
    as_list: bool = False


class ConcatReducer(Reducer, name="concat"):
    """Concatenates values in encounter order.

    Strings are joined into one string. Once any list value arrives the
    result becomes a list, with list values spliced in and other values
    appended. No input yields an empty string.
    """

    def initial(self) -> _ConcatState:
        return _ConcatState()

    def step(self, acc: _ConcatState, value: Any, index: int) -> _ConcatState:
        if isinstance(value, (list, tuple)):
            acc.as_list = True
            acc.items.extend(value)
        else:
            acc.items.append(value)
        return acc

    def finalize(self, acc: _ConcatState) -> str | list[Any]:
        if acc.as_list:
            return list(acc.items)
        return "".join(item if isinstance(item, str) else str(item) for item in acc.items)


class ExpressionReducer(Reducer):
    """Folds values with a user accumulator expression.

    The first value seeds the accumulator without evaluating the
    expression. No input yields None.
    """

    def __init__(self, expression: str | CompiledExpression) -> None:
        if isinstance(expression, CompiledExpression):
            self._expression = expression
        else:
            self._expression = compile_expression(
                expression,
                REDUCE_PARAMS,
                REDUCE_IMPLICIT_ARGS,
                stage=StageKind.REDUCE.value,
            )

    @property
    def expression(self) -> CompiledExpression:
        """The compiled accumulator expression."""
        return self._expression

    def initial(self) -> Any:
        return _NO_VALUE

    def step(self, acc: Any, value: Any, index: int) -> Any:
        if acc is _NO_VALUE:
            return value
        return self._expression(acc, value, index)

    def finalize(self, acc: Any) -> Any:
        return None if acc is _NO_VALUE else acc


def builtin_reducers() -> list[str]:
    """Names of the built-in reducers."""
    return sorted(_BUILTIN_REDUCERS)


def create_reducer(spec: str) -> Reducer:
    """Create a reducer from a built-in name or an expression.

    Args:
        spec: One of the built-in names, or an accumulator expression

    Returns:
        Reducer instance

    Raises:
        ExpressionError: If ``spec`` is not a built-in and not a valid expression
    """
    reducer_cls = _BUILTIN_REDUCERS.get(spec.strip())
    if reducer_cls is not None:
        return reducer_cls()
    return ExpressionReducer(spec)


class ReduceStage(Stage):
    """Stage that folds all lines into one value.

    Unlike filter and map, it emits exactly once, when the upstream stream is
    exhausted. The upstream only ends after the last input source has been
    read, so the accumulator spans every source.
    """

    kind = StageKind.REDUCE

    def __init__(self, reducer: Reducer | str) -> None:
        """Initialize the stage.

        Args:
            reducer: Reducer instance, built-in name or accumulator expression
        """
        super().__init__()
        self._reducer = create_reducer(reducer) if isinstance(reducer, str) else reducer

    @property
    def reducer(self) -> Reducer:
        """The reducer folding values for this stage."""
        return self._reducer

    async def process(self, lines: AsyncIterator[Line]) -> AsyncIterator[Line]:
        """Fold all lines and emit the result.

        Args:
            lines: Async iterator of lines

        Yields:
            A single line carrying the final value, at index 0
        """
        reducer = self._reducer
        acc = reducer.initial()
        count = 0

        async for line in lines:
            acc = reducer.step(acc, line.value, line.index)
            count += 1

        result = reducer.finalize(acc)
        logger.debug(
            "Reduce finalized",
            reducer=reducer.name or "expression",
            lines=count,
        )
        yield Line(result, 0)


def create_reduce(spec: str | None) -> ReduceStage | None:
    """Create a reduce stage, or None if no reducer was requested."""
    if spec is None:
        return None

    return ReduceStage(spec)
