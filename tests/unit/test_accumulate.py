"""Tests for reducers and the reduce stage."""

import pytest

from linepipe.errors import EvaluationError, ExpressionError
from linepipe.pipeline import (
    AvgReducer,
    ConcatReducer,
    ExpressionReducer,
    LengthReducer,
    ReduceStage,
    SumReducer,
    builtin_reducers,
    create_reduce,
    create_reducer,
    to_number,
)
from linepipe.types import Line


async def line_stream(*values):
    for index, value in enumerate(values):
        yield Line(value, index)


async def reduce_values(spec: str, *values):
    stage = ReduceStage(spec)
    results = [line async for line in stage.process(line_stream(*values))]
    assert len(results) == 1
    return results[0].value


class TestToNumber:
    """Tests for numeric coercion."""

    def test_numbers_pass_through(self) -> None:
        """Test ints and floats are unchanged."""
        assert to_number(3) == 3
        assert to_number(2.5) == 2.5

    def test_strings_parsed(self) -> None:
        """Test numeric strings are parsed, ints preferred."""
        assert to_number(" 42 ") == 42
        assert isinstance(to_number("42"), int)
        assert to_number("1e3") == 1000.0

    def test_non_numeric(self) -> None:
        """Test non-numeric values raise EvaluationError."""
        with pytest.raises(EvaluationError) as exc_info:
            to_number("abc", reducer="sum", index=7)

        assert exc_info.value.index == 7
        assert "'sum'" in exc_info.value.message


class TestCreateReducer:
    """Tests for reducer lookup."""

    def test_builtin_names(self) -> None:
        """Test every built-in is registered."""
        assert builtin_reducers() == ["avg", "concat", "length", "max", "min", "sum"]

    def test_builtin_lookup(self) -> None:
        """Test built-in names resolve to their reducer."""
        assert isinstance(create_reducer("sum"), SumReducer)
        assert isinstance(create_reducer(" length "), LengthReducer)
        assert isinstance(create_reducer("avg"), AvgReducer)

    def test_expression_fallback(self) -> None:
        """Test other strings compile as accumulator expressions."""
        reducer = create_reducer("prev + curr")

        assert isinstance(reducer, ExpressionReducer)
        assert reducer.name is None

    def test_invalid_expression(self) -> None:
        """Test malformed accumulator expressions are rejected."""
        with pytest.raises(ExpressionError) as exc_info:
            create_reducer("prev +")

        assert exc_info.value.stage == "reduce"

    def test_create_reduce_none(self) -> None:
        """Test no spec means no stage."""
        assert create_reduce(None) is None


class TestBuiltinReducers:
    """Tests for built-in reducers."""

    @pytest.mark.asyncio
    async def test_length(self) -> None:
        """Test length counts lines."""
        assert await reduce_values("length", "a", "b", "c") == 3

    @pytest.mark.asyncio
    async def test_length_empty(self) -> None:
        """Test length of no lines is 0."""
        assert await reduce_values("length") == 0

    @pytest.mark.asyncio
    async def test_sum(self) -> None:
        """Test sum coerces and adds."""
        assert await reduce_values("sum", "1", "2", "3.5") == 6.5

    @pytest.mark.asyncio
    async def test_sum_empty(self) -> None:
        """Test sum of no lines is 0."""
        assert await reduce_values("sum") == 0

    @pytest.mark.asyncio
    async def test_avg(self) -> None:
        """Test avg divides the running sum by the count."""
        assert await reduce_values("avg", "1", "2", "3", "4") == 2.5

    @pytest.mark.asyncio
    async def test_avg_empty(self) -> None:
        """Test avg of no lines is None."""
        assert await reduce_values("avg") is None

    @pytest.mark.asyncio
    async def test_min_max(self) -> None:
        """Test min and max compare numerically, not lexically."""
        assert await reduce_values("min", "10", "9", "100") == 9
        assert await reduce_values("max", "10", "9", "100") == 100

    @pytest.mark.asyncio
    async def test_min_empty(self) -> None:
        """Test min of no lines is None."""
        assert await reduce_values("min") is None

    @pytest.mark.asyncio
    async def test_non_numeric_sum(self) -> None:
        """Test numeric reducers reject text."""
        with pytest.raises(EvaluationError):
            await reduce_values("sum", "1", "two")

    @pytest.mark.asyncio
    async def test_concat_strings(self) -> None:
        """Test concat joins strings in encounter order."""
        assert await reduce_values("concat", "c", "a", "b") == "cab"

    @pytest.mark.asyncio
    async def test_concat_lists(self) -> None:
        """Test concat splices lists in encounter order."""
        assert await reduce_values("concat", [1, 2], [3], 4) == [1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_concat_empty(self) -> None:
        """Test concat of no lines is an empty string."""
        assert await reduce_values("concat") == ""

    def test_concat_state_is_per_run(self) -> None:
        """Test each run starts from a fresh accumulator."""
        reducer = ConcatReducer()

        assert reducer.initial() is not reducer.initial()


class TestExpressionReducer:
    """Tests for custom accumulator expressions."""

    @pytest.mark.asyncio
    async def test_fold(self) -> None:
        """Test the expression folds values in order."""
        assert await reduce_values("prev + curr", "a", "b", "c") == "abc"

    @pytest.mark.asyncio
    async def test_first_value_seeds_without_evaluating(self) -> None:
        """Test a single value is returned without calling the expression."""
        assert await reduce_values("undefined_name", "only") == "only"

    @pytest.mark.asyncio
    async def test_index_available(self) -> None:
        """Test i is the index of the current line."""
        assert await reduce_values("prev + curr * i", 1, 2, 3) == 9

    @pytest.mark.asyncio
    async def test_empty(self) -> None:
        """Test no lines yields None."""
        assert await reduce_values("prev + curr") is None

    @pytest.mark.asyncio
    async def test_point_free_reference(self) -> None:
        """Test a bare library function receives prev and curr."""
        assert await reduce_values("R.add", 1, 2, 3) == 6

    @pytest.mark.asyncio
    async def test_undefined_name_on_second_line(self) -> None:
        """Test undefined names surface when first evaluated."""
        with pytest.raises(ExpressionError):
            await reduce_values("prev + missing", "a", "b")


class TestReduceStage:
    """Tests for the reduce stage."""

    @pytest.mark.asyncio
    async def test_emits_once_after_input_ends(self) -> None:
        """Test nothing is emitted until upstream is exhausted."""
        emitted_before_end = []
        upstream_done = False

        async def upstream():
            nonlocal upstream_done
            yield Line("a", 0)
            yield Line("b", 1)
            upstream_done = True

        stage = ReduceStage("length")
        async for line in stage.process(upstream()):
            emitted_before_end.append(upstream_done)

        assert emitted_before_end == [True]

    @pytest.mark.asyncio
    async def test_stage_is_reusable(self) -> None:
        """Test accumulator state does not leak between runs."""
        stage = ReduceStage("sum")
        first = [line async for line in stage.process(line_stream("1", "2"))]
        second = [line async for line in stage.process(line_stream("5"))]

        assert first[0].value == 3
        assert second[0].value == 5
