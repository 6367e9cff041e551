from __future__ import annotations

import math

import pytest

from ordiview.numeric_input import coerce_float, parse_metadata_float


@pytest.mark.parametrize(
    "value, expected",
    [(2, 2.0), (1.5, 1.5), (" 1.0 ", 1.0), ("3/2", 1.5), ("2*pi", 2 * math.pi)],
)
def test_coerce_float_accepts_numbers_and_expressions(value, expected) -> None:
    assert coerce_float(value) == pytest.approx(expected)


@pytest.mark.parametrize("value", ["", "abc", "I", True, None, float("inf"), "nan"])
def test_coerce_float_rejects(value) -> None:
    with pytest.raises(ValueError):
        coerce_float(value)


@pytest.mark.parametrize(
    "value, expected",
    [("14.2", 14.2), (" -3 ", -3.0), ("1e3", 1000.0), ("20070314", 20070314.0)],
)
def test_parse_metadata_float_numbers(value, expected) -> None:
    assert parse_metadata_float(value) == expected


@pytest.mark.parametrize("value", ["StringValue", "false", "no", "pi", "E", "inf", "nan", None, True])
def test_parse_metadata_float_non_numbers(value) -> None:
    assert parse_metadata_float(value) is None
