from __future__ import annotations

import numpy as np
import polars as pl
import pytest

from plotgram.transform.errorbar import errorbar_bounds
from plotgram.transform.summary import LOWER, MEDIAN, OUTLIERS, Q1, Q3, UPPER, five_number_summary


def test_boxplot_ordering_and_outlier_fences() -> None:
    # Arrange: skewed groups with a few extreme values
    rng = np.random.default_rng(11)
    values = np.concatenate([rng.exponential(2.0, 40), rng.normal(5.0, 1.0, 40), [40.0, -20.0]])
    df = pl.DataFrame({"g": ["a"] * 40 + ["b"] * 42, "v": values})

    # Act
    out = five_number_summary(df, "g", "v")

    # Assert
    assert out.get_column("g").to_list() == ["a", "b"]
    for row in out.iter_rows(named=True):
        assert row[LOWER] <= row[Q1] <= row[MEDIAN] <= row[Q3] <= row[UPPER]
        iqr = row[Q3] - row[Q1]
        for o in row[OUTLIERS]:
            assert o < row[Q1] - 1.5 * iqr or o > row[Q3] + 1.5 * iqr
    b = out.row(1, named=True)
    assert -20.0 in b[OUTLIERS] and 40.0 in b[OUTLIERS]


def test_boxplot_groups_by_color() -> None:
    df = pl.DataFrame(
        {"g": ["a", "a", "a", "a"], "c": ["p", "q", "p", "q"], "v": [1.0, 2.0, 3.0, 4.0]}
    )
    out = five_number_summary(df, "g", "v", color_field="c")
    assert out.select("g", "c").rows() == [("a", "p"), ("a", "q")]
    assert out.get_column(MEDIAN).to_list() == [2.0, 3.0]


def test_errorbar_mean_and_sample_std() -> None:
    # Arrange
    df = pl.DataFrame({"x": ["a", "a", "b"], "y": [10.0, 14.0, 5.0]})

    # Act
    out, names = errorbar_bounds(df, "x", "y")

    # Assert: single observation has zero spread
    a, b = out.rows(named=True)
    assert a[names.center] == 12.0
    assert a[names.lower] == pytest.approx(12.0 - 8.0**0.5)
    assert a[names.upper] == pytest.approx(12.0 + 8.0**0.5)
    assert (b[names.center], b[names.lower], b[names.upper]) == (5.0, 5.0, 5.0)


def test_errorbar_explicit_bounds_are_used_verbatim() -> None:
    df = pl.DataFrame({"x": ["a", "b"], "hi": [4.0, 1.0], "lo": [2.0, 3.0]})

    out, names = errorbar_bounds(df, "x", "hi", y2_field="lo")

    assert out.get_column(names.center).to_list() == [3.0, 2.0]
    assert out.get_column(names.lower).to_list() == [2.0, 1.0]
    assert out.get_column(names.upper).to_list() == [4.0, 3.0]
