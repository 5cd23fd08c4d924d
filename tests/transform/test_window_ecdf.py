from __future__ import annotations

import numpy as np
import polars as pl
import pytest

from plotgram.core.errors import MissingField, UnsupportedWindowOp
from plotgram.transform.window import (
    WindowTransform,
    apply_window,
    cume_dist,
    ecdf_step_points,
    row_number,
)


def _grouped_sample() -> pl.DataFrame:
    rng = np.random.default_rng(7)
    return pl.DataFrame(
        {
            "v": np.round(rng.normal(size=60), 1),
            "g": ["a"] * 25 + ["b"] * 35,
        }
    )


def test_cume_dist_ties_and_counts() -> None:
    df = pl.DataFrame({"v": [3.0, 1.0, 1.0, 2.0, None]})
    out = cume_dist(df, WindowTransform(field="v", as_="n"))
    assert out.rows() == [(1.0, 2.0), (2.0, 3.0), (3.0, 4.0)]


def test_ecdf_properties_per_group() -> None:
    # Arrange
    df = _grouped_sample()
    params = WindowTransform(field="v", groupby="g")
    lo, hi = float(df.get_column("v").min()), float(df.get_column("v").max())

    # Act
    steps = ecdf_step_points(cume_dist(df, params), "v", "cume_dist", "g", domain=(lo, hi))

    # Assert
    for g, total in (("a", 25.0), ("b", 35.0)):
        rows = steps.filter(pl.col("g") == g)
        xs = rows.get_column("v").to_list()
        ys = rows.get_column("cume_dist").to_list()
        assert xs[0] == lo and ys[0] == 0.0
        assert xs[-1] == hi and ys[-1] == total
        assert all(b >= a for a, b in zip(ys, ys[1:]))
        assert all(b >= a for a, b in zip(xs, xs[1:]))


def test_normalized_ecdf_reaches_one() -> None:
    df = _grouped_sample()
    out = cume_dist(df, WindowTransform(field="v", groupby="g", normalize=True))
    tops = out.group_by("g").agg(pl.col("cume_dist").max()).get_column("cume_dist")
    assert tops.to_list() == pytest.approx([1.0, 1.0])


def test_row_number_per_group() -> None:
    df = pl.DataFrame({"v": [5.0, 6.0, 7.0, 8.0], "g": ["a", "b", "a", "a"]})
    out = row_number(df, WindowTransform(field="v", op="row_number", groupby="g"))
    assert out.get_column("row_number").to_list() == [1.0, 1.0, 2.0, 3.0]


def test_unsupported_ops_and_missing_fields() -> None:
    df = pl.DataFrame({"v": [1.0]})
    with pytest.raises(UnsupportedWindowOp):
        apply_window(df, WindowTransform(field="v", op="rank"))
    with pytest.raises(MissingField):
        apply_window(df, WindowTransform(field="w"))
