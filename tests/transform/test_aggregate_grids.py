from __future__ import annotations

import polars as pl
import pytest

from plotgram.core.errors import TransformError
from plotgram.transform.aggregate import arc_sums, bar_means, complete_grid, rect_grid


def test_complete_grid_fills_missing_combinations() -> None:
    frame = pl.DataFrame({"x": ["a", "b"], "c": ["p", "q"], "v": [1.0, 2.0]})

    out = complete_grid(frame, {"x": ["a", "b"], "c": ["p", "q"]}, "v")

    assert out.rows() == [("a", "p", 1.0), ("a", "q", 0.0), ("b", "p", 0.0), ("b", "q", 2.0)]


def test_bar_means_with_color_fill() -> None:
    df = pl.DataFrame(
        {"x": ["a", "a", "b", "a"], "c": ["p", "p", "p", "q"], "y": [1.0, 3.0, 5.0, 7.0]}
    )

    out = bar_means(df, "x", "y", color_field="c")

    assert out.rows() == [("a", "p", 2.0), ("a", "q", 7.0), ("b", "p", 5.0), ("b", "q", 0.0)]


def test_bar_means_normalized_per_category() -> None:
    df = pl.DataFrame({"x": ["a", "a", "b"], "c": ["p", "q", "p"], "y": [1.0, 3.0, 2.0]})
    out = bar_means(df, "x", "y", color_field="c", normalize=True)
    sums = out.group_by("x", maintain_order=True).agg(pl.col("y").sum())
    assert sums.get_column("y").to_list() == pytest.approx([1.0, 1.0])


def test_rect_grid_bins_continuous_axes_and_fills_cells() -> None:
    df = pl.DataFrame(
        {
            "x": [0.0, 1.0, 2.0, 3.0],
            "y": ["lo", "lo", "hi", "hi"],
            "w": [1.0, 2.0, 3.0, 4.0],
        }
    )

    out, specs = rect_grid(df, "x", "y", "w", x_discrete=False, y_discrete=True, x_bins=2)

    assert list(specs) == ["x"]
    assert out.height == 2 * 2
    assert sorted(out.get_column("x").unique().to_list()) == [0.75, 2.25]
    cell = out.filter((pl.col("x") == 0.75) & (pl.col("y") == "lo"))
    assert cell.get_column("w").to_list() == [3.0]
    assert out.filter(pl.col("y") == "hi").get_column("w").sum() == 7.0


def test_rect_grid_normalize_uses_global_total() -> None:
    df = pl.DataFrame({"x": ["a", "b"], "y": ["p", "p"], "w": [1.0, 3.0]})
    out, specs = rect_grid(
        df, "x", "y", "w", x_discrete=True, y_discrete=True, normalize=True
    )
    assert specs == {}
    assert out.get_column("w").to_list() == [0.25, 0.75]


def test_rect_grid_sums_an_axis_field_into_a_separate_cell_column() -> None:
    # Arrange
    df = pl.DataFrame({"x": [0.0, 1.0, 2.0, 3.0], "y": ["p", "p", "q", "q"]})

    # Act
    out, specs = rect_grid(
        df, "x", "y", "x", x_discrete=False, y_discrete=True, x_bins=2, value_name="x_cell"
    )

    # Assert
    assert list(specs) == ["x"]
    assert out.columns == ["x", "y", "x_cell"]
    cell = out.filter((pl.col("x") == 0.75) & (pl.col("y") == "p"))
    assert cell.get_column("x_cell").to_list() == [1.0]


def test_rect_grid_rejects_cell_column_named_like_an_axis() -> None:
    df = pl.DataFrame({"x": [0.0, 1.0], "y": ["p", "q"]})

    with pytest.raises(TransformError):
        rect_grid(df, "x", "y", "x", x_discrete=False, y_discrete=True)


def test_arc_sums_keep_first_appearance_order() -> None:
    df = pl.DataFrame({"k": ["z", "a", "z", "m"], "v": [1.0, 2.0, 3.0, 4.0]})
    assert arc_sums(df, "v", "k").rows() == [("z", 4.0), ("a", 2.0), ("m", 4.0)]
