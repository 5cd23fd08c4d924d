"""
Grouped aggregation with zero-fill for histograms, bars, heatmaps, and pies.

Purpose
- Count or aggregate rows per group, keeping groups in first-appearance order.
- Complete every key combination absent from the data with zeros so grouped charts never
  drop empty bins (the set of bins is identical across color groups).

Notes
- Every function returns a new frame; the input is only read.
- ``complete_grid`` is the single place combinations are expanded; it orders output rows
  by the cartesian product of the key lists (first key varies slowest).
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Sequence
from typing import Any

import polars as pl

from plotgram.core.errors import EmptySourceTable, TransformError

from .binning import BinSpec, bin_index_expr, compute_bins

__all__ = [
    "ordered_unique",
    "complete_grid",
    "histogram_counts",
    "bar_means",
    "rect_grid",
    "arc_sums",
]

logger = logging.getLogger(__name__)

_BIN = "__plotgram_bin"
_ORDER = "__plotgram_order"
_CELL_VALUE = "__plotgram_cell"


def _require_rows(df: pl.DataFrame, what: str) -> None:
    if df.height == 0:
        raise EmptySourceTable(f"{what} needs at least one row")


def _keys(*fields: str | None) -> list[str]:
    return list(dict.fromkeys(f for f in fields if f))


def _safe_ratio(num: pl.Expr, den: pl.Expr) -> pl.Expr:
    return pl.when(den != 0).then(num / den).otherwise(0.0)


def ordered_unique(df: pl.DataFrame, field: str) -> list[Any]:
    """
    Distinct values of ``field`` in first-appearance order (never sorted).

    Examples:
        >>> import polars as pl
        >>> ordered_unique(pl.DataFrame({"c": ["b", "a", "b"]}), "c")
        ['b', 'a']
    """
    return df.get_column(field).unique(maintain_order=True).to_list()


def complete_grid(
    frame: pl.DataFrame,
    keys: dict[str, Sequence[Any]],
    value_col: str,
    fill: float = 0.0,
) -> pl.DataFrame:
    """
    Left-join ``frame`` onto every combination of ``keys`` and fill missing values.

    Args:
        frame (pl.DataFrame): Aggregated rows keyed by the columns named in ``keys``.
        keys (dict[str, Sequence]): Column → ordered list of values to expand.
        value_col (str): Column whose nulls become ``fill``.
        fill (float): Value for combinations absent from ``frame``.

    Returns:
        pl.DataFrame: One row per combination, in cartesian-product order.
    """
    names = list(keys)
    combos = list(itertools.product(*keys.values()))
    columns = list(zip(*combos)) if combos else [() for _ in names]
    grid = pl.DataFrame(
        {name: list(values) for name, values in zip(names, columns)},
        schema={name: frame.schema[name] for name in names},
    )
    out = (
        grid.with_row_index(_ORDER)
        .join(frame, on=names, how="left")
        .sort(_ORDER)
        .drop(_ORDER)
    )
    filled = out.height - frame.height
    if filled > 0:
        logger.debug("filled %d empty combinations of %s", filled, names)
    return out.with_columns(pl.col(value_col).fill_null(fill))


def histogram_counts(
    df: pl.DataFrame,
    x_field: str,
    count_field: str,
    *,
    color_field: str | None = None,
    bins: int | None = None,
    normalize: bool = False,
) -> tuple[pl.DataFrame, BinSpec]:
    """
    Bin ``x_field`` and count rows per bin (and per color group).

    Args:
        df (pl.DataFrame): Source rows.
        x_field (str): Continuous column to bin; replaced by bin midpoints in the output.
        count_field (str): Output count column.
        color_field (str | None): Optional grouping column.
        bins (int | None): Explicit bin count.
        normalize (bool): Divide counts by the color group's total (or the global total).

    Returns:
        tuple[pl.DataFrame, BinSpec]: Columns ``x_field``, [``color_field``], ``count_field``
        with one row per bin × color combination, and the bins used.

    Raises:
        EmptySourceTable: If ``df`` has no rows.

    Examples:
        >>> import polars as pl
        >>> out, spec = histogram_counts(pl.DataFrame({"v": [1.0, 1, 2, 2, 2, 3]}), "v", "n")
        >>> spec.count, out.get_column("n").sum()
        (5, 6.0)
    """
    _require_rows(df, "histogram")
    spec = compute_bins(df.get_column(x_field), bins)
    color = color_field if color_field and color_field != x_field else None
    by = _keys(_BIN, color)

    grouped = (
        df.with_columns(bin_index_expr(x_field, spec).alias(_BIN))
        .group_by(by, maintain_order=True)
        .agg(pl.len().cast(pl.Float64).alias(count_field))
    )
    if normalize:
        total = pl.col(count_field).sum()
        if color:
            total = total.over(color)
        grouped = grouped.with_columns(_safe_ratio(pl.col(count_field), total).alias(count_field))

    keys: dict[str, Sequence[Any]] = {_BIN: list(range(spec.count))}
    if color:
        keys[color] = ordered_unique(df, color)
    filled = complete_grid(grouped, keys, count_field)

    out = filled.with_columns(
        (spec.start + (pl.col(_BIN).cast(pl.Float64) + 0.5) * spec.width).alias(x_field)
    )
    return out.select(_keys(x_field, color, count_field)), spec


def bar_means(
    df: pl.DataFrame,
    x_field: str,
    y_field: str,
    *,
    color_field: str | None = None,
    normalize: bool = False,
) -> pl.DataFrame:
    """
    Mean of ``y_field`` per x category (and color group), zero-filling color combinations.

    With ``normalize`` each x category's values are divided by their sum.
    """
    _require_rows(df, "bar aggregation")
    color = color_field if color_field and color_field not in (x_field, y_field) else None
    by = _keys(x_field, color)
    grouped = df.group_by(by, maintain_order=True).agg(pl.col(y_field).mean().alias(y_field))
    if normalize:
        grouped = grouped.with_columns(
            _safe_ratio(pl.col(y_field), pl.col(y_field).sum().over(x_field)).alias(y_field)
        )
    if color:
        grouped = complete_grid(
            grouped,
            {x_field: ordered_unique(df, x_field), color: ordered_unique(df, color)},
            y_field,
        )
    return grouped


def rect_grid(
    df: pl.DataFrame,
    x_field: str,
    y_field: str,
    color_field: str,
    *,
    x_discrete: bool,
    y_discrete: bool,
    x_bins: int | None = None,
    y_bins: int | None = None,
    color_discrete: bool = False,
    normalize: bool = False,
    value_name: str | None = None,
) -> tuple[pl.DataFrame, dict[str, BinSpec]]:
    """
    Aggregate a heatmap: bin continuous axes, sum the color value per (x, y) cell.

    Args:
        df (pl.DataFrame): Source rows.
        x_field, y_field (str): Axis columns.
        color_field (str): Value column summed per cell (first category when discrete).
        x_discrete, y_discrete (bool): Keep the axis as categories instead of binning.
        x_bins, y_bins (int | None): Explicit bin counts.
        color_discrete (bool): Color holds categories; cells keep their first category.
        normalize (bool): Divide each cell by the global total.
        value_name (str | None): Column holding the cell value (defaults to ``color_field``).
            Needed when the color field is also an axis.

    Returns:
        tuple[pl.DataFrame, dict[str, BinSpec]]: Cells (binned axes carry midpoints) and the
        bins used per binned axis. When any axis is binned, every x × y cell is present.
    """
    _require_rows(df, "rect aggregation")
    value = value_name or color_field
    if value in (x_field, y_field):
        raise TransformError(f"rect cell column {value!r} collides with an axis column")
    work = df.with_columns(pl.col(color_field).alias(_CELL_VALUE))
    specs: dict[str, BinSpec] = {}
    for field, discrete, override in ((x_field, x_discrete, x_bins), (y_field, y_discrete, y_bins)):
        if discrete:
            continue
        spec = compute_bins(df.get_column(field), override)
        specs[field] = spec
        work = work.with_columns(bin_index_expr(field, spec).alias(field))

    cell = pl.col(_CELL_VALUE)
    agg = cell.first() if color_discrete else cell.sum()
    grouped = work.group_by([x_field, y_field], maintain_order=True).agg(agg.alias(_CELL_VALUE))
    if normalize and not color_discrete:
        grouped = grouped.with_columns(_safe_ratio(cell, cell.sum()).alias(_CELL_VALUE))

    if specs and not color_discrete:
        keys: dict[str, Sequence[Any]] = {}
        for field in (x_field, y_field):
            spec = specs.get(field)
            keys[field] = list(range(spec.count)) if spec else ordered_unique(grouped, field)
        grouped = complete_grid(grouped, keys, _CELL_VALUE)

    for field, spec in specs.items():
        grouped = grouped.with_columns(
            (spec.start + (pl.col(field).cast(pl.Float64) + 0.5) * spec.width).alias(field)
        )
    return grouped.rename({_CELL_VALUE: value}), specs


def arc_sums(df: pl.DataFrame, theta_field: str, color_field: str) -> pl.DataFrame:
    """
    Sum angular magnitudes per color category, in first-appearance order.

    Examples:
        >>> import polars as pl
        >>> arc_sums(pl.DataFrame({"k": ["a", "b", "a"], "v": [1.0, 2, 3]}), "v", "k").rows()
        [('a', 4.0), ('b', 2.0)]
    """
    _require_rows(df, "arc aggregation")
    return df.group_by(color_field, maintain_order=True).agg(pl.col(theta_field).sum())
