"""
Five-number summaries for boxplots.

Per group × color combination: first quartile, median, and third quartile by
linear-interpolation quantiles; values outside ``[Q1 − 1.5·IQR, Q3 + 1.5·IQR]`` are flagged
as outliers and excluded from the whisker extents. Whisker ends are the most extreme
non-outlier values, never inside the box.
"""

from __future__ import annotations

import logging

import polars as pl

from plotgram.core.constants import IQR_FENCE
from plotgram.core.errors import EmptySourceTable

__all__ = [
    "LOWER",
    "Q1",
    "MEDIAN",
    "Q3",
    "UPPER",
    "OUTLIERS",
    "five_number_summary",
]

logger = logging.getLogger(__name__)

LOWER = "lower"
Q1 = "q1"
MEDIAN = "median"
Q3 = "q3"
UPPER = "upper"
OUTLIERS = "outliers"

_LO_FENCE = "__plotgram_lo_fence"
_HI_FENCE = "__plotgram_hi_fence"
_IS_OUT = "__plotgram_is_outlier"
_ORDER = "__plotgram_order"


def five_number_summary(
    df: pl.DataFrame,
    x_field: str,
    y_field: str,
    *,
    color_field: str | None = None,
    fence: float = IQR_FENCE,
) -> pl.DataFrame:
    """
    Summarize ``y_field`` per x category (and color group).

    Args:
        df (pl.DataFrame): Source rows.
        x_field (str): Category column.
        y_field (str): Value column.
        color_field (str | None): Optional dodge/grouping column.
        fence (float): IQR multiplier for outlier fences.

    Returns:
        pl.DataFrame: Group keys in first-appearance order plus ``lower``, ``q1``, ``median``,
        ``q3``, ``upper`` (Float64) and ``outliers`` (List[Float64]).

    Raises:
        EmptySourceTable: If ``df`` has no rows.

    Examples:
        >>> import polars as pl
        >>> df = pl.DataFrame({"g": ["a"] * 6, "v": [1.0, 2.0, 3.0, 4.0, 5.0, 50.0]})
        >>> row = five_number_summary(df, "g", "v").row(0, named=True)
        >>> row["median"], row["upper"], row["outliers"]
        (3.5, 5.0, [50.0])
    """
    if df.height == 0:
        raise EmptySourceTable("boxplot summary needs at least one row")
    keys = list(dict.fromkeys(k for k in (x_field, color_field) if k))
    y = pl.col(y_field)

    stats = (
        df.group_by(keys, maintain_order=True)
        .agg(
            y.quantile(0.25, interpolation="linear").alias(Q1),
            y.quantile(0.5, interpolation="linear").alias(MEDIAN),
            y.quantile(0.75, interpolation="linear").alias(Q3),
        )
        .with_row_index(_ORDER)
    )
    iqr = pl.col(Q3) - pl.col(Q1)
    stats = stats.with_columns(
        (pl.col(Q1) - fence * iqr).alias(_LO_FENCE),
        (pl.col(Q3) + fence * iqr).alias(_HI_FENCE),
    )

    flagged = (
        df.select(keys + [y_field])
        .join(stats.select(keys + [_LO_FENCE, _HI_FENCE]), on=keys, how="left")
        .with_columns(((y < pl.col(_LO_FENCE)) | (y > pl.col(_HI_FENCE))).alias(_IS_OUT))
    )
    inner = flagged.group_by(keys).agg(
        y.filter(~pl.col(_IS_OUT)).min().alias(LOWER),
        y.filter(~pl.col(_IS_OUT)).max().alias(UPPER),
        y.filter(pl.col(_IS_OUT)).sort().alias(OUTLIERS),
    )

    out = (
        stats.join(inner, on=keys, how="left")
        .sort(_ORDER)
        .with_columns(
            pl.min_horizontal(pl.col(LOWER), pl.col(Q1)).alias(LOWER),
            pl.max_horizontal(pl.col(UPPER), pl.col(Q3)).alias(UPPER),
        )
    )
    n_out = int(out.get_column(OUTLIERS).list.len().sum())
    logger.debug("boxplot summary: %d groups, %d outliers", out.height, n_out)
    return out.select(keys + [LOWER, Q1, MEDIAN, Q3, UPPER, OUTLIERS])
