"""
Error-bar aggregation.

Without a second bound, values are aggregated per group to ``mean ± std`` (sample standard
deviation; a single observation has zero spread). With a second bound the rows are used
verbatim: the lower/upper columns are the two bounds and the center is their midpoint.
"""

from __future__ import annotations

import polars as pl

from plotgram.core.errors import EmptySourceTable

__all__ = ["ErrorBounds", "errorbar_bounds"]


class ErrorBounds:
    """Names of the derived bound columns for a value field."""

    def __init__(self, y_field: str) -> None:
        self.center = y_field
        self.lower = f"{y_field}_min"
        self.upper = f"{y_field}_max"


def errorbar_bounds(
    df: pl.DataFrame,
    x_field: str,
    y_field: str,
    *,
    y2_field: str | None = None,
    color_field: str | None = None,
) -> tuple[pl.DataFrame, ErrorBounds]:
    """
    Compute center/lower/upper columns for error bars.

    Returns:
        tuple[pl.DataFrame, ErrorBounds]: Frame with the group keys, ``y_field`` (center),
        ``{y}_min`` and ``{y}_max``; plus the column names.

    Raises:
        EmptySourceTable: If ``df`` has no rows.

    Examples:
        >>> import polars as pl
        >>> df = pl.DataFrame({"x": ["a", "a", "b"], "y": [10.0, 14.0, 5.0]})
        >>> out, names = errorbar_bounds(df, "x", "y")
        >>> out.select("x", "y", names.lower, names.upper).rows()[1]
        ('b', 5.0, 5.0, 5.0)
    """
    if df.height == 0:
        raise EmptySourceTable("error bars need at least one row")
    names = ErrorBounds(y_field)
    keys = list(dict.fromkeys(k for k in (x_field, color_field) if k))
    y = pl.col(y_field)

    if y2_field is not None:
        y2 = pl.col(y2_field)
        out = df.select(
            *[pl.col(k) for k in keys],
            ((y + y2) / 2.0).alias(names.center),
            pl.min_horizontal(y, y2).alias(names.lower),
            pl.max_horizontal(y, y2).alias(names.upper),
        )
        return out, names

    std = y.std(ddof=1).fill_null(0.0).fill_nan(0.0)
    out = df.group_by(keys, maintain_order=True).agg(
        y.mean().alias(names.center),
        (y.mean() - std).alias(names.lower),
        (y.mean() + std).alias(names.upper),
    )
    return out, names
