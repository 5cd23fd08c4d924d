"""
Equal-width binning for continuous channels.

Bin count is the caller's override when given, else ``clamp(round(sqrt(unique)), 5, 50)``;
a column with a single distinct value always gets one bin of width 1. Bins are
left-closed/right-open except the last, which also holds the maximum.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import polars as pl

from plotgram.core.constants import MAX_AUTO_BINS, MIN_AUTO_BINS
from plotgram.core.errors import EmptySourceTable

__all__ = [
    "BinSpec",
    "auto_bin_count",
    "compute_bins",
    "bin_index_expr",
    "bin_labels",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BinSpec:
    """
    Evenly spaced bins over ``[start, start + count * width]``.

    Attributes:
        start (float): Left edge of the first bin (the observed minimum).
        width (float): Bin width (> 0).
        count (int): Number of bins (>= 1).
    """

    start: float
    width: float
    count: int

    @property
    def edges(self) -> list[float]:
        return [self.start + i * self.width for i in range(self.count + 1)]

    @property
    def midpoints(self) -> list[float]:
        return [self.start + (i + 0.5) * self.width for i in range(self.count)]

    @property
    def labels(self) -> list[str]:
        return bin_labels(self.count)

    def midpoint(self, index: int) -> float:
        return self.start + (index + 0.5) * self.width


def bin_labels(n: int) -> list[str]:
    """
    Stable labels for ``n`` bins.

    Examples:
        >>> bin_labels(3)
        ['bin_0', 'bin_1', 'bin_2']
    """
    return [f"bin_{i}" for i in range(n)]


def auto_bin_count(unique_count: int, override: int | None = None) -> int:
    """
    Choose a bin count.

    Args:
        unique_count (int): Number of distinct non-null values.
        override (int | None): Explicit bin count from the channel or mark style.

    Returns:
        int: 1 for a single distinct value; otherwise ``override`` or the clamped square-root rule.

    Examples:
        >>> auto_bin_count(3)
        5
        >>> auto_bin_count(10_000)
        50
        >>> auto_bin_count(1, override=12)
        1
    """
    if unique_count <= 1:
        return 1
    if override is not None:
        return max(1, int(override))
    rounded = int(math.floor(math.sqrt(unique_count) + 0.5))
    return min(MAX_AUTO_BINS, max(MIN_AUTO_BINS, rounded))


def compute_bins(series: pl.Series, override: int | None = None) -> BinSpec:
    """
    Derive a BinSpec from a numeric series (nulls ignored).

    Raises:
        EmptySourceTable: If the series has no non-null values.
    """
    s = series.drop_nulls()
    if s.len() == 0:
        raise EmptySourceTable(f"cannot bin column {series.name!r}: no values")
    lo = float(s.min())  # type: ignore[arg-type]
    hi = float(s.max())  # type: ignore[arg-type]
    n = auto_bin_count(s.n_unique(), override)
    width = (hi - lo) / n if n > 1 else 1.0
    logger.debug("binning %r into %d bins of width %g", series.name, n, width)
    return BinSpec(start=lo, width=width, count=n)


def bin_index_expr(field: str, spec: BinSpec) -> pl.Expr:
    """Expression mapping ``field`` to its 0-based bin index (max value lands in the last bin)."""
    return (
        ((pl.col(field) - spec.start) / spec.width)
        .floor()
        .cast(pl.Int64)
        .clip(0, spec.count - 1)
    )
