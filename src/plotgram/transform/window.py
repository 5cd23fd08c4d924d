"""
Window statistics: empirical cumulative distribution and row numbering.

Cumulative distribution (``cume_dist``)
- Within each group, every value gets the "max rank among ties", so tied values share one
  cumulative count.
- Rows are ordered by group (first appearance) and value, then deduplicated to unique
  ``(group, value, cumulative)`` triples.
- ``normalize=True`` divides by the group size, yielding probabilities in ``[0, 1]``.

Row numbering (``row_number``)
- 1-based position within each group in table order; all input columns are kept.

Every other window op raises UnsupportedWindowOp.
"""

from __future__ import annotations

import logging

import polars as pl
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from plotgram.core.errors import EmptySourceTable, MissingField, UnsupportedWindowOp
from plotgram.core.grammar import WindowOp, window_op_from_value

from .aggregate import ordered_unique

__all__ = [
    "WindowTransform",
    "apply_window",
    "cume_dist",
    "row_number",
    "ecdf_step_points",
]

logger = logging.getLogger(__name__)

_GROUP = "__plotgram_group"
_ORDER = "__plotgram_group_order"
_CUM = "__plotgram_cum"


class WindowTransform(BaseModel):
    """
    Parameters for a window transform.

    Attributes:
        field (str): Column the window op reads.
        op (WindowOp): Operation; ``cume_dist`` and ``row_number`` are implemented.
        as_ (str | None): Output column name (defaults to the op name).
        groupby (str | None): Column whose groups are processed independently.
        normalize (bool): For ``cume_dist``, divide by the group size.

    Examples:
        >>> WindowTransform(field="v", op="ecdf").as_
        'cume_dist'
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    field: str = Field(..., min_length=1)
    op: WindowOp = WindowOp.CUME_DIST
    as_: str | None = None
    groupby: str | None = None
    normalize: bool = False

    @field_validator("op", mode="before")
    @classmethod
    def _normalize_op(cls, v: object) -> WindowOp:
        return window_op_from_value(v)  # type: ignore[arg-type]

    @model_validator(mode="before")
    @classmethod
    def _default_output_name(cls, data: object) -> object:
        if isinstance(data, dict) and not data.get("as_"):
            op = window_op_from_value(data.get("op", WindowOp.CUME_DIST))
            data = {**data, "as_": op.value}
        return data

    @property
    def output(self) -> str:
        return self.as_ or self.op.value


def _check_fields(df: pl.DataFrame, params: WindowTransform) -> None:
    for name in (params.field, params.groupby):
        if name is not None and name not in df.columns:
            raise MissingField(f"window transform field {name!r} not found in table")


def cume_dist(df: pl.DataFrame, params: WindowTransform) -> pl.DataFrame:
    """
    Cumulative distribution per group.

    Returns:
        pl.DataFrame: Columns ``field``, [``groupby``], ``as_``; sorted by group order then value.

    Raises:
        EmptySourceTable: If no non-null values remain.

    Examples:
        >>> import polars as pl
        >>> out = cume_dist(pl.DataFrame({"v": [3.0, 1.0, 1.0, 2.0]}), WindowTransform(field="v"))
        >>> out.rows()
        [(1.0, 2.0), (2.0, 3.0), (3.0, 4.0)]
    """
    _check_fields(df, params)
    cols = [params.field] + ([params.groupby] if params.groupby else [])
    work = df.select(cols).drop_nulls()
    if work.height == 0:
        raise EmptySourceTable(f"cume_dist on {params.field!r} needs at least one value")
    group = params.groupby or _GROUP
    if params.groupby is None:
        work = work.with_columns(pl.lit("all").alias(_GROUP))

    order = work.select(group).unique(maintain_order=True).with_row_index(_ORDER)
    ranked = (
        work.with_columns(
            pl.col(params.field).rank("max").over(group).cast(pl.Float64).alias(_CUM)
        )
        .join(order, on=group, how="left")
        .sort([_ORDER, params.field], maintain_order=True)
        .unique(subset=[group, _CUM], keep="first", maintain_order=True)
        .drop(_ORDER)
    )
    cum = pl.col(_CUM)
    if params.normalize:
        cum = cum / pl.col(_CUM).max().over(group)
    out = ranked.with_columns(cum.alias(params.output))
    return out.select(cols + [params.output])


def row_number(df: pl.DataFrame, params: WindowTransform) -> pl.DataFrame:
    """1-based row number per group (table order), appended to all input columns."""
    _check_fields(df, params)
    expr = pl.int_range(1, pl.len() + 1, dtype=pl.Int64)
    if params.groupby:
        expr = expr.over(params.groupby)
    return df.with_columns(expr.cast(pl.Float64).alias(params.output))


def apply_window(df: pl.DataFrame, params: WindowTransform) -> pl.DataFrame:
    """
    Dispatch a window transform.

    Raises:
        UnsupportedWindowOp: For ops other than ``cume_dist`` and ``row_number``.
    """
    if params.op is WindowOp.CUME_DIST:
        return cume_dist(df, params)
    if params.op is WindowOp.ROW_NUMBER:
        return row_number(df, params)
    raise UnsupportedWindowOp(f"window operation {params.op.value!r} is not implemented")


def ecdf_step_points(
    frame: pl.DataFrame,
    x_field: str,
    y_field: str,
    group_field: str | None = None,
    domain: tuple[float, float] | None = None,
) -> pl.DataFrame:
    """
    Add explicit start and end points so every ECDF curve spans the full domain.

    For each group, ``(domain_min, 0)`` is prepended and ``(domain_max, group_max)`` appended.

    Args:
        frame (pl.DataFrame): Output of ``cume_dist``.
        x_field, y_field (str): Value and cumulative columns.
        group_field (str | None): Group column.
        domain (tuple[float, float] | None): Global x range; defaults to the frame's own.

    Examples:
        >>> import polars as pl
        >>> f = pl.DataFrame({"v": [1.0, 2.0], "c": [1.0, 2.0]})
        >>> ecdf_step_points(f, "v", "c", domain=(0.0, 5.0)).rows()
        [(0.0, 0.0), (1.0, 1.0), (2.0, 2.0), (5.0, 2.0)]
    """
    if frame.height == 0:
        return frame
    if domain is None:
        xs = frame.get_column(x_field)
        domain = (float(xs.min()), float(xs.max()))  # type: ignore[arg-type]
    lo, hi = domain
    keys = ordered_unique(frame, group_field) if group_field else [None]
    parts: list[pl.DataFrame] = []
    for key in keys:
        rows = frame if group_field is None else frame.filter(pl.col(group_field) == key)
        rows = rows.select([x_field, y_field] + ([group_field] if group_field else []))
        top = float(rows.get_column(y_field).max())  # type: ignore[arg-type]
        extra = {x_field: [lo], y_field: [0.0]}
        tail = {x_field: [hi], y_field: [top]}
        if group_field:
            extra[group_field] = [key]
            tail[group_field] = [key]
        parts.append(pl.DataFrame(extra, schema=rows.schema))
        parts.append(rows)
        parts.append(pl.DataFrame(tail, schema=rows.schema))
    return pl.concat(parts, how="vertical")
