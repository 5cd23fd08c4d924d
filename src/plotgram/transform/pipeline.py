"""
Mark-driven transform dispatch.

Responsibilities
- Drop rows with nulls in any encoded source field.
- Select the statistical transform for a mark kind (histogram counts, bar means, heatmap
  grid, pie sums, boxplot summary, error-bar bounds); every other mark passes rows through.
- Record what the renderer and compositor need besides the frame: bins used, continuous
  extents per channel, error-bar column names, and whether the frame is an ECDF.

Notes
- The source frame is only read; every transform returns a derived frame.
- An empty frame after null-dropping yields an empty ``Derived`` instead of raising, so the
  compositor can skip the layer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace

import polars as pl

from plotgram.core.errors import MissingRequiredChannel
from plotgram.core.grammar import Channel, MarkKind
from plotgram.core.schema import FieldEncoding, MarkStyle
from plotgram.encoding import ResolvedEncodings
from plotgram.io.table import drop_null_rows

from .aggregate import arc_sums, bar_means, histogram_counts, rect_grid
from .binning import BinSpec
from .errorbar import ErrorBounds, errorbar_bounds
from .summary import LOWER, OUTLIERS, UPPER, five_number_summary
from .window import ecdf_step_points

__all__ = ["Derived", "MARK_TRANSFORMS", "derive", "column_extent"]

logger = logging.getLogger(__name__)

Extent = tuple[float, float]
MarkTransform = Callable[[pl.DataFrame, ResolvedEncodings, MarkStyle], "Derived"]


@dataclass(frozen=True)
class Derived:
    """
    Output of the transform step for one layer.

    Attributes:
        mark (MarkKind): Mark the frame was derived for.
        frame (pl.DataFrame): Derived rows the renderer draws.
        encodings (ResolvedEncodings): Encodings pointing at columns of ``frame``.
        bins (dict[str, BinSpec]): Bins used per binned field.
        extents (dict[Channel, tuple[float, float]]): Continuous data range per channel.
        errorbar (ErrorBounds | None): Column names of error-bar bounds.
        ecdf (bool): Frame holds cumulative step points.
    """

    mark: MarkKind
    frame: pl.DataFrame
    encodings: ResolvedEncodings
    bins: dict[str, BinSpec] = field(default_factory=dict)
    extents: dict[Channel, Extent] = field(default_factory=dict)
    errorbar: ErrorBounds | None = None
    ecdf: bool = False

    @property
    def empty(self) -> bool:
        return self.frame.height == 0


def column_extent(frame: pl.DataFrame, columns: list[str]) -> Extent | None:
    """
    Min/max over the non-null values of several numeric (or list-of-numeric) columns.

    Examples:
        >>> import polars as pl
        >>> column_extent(pl.DataFrame({"a": [1.0, None], "b": [[0.5], []]}), ["a", "b"])
        (0.5, 1.0)
    """
    lo: float | None = None
    hi: float | None = None
    for name in columns:
        if name not in frame.columns:
            continue
        s = frame.get_column(name)
        if isinstance(s.dtype, pl.List):
            s = s.explode()
        s = s.drop_nulls()
        if not s.dtype.is_numeric():
            continue
        s = s.filter(s.is_finite())
        if s.len() == 0:
            continue
        smin, smax = float(s.min()), float(s.max())  # type: ignore[arg-type]
        lo = smin if lo is None else min(lo, smin)
        hi = smax if hi is None else max(hi, smax)
    if lo is None or hi is None:
        return None
    return (lo, hi)


def _bin_extent(spec: BinSpec) -> Extent:
    return (spec.start, spec.start + spec.count * spec.width)


def _discrete_field(enc: ResolvedEncodings, channel: Channel) -> str | None:
    return enc.field(channel) if enc.is_discrete(channel) else None


def _bound(enc: ResolvedEncodings, channel: Channel) -> FieldEncoding:
    e = enc.get(channel)
    if e is None:
        raise MissingRequiredChannel(
            f"{enc.mark.value} transform needs channel {channel.value!r}"
        )
    return e


# ============================================================================
# Per-mark transforms
# ============================================================================


def _identity(df: pl.DataFrame, enc: ResolvedEncodings, style: MarkStyle) -> Derived:
    return Derived(mark=enc.mark, frame=df, encodings=enc)


def _histogram(df: pl.DataFrame, enc: ResolvedEncodings, style: MarkStyle) -> Derived:
    x_enc, y_enc = _bound(enc, Channel.X), _bound(enc, Channel.Y)
    frame, spec = histogram_counts(
        df,
        x_enc.field,
        y_enc.field,
        color_field=_discrete_field(enc, Channel.COLOR),
        bins=x_enc.bins or style.bins,
        normalize=y_enc.normalize,
    )
    return Derived(
        mark=enc.mark,
        frame=frame,
        encodings=enc,
        bins={x_enc.field: spec},
        extents={Channel.X: _bin_extent(spec)},
    )


def _bar(df: pl.DataFrame, enc: ResolvedEncodings, style: MarkStyle) -> Derived:
    x_field, y_enc = _bound(enc, Channel.X).field, _bound(enc, Channel.Y)
    y_field = y_enc.field
    frame = bar_means(
        df,
        x_field,
        y_field,
        color_field=_discrete_field(enc, Channel.COLOR),
        normalize=y_enc.normalize,
    )
    return Derived(mark=enc.mark, frame=frame, encodings=enc)


def _rect(df: pl.DataFrame, enc: ResolvedEncodings, style: MarkStyle) -> Derived:
    x_enc, y_enc = _bound(enc, Channel.X), _bound(enc, Channel.Y)
    c_enc = _bound(enc, Channel.COLOR)
    value_name = c_enc.field
    if value_name in (x_enc.field, y_enc.field):
        value_name = f"{c_enc.field}_cell"
        enc = enc.with_field(Channel.COLOR, value_name)
    frame, specs = rect_grid(
        df,
        x_enc.field,
        y_enc.field,
        c_enc.field,
        x_discrete=enc.is_discrete(Channel.X),
        y_discrete=enc.is_discrete(Channel.Y),
        x_bins=x_enc.bins or style.bins,
        y_bins=y_enc.bins or style.bins,
        color_discrete=enc.is_discrete(Channel.COLOR),
        normalize=c_enc.normalize,
        value_name=value_name,
    )
    extents: dict[Channel, Extent] = {}
    for ch, e in ((Channel.X, x_enc), (Channel.Y, y_enc)):
        if e.field in specs:
            extents[ch] = _bin_extent(specs[e.field])
    return Derived(mark=enc.mark, frame=frame, encodings=enc, bins=specs, extents=extents)


def _arc(df: pl.DataFrame, enc: ResolvedEncodings, style: MarkStyle) -> Derived:
    theta_field = _bound(enc, Channel.THETA).field
    color_field = _bound(enc, Channel.COLOR).field
    return Derived(mark=enc.mark, frame=arc_sums(df, theta_field, color_field), encodings=enc)


def _boxplot(df: pl.DataFrame, enc: ResolvedEncodings, style: MarkStyle) -> Derived:
    x_field, y_field = _bound(enc, Channel.X).field, _bound(enc, Channel.Y).field
    frame = five_number_summary(
        df, x_field, y_field, color_field=_discrete_field(enc, Channel.COLOR)
    )
    extents: dict[Channel, Extent] = {}
    ext = column_extent(frame, [LOWER, UPPER, OUTLIERS])
    if ext is not None:
        extents[Channel.Y] = ext
    return Derived(mark=enc.mark, frame=frame, encodings=enc, extents=extents)


def _errorbar(df: pl.DataFrame, enc: ResolvedEncodings, style: MarkStyle) -> Derived:
    x_field, y_field = _bound(enc, Channel.X).field, _bound(enc, Channel.Y).field
    frame, names = errorbar_bounds(
        df,
        x_field,
        y_field,
        y2_field=enc.field(Channel.Y2),
        color_field=_discrete_field(enc, Channel.COLOR),
    )
    extents: dict[Channel, Extent] = {}
    ext = column_extent(frame, [names.lower, names.upper])
    if ext is not None:
        extents[Channel.Y] = ext
    return Derived(mark=enc.mark, frame=frame, encodings=enc, extents=extents, errorbar=names)


MARK_TRANSFORMS: Mapping[MarkKind, MarkTransform] = {
    MarkKind.HISTOGRAM: _histogram,
    MarkKind.BAR: _bar,
    MarkKind.RECT: _rect,
    MarkKind.ARC: _arc,
    MarkKind.BOXPLOT: _boxplot,
    MarkKind.ERRORBAR: _errorbar,
}


# ============================================================================
# Entry point
# ============================================================================


def _fill_extents(d: Derived) -> Derived:
    enc = d.encodings
    extents = dict(d.extents)
    for ch in (
        Channel.X,
        Channel.Y,
        Channel.COLOR,
        Channel.STROKE,
        Channel.SIZE,
        Channel.OPACITY,
        Channel.STROKE_WIDTH,
    ):
        if ch in extents or ch not in enc or enc.is_discrete(ch):
            continue
        cols = [enc.field(ch)]
        if ch is Channel.Y and Channel.Y2 in enc:
            cols.append(enc.field(Channel.Y2))
        ext = column_extent(d.frame, [c for c in cols if c])
        if ext is not None:
            extents[ch] = ext
    return replace(d, extents=extents)


def derive(
    df: pl.DataFrame,
    encodings: ResolvedEncodings,
    style: MarkStyle | None = None,
    *,
    ecdf: bool = False,
) -> Derived:
    """
    Run the transform for ``encodings.mark`` over ``df``.

    Args:
        df (pl.DataFrame): Normalized source rows.
        encodings (ResolvedEncodings): Validated encodings.
        style (MarkStyle | None): Merged mark style (bin-count fallback).
        ecdf (bool): The frame is a cumulative distribution; add start/end step points.

    Returns:
        Derived: The derived frame plus layout metadata; ``empty`` when no rows survive.
    """
    style = style or MarkStyle()
    work = drop_null_rows(df, encodings.source_fields())
    if work.height == 0:
        logger.debug("%s layer has no rows after dropping nulls", encodings.mark.value)
        return Derived(mark=encodings.mark, frame=work, encodings=encodings)

    d = MARK_TRANSFORMS.get(encodings.mark, _identity)(work, encodings, style)
    if ecdf:
        x_field = _bound(encodings, Channel.X).field
        y_field = _bound(encodings, Channel.Y).field
        frame = ecdf_step_points(
            d.frame, x_field, y_field, group_field=_discrete_field(encodings, Channel.COLOR)
        )
        d = replace(d, frame=frame, ecdf=True)
    return _fill_extents(d)
