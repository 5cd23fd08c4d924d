"""
Mark renderers and the per-mark behavior table.

Responsibilities
- One geometry generator per mark kind: ``(derived, frame, aesthetics, style) -> primitives``.
- ``BEHAVIORS`` maps each ``MarkKind`` to its behavior record: required channels (from the
  encoding rules), default style, transform, renderer, and axis policies. Dispatch is a
  lookup on the mark kind.

Geometry policies
- Bars and heatmap cells leave a 5% inset of their cell so neighbours never touch.
- Dodged bars split the inset cell evenly across color groups.
- Boxplots dodge within a category:
  ``box_w = min(width·band, span·band / (n + (n−1)·spacing))``
  and boxes are ``spacing·box_w`` apart.
- Arcs allocate ``2π`` in proportion to their magnitudes, clockwise from 12 o'clock;
  inner radius = outer radius × ``inner_radius_ratio``.
- Rules span the whole plot when only one position is bound and become bounded segments
  when a second bound is given.
- Lines derived from a cumulative distribution are drawn as steps (value held until the
  next observation).

Notes
- Renderers work in channel pixel space and compose through ``CartesianFrame``, so an axis
  swap needs no per-mark code.
- A renderer handed data missing a required channel raises ``MissingRequiredChannel``.
"""

from __future__ import annotations

import itertools
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import polars as pl

from plotgram.core.constants import BAR_INSET, DISCRETE_PADDING, RECT_DISCRETE_PADDING
from plotgram.core.errors import MissingRequiredChannel
from plotgram.core.grammar import Channel, Interpolation, MarkKind, ShapeKind
from plotgram.core.schema import MarkStyle
from plotgram.core.typing import Point
from plotgram.encoding import CHANNEL_RULES, ChannelRule
from plotgram.scale.coord import CartesianFrame, sector_path
from plotgram.scale.scales import DiscreteScale, LinearScale, Scale
from plotgram.transform.aggregate import ordered_unique
from plotgram.transform.pipeline import MARK_TRANSFORMS, Derived, MarkTransform
from plotgram.transform.summary import LOWER, MEDIAN, OUTLIERS, Q1, Q3, UPPER
from plotgram.visual.color import ColorInfo
from plotgram.visual.theme import DEFAULT_MARK_STYLES

from .primitives import Circle, Line, Path, Polygon, Polyline, Primitive, Rect, Text, marker

__all__ = [
    "Aesthetics",
    "ArcSlice",
    "MarkBehavior",
    "BEHAVIORS",
    "arc_slices",
    "box_layout",
    "render_mark",
]

_DEFAULT_FILL = "#1f77b4"


@dataclass(frozen=True)
class Aesthetics:
    """
    Resolved non-positional channel mappings for one layer.

    Attributes:
        color (ColorInfo | None): Fill color assignment.
        stroke (ColorInfo | None): Stroke color assignment.
        shapes (Mapping[str, ShapeKind] | None): Category → marker shape.
        size (LinearScale | None): Value → marker radius in px.
        opacity (LinearScale | None): Value → opacity.
        stroke_width (LinearScale | None): Value → stroke width in px.
    """

    color: ColorInfo | None = None
    stroke: ColorInfo | None = None
    shapes: Mapping[str, ShapeKind] | None = None
    size: LinearScale | None = None
    opacity: LinearScale | None = None
    stroke_width: LinearScale | None = None


# ============================================================================
# Shared helpers
# ============================================================================


def _field(d: Derived, ch: Channel) -> str:
    name = d.encodings.field(ch)
    if name is None or name not in d.frame.columns:
        raise MissingRequiredChannel(f"{d.mark.value} renderer needs channel {ch.value!r}")
    return name


def _require(d: Derived, extra: tuple[Channel, ...] = ()) -> None:
    for ch in (*CHANNEL_RULES[d.mark].required, *extra):
        _field(d, ch)


def _require_columns(d: Derived, names: tuple[str, ...]) -> None:
    missing = [n for n in names if n not in d.frame.columns]
    if missing:
        raise MissingRequiredChannel(
            f"{d.mark.value} renderer needs derived column(s) {missing}"
        )


def _rows(frame: pl.DataFrame) -> list[dict[str, Any]]:
    return list(frame.iter_rows(named=True))


def _fill(row: dict[str, Any], d: Derived, aes: Aesthetics, style: MarkStyle) -> str:
    f = d.encodings.field(Channel.COLOR)
    if f is not None and aes.color is not None and f in row:
        return aes.color.color_for(row[f])
    return style.get("color", _DEFAULT_FILL)


def _stroke(
    row: dict[str, Any], d: Derived, aes: Aesthetics, style: MarkStyle, default: str | None
) -> str | None:
    f = d.encodings.field(Channel.STROKE)
    if f is not None and aes.stroke is not None and f in row:
        return aes.stroke.color_for(row[f])
    return style.get("stroke", default)


def _stroke_width(row: dict[str, Any], d: Derived, aes: Aesthetics, style: MarkStyle) -> float:
    f = d.encodings.field(Channel.STROKE_WIDTH)
    if f is not None and aes.stroke_width is not None and f in row:
        return aes.stroke_width.map(row[f])
    return style.get("stroke_width", 1.0)


def _opacity(row: dict[str, Any], d: Derived, aes: Aesthetics, style: MarkStyle) -> float:
    f = d.encodings.field(Channel.OPACITY)
    if f is not None and aes.opacity is not None and f in row:
        return aes.opacity.map(row[f])
    return style.get("opacity", 1.0)


def _groups(frame: pl.DataFrame, field: str | None) -> list[tuple[Any, pl.DataFrame]]:
    if field is None or field not in frame.columns:
        return [(None, frame)]
    return [(key, frame.filter(pl.col(field) == key)) for key in ordered_unique(frame, field)]


def _group_field(d: Derived) -> str | None:
    f = d.encodings.field(Channel.COLOR)
    if f is not None and d.encodings.is_discrete(Channel.COLOR):
        return f
    return None


def _band(scale: Scale, values: list[Any]) -> float:
    """Pixel width of one category (discrete) or the smallest gap between values."""
    if isinstance(scale, DiscreteScale):
        return abs(scale.step)
    pixels = sorted({scale.map(v) for v in values})
    gaps = [b - a for a, b in itertools.pairwise(pixels) if b - a > 1e-9]
    if gaps:
        return min(gaps)
    r0, r1 = scale.pixel_range
    return abs(r1 - r0) * 0.1


def _baseline(scale: Scale) -> float:
    """Pixel of the value axis where bars and areas start: 0 when visible, else the minimum."""
    if isinstance(scale, DiscreteScale):
        return scale.pixel_range[0]
    lo, hi = scale.domain
    if isinstance(scale, LinearScale) and lo <= 0.0 <= hi:
        return scale.map(0.0)
    return scale.map(lo)


def _interpolate(points: list[Point], how: Interpolation) -> list[Point]:
    if how is Interpolation.LINEAR or len(points) < 2:
        return points
    out = [points[0]]
    for (a0, b0), (a1, b1) in itertools.pairwise(points):
        if how is Interpolation.STEP_AFTER:
            out += [(a1, b0), (a1, b1)]
        elif how is Interpolation.STEP_BEFORE:
            out += [(a0, b1), (a1, b1)]
        else:
            m = (a0 + a1) / 2.0
            out += [(m, b0), (m, b1), (a1, b1)]
    return out


def _sorted_by_x(frame: pl.DataFrame, field: str, scale: Scale) -> pl.DataFrame:
    if isinstance(scale, DiscreteScale):
        return frame
    return frame.sort(field, maintain_order=True)


def _label(v: Any) -> str:
    if isinstance(v, float):
        return f"{v:g}"
    return str(v)


# ============================================================================
# Renderers
# ============================================================================


def render_point(
    d: Derived, frame: CartesianFrame, aes: Aesthetics, style: MarkStyle
) -> list[Primitive]:
    _require(d)
    enc = d.encodings
    xf, yf = enc.field(Channel.X), enc.field(Channel.Y)
    shape_f, size_f = enc.field(Channel.SHAPE), enc.field(Channel.SIZE)
    default_shape = style.shape or ShapeKind.CIRCLE
    out: list[Primitive] = []
    for row in _rows(d.frame):
        px, py = frame.point(row[xf], row[yf])
        shape = default_shape
        if shape_f is not None and aes.shapes is not None:
            shape = aes.shapes.get(str(row[shape_f]), default_shape)
        r = style.get("size", 3.0)
        if size_f is not None and aes.size is not None:
            r = aes.size.map(row[size_f])
        out.append(
            marker(
                shape,
                px,
                py,
                r,
                fill=_fill(row, d, aes, style),
                stroke=_stroke(row, d, aes, style, None),
                stroke_width=_stroke_width(row, d, aes, style),
                opacity=_opacity(row, d, aes, style),
            )
        )
    return out


def render_line(
    d: Derived, frame: CartesianFrame, aes: Aesthetics, style: MarkStyle
) -> list[Primitive]:
    _require(d)
    xf, yf = _field(d, Channel.X), _field(d, Channel.Y)
    how = Interpolation.STEP_AFTER if d.ecdf else style.interpolation or Interpolation.LINEAR
    out: list[Primitive] = []
    for _, g in _groups(d.frame, _group_field(d)):
        g = _sorted_by_x(g, xf, frame.x)
        rows = _rows(g)
        if not rows:
            continue
        pts = _interpolate([(frame.x.map(r[xf]), frame.y.map(r[yf])) for r in rows], how)
        first = rows[0]
        color = _stroke(first, d, aes, style, None) or _fill(first, d, aes, style)
        out.append(
            Polyline(
                tuple(frame.compose(a, b) for a, b in pts),
                stroke=color,
                stroke_width=_stroke_width(first, d, aes, style),
                opacity=_opacity(first, d, aes, style),
            )
        )
    return out


def render_area(
    d: Derived, frame: CartesianFrame, aes: Aesthetics, style: MarkStyle
) -> list[Primitive]:
    _require(d)
    xf, yf = _field(d, Channel.X), _field(d, Channel.Y)
    y2f = d.encodings.field(Channel.Y2)
    how = style.interpolation or Interpolation.LINEAR
    base = _baseline(frame.y)
    out: list[Primitive] = []
    for _, g in _groups(d.frame, _group_field(d)):
        rows = _rows(_sorted_by_x(g, xf, frame.x))
        if not rows:
            continue
        upper = [(frame.x.map(r[xf]), frame.y.map(r[yf])) for r in rows]
        if y2f is not None:
            lower = [(frame.x.map(r[xf]), frame.y.map(r[y2f])) for r in rows]
        else:
            lower = [(a, base) for a, _ in upper]
        ring = _interpolate(upper, how) + list(reversed(_interpolate(lower, how)))
        fill = _fill(rows[0], d, aes, style)
        out.append(
            Polygon(
                tuple(frame.compose(a, b) for a, b in ring),
                fill=fill,
                stroke=_stroke(rows[0], d, aes, style, fill),
                stroke_width=_stroke_width(rows[0], d, aes, style),
                opacity=_opacity(rows[0], d, aes, style),
            )
        )
    return out


def render_bar(
    d: Derived, frame: CartesianFrame, aes: Aesthetics, style: MarkStyle
) -> list[Primitive]:
    _require(d)
    xf, yf = _field(d, Channel.X), _field(d, Channel.Y)
    rows = _rows(d.frame)
    width = _band(frame.x, [r[xf] for r in rows]) * (1.0 - 2.0 * BAR_INSET)
    gf = _group_field(d)
    groups = [str(k) for k in ordered_unique(d.frame, gf)] if gf else [""]
    sub = width / len(groups)
    base = _baseline(frame.y)
    out: list[Primitive] = []
    for row in rows:
        i = groups.index(str(row[gf])) if gf else 0
        a0 = frame.x.map(row[xf]) - width / 2.0 + i * sub
        x, y, w, h = frame.rect(a0, a0 + sub, base, frame.y.map(row[yf]))
        out.append(
            Rect(
                x,
                y,
                w,
                h,
                fill=_fill(row, d, aes, style),
                stroke=_stroke(row, d, aes, style, None),
                stroke_width=_stroke_width(row, d, aes, style),
                opacity=_opacity(row, d, aes, style),
            )
        )
    return out


def render_histogram(
    d: Derived, frame: CartesianFrame, aes: Aesthetics, style: MarkStyle
) -> list[Primitive]:
    _require(d, (Channel.Y,))
    xf, yf = _field(d, Channel.X), _field(d, Channel.Y)
    spec = d.bins.get(xf)
    base = _baseline(frame.y)
    out: list[Primitive] = []
    for row in _rows(d.frame):
        if not row[yf]:
            continue
        if spec is not None:
            a0 = frame.x.map(row[xf] - spec.width / 2.0)
            a1 = frame.x.map(row[xf] + spec.width / 2.0)
        else:
            c = frame.x.map(row[xf])
            a0, a1 = c - 1.0, c + 1.0
        inset = (a1 - a0) * BAR_INSET / 2.0
        x, y, w, h = frame.rect(a0 + inset, a1 - inset, base, frame.y.map(row[yf]))
        out.append(
            Rect(
                x,
                y,
                w,
                h,
                fill=_fill(row, d, aes, style),
                stroke=_stroke(row, d, aes, style, None),
                stroke_width=_stroke_width(row, d, aes, style),
                opacity=_opacity(row, d, aes, style),
            )
        )
    return out


def _cell(scale: Scale, value: Any, width: float | None) -> tuple[float, float]:
    if width is not None:
        a0, a1 = scale.map(value - width / 2.0), scale.map(value + width / 2.0)
    else:
        half = _band(scale, [value]) / 2.0
        c = scale.map(value)
        a0, a1 = c - half, c + half
    inset = (a1 - a0) * BAR_INSET / 2.0
    return a0 + inset, a1 - inset


def render_rect(
    d: Derived, frame: CartesianFrame, aes: Aesthetics, style: MarkStyle
) -> list[Primitive]:
    _require(d)
    if aes.color is None:
        raise MissingRequiredChannel("rect renderer needs a resolved color assignment")
    xf, yf = _field(d, Channel.X), _field(d, Channel.Y)
    x_spec, y_spec = d.bins.get(xf), d.bins.get(yf)
    out: list[Primitive] = []
    for row in _rows(d.frame):
        a0, a1 = _cell(frame.x, row[xf], x_spec.width if x_spec else None)
        b0, b1 = _cell(frame.y, row[yf], y_spec.width if y_spec else None)
        x, y, w, h = frame.rect(a0, a1, b0, b1)
        out.append(
            Rect(
                x,
                y,
                w,
                h,
                fill=_fill(row, d, aes, style),
                stroke=_stroke(row, d, aes, style, None),
                stroke_width=_stroke_width(row, d, aes, style),
                opacity=_opacity(row, d, aes, style),
            )
        )
    return out


@dataclass(frozen=True)
class ArcSlice:
    category: str
    start: float
    end: float
    r_outer: float
    r_inner: float

    @property
    def span(self) -> float:
        return self.end - self.start


def arc_slices(d: Derived, frame: CartesianFrame, style: MarkStyle) -> list[ArcSlice]:
    """
    Angular extents of every slice, in first-appearance order.

    Non-positive magnitudes get no slice; positive ones share ``2π`` by proportion.
    """
    theta_f, color_f = _field(d, Channel.THETA), _field(d, Channel.COLOR)
    rows = [r for r in _rows(d.frame) if r[theta_f] is not None and r[theta_f] > 0]
    total = math.fsum(r[theta_f] for r in rows)
    if total <= 0.0:
        return []
    r_outer = frame.radius
    r_inner = r_outer * style.get("inner_radius_ratio", 0.0)
    out: list[ArcSlice] = []
    start = 0.0
    for r in rows:
        end = start + 2.0 * math.pi * r[theta_f] / total
        out.append(ArcSlice(str(r[color_f]), start, end, r_outer, r_inner))
        start = end
    if out:
        last = out[-1]
        out[-1] = ArcSlice(last.category, last.start, 2.0 * math.pi, r_outer, r_inner)
    return out


def render_arc(
    d: Derived, frame: CartesianFrame, aes: Aesthetics, style: MarkStyle
) -> list[Primitive]:
    cx, cy = frame.center
    color_f = d.encodings.field(Channel.COLOR)
    rows = {str(r[color_f]): r for r in _rows(d.frame)}
    out: list[Primitive] = []
    for s in arc_slices(d, frame, style):
        row = rows[s.category]
        out.append(
            Path(
                sector_path(cx, cy, s.r_outer, s.r_inner, s.start, s.end),
                fill=_fill(row, d, aes, style),
                stroke=_stroke(row, d, aes, style, "white"),
                stroke_width=_stroke_width(row, d, aes, style),
                opacity=_opacity(row, d, aes, style),
            )
        )
    return out


def box_layout(n_groups: int, band: float, style: MarkStyle) -> tuple[float, float]:
    """
    Width of one box and the gap between dodged boxes, in pixels.

    Examples:
        >>> box_layout(1, 100.0, MarkStyle(box_width=0.5, box_spacing=0.2, box_span=0.7))
        (50.0, 10.0)
    """
    n = max(1, n_groups)
    width = style.get("box_width", 0.5)
    spacing = style.get("box_spacing", 0.2)
    span = style.get("box_span", 0.7)
    box_w = min(band * width, band * span / (n + (n - 1) * spacing))
    return box_w, spacing * box_w


def render_boxplot(
    d: Derived, frame: CartesianFrame, aes: Aesthetics, style: MarkStyle
) -> list[Primitive]:
    xf = _field(d, Channel.X)
    _require_columns(d, (LOWER, Q1, MEDIAN, Q3, UPPER, OUTLIERS))
    rows = _rows(d.frame)
    gf = _group_field(d)
    groups = [str(k) for k in ordered_unique(d.frame, gf)] if gf else [""]
    box_w, gap = box_layout(len(groups), _band(frame.x, [r[xf] for r in rows]), style)
    total = len(groups) * box_w + (len(groups) - 1) * gap
    stroke = style.get("stroke", "black")
    sw = style.get("stroke_width", 1.0)
    out: list[Primitive] = []
    for row in rows:
        i = groups.index(str(row[gf])) if gf else 0
        c = frame.x.map(row[xf]) - total / 2.0 + i * (box_w + gap) + box_w / 2.0
        half, cap = box_w / 2.0, box_w / 4.0
        b = {k: frame.y.map(row[k]) for k in (LOWER, Q1, MEDIAN, Q3, UPPER)}
        for a0, b0, a1, b1 in (
            (c, b[LOWER], c, b[Q1]),
            (c, b[Q3], c, b[UPPER]),
            (c - cap, b[LOWER], c + cap, b[LOWER]),
            (c - cap, b[UPPER], c + cap, b[UPPER]),
        ):
            (x1, y1), (x2, y2) = frame.segment(a0, b0, a1, b1)
            out.append(Line(x1, y1, x2, y2, stroke=stroke, stroke_width=sw))
        x, y, w, h = frame.rect(c - half, c + half, b[Q1], b[Q3])
        out.append(
            Rect(
                x,
                y,
                w,
                h,
                fill=_fill(row, d, aes, style),
                stroke=stroke,
                stroke_width=sw,
                opacity=_opacity(row, d, aes, style),
            )
        )
        (x1, y1), (x2, y2) = frame.segment(c - half, b[MEDIAN], c + half, b[MEDIAN])
        out.append(Line(x1, y1, x2, y2, stroke=stroke, stroke_width=sw * 1.5))
        for v in row[OUTLIERS] or []:
            px, py = frame.compose(c, frame.y.map(v))
            out.append(
                Circle(
                    px,
                    py,
                    style.get("outlier_size", 3.0),
                    fill=style.get("outlier_color", "black"),
                )
            )
    return out


def render_errorbar(
    d: Derived, frame: CartesianFrame, aes: Aesthetics, style: MarkStyle
) -> list[Primitive]:
    _require(d)
    names = d.errorbar
    if names is None:
        raise MissingRequiredChannel("errorbar renderer needs derived lower/upper bounds")
    xf = _field(d, Channel.X)
    half = style.get("cap_length", 6.0) / 2.0
    out: list[Primitive] = []
    for row in _rows(d.frame):
        a = frame.x.map(row[xf])
        lo, hi = frame.y.map(row[names.lower]), frame.y.map(row[names.upper])
        color = _fill(row, d, aes, style)
        sw = _stroke_width(row, d, aes, style)
        for a0, b0, a1, b1 in (
            (a, lo, a, hi),
            (a - half, lo, a + half, lo),
            (a - half, hi, a + half, hi),
        ):
            (x1, y1), (x2, y2) = frame.segment(a0, b0, a1, b1)
            out.append(Line(x1, y1, x2, y2, stroke=color, stroke_width=sw))
        if style.get("show_center", True):
            px, py = frame.compose(a, frame.y.map(row[names.center]))
            out.append(Circle(px, py, style.get("size", 3.0), fill=color))
    return out


def render_rule(
    d: Derived, frame: CartesianFrame, aes: Aesthetics, style: MarkStyle
) -> list[Primitive]:
    _require(d)
    enc = d.encodings
    xf, yf, y2f = enc.field(Channel.X), enc.field(Channel.Y), enc.field(Channel.Y2)
    a_lo, a_hi = frame.x.pixel_range
    b_lo, b_hi = frame.y.pixel_range
    out: list[Primitive] = []
    for row in _rows(d.frame):
        if xf is not None and yf is not None:
            a = frame.x.map(row[xf])
            b0 = frame.y.map(row[y2f]) if y2f is not None else b_lo
            seg = (a, b0, a, frame.y.map(row[yf]))
        elif xf is not None:
            a = frame.x.map(row[xf])
            seg = (a, b_lo, a, b_hi)
        else:
            b = frame.y.map(row[yf])
            seg = (a_lo, b, a_hi, b)
        (x1, y1), (x2, y2) = frame.segment(*seg)
        out.append(
            Line(
                x1,
                y1,
                x2,
                y2,
                stroke=_stroke(row, d, aes, style, None) or _fill(row, d, aes, style),
                stroke_width=_stroke_width(row, d, aes, style),
                opacity=_opacity(row, d, aes, style),
            )
        )
    return out


def render_text(
    d: Derived, frame: CartesianFrame, aes: Aesthetics, style: MarkStyle
) -> list[Primitive]:
    _require(d)
    enc = d.encodings
    xf, yf = enc.field(Channel.X), enc.field(Channel.Y)
    tf = enc.field(Channel.TEXT) or yf
    out: list[Primitive] = []
    for row in _rows(d.frame):
        px, py = frame.point(row[xf], row[yf])
        out.append(
            Text(
                px,
                py,
                _label(row[tf]),
                size=style.get("font_size", 12.0),
                fill=_fill(row, d, aes, style),
                anchor=style.get("text_anchor", "middle"),
                baseline="middle",
            )
        )
    return out


# ============================================================================
# Behavior table
# ============================================================================

Renderer = Callable[[Derived, CartesianFrame, Aesthetics, MarkStyle], list[Primitive]]


@dataclass(frozen=True)
class MarkBehavior:
    """
    Everything the compositor needs to know about one mark kind.

    Attributes:
        kind (MarkKind): Mark kind.
        render (Renderer): Geometry generator.
        discrete_padding (float): Category steps added on each side of a discrete axis.
        zero_baseline (bool): The value axis always includes zero.
        polar (bool): Drawn in polar coordinates (no axes).
    """

    kind: MarkKind
    render: Renderer
    discrete_padding: float = 0.5
    zero_baseline: bool = False
    polar: bool = False

    @property
    def rule(self) -> ChannelRule:
        return CHANNEL_RULES[self.kind]

    @property
    def defaults(self) -> MarkStyle:
        return DEFAULT_MARK_STYLES[self.kind]

    @property
    def transform(self) -> MarkTransform | None:
        return MARK_TRANSFORMS.get(self.kind)


BEHAVIORS: Mapping[MarkKind, MarkBehavior] = {
    MarkKind.POINT: MarkBehavior(MarkKind.POINT, render_point),
    MarkKind.LINE: MarkBehavior(MarkKind.LINE, render_line),
    MarkKind.BAR: MarkBehavior(
        MarkKind.BAR, render_bar, discrete_padding=DISCRETE_PADDING, zero_baseline=True
    ),
    MarkKind.AREA: MarkBehavior(MarkKind.AREA, render_area, zero_baseline=True),
    MarkKind.ARC: MarkBehavior(MarkKind.ARC, render_arc, polar=True),
    MarkKind.RECT: MarkBehavior(
        MarkKind.RECT, render_rect, discrete_padding=RECT_DISCRETE_PADDING
    ),
    MarkKind.BOXPLOT: MarkBehavior(
        MarkKind.BOXPLOT, render_boxplot, discrete_padding=DISCRETE_PADDING
    ),
    MarkKind.ERRORBAR: MarkBehavior(
        MarkKind.ERRORBAR, render_errorbar, discrete_padding=DISCRETE_PADDING
    ),
    MarkKind.HISTOGRAM: MarkBehavior(
        MarkKind.HISTOGRAM, render_histogram, discrete_padding=DISCRETE_PADDING, zero_baseline=True
    ),
    MarkKind.RULE: MarkBehavior(MarkKind.RULE, render_rule),
    MarkKind.TEXT: MarkBehavior(MarkKind.TEXT, render_text),
}


def render_mark(
    d: Derived, frame: CartesianFrame, aes: Aesthetics, style: MarkStyle
) -> list[Primitive]:
    """Dispatch to the renderer registered for ``d.mark``."""
    return BEHAVIORS[d.mark].render(d, frame, aes, style)
