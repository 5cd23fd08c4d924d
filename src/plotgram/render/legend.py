"""
Legends: discrete swatches (optionally with shapes), continuous colorbars, and size keys.

Legends are stacked vertically starting at the top-right of the plot area. ``legend_width``
estimates the horizontal space they need so the compositor can widen the right margin.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from plotgram.core.grammar import ShapeKind
from plotgram.scale.scales import LinearScale
from plotgram.visual.color import Colormap
from plotgram.visual.theme import Theme

from .primitives import Circle, Group, Primitive, Rect, Text, marker

__all__ = [
    "LegendEntry",
    "DiscreteLegend",
    "ColorbarLegend",
    "SizeLegend",
    "Legend",
    "legend_width",
    "render_legends",
]

_GAP = 6.0
_COLORBAR_HEIGHT = 120.0
_COLORBAR_STEPS = 32


@dataclass(frozen=True)
class LegendEntry:
    label: str
    color: str | None = None
    shape: ShapeKind | None = None


@dataclass(frozen=True)
class DiscreteLegend:
    title: str | None
    entries: tuple[LegendEntry, ...]


@dataclass(frozen=True)
class ColorbarLegend:
    title: str | None
    colormap: Colormap
    domain: tuple[float, float]


@dataclass(frozen=True)
class SizeLegend:
    title: str | None
    scale: LinearScale
    values: tuple[float, ...]


Legend = DiscreteLegend | ColorbarLegend | SizeLegend
_Placed = tuple[list[Primitive], float]


def _labels(legend: Legend) -> list[str]:
    if isinstance(legend, DiscreteLegend):
        return [e.label for e in legend.entries]
    if isinstance(legend, ColorbarLegend):
        return [t.label for t in LinearScale(legend.domain).ticks()]
    return [f"{v:g}" for v in legend.values]


def legend_width(legends: Sequence[Legend], theme: Theme) -> float:
    """Approximate pixel width of the legend column (0 when there are no legends)."""
    if not legends:
        return 0.0
    widest = 0.0
    for lg in legends:
        chars = max((len(s) for s in _labels(lg)), default=0)
        swatch = theme.legend_swatch
        if isinstance(lg, SizeLegend):
            swatch = 2.0 * max(lg.scale.pixel_range)
        widest = max(widest, swatch + _GAP + chars * theme.tick_size * 0.6)
        if lg.title:
            widest = max(widest, len(lg.title) * theme.tick_size * 0.65)
    return widest + 2.0 * _GAP


def _discrete(lg: DiscreteLegend, x: float, y: float, theme: Theme) -> _Placed:
    out: list[Primitive] = []
    s = theme.legend_swatch
    row = max(s, theme.tick_size) + 4.0
    for e in lg.entries:
        cy = y + row / 2.0
        fill = e.color or theme.text_color
        if e.shape is not None:
            out.append(marker(e.shape, x + s / 2.0, cy, s / 2.0, fill=fill))
        else:
            out.append(Rect(x, cy - s / 2.0, s, s, fill=fill))
        out.append(
            Text(
                x + s + _GAP, cy, e.label, size=theme.tick_size, fill=theme.text_color,
                anchor="start", baseline="middle",
            )
        )
        y += row
    return out, y


def _colorbar(lg: ColorbarLegend, x: float, y: float, theme: Theme) -> _Placed:
    out: list[Primitive] = []
    s = theme.legend_swatch
    h = _COLORBAR_HEIGHT / _COLORBAR_STEPS
    for i in range(_COLORBAR_STEPS):
        t = 1.0 - (i + 0.5) / _COLORBAR_STEPS
        out.append(Rect(x, y + i * h, s, h + 0.5, fill=lg.colormap.color(t)))
    scale = LinearScale(lg.domain, (y + _COLORBAR_HEIGHT, y))
    for tick in scale.ticks():
        out.append(
            Text(
                x + s + _GAP, tick.position, tick.label, size=theme.tick_size,
                fill=theme.text_color, anchor="start", baseline="middle",
            )
        )
    return out, y + _COLORBAR_HEIGHT + 4.0


def _sizes(lg: SizeLegend, x: float, y: float, theme: Theme) -> _Placed:
    out: list[Primitive] = []
    r_max = max(lg.scale.pixel_range)
    for v in lg.values:
        r = lg.scale.map(v)
        row = max(2.0 * r_max, theme.tick_size) + 4.0
        cy = y + row / 2.0
        out.append(Circle(x + r_max, cy, r, fill="none", stroke=theme.text_color, stroke_width=1.0))
        out.append(
            Text(
                x + 2.0 * r_max + _GAP, cy, f"{v:g}", size=theme.tick_size,
                fill=theme.text_color, anchor="start", baseline="middle",
            )
        )
        y += row
    return out, y


def render_legends(legends: Sequence[Legend], x: float, y: float, theme: Theme) -> Group:
    """Stack legends top to bottom starting at ``(x, y)``."""
    out: list[Primitive] = []
    for lg in legends:
        if lg.title:
            out.append(
                Text(
                    x, y + theme.tick_size, lg.title, size=theme.tick_size, fill=theme.text_color,
                    anchor="start", weight="bold",
                )
            )
            y += theme.tick_size + _GAP
        if isinstance(lg, DiscreteLegend):
            items, y = _discrete(lg, x, y, theme)
        elif isinstance(lg, ColorbarLegend):
            items, y = _colorbar(lg, x, y, theme)
        else:
            items, y = _sizes(lg, x, y, theme)
        out.extend(items)
        y += 2.0 * _GAP
    return Group(tuple(out), cls="legend")
