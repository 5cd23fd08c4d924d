"""
Coordinate frames: cartesian with optional axis swap, and polar helpers for arcs.

Renderers work in *channel pixel space*: ``a`` is the pixel along the x channel's scale and
``b`` the pixel along the y channel's scale. ``CartesianFrame.compose`` turns ``(a, b)``
into canvas ``(px, py)``; when axes are swapped the x channel runs vertically, so the same
renderer code draws horizontal bars, sideways boxplots, and horizontal rules.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from plotgram.core.typing import Point

from .scales import Scale

__all__ = [
    "CartesianFrame",
    "polar_point",
    "sector_path",
]


@dataclass(frozen=True)
class CartesianFrame:
    """
    Shared coordinate frame for all layers of one render.

    Attributes:
        x (Scale): Scale of the x channel (its pixel range is vertical when swapped).
        y (Scale): Scale of the y channel.
        plot (tuple[float, float, float, float]): (left, top, right, bottom) plot bounds.
        swapped (bool): The x channel is drawn vertically.
    """

    x: Scale
    y: Scale
    plot: tuple[float, float, float, float]
    swapped: bool = False

    def compose(self, a: float, b: float) -> Point:
        return (b, a) if self.swapped else (a, b)

    def point(self, xv: Any, yv: Any) -> Point:
        return self.compose(self.x.map(xv), self.y.map(yv))

    def segment(self, a0: float, b0: float, a1: float, b1: float) -> tuple[Point, Point]:
        return self.compose(a0, b0), self.compose(a1, b1)

    def rect(self, a0: float, a1: float, b0: float, b1: float) -> tuple[float, float, float, float]:
        """Canvas ``(x, y, width, height)`` of the box spanning ``[a0, a1] × [b0, b1]``."""
        p0 = self.compose(a0, b0)
        p1 = self.compose(a1, b1)
        x0, x1 = sorted((p0[0], p1[0]))
        y0, y1 = sorted((p0[1], p1[1]))
        return (x0, y0, x1 - x0, y1 - y0)

    @property
    def horizontal(self) -> Scale:
        """Scale drawn along the bottom axis."""
        return self.y if self.swapped else self.x

    @property
    def vertical(self) -> Scale:
        """Scale drawn along the left axis."""
        return self.x if self.swapped else self.y

    @property
    def center(self) -> Point:
        left, top, right, bottom = self.plot
        return ((left + right) / 2.0, (top + bottom) / 2.0)

    @property
    def radius(self) -> float:
        left, top, right, bottom = self.plot
        return min(right - left, bottom - top) / 2.0


def polar_point(cx: float, cy: float, r: float, angle: float) -> Point:
    """
    Canvas point at ``angle`` radians, measured clockwise from 12 o'clock.

    Examples:
        >>> [round(v, 6) for v in polar_point(0.0, 0.0, 1.0, math.pi / 2)]
        [1.0, 0.0]
    """
    return (cx + r * math.sin(angle), cy - r * math.cos(angle))


def _f(v: float) -> str:
    return f"{v:.3f}".rstrip("0").rstrip(".")


def sector_path(
    cx: float, cy: float, r_outer: float, r_inner: float, a0: float, a1: float
) -> str:
    """
    SVG path data for a pie slice (``r_inner == 0``) or donut segment.

    A full turn is drawn as two half arcs, since an SVG arc with equal endpoints is empty.
    """
    span = a1 - a0
    if span >= 2.0 * math.pi - 1e-9:
        mid = a0 + math.pi
        return sector_path(cx, cy, r_outer, r_inner, a0, mid) + " " + sector_path(
            cx, cy, r_outer, r_inner, mid, a0 + 2.0 * math.pi
        )
    large = 1 if span > math.pi else 0
    ox0, oy0 = polar_point(cx, cy, r_outer, a0)
    ox1, oy1 = polar_point(cx, cy, r_outer, a1)
    parts = [
        f"M {_f(ox0)} {_f(oy0)}",
        f"A {_f(r_outer)} {_f(r_outer)} 0 {large} 1 {_f(ox1)} {_f(oy1)}",
    ]
    if r_inner > 0.0:
        ix1, iy1 = polar_point(cx, cy, r_inner, a1)
        ix0, iy0 = polar_point(cx, cy, r_inner, a0)
        parts.append(f"L {_f(ix1)} {_f(iy1)}")
        parts.append(f"A {_f(r_inner)} {_f(r_inner)} 0 {large} 0 {_f(ix0)} {_f(iy0)}")
    else:
        parts.append(f"L {_f(cx)} {_f(cy)}")
    parts.append("Z")
    return " ".join(parts)
