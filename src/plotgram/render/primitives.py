"""
Drawable primitive tree.

Every renderer returns plain frozen dataclasses from this module; only the SVG backend
knows how to serialize them. Each primitive exposes ``tag`` and ``attrs()``; ``Group`` and
``Canvas`` carry children in paint order (first child is painted first, i.e. bottom-most).

Notes
- Coordinates are canvas pixels with the origin at the top-left corner.
- ``None`` attribute values are omitted from the serialized element.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from plotgram.core.grammar import ShapeKind
from plotgram.core.typing import Point

__all__ = [
    "Primitive",
    "Rect",
    "Circle",
    "Line",
    "Polyline",
    "Polygon",
    "Path",
    "Text",
    "Group",
    "Canvas",
    "marker",
    "walk",
]


def _num(v: float) -> str:
    return f"{v:.3f}".rstrip("0").rstrip(".") if math.isfinite(v) else "0"


def _points(points: Sequence[Point]) -> str:
    return " ".join(f"{_num(x)},{_num(y)}" for x, y in points)


def _paint(
    fill: str | None, stroke: str | None, stroke_width: float | None, opacity: float | None
) -> dict[str, Any]:
    return {
        "fill": fill,
        "stroke": stroke,
        "stroke-width": None if stroke_width is None else _num(stroke_width),
        "opacity": None if opacity is None or opacity >= 1.0 else _num(opacity),
    }


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float
    fill: str | None = None
    stroke: str | None = None
    stroke_width: float | None = None
    opacity: float | None = None

    tag = "rect"

    def attrs(self) -> dict[str, Any]:
        return {
            "x": _num(self.x),
            "y": _num(self.y),
            "width": _num(max(0.0, self.width)),
            "height": _num(max(0.0, self.height)),
            **_paint(self.fill, self.stroke, self.stroke_width, self.opacity),
        }


@dataclass(frozen=True)
class Circle:
    cx: float
    cy: float
    r: float
    fill: str | None = None
    stroke: str | None = None
    stroke_width: float | None = None
    opacity: float | None = None

    tag = "circle"

    def attrs(self) -> dict[str, Any]:
        return {
            "cx": _num(self.cx),
            "cy": _num(self.cy),
            "r": _num(self.r),
            **_paint(self.fill, self.stroke, self.stroke_width, self.opacity),
        }


@dataclass(frozen=True)
class Line:
    x1: float
    y1: float
    x2: float
    y2: float
    stroke: str = "black"
    stroke_width: float = 1.0
    opacity: float | None = None
    dash: str | None = None

    tag = "line"

    def attrs(self) -> dict[str, Any]:
        return {
            "x1": _num(self.x1),
            "y1": _num(self.y1),
            "x2": _num(self.x2),
            "y2": _num(self.y2),
            **_paint(None, self.stroke, self.stroke_width, self.opacity),
            "stroke-dasharray": self.dash,
        }


@dataclass(frozen=True)
class Polyline:
    points: tuple[Point, ...]
    stroke: str = "black"
    stroke_width: float = 1.0
    opacity: float | None = None

    tag = "polyline"

    def attrs(self) -> dict[str, Any]:
        return {
            "points": _points(self.points),
            **_paint("none", self.stroke, self.stroke_width, self.opacity),
        }


@dataclass(frozen=True)
class Polygon:
    points: tuple[Point, ...]
    fill: str | None = None
    stroke: str | None = None
    stroke_width: float | None = None
    opacity: float | None = None

    tag = "polygon"

    def attrs(self) -> dict[str, Any]:
        return {
            "points": _points(self.points),
            **_paint(self.fill, self.stroke, self.stroke_width, self.opacity),
        }


@dataclass(frozen=True)
class Path:
    d: str
    fill: str | None = None
    stroke: str | None = None
    stroke_width: float | None = None
    opacity: float | None = None

    tag = "path"

    def attrs(self) -> dict[str, Any]:
        return {"d": self.d, **_paint(self.fill, self.stroke, self.stroke_width, self.opacity)}


@dataclass(frozen=True)
class Text:
    x: float
    y: float
    text: str
    size: float = 12.0
    fill: str = "#333"
    anchor: str = "middle"
    baseline: str | None = None
    rotate: float = 0.0
    weight: str | None = None
    family: str | None = None

    tag = "text"

    def attrs(self) -> dict[str, Any]:
        transform = None
        if self.rotate:
            transform = f"rotate({_num(self.rotate)} {_num(self.x)} {_num(self.y)})"
        return {
            "x": _num(self.x),
            "y": _num(self.y),
            "font-size": _num(self.size),
            "font-family": self.family,
            "font-weight": self.weight,
            "fill": self.fill,
            "text-anchor": self.anchor,
            "dominant-baseline": self.baseline,
            "transform": transform,
        }


@dataclass(frozen=True)
class Group:
    children: tuple[Primitive, ...] = ()
    cls: str | None = None
    clip: tuple[float, float, float, float] | None = None

    tag = "g"

    def attrs(self) -> dict[str, Any]:
        return {"class": self.cls}


@dataclass(frozen=True)
class Canvas:
    """Root of the tree: canvas size, background, and top-level groups."""

    width: float
    height: float
    background: str | None = "white"
    font_family: str = "sans-serif"
    children: tuple[Primitive, ...] = field(default_factory=tuple)


Primitive = Rect | Circle | Line | Polyline | Polygon | Path | Text | Group


def walk(node: Canvas | Primitive) -> Iterator[Primitive]:
    """Depth-first iteration over every primitive under ``node`` in paint order."""
    for child in getattr(node, "children", ()):
        yield child
        yield from walk(child)


def marker(
    shape: ShapeKind,
    cx: float,
    cy: float,
    r: float,
    *,
    fill: str | None,
    stroke: str | None = None,
    stroke_width: float | None = None,
    opacity: float | None = None,
) -> Primitive:
    """
    Point marker of radius ``r`` centered on ``(cx, cy)``.

    Examples:
        >>> marker(ShapeKind.CIRCLE, 1.0, 2.0, 3.0, fill="red").tag
        'circle'
    """
    paint = {"fill": fill, "stroke": stroke, "stroke_width": stroke_width, "opacity": opacity}
    if shape is ShapeKind.CIRCLE:
        return Circle(cx, cy, r, **paint)
    if shape is ShapeKind.SQUARE:
        return Rect(cx - r, cy - r, 2 * r, 2 * r, **paint)
    if shape is ShapeKind.TRIANGLE:
        h = r * math.sqrt(3.0) / 2.0
        pts = ((cx, cy - r), (cx + h, cy + r / 2.0), (cx - h, cy + r / 2.0))
        return Polygon(pts, **paint)
    if shape is ShapeKind.DIAMOND:
        return Polygon(((cx, cy - r), (cx + r, cy), (cx, cy + r), (cx - r, cy)), **paint)
    w = r / 3.0
    pts = (
        (cx - w, cy - r), (cx + w, cy - r), (cx + w, cy - w), (cx + r, cy - w),
        (cx + r, cy + w), (cx + w, cy + w), (cx + w, cy + r), (cx - w, cy + r),
        (cx - w, cy + w), (cx - r, cy + w), (cx - r, cy - w), (cx - w, cy - w),
    )
    return Polygon(pts, **paint)
