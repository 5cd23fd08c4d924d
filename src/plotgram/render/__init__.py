"""Mark geometry, axes, legends, and the output backends that serialize them."""

from .backends import BACKENDS, PngBackend, SvgBackend, VegaLiteBackend, backend_for
from .marks import BEHAVIORS, Aesthetics, MarkBehavior, render_mark
from .primitives import Canvas, Circle, Group, Line, Path, Polygon, Polyline, Rect, Text, walk

__all__ = [
    "BACKENDS",
    "BEHAVIORS",
    "Aesthetics",
    "Canvas",
    "Circle",
    "Group",
    "Line",
    "MarkBehavior",
    "Path",
    "PngBackend",
    "Polygon",
    "Polyline",
    "Rect",
    "SvgBackend",
    "Text",
    "VegaLiteBackend",
    "backend_for",
    "render_mark",
    "walk",
]
