"""
Lightweight typing aliases used across plotgram.

Provides minimal aliases to improve readability and static checks. This module contains
no runtime logic and is zero-IO.

Examples:
    >>> from plotgram.core.typing import Domain, Point
    >>> def width(d: Domain) -> float:
    ...     return d[1] - d[0]
    >>> width((0.0, 20.0))
    20.0
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "Domain",
    "Categories",
    "Point",
    "Rgb",
    "JsonDict",
    "MimeBlock",
]

# Continuous domain as (min, max).
Domain = tuple[float, float]
# Discrete domain in first-appearance order.
Categories = list[str]
# Pixel coordinate.
Point = tuple[float, float]
Rgb = tuple[int, int, int]

JsonDict = dict[str, Any]
# (mime type, payload) handed to a display sink.
MimeBlock = tuple[str, str | bytes]
