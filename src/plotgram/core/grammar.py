"""
Canonical plotgram grammar and helpers.

Defines channels, mark kinds, scale kinds, statistical options (kernels, bandwidth rules,
window ops), interpolation kinds, point shapes, and output formats. Includes zero-IO
validators/helpers used across the stack.

Responsibilities
- Define enums with lower_snake serialized values.
- Provide normalization helpers that turn free-form user strings into enum members.
- Centralize the aliases accepted at the public surface (e.g., "hist" for histogram).

Design principles
-----------------
1) One naming standard:
   - Enum classes: PascalCase
   - Enum member names: UPPER_SNAKE (Python constants)
   - Enum serialized values (JSON documents, style keys): lower_snake
   - Fields & columns elsewhere: whatever the caller's table uses (never renamed)

2) Channel identifiers are short and match the declarative JSON vocabulary where one
   exists (x, y, y2, theta, color, ...). The only multi-word channel is stroke_width.

Downstream usage
----------------
- plotgram.encoding resolves user bindings into Channel keys.
- plotgram.render.marks keys its behavior table by MarkKind.
- plotgram.transform.density consumes KernelKind and BandwidthRule.
- plotgram.io.save dispatches on OutputFormat.

Examples
--------
>>> from plotgram.core.grammar import mark_kind_from_value, channel_from_value, MarkKind, Channel
>>> mark_kind_from_value("hist") == MarkKind.HISTOGRAM
True
>>> channel_from_value("strokeWidth") == Channel.STROKE_WIDTH
True
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from enum import Enum
from typing import Final

__all__ = [
    "Channel",
    "MarkKind",
    "ScaleKind",
    "KernelKind",
    "BandwidthRule",
    "WindowOp",
    "Interpolation",
    "ShapeKind",
    "OutputFormat",
    # helpers/validators
    "is_lower_snake",
    "channel_from_value",
    "mark_kind_from_value",
    "scale_kind_from_value",
    "kernel_from_value",
    "bandwidth_rule_from_value",
    "window_op_from_value",
    "interpolation_from_value",
    "shape_from_value",
    "output_format_from_suffix",
    "ensure_all_enum_values_lower_snake",
]


# ============================================================================
# CHANNELS AND MARKS
# ============================================================================


class Channel(Enum):
    """
    Visual channels a mark can bind a field to.

    Notes:
      - X, Y: primary positions. Y2: second position (rule/errorbar bounds, area bands).
      - THETA: angular magnitude, arc marks only.
      - SHAPE and SIZE are point-only channels.
    """

    X = "x"
    Y = "y"
    Y2 = "y2"
    THETA = "theta"
    COLOR = "color"
    SHAPE = "shape"
    SIZE = "size"
    OPACITY = "opacity"
    TEXT = "text"
    STROKE = "stroke"
    STROKE_WIDTH = "stroke_width"


class MarkKind(Enum):
    """Geometric primitive drawn for a layer."""

    POINT = "point"
    LINE = "line"
    BAR = "bar"
    AREA = "area"
    ARC = "arc"
    RECT = "rect"
    BOXPLOT = "boxplot"
    ERRORBAR = "errorbar"
    HISTOGRAM = "histogram"
    RULE = "rule"
    TEXT = "text"


class ScaleKind(Enum):
    """Mapping kind from domain values to pixels."""

    LINEAR = "linear"
    LOG = "log"
    DISCRETE = "discrete"


# ============================================================================
# STATISTICS
# ============================================================================


class KernelKind(Enum):
    """Kernel functions for density estimation."""

    NORMAL = "normal"
    EPANECHNIKOV = "epanechnikov"
    UNIFORM = "uniform"


class BandwidthRule(Enum):
    """Rule-of-thumb bandwidth selectors. A fixed float bandwidth bypasses these."""

    SCOTT = "scott"
    SILVERMAN = "silverman"


class WindowOp(Enum):
    """Window operations supported by the window transform."""

    CUME_DIST = "cume_dist"
    ROW_NUMBER = "row_number"
    RANK = "rank"
    DENSE_RANK = "dense_rank"
    PERCENT_RANK = "percent_rank"
    LAG = "lag"
    LEAD = "lead"


# ============================================================================
# STYLE VOCABULARY
# ============================================================================


class Interpolation(Enum):
    """Line/area interpolation between consecutive points."""

    LINEAR = "linear"
    STEP = "step"
    STEP_BEFORE = "step_before"
    STEP_AFTER = "step_after"


class ShapeKind(Enum):
    """Point marker shapes, in the order they are assigned to categories."""

    CIRCLE = "circle"
    SQUARE = "square"
    TRIANGLE = "triangle"
    DIAMOND = "diamond"
    CROSS = "cross"


class OutputFormat(Enum):
    """File formats the export layer can produce."""

    SVG = "svg"
    PNG = "png"
    JSON = "json"


# ============================================================================
# Helpers & Validators (zero I/O)
# ============================================================================

_LOWER_SNAKE_RE: Final[re.Pattern[str]] = re.compile(r"^[a-z0-9]+(?:_[a-z0-9]+)*$")
_CAMEL_RE: Final[re.Pattern[str]] = re.compile(r"(?<=[a-z0-9])([A-Z])")

# Public-surface spellings that differ from the canonical value.
_MARK_ALIASES: Final[dict[str, str]] = {
    "hist": "histogram",
    "scatter": "point",
    "pie": "arc",
    "donut": "arc",
    "heatmap": "rect",
    "box": "boxplot",
    "error_bar": "errorbar",
}
_CHANNEL_ALIASES: Final[dict[str, str]] = {
    "angle": "theta",
    "position_x": "x",
    "position_y": "y",
    "x2": "y2",
    "fill": "color",
}
_SCALE_ALIASES: Final[dict[str, str]] = {
    "continuous": "linear",
    "quantitative": "linear",
    "categorical": "discrete",
    "nominal": "discrete",
    "ordinal": "discrete",
}
_KERNEL_ALIASES: Final[dict[str, str]] = {"gaussian": "normal", "box": "uniform"}


def _snake(value: str) -> str:
    # Accept camelCase and kebab-case spellings from JSON-minded callers.
    s = _CAMEL_RE.sub(r"_\1", (value or "").strip())
    return s.replace("-", "_").lower()


def is_lower_snake(value: str) -> bool:
    """
    Check whether a string is lower_snake.

    Args:
      value (str): Candidate string to validate.

    Returns:
      bool: True if value matches lower_snake (e.g., "stroke_width"), False otherwise.

    Examples:
      >>> is_lower_snake("stroke_width")
      True
      >>> is_lower_snake("StrokeWidth")
      False
    """
    return bool(_LOWER_SNAKE_RE.match(value or ""))


def _parse(enum_cls: type[Enum], value: object, what: str, aliases: dict[str, str]) -> Enum:
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        raise ValueError(f"{what} must be a string or {enum_cls.__name__} (got {value!r})")
    key = _snake(value)
    key = aliases.get(key, key)
    if not is_lower_snake(key):
        raise ValueError(f"{what} must be lower_snake (got: {value!r})")
    try:
        return enum_cls(key)
    except ValueError as exc:
        allowed = sorted(m.value for m in enum_cls)
        raise ValueError(f"{what} must be one of {allowed} (got {value!r})") from exc


def channel_from_value(s: str | Channel) -> Channel:
    """
    Parse a channel identifier (canonical, alias, or camelCase) into a Channel.

    Raises:
      ValueError: If the identifier is not a known channel.
    """
    return _parse(Channel, s, "channel", _CHANNEL_ALIASES)  # type: ignore[return-value]


def mark_kind_from_value(s: str | MarkKind) -> MarkKind:
    """
    Parse a mark identifier into a MarkKind ("hist", "pie", "heatmap" accepted as aliases).

    Raises:
      ValueError: If the identifier is not a known mark kind.
    """
    return _parse(MarkKind, s, "mark", _MARK_ALIASES)  # type: ignore[return-value]


def scale_kind_from_value(s: str | ScaleKind) -> ScaleKind:
    """Parse a scale identifier into a ScaleKind."""
    return _parse(ScaleKind, s, "scale", _SCALE_ALIASES)  # type: ignore[return-value]


def kernel_from_value(s: str | KernelKind) -> KernelKind:
    """Parse a kernel identifier ("gaussian" and "box" accepted) into a KernelKind."""
    return _parse(KernelKind, s, "kernel", _KERNEL_ALIASES)  # type: ignore[return-value]


def bandwidth_rule_from_value(s: str | BandwidthRule) -> BandwidthRule:
    """Parse a bandwidth rule identifier into a BandwidthRule."""
    return _parse(BandwidthRule, s, "bandwidth", {})  # type: ignore[return-value]


def window_op_from_value(s: str | WindowOp) -> WindowOp:
    """Parse a window op identifier into a WindowOp."""
    return _parse(WindowOp, s, "window op", {"ecdf": "cume_dist"})  # type: ignore[return-value]


def interpolation_from_value(s: str | Interpolation) -> Interpolation:
    """Parse an interpolation identifier ("step-after" and "stepAfter" accepted)."""
    return _parse(Interpolation, s, "interpolation", {})  # type: ignore[return-value]


def shape_from_value(s: str | ShapeKind) -> ShapeKind:
    """Parse a point shape identifier into a ShapeKind."""
    return _parse(ShapeKind, s, "shape", {"plus": "cross"})  # type: ignore[return-value]


def output_format_from_suffix(suffix: str) -> OutputFormat:
    """
    Map a file suffix (with or without the leading dot) to an OutputFormat.

    Raises:
      ValueError: If the suffix is empty or not a supported format.

    Examples:
      >>> output_format_from_suffix(".SVG") == OutputFormat.SVG
      True
    """
    key = (suffix or "").lstrip(".").lower()
    if not key:
        raise ValueError("output format could not be determined from an empty suffix")
    try:
        return OutputFormat(key)
    except ValueError as exc:
        allowed = sorted(f.value for f in OutputFormat)
        raise ValueError(f"output format must be one of {allowed} (got {suffix!r})") from exc


def ensure_all_enum_values_lower_snake(enums: Iterable[type[Enum]]) -> None:
    """
    Assert that every enum member's value is lower_snake.

    Args:
      enums (Iterable[type[Enum]]): Iterable of Enum classes to inspect.

    Raises:
      AssertionError: If any enum member has a non-lower_snake value.

    Examples:
      >>> ensure_all_enum_values_lower_snake([Channel, MarkKind, ScaleKind])
    """
    for E in enums:
        for m in E:
            if not is_lower_snake(m.value):
                raise AssertionError(
                    f"{E.__name__}.{m.name} has non-lower_snake value: {m.value!r}"
                )
