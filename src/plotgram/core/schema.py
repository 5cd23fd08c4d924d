"""
Pydantic v2 models for field encodings and mark styles.

Validators normalize enum-like strings through grammar helpers and clamp ratios into
their valid ranges, so downstream renderers can trust every value they read.

Responsibilities
- Define ``FieldEncoding``: one channel bound to one field plus channel-local config.
- Define ``MarkStyle``: the overlay of visual properties a mark may carry.
- Provide overlay merging so precedence (mark > chart > theme) is a fold over styles.

Style
- Zero-IO (stdlib + pydantic only).
- Models are frozen; restyling creates new instances.
- Unknown keys are rejected (``extra="forbid"``) and surface as ``pydantic.ValidationError``.

References
- grammar: plotgram.core.grammar (enums, normalization helpers)
- tests: tests/core/test_schema_styles.py
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .grammar import (
    Channel,
    Interpolation,
    ScaleKind,
    ShapeKind,
    channel_from_value,
    interpolation_from_value,
    scale_kind_from_value,
    shape_from_value,
)

__all__ = [
    "FieldEncoding",
    "MarkStyle",
    "merge_styles",
]


def _clamp01(v: Any) -> Any:
    if v is None:
        return None
    return min(1.0, max(0.0, float(v)))


# ============================================================================
# Encodings
# ============================================================================


class FieldEncoding(BaseModel):
    """
    One channel binding: a table field plus channel-local configuration.

    Attributes:
        channel (Channel): Visual channel identifier.
        field (str): Column name in the source table (for histogram y: output column name).
        bins (int | None): Explicit bin count for a binned continuous channel.
        scale (ScaleKind | None): Explicit scale kind; None means infer from dtype.
        normalize (bool): Divide aggregated values by their enclosing total.
        zero (bool | None): Force the domain to include 0; None leaves it to the mark.
        title (str | None): Axis or legend title override.

    Raises:
        pydantic.ValidationError: If bins < 1, the channel/scale is unknown, or extra keys appear.

    Examples:
        >>> FieldEncoding(channel="x", field="value", bins=10).channel
        <Channel.X: 'x'>
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    channel: Channel
    field: str = Field(..., min_length=1)
    bins: int | None = Field(default=None, ge=1)
    scale: ScaleKind | None = None
    normalize: bool = False
    zero: bool | None = None
    title: str | None = None

    @field_validator("channel", mode="before")
    @classmethod
    def _normalize_channel(cls, v: Any) -> Channel:
        return channel_from_value(v)

    @field_validator("scale", mode="before")
    @classmethod
    def _normalize_scale(cls, v: Any) -> ScaleKind | None:
        return None if v is None else scale_kind_from_value(v)


# ============================================================================
# Styles
# ============================================================================


class MarkStyle(BaseModel):
    """
    Visual overlay for a mark. Every field is optional; None means "not set here".

    Attributes:
        color (str | None): Fill color (CSS color string) when color is not encoded.
        opacity (float | None): Fill opacity, clamped to [0, 1].
        stroke (str | None): Outline/line color.
        stroke_width (float | None): Outline/line width in pixels (>= 0).
        shape (ShapeKind | None): Point marker shape.
        size (float | None): Point radius in pixels or text font size fallback.
        interpolation (Interpolation | None): Line/area interpolation.
        inner_radius_ratio (float | None): Arc inner radius / outer radius, clamped to [0, 1].
        box_width (float | None): Boxplot/bar width as a fraction of a category band.
        box_spacing (float | None): Gap between dodged boxes as a fraction of box width.
        box_span (float | None): Fraction of a category band the dodged group may occupy.
        outlier_color (str | None): Boxplot outlier fill.
        outlier_size (float | None): Boxplot outlier radius.
        cap_length (float | None): Errorbar cap length in pixels.
        show_center (bool | None): Errorbar draws a circle at the center value.
        bins (int | None): Fallback bin count for histogram/rect when the channel sets none.
        font_size (float | None): Text mark font size.
        text_anchor (str | None): Text mark anchor ("start", "middle", "end").

    Notes:
        Clamping (rather than rejecting) opacity and inner_radius_ratio mirrors how users
        pass computed values; negative widths and sizes are still rejected.

    Examples:
        >>> MarkStyle(opacity=1.7).opacity
        1.0
        >>> MarkStyle(color="red").merge(MarkStyle(opacity=0.5)).model_dump(exclude_none=True)
        {'color': 'red', 'opacity': 0.5}
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    color: str | None = None
    opacity: float | None = None
    stroke: str | None = None
    stroke_width: float | None = Field(default=None, ge=0.0)
    shape: ShapeKind | None = None
    size: float | None = Field(default=None, ge=0.0)
    interpolation: Interpolation | None = None
    inner_radius_ratio: float | None = None
    box_width: float | None = Field(default=None, gt=0.0)
    box_spacing: float | None = Field(default=None, ge=0.0)
    box_span: float | None = Field(default=None, gt=0.0)
    outlier_color: str | None = None
    outlier_size: float | None = Field(default=None, ge=0.0)
    cap_length: float | None = Field(default=None, ge=0.0)
    show_center: bool | None = None
    bins: int | None = Field(default=None, ge=1)
    font_size: float | None = Field(default=None, gt=0.0)
    text_anchor: str | None = None

    @field_validator("opacity", "inner_radius_ratio", mode="before")
    @classmethod
    def _clamp_ratio(cls, v: Any) -> Any:
        return _clamp01(v)

    @field_validator("shape", mode="before")
    @classmethod
    def _normalize_shape(cls, v: Any) -> Any:
        return None if v is None else shape_from_value(v)

    @field_validator("interpolation", mode="before")
    @classmethod
    def _normalize_interpolation(cls, v: Any) -> Any:
        return None if v is None else interpolation_from_value(v)

    @field_validator("text_anchor", mode="before")
    @classmethod
    def _check_anchor(cls, v: Any) -> Any:
        if v is None:
            return None
        s = str(v).strip().lower()
        if s not in ("start", "middle", "end"):
            raise ValueError(f"text_anchor must be start, middle, or end (got {v!r})")
        return s

    def merge(self, override: MarkStyle | None) -> MarkStyle:
        """Return a copy where every field set on ``override`` replaces this one."""
        if override is None:
            return self
        updates = override.model_dump(exclude_none=True)
        if not updates:
            return self
        return self.model_copy(update=updates)

    def get(self, name: str, default: Any = None) -> Any:
        v = getattr(self, name)
        return default if v is None else v


def merge_styles(*styles: MarkStyle | None) -> MarkStyle:
    """
    Fold styles from lowest to highest precedence.

    Args:
        *styles: Styles ordered theme → chart-level → mark-level; None entries are skipped.

    Returns:
        MarkStyle: The merged overlay.

    Examples:
        >>> merge_styles(MarkStyle(color="gray"), None, MarkStyle(color="red")).color
        'red'
    """
    out = MarkStyle()
    for s in styles:
        out = out.merge(s)
    return out
