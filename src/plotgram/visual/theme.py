"""
Themes: canvas, typography, axis styling, and per-mark default styles.

A theme is the lowest layer of style precedence (mark-level > chart-level > theme).
Registered themes are ``default`` and ``minimal``; ``RenderSettings.theme`` selects one.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace

from plotgram.core.grammar import Interpolation, MarkKind, ShapeKind
from plotgram.core.schema import MarkStyle

__all__ = ["Theme", "THEMES", "get_theme", "DEFAULT_MARK_STYLES"]

_BLUE = "#1f77b4"

DEFAULT_MARK_STYLES: Mapping[MarkKind, MarkStyle] = {
    MarkKind.POINT: MarkStyle(
        color=_BLUE, opacity=1.0, stroke="none", stroke_width=0.0, shape=ShapeKind.CIRCLE, size=3.0
    ),
    MarkKind.LINE: MarkStyle(
        color=_BLUE, opacity=1.0, stroke_width=2.0, interpolation=Interpolation.LINEAR
    ),
    MarkKind.BAR: MarkStyle(color=_BLUE, opacity=1.0, stroke="none", stroke_width=0.0),
    MarkKind.AREA: MarkStyle(
        color=_BLUE, opacity=0.5, stroke_width=1.0, interpolation=Interpolation.LINEAR
    ),
    MarkKind.ARC: MarkStyle(opacity=1.0, stroke="white", stroke_width=1.0, inner_radius_ratio=0.0),
    MarkKind.RECT: MarkStyle(opacity=1.0, stroke="none", stroke_width=0.0),
    MarkKind.BOXPLOT: MarkStyle(
        color=_BLUE,
        opacity=1.0,
        stroke="black",
        stroke_width=1.0,
        outlier_color="black",
        outlier_size=3.0,
        box_width=0.5,
        box_spacing=0.2,
        box_span=0.7,
    ),
    MarkKind.ERRORBAR: MarkStyle(
        color="black", opacity=1.0, stroke_width=1.0, cap_length=6.0, show_center=True, size=3.0
    ),
    MarkKind.HISTOGRAM: MarkStyle(color=_BLUE, opacity=1.0, stroke="white", stroke_width=0.5),
    MarkKind.RULE: MarkStyle(color="black", opacity=1.0, stroke_width=1.0),
    MarkKind.TEXT: MarkStyle(color="#333333", opacity=1.0, font_size=12.0, text_anchor="middle"),
}


@dataclass(frozen=True)
class Theme:
    """
    Visual defaults for a whole document.

    Attributes:
        name (str): Registry name.
        background (str): Canvas fill.
        font_family (str): Font family for all text.
        title_size, label_size, tick_size (float): Font sizes in px.
        text_color (str): Title/label/tick text color.
        axis_color (str): Axis line and tick color.
        grid (bool): Draw grid lines at major ticks.
        grid_color (str): Grid line color.
        tick_length (float): Tick mark length in px.
        legend_swatch (float): Legend swatch size in px.
        mark_styles (Mapping[MarkKind, MarkStyle]): Default style per mark kind.
    """

    name: str = "default"
    background: str = "white"
    font_family: str = "sans-serif"
    title_size: float = 18.0
    label_size: float = 15.0
    tick_size: float = 13.0
    text_color: str = "#333"
    axis_color: str = "#333"
    grid: bool = True
    grid_color: str = "#e5e5e5"
    tick_length: float = 6.0
    legend_swatch: float = 12.0
    mark_styles: Mapping[MarkKind, MarkStyle] = field(
        default_factory=lambda: dict(DEFAULT_MARK_STYLES)
    )

    def mark_style(self, kind: MarkKind) -> MarkStyle:
        return self.mark_styles.get(kind, MarkStyle())


THEMES: Mapping[str, Theme] = {
    "default": Theme(),
    "minimal": replace(
        Theme(),
        name="minimal",
        title_size=14.0,
        label_size=12.0,
        tick_size=10.0,
        text_color="#555",
        axis_color="#888",
        grid=False,
        tick_length=4.0,
    ),
}


def get_theme(name: str | Theme) -> Theme:
    """
    Look up a registered theme (a Theme instance is returned unchanged).

    Raises:
        ValueError: If the name is not registered.
    """
    if isinstance(name, Theme):
        return name
    try:
        return THEMES[name.strip().lower()]
    except KeyError as exc:
        raise ValueError(f"unknown theme {name!r}; known: {sorted(THEMES)}") from exc
