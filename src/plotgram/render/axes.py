"""
Axis and grid geometry for a cartesian frame.

The bottom axis always shows ``frame.horizontal`` and the left axis ``frame.vertical``,
so swapped charts get their x channel on the left without special cases here.
"""

from __future__ import annotations

from plotgram.scale.coord import CartesianFrame
from plotgram.visual.theme import Theme

from .primitives import Group, Line, Primitive, Text

__all__ = ["render_grid", "render_axes"]


def render_grid(frame: CartesianFrame, theme: Theme) -> Group:
    """Grid lines at the major ticks of both axes (empty when the theme disables grids)."""
    if not theme.grid:
        return Group((), cls="grid")
    left, top, right, bottom = frame.plot
    lines: list[Primitive] = []
    for t in frame.horizontal.ticks():
        lines.append(Line(t.position, top, t.position, bottom, stroke=theme.grid_color))
    for t in frame.vertical.ticks():
        lines.append(Line(left, t.position, right, t.position, stroke=theme.grid_color))
    return Group(tuple(lines), cls="grid")


def render_axes(
    frame: CartesianFrame,
    theme: Theme,
    *,
    x_title: str | None = None,
    y_title: str | None = None,
) -> Group:
    """
    Bottom and left axes: lines, ticks, tick labels, and titles.

    Args:
        frame (CartesianFrame): Frame whose scales supply the ticks.
        theme (Theme): Colors, sizes, and tick length.
        x_title (str | None): Title under the bottom axis.
        y_title (str | None): Title beside the left axis (rotated).
    """
    left, top, right, bottom = frame.plot
    tl = theme.tick_length
    color = theme.axis_color
    out: list[Primitive] = [
        Line(left, bottom, right, bottom, stroke=color),
        Line(left, top, left, bottom, stroke=color),
    ]
    for t in frame.horizontal.ticks():
        out.append(Line(t.position, bottom, t.position, bottom + tl, stroke=color))
        out.append(
            Text(
                t.position,
                bottom + tl + theme.tick_size,
                t.label,
                size=theme.tick_size,
                fill=theme.text_color,
            )
        )
    widest = 0
    for t in frame.vertical.ticks():
        out.append(Line(left - tl, t.position, left, t.position, stroke=color))
        out.append(
            Text(
                left - tl - 3.0,
                t.position,
                t.label,
                size=theme.tick_size,
                fill=theme.text_color,
                anchor="end",
                baseline="middle",
            )
        )
        widest = max(widest, len(t.label))
    if x_title:
        out.append(
            Text(
                (left + right) / 2.0,
                bottom + tl + theme.tick_size + theme.label_size + 8.0,
                x_title,
                size=theme.label_size,
                fill=theme.text_color,
            )
        )
    if y_title:
        x = left - tl - 6.0 - widest * theme.tick_size * 0.6 - theme.label_size / 2.0
        y = (top + bottom) / 2.0
        out.append(
            Text(
                x,
                y,
                y_title,
                size=theme.label_size,
                fill=theme.text_color,
                rotate=-90.0,
                baseline="middle",
            )
        )
    return Group(tuple(out), cls="axes")
