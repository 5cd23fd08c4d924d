"""
Numeric defaults shared by transforms, scales, and renderers.

This module is zero-IO and uses only the Python standard library. Values that users
commonly tune live in ``plotgram.io.config.RenderSettings`` instead.
"""

from __future__ import annotations

__all__ = [
    "MIN_AUTO_BINS",
    "MAX_AUTO_BINS",
    "KDE_STEPS",
    "KDE_TAIL_FRACTION",
    "IQR_FENCE",
    "BAR_INSET",
    "CONTINUOUS_PADDING",
    "DISCRETE_PADDING",
    "RECT_DISCRETE_PADDING",
    "TARGET_TICKS",
    "MIN_PLOT_WIDTH",
    "RASTER_SCALE",
]

# Auto bin count is clamp(round(sqrt(unique)), MIN_AUTO_BINS, MAX_AUTO_BINS).
MIN_AUTO_BINS: int = 5
MAX_AUTO_BINS: int = 50

# Density grid resolution and the fraction of the data range added on each side.
KDE_STEPS: int = 200
KDE_TAIL_FRACTION: float = 0.3

# Tukey fence multiplier for boxplot outliers.
IQR_FENCE: float = 1.5

# Fraction of a bar/rect cell left empty so adjacent shapes do not touch.
BAR_INSET: float = 0.05

# Axis expansion: multiplicative for continuous axes, category steps for discrete axes.
CONTINUOUS_PADDING: float = 0.05
DISCRETE_PADDING: float = 0.6
RECT_DISCRETE_PADDING: float = 0.5

TARGET_TICKS: int = 5

# Legends may widen the right margin but never squeeze the plot below this width.
MIN_PLOT_WIDTH: float = 200.0

RASTER_SCALE: float = 2.0
