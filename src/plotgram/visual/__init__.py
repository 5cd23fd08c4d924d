"""Color mapping (palettes, colormaps, ColorInfo) and themes."""

from .color import COLORMAPS, PALETTES, ColorInfo, Colormap, Palette
from .theme import THEMES, Theme, get_theme

__all__ = [
    "COLORMAPS",
    "PALETTES",
    "THEMES",
    "ColorInfo",
    "Colormap",
    "Palette",
    "Theme",
    "get_theme",
]
