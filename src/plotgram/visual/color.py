"""
Color mapper: discrete palettes, continuous colormaps, and resolved color assignments.

Responsibilities
- Register named palettes (category → color tables cycled by index) and colormaps
  (piecewise-linear interpolation between evenly spaced stops).
- Build ``ColorInfo`` for a layer: a category → color table for discrete fields, or a
  normalized-value → color function over a numeric domain for continuous fields.

Notes
- ``ColorInfo`` lives on per-render processed data, never on a Chart.
- Interpolated channels are truncated to integers, so colormap output is stable hex text.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from plotgram.core.errors import ScaleError
from plotgram.core.typing import Rgb

__all__ = [
    "Palette",
    "Colormap",
    "ColorInfo",
    "PALETTES",
    "COLORMAPS",
    "hex_to_rgb",
    "rgb_to_hex",
    "get_palette",
    "get_colormap",
]


def hex_to_rgb(value: str) -> Rgb:
    """
    Parse ``#rrggbb`` (or ``#rgb``).

    Examples:
        >>> hex_to_rgb("#1f77b4")
        (31, 119, 180)
    """
    s = value.strip().lstrip("#")
    if len(s) == 3:
        s = "".join(ch * 2 for ch in s)
    if len(s) != 6:
        raise ValueError(f"expected a #rrggbb color (got {value!r})")
    return (int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16))


def rgb_to_hex(rgb: Rgb) -> str:
    return "#{:02x}{:02x}{:02x}".format(*(max(0, min(255, int(c))) for c in rgb))


@dataclass(frozen=True)
class Palette:
    name: str
    colors: tuple[str, ...]

    def color(self, index: int) -> str:
        """Color for the ``index``-th category; palettes cycle when exhausted."""
        return self.colors[index % len(self.colors)]


@dataclass(frozen=True)
class Colormap:
    """
    Evenly spaced color stops interpolated in RGB.

    Examples:
        >>> COLORMAPS["viridis"].color(0.0), COLORMAPS["viridis"].color(1.0)
        ('#440154', '#fde725')
    """

    name: str
    stops: tuple[str, ...]
    _rgb: tuple[Rgb, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_rgb", tuple(hex_to_rgb(s) for s in self.stops))

    def color(self, t: float) -> str:
        t = min(1.0, max(0.0, float(t)))
        n = len(self._rgb) - 1
        pos = t * n
        i = min(int(pos), n - 1)
        frac = pos - i
        c0, c1 = self._rgb[i], self._rgb[i + 1]
        r, g, b = (int(lo + frac * (hi - lo)) for lo, hi in zip(c0, c1))
        return rgb_to_hex((r, g, b))


def _palette(name: str, *colors: str) -> tuple[str, Palette]:
    return name, Palette(name, colors)


def _colormap(name: str, *stops: str) -> tuple[str, Colormap]:
    return name, Colormap(name, stops)


PALETTES: Mapping[str, Palette] = dict(
    [
        _palette(
            "tab10",
            "#1f77b4", "#ff7f0e", "#2ca02c", "#d62728", "#9467bd",
            "#8c564b", "#e377c2", "#7f7f7f", "#bcbd22", "#17becf",
        ),
        _palette(
            "tab20",
            "#1f77b4", "#aec7e8", "#ff7f0e", "#ffbb78", "#2ca02c", "#98df8a", "#d62728",
            "#ff9896", "#9467bd", "#c5b0d5", "#8c564b", "#c49c94", "#e377c2", "#f7b6d2",
            "#7f7f7f", "#c7c7c7", "#bcbd22", "#dbdb8d", "#17becf", "#9edae5",
        ),
        _palette(
            "set1",
            "#e41a1c", "#377eb8", "#4daf4a", "#984ea3", "#ff7f00", "#ffff33", "#a65628",
            "#f781bf", "#999999",
        ),
        _palette(
            "set2",
            "#66c2a5", "#fc8d62", "#8da0cb", "#e78ac3", "#a6d854", "#ffd92f", "#e5c494",
            "#b3b3b3",
        ),
        _palette(
            "set3",
            "#8dd3c7", "#ffffb3", "#bebada", "#fb8072", "#80b1d3", "#fdb462", "#b3de69",
            "#fccde5", "#d9d9d9", "#bc80bd", "#ccebc5", "#ffed6f",
        ),
        _palette(
            "pastel1",
            "#fbb4ae", "#b3cde3", "#ccebc5", "#decbe4", "#fed9a6", "#ffffcc", "#e5d8bd",
            "#fddaec", "#f2f2f2",
        ),
        _palette(
            "pastel2",
            "#b3e2cd", "#fdcdac", "#cbd5e8", "#f4cae4", "#e6f5c9", "#fff2ae", "#f1e2cc",
            "#cccccc",
        ),
        _palette(
            "dark2",
            "#1b9e77", "#d95f02", "#7570b3", "#e7298a", "#66a61e", "#e6ab02", "#a6761d",
            "#666666",
        ),
        _palette(
            "accent",
            "#7fc97f", "#beaed4", "#fdc086", "#ffff99", "#386cb0", "#f0027f", "#bf5b17",
            "#666666",
        ),
    ]
)

COLORMAPS: Mapping[str, Colormap] = dict(
    [
        _colormap(
            "viridis",
            "#440154", "#481a6c", "#472f7d", "#414487", "#39568c", "#31688e", "#2a788e",
            "#23888e", "#1f988b", "#22a884", "#35b779", "#54c568", "#7ad151", "#a5db36",
            "#d2e21b", "#fde725",
        ),
        _colormap(
            "inferno",
            "#000004", "#0c0826", "#240c4f", "#420a68", "#5d126e", "#781c6d", "#932667",
            "#ae305c", "#c73e4c", "#dd513a", "#ed6925", "#f8850f", "#fca50a", "#fac62d",
            "#f2e661", "#fcffa4",
        ),
        _colormap(
            "magma",
            "#000004", "#0b0924", "#20114b", "#3b0f70", "#57157e", "#721f81", "#8c2981",
            "#a8327d", "#c43c75", "#de4968", "#f1605d", "#fa7f5e", "#fe9f6d", "#febf84",
            "#fddea0", "#fcfdbf",
        ),
        _colormap(
            "plasma",
            "#0d0887", "#330597", "#5002a2", "#6a00a8", "#8405a7", "#9c179e", "#b12a90",
            "#c33d80", "#d35171", "#e16462", "#ed7953", "#f68f44", "#fca636", "#fec029",
            "#f9dc24", "#f0f921",
        ),
        _colormap(
            "cividis",
            "#002051", "#022c65", "#14386d", "#2b446e", "#42506e", "#575c6e", "#696970",
            "#787573", "#868276", "#948f78", "#a49d78", "#b6ab73", "#caba6a", "#e0c95d",
            "#f2d950", "#fdea45",
        ),
        _colormap(
            "blues",
            "#f7fbff", "#deebf7", "#c6dbef", "#9ecae1", "#6baed6", "#4292c6", "#2171b5",
            "#08519c", "#08306b",
        ),
        _colormap(
            "greens",
            "#f7fcf5", "#e5f5e0", "#c7e9c0", "#a1d99b", "#74c476", "#41ab5d", "#238b45",
            "#006d2c", "#00441b",
        ),
        _colormap(
            "greys",
            "#ffffff", "#f0f0f0", "#d9d9d9", "#bdbdbd", "#969696", "#737373", "#525252",
            "#252525", "#000000",
        ),
        _colormap(
            "oranges",
            "#fff5eb", "#fee6ce", "#fdd0a2", "#fdae6b", "#fd8d3c", "#f16913", "#d94801",
            "#a63603", "#7f2704",
        ),
        _colormap(
            "purples",
            "#fcfbfd", "#efedf5", "#dadaeb", "#bcbddc", "#9e9ac8", "#807dba", "#6a51a3",
            "#54278f", "#3f007d",
        ),
        _colormap(
            "reds",
            "#fff5f0", "#fee0d2", "#fcbba1", "#fc9272", "#fb6a4a", "#ef3b2c", "#cb181d",
            "#a50f15", "#67000d",
        ),
    ]
)


def get_palette(name: str) -> Palette:
    try:
        return PALETTES[name.strip().lower()]
    except KeyError as exc:
        raise ValueError(f"unknown palette {name!r}; known: {sorted(PALETTES)}") from exc


def get_colormap(name: str) -> Colormap:
    try:
        return COLORMAPS[name.strip().lower()]
    except KeyError as exc:
        raise ValueError(f"unknown colormap {name!r}; known: {sorted(COLORMAPS)}") from exc


# ============================================================================
# Resolved assignment
# ============================================================================


@dataclass(frozen=True)
class ColorInfo:
    """
    Resolved color assignment for one encoded field.

    Exactly one of ``mapping`` (discrete) or ``domain`` + ``colormap`` (continuous) is set.

    Examples:
        >>> info = ColorInfo.for_categories("species", ["b", "a"], PALETTES["tab10"])
        >>> info.color_for("a")
        '#ff7f0e'
        >>> ColorInfo.for_range("z", (0.0, 10.0), COLORMAPS["viridis"]).color_for(0.0)
        '#440154'
    """

    field: str
    mapping: dict[str, str] | None = None
    domain: tuple[float, float] | None = None
    colormap: Colormap | None = None

    @classmethod
    def for_categories(
        cls, field: str, categories: Iterable[object], palette: Palette
    ) -> ColorInfo:
        cats = list(dict.fromkeys(str(c) for c in categories))
        return cls(field=field, mapping={c: palette.color(i) for i, c in enumerate(cats)})

    @classmethod
    def for_range(cls, field: str, domain: tuple[float, float], colormap: Colormap) -> ColorInfo:
        return cls(field=field, domain=domain, colormap=colormap)

    @property
    def discrete(self) -> bool:
        return self.mapping is not None

    @property
    def categories(self) -> list[str]:
        return list(self.mapping or {})

    def normalize(self, value: float) -> float:
        if self.domain is None:
            raise ScaleError(f"color for {self.field!r} has no continuous domain")
        lo, hi = self.domain
        if hi == lo:
            return 0.5
        return (float(value) - lo) / (hi - lo)

    def color_for(self, value: object) -> str:
        if self.mapping is not None:
            return self.mapping.get(str(value), "#999999")
        if self.colormap is None:
            raise ScaleError(f"color for {self.field!r} has no colormap")
        return self.colormap.color(self.normalize(value))  # type: ignore[arg-type]
