"""
Configuration for plotgram rendering.

Defines RenderSettings, a frozen dataclass carrying canvas size, proportional margins,
theme/palette/colormap selection, and raster/KDE defaults. Defaults are sourced from
plotgram.core.constants where a constant exists.

Source of truth
- plotgram.core.constants.KDE_STEPS, RASTER_SCALE
- Palette and colormap names are validated against plotgram.visual.color
- Theme names are validated against plotgram.visual.theme

Import DAG discipline
- Depends only on stdlib and plotgram.core.
- Palette/theme registries are imported lazily inside the loaders so that
  plotgram.visual can import this module without a cycle.

Notes
- Precedence: environment > TOML > defaults.
- Invalid values are ignored and the previous value is kept.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from plotgram.core.constants import KDE_STEPS as CORE_KDE_STEPS
from plotgram.core.constants import RASTER_SCALE as CORE_RASTER_SCALE

__all__ = ["RenderSettings"]

logger = logging.getLogger(__name__)

_FLOAT_KEYS = (
    "width",
    "height",
    "left_margin",
    "right_margin",
    "top_margin",
    "bottom_margin",
    "raster_scale",
)


@dataclass(frozen=True)
class RenderSettings:
    """
    Runtime settings for chart rendering.

    Attributes:
        width (float): Canvas width in pixels.
        height (float): Canvas height in pixels.
        left_margin (float): Left margin as a fraction of width, in [0, 0.5).
        right_margin (float): Right margin as a fraction of width, in [0, 0.5).
        top_margin (float): Top margin as a fraction of height, in [0, 0.5).
        bottom_margin (float): Bottom margin as a fraction of height, in [0, 0.5).
        theme (str): Registered theme name ("default" | "minimal").
        palette (str): Discrete palette name (default "tab10").
        colormap (str): Continuous colormap name (default "viridis").
        raster_scale (float): Rasterization scale factor for PNG output (> 0).
        kde_steps (int): Density evaluation grid size (>= 2).
        background (str | None): Canvas background color; None uses the theme's.

    Examples:
        >>> from plotgram.io.config import RenderSettings
        >>> RenderSettings(width=640).width
        640
    """

    width: float = 500
    height: float = 400
    left_margin: float = 0.15
    right_margin: float = 0.10
    top_margin: float = 0.10
    bottom_margin: float = 0.15
    theme: str = "default"
    palette: str = "tab10"
    colormap: str = "viridis"
    raster_scale: float = CORE_RASTER_SCALE
    kde_steps: int = CORE_KDE_STEPS
    background: str | None = None

    # Configuration loaders (env/TOML) with precedence: env > TOML > defaults.

    @classmethod
    def _apply_mapping(cls, base: RenderSettings, cfg: dict[str, Any] | None) -> RenderSettings:
        """Apply a loose config mapping onto RenderSettings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        from plotgram.visual.color import COLORMAPS, PALETTES
        from plotgram.visual.theme import THEMES

        s = base

        for key in _FLOAT_KEYS:
            if key not in cfg:
                continue
            try:
                val = float(cfg[key])
            except (TypeError, ValueError):
                logger.debug("ignoring non-numeric %s=%r", key, cfg[key])
                continue
            if key.endswith("_margin"):
                ok = 0.0 <= val < 0.5
            else:
                ok = val > 0.0
            if ok:
                s = replace(s, **{key: val})
            else:
                logger.debug("ignoring out-of-range %s=%r", key, val)

        if "kde_steps" in cfg:
            try:
                steps = int(cfg["kde_steps"])
            except (TypeError, ValueError):
                steps = 0
            if steps >= 2:
                s = replace(s, kde_steps=steps)

        # Named registries: only accept known names.
        for key, registry in (("theme", THEMES), ("palette", PALETTES), ("colormap", COLORMAPS)):
            if key in cfg and isinstance(cfg[key], str):
                name = cfg[key].strip().lower()
                if name in registry:
                    s = replace(s, **{key: name})
                else:
                    logger.debug("ignoring unknown %s %r", key, cfg[key])

        if "background" in cfg:
            bg = cfg["background"]
            if bg is None or (isinstance(bg, str) and bg.strip().lower() in ("", "none")):
                s = replace(s, background=None)
            elif isinstance(bg, str):
                s = replace(s, background=bg.strip())

        return s

    @classmethod
    def from_env(
        cls, base: RenderSettings | None = None, prefix: str = "PLOTGRAM_"
    ) -> RenderSettings:
        """
        Build RenderSettings from environment variables. Precedence is env > base > defaults.

        Recognized variables (with the default prefix):
            - PLOTGRAM_WIDTH, PLOTGRAM_HEIGHT
            - PLOTGRAM_LEFT_MARGIN, PLOTGRAM_RIGHT_MARGIN
            - PLOTGRAM_TOP_MARGIN, PLOTGRAM_BOTTOM_MARGIN
            - PLOTGRAM_THEME, PLOTGRAM_PALETTE, PLOTGRAM_COLORMAP
            - PLOTGRAM_RASTER_SCALE, PLOTGRAM_KDE_STEPS
            - PLOTGRAM_BACKGROUND ("none" clears it)
        """
        s = base or cls()
        mapping: dict[str, Any] = {}
        for key in (*_FLOAT_KEYS, "kde_steps", "theme", "palette", "colormap", "background"):
            v = os.getenv(prefix + key.upper())
            if v:
                mapping[key] = v
        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> RenderSettings:
        """
        Build RenderSettings from a TOML file.

        Search order when `path` is None:
            1) ./plotgram.toml (with either a [render] table or top-level keys)
            2) ./pyproject.toml under [tool.plotgram.render]

        Returns defaults if no file is present or it cannot be parsed.
        """
        s = cls()

        def _load_toml(p: Path) -> dict[str, Any] | None:
            try:
                with p.open("rb") as fh:
                    return tomllib.load(fh)
            except (OSError, tomllib.TOMLDecodeError) as exc:
                logger.debug("could not read %s: %s", p, exc)
                return None

        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "plotgram.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        cfg: dict[str, Any] | None = None
        for p in cand:
            if not p.exists():
                continue
            data = _load_toml(p)
            if not isinstance(data, dict):
                continue
            if p.name == "pyproject.toml":
                tool = data.get("tool", {})
                cfg = tool.get("plotgram", {}).get("render", {}) if isinstance(tool, dict) else None
            elif isinstance(data.get("render"), dict):
                cfg = data["render"]
            else:
                cfg = data
            if cfg:
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> RenderSettings:
        """
        Load RenderSettings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search plotgram.toml then pyproject.toml.
        """
        s = cls.from_toml(path)
        return cls.from_env(base=s)

    # Derived geometry

    @property
    def plot_rect(self) -> tuple[float, float, float, float]:
        """(left, top, right, bottom) pixel bounds of the plotting area."""
        return (
            self.width * self.left_margin,
            self.height * self.top_margin,
            self.width * (1.0 - self.right_margin),
            self.height * (1.0 - self.bottom_margin),
        )
