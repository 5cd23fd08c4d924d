"""Scales (linear, log, discrete) and the coordinate frame shared by all layers."""

from .coord import CartesianFrame, polar_point, sector_path
from .scales import (
    DiscreteScale,
    LinearScale,
    LogScale,
    Scale,
    Tick,
    build_scale,
    expand_continuous,
    union_categories,
    union_extent,
)

__all__ = [
    "CartesianFrame",
    "DiscreteScale",
    "LinearScale",
    "LogScale",
    "Scale",
    "Tick",
    "build_scale",
    "expand_continuous",
    "polar_point",
    "sector_path",
    "union_categories",
    "union_extent",
]
