"""
Statistical transforms: binning, zero-filled aggregation, density, window statistics,
boxplot summaries, and error-bar bounds, plus the mark-driven dispatch in ``pipeline``.
"""

from .density import DensityTransform, kde
from .pipeline import Derived, derive
from .window import WindowTransform, apply_window

__all__ = [
    "DensityTransform",
    "WindowTransform",
    "Derived",
    "apply_window",
    "derive",
    "kde",
]
