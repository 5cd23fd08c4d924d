"""
Linear, logarithmic, and discrete scales with tick generation.

Responsibilities
- Map domain values to pixel positions along one axis.
- Build scales from observed values or explicit domains (``build_scale``).
- Expand continuous domains: degenerate ranges are widened with a ``DegenerateDomain``
  warning; optional zero anchoring and proportional padding.
- Generate ticks: 1-2-5 "nice" steps for linear axes, decades plus 2×/5× minors for log
  axes, categories in order for discrete axes; explicit values/labels override.
- Merge domains across layers (``union_extent``, ``union_categories``).

Notes
- Pixel ranges may run in either direction (vertical axes map low values to the bottom).
- Discrete categories keep first-appearance order; ``padding`` is counted in category steps.
"""

from __future__ import annotations

import logging
import math
import warnings
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from typing import Any, ClassVar

from plotgram.core.constants import TARGET_TICKS
from plotgram.core.errors import DegenerateDomain, NonPositiveLogDomain
from plotgram.core.grammar import Channel, ScaleKind

__all__ = [
    "Tick",
    "LinearScale",
    "LogScale",
    "DiscreteScale",
    "Scale",
    "build_scale",
    "expand_continuous",
    "nice_step",
    "union_extent",
    "union_categories",
]

logger = logging.getLogger(__name__)

PixelRange = tuple[float, float]


@dataclass(frozen=True)
class Tick:
    value: Any
    position: float
    label: str


def nice_step(span: float, target: int = TARGET_TICKS) -> float:
    """
    Round ``span / target`` to 1, 2, 5, or 10 times a power of ten.

    Examples:
        >>> nice_step(20.0)
        5.0
        >>> nice_step(0.9)
        0.2
    """
    if span <= 0.0 or not math.isfinite(span):
        return 1.0
    raw = span / max(1, target)
    mag = 10.0 ** math.floor(math.log10(raw))
    f = raw / mag
    if f < 1.5:
        nice = 1.0
    elif f < 3.0:
        nice = 2.0
    elif f < 7.0:
        nice = 5.0
    else:
        nice = 10.0
    return nice * mag


def _decimals(step: float) -> int:
    return max(0, -int(math.floor(math.log10(step) + 1e-9)))


def _format(v: float, decimals: int) -> str:
    return f"{v:.{decimals}f}"


def _explicit_ticks(scale: Any, values: Sequence[Any], labels: Sequence[str] | None) -> list[Tick]:
    out: list[Tick] = []
    for i, v in enumerate(values):
        label = labels[i] if labels is not None and i < len(labels) else f"{v:g}"
        out.append(Tick(v, scale.map(v), label))
    return out


# ============================================================================
# Continuous scales
# ============================================================================


@dataclass(frozen=True)
class LinearScale:
    """
    Affine map from ``domain`` to ``pixel_range``.

    Examples:
        >>> s = LinearScale((0.0, 10.0), (100.0, 200.0))
        >>> s.map(2.5)
        125.0
        >>> [t.label for t in s.ticks()]
        ['0', '2', '4', '6', '8', '10']
    """

    kind: ClassVar[ScaleKind] = ScaleKind.LINEAR

    domain: tuple[float, float]
    pixel_range: PixelRange = (0.0, 1.0)
    tick_values: tuple[float, ...] | None = None
    tick_labels: tuple[str, ...] | None = None

    def normalize(self, v: float) -> float:
        lo, hi = self.domain
        return (float(v) - lo) / (hi - lo)

    def map(self, v: float) -> float:
        r0, r1 = self.pixel_range
        return r0 + self.normalize(v) * (r1 - r0)

    def with_range(self, pixel_range: PixelRange) -> LinearScale:
        return replace(self, pixel_range=pixel_range)

    def ticks(self, target: int = TARGET_TICKS) -> list[Tick]:
        lo, hi = self.domain
        if self.tick_values is not None:
            inside = [v for v in self.tick_values if lo <= v <= hi]
            labels = None
            if self.tick_labels is not None:
                pairs = zip(self.tick_values, self.tick_labels)
                labels = [lab for v, lab in pairs if lo <= v <= hi]
            return _explicit_ticks(self, inside, labels)
        step = nice_step(hi - lo, target)
        decimals = _decimals(step)
        first = math.ceil(lo / step - 1e-9)
        last = math.floor(hi / step + 1e-9)
        out = []
        for k in range(first, last + 1):
            v = k * step
            if abs(v) < step * 1e-9:
                v = 0.0
            out.append(Tick(v, self.map(v), _format(v, decimals)))
        return out


@dataclass(frozen=True)
class LogScale:
    """
    Logarithmic map: ``log(v)`` is mapped linearly onto ``pixel_range``.

    Raises:
        NonPositiveLogDomain: If the domain or a mapped value is not strictly positive.

    Examples:
        >>> s = LogScale((1.0, 100.0), (0.0, 2.0))
        >>> s.map(10.0)
        1.0
    """

    kind: ClassVar[ScaleKind] = ScaleKind.LOG

    domain: tuple[float, float]
    pixel_range: PixelRange = (0.0, 1.0)
    base: float = 10.0
    tick_values: tuple[float, ...] | None = None
    tick_labels: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        lo, hi = self.domain
        if lo <= 0.0 or hi <= 0.0:
            raise NonPositiveLogDomain(f"log scale domain must be positive (got {self.domain})")

    def _log(self, v: float) -> float:
        if v <= 0.0:
            raise NonPositiveLogDomain(f"log scale cannot map non-positive value {v!r}")
        return math.log(v, self.base)

    def normalize(self, v: float) -> float:
        lo, hi = self.domain
        return (self._log(float(v)) - self._log(lo)) / (self._log(hi) - self._log(lo))

    def map(self, v: float) -> float:
        r0, r1 = self.pixel_range
        return r0 + self.normalize(v) * (r1 - r0)

    def with_range(self, pixel_range: PixelRange) -> LogScale:
        return replace(self, pixel_range=pixel_range)

    def ticks(self, target: int = TARGET_TICKS) -> list[Tick]:
        lo, hi = self.domain
        if self.tick_values is not None:
            inside = [v for v in self.tick_values if lo <= v <= hi]
            labels = None
            if self.tick_labels is not None:
                pairs = zip(self.tick_values, self.tick_labels)
                labels = [lab for v, lab in pairs if lo <= v <= hi]
            return _explicit_ticks(self, inside, labels)
        k_lo = math.floor(self._log(lo) + 1e-9)
        k_hi = math.ceil(self._log(hi) - 1e-9)
        majors = [self.base**k for k in range(k_lo, k_hi + 1)]
        values = [v for v in majors if lo * (1 - 1e-9) <= v <= hi * (1 + 1e-9)]
        if len(values) < target:
            minors = [m * v for v in majors for m in (2.0, 5.0)]
            values += [v for v in minors if lo <= v <= hi]
        return [Tick(v, self.map(v), f"{v:g}") for v in sorted(set(values))]


# ============================================================================
# Discrete scale
# ============================================================================


@dataclass(frozen=True)
class DiscreteScale:
    """
    Evenly spaced category positions.

    ``padding`` adds that many category steps before the first and after the last category.

    Examples:
        >>> s = DiscreteScale(("a", "b", "c"), (0.0, 300.0), padding=0.5)
        >>> s.map("a"), s.step
        (50.0, 100.0)
    """

    kind: ClassVar[ScaleKind] = ScaleKind.DISCRETE

    categories: tuple[str, ...]
    pixel_range: PixelRange = (0.0, 1.0)
    padding: float = 0.5
    tick_labels: tuple[str, ...] | None = None

    @property
    def domain(self) -> tuple[str, ...]:
        return self.categories

    @property
    def _slots(self) -> float:
        return max(len(self.categories) - 1 + 2.0 * self.padding, 1e-9)

    @property
    def step(self) -> float:
        """Signed pixel distance between neighbouring categories."""
        r0, r1 = self.pixel_range
        if len(self.categories) <= 1 and self.padding == 0.0:
            return r1 - r0
        return (r1 - r0) / self._slots

    def index(self, category: Any) -> int:
        try:
            return self.categories.index(str(category))
        except ValueError as exc:
            raise ValueError(f"{category!r} is not in the scale's categories") from exc

    def normalize(self, category: Any) -> float:
        if len(self.categories) <= 1 and self.padding == 0.0:
            return 0.5
        return (self.index(category) + self.padding) / self._slots

    def map(self, category: Any) -> float:
        r0, r1 = self.pixel_range
        return r0 + self.normalize(category) * (r1 - r0)

    def with_range(self, pixel_range: PixelRange) -> DiscreteScale:
        return replace(self, pixel_range=pixel_range)

    def ticks(self, target: int = TARGET_TICKS) -> list[Tick]:
        labels = self.tick_labels or self.categories
        return [
            Tick(c, self.map(c), labels[i] if i < len(labels) else c)
            for i, c in enumerate(self.categories)
        ]


Scale = LinearScale | LogScale | DiscreteScale


# ============================================================================
# Construction and merging
# ============================================================================


def _finite(values: Iterable[Any]) -> list[float]:
    out: list[float] = []
    for v in values:
        if v is None:
            continue
        f = float(v)
        if math.isfinite(f):
            out.append(f)
    return out


def union_extent(extents: Iterable[tuple[float, float] | None]) -> tuple[float, float] | None:
    """
    Smallest range covering every extent (``None`` entries are ignored).

    Examples:
        >>> union_extent([(0.0, 10.0), None, (5.0, 20.0)])
        (0.0, 20.0)
    """
    lo: float | None = None
    hi: float | None = None
    for ext in extents:
        if ext is None:
            continue
        lo = ext[0] if lo is None else min(lo, ext[0])
        hi = ext[1] if hi is None else max(hi, ext[1])
    if lo is None or hi is None:
        return None
    return (lo, hi)


def union_categories(groups: Iterable[Iterable[Any]]) -> list[str]:
    """
    Categories from several layers, in first-appearance order across layers.

    Examples:
        >>> union_categories([["b", "a"], ["a", "c"]])
        ['b', 'a', 'c']
    """
    seen: dict[str, None] = {}
    for group in groups:
        for c in group:
            seen.setdefault(str(c), None)
    return list(seen)


def expand_continuous(
    lo: float,
    hi: float,
    *,
    padding: float = 0.0,
    zero: bool = False,
    log: bool = False,
) -> tuple[float, float]:
    """
    Widen a continuous domain for display.

    A degenerate range (``lo == hi``) is widened by 10% of the value (1 at zero) and a
    ``DegenerateDomain`` warning is emitted. With ``zero`` the domain is forced to include 0
    and the side touching 0 is not padded. Log domains are padded in log space.

    Examples:
        >>> expand_continuous(0.0, 10.0, padding=0.05, zero=True)
        (0.0, 10.5)
    """
    if zero and not log:
        lo, hi = min(lo, 0.0), max(hi, 0.0)
    if hi == lo:
        warnings.warn(
            f"degenerate domain [{lo}, {hi}] expanded", DegenerateDomain, stacklevel=3
        )
        if log:
            lo, hi = lo / 10.0, hi * 10.0
        else:
            offset = abs(lo) * 0.1 if lo != 0.0 else 1.0
            lo, hi = lo - offset, hi + offset
    if padding <= 0.0:
        return (lo, hi)
    if log:
        a, b = math.log10(lo), math.log10(hi)
        pad = (b - a) * padding
        return (10.0 ** (a - pad), 10.0 ** (b + pad))
    pad = (hi - lo) * padding
    pad_lo = 0.0 if zero and lo == 0.0 else pad
    pad_hi = 0.0 if zero and hi == 0.0 else pad
    return (lo - pad_lo, hi + pad_hi)


def build_scale(
    channel: Channel,
    domain_spec: Sequence[Any] | None,
    values: Iterable[Any],
    *,
    kind: ScaleKind = ScaleKind.LINEAR,
    pixel_range: PixelRange = (0.0, 1.0),
    padding: float = 0.0,
    zero: bool = False,
    tick_values: Sequence[Any] | None = None,
    tick_labels: Sequence[str] | None = None,
) -> Scale:
    """
    Build a scale for one channel.

    Args:
        channel (Channel): Channel the scale serves (for messages).
        domain_spec (Sequence | None): Explicit domain; ``(min, max)`` for continuous scales,
            a category list for discrete scales. Explicit domains are used as given.
        values (Iterable): Observed values (continuous) or categories (discrete) used when
            no explicit domain is set.
        kind (ScaleKind): Scale kind.
        pixel_range (tuple[float, float]): Output range.
        padding (float): Continuous: fraction of the span added per side. Discrete: steps.
        zero (bool): Continuous linear scales include 0.
        tick_values, tick_labels: Explicit ticks. For discrete scales, tick values also fix
            the category order.

    Returns:
        Scale: ``LinearScale``, ``LogScale``, or ``DiscreteScale``.

    Raises:
        NonPositiveLogDomain: If a log scale sees a value or domain bound <= 0.

    Examples:
        >>> s = build_scale(Channel.X, None, [3.0, 1.0, 2.0])
        >>> s.domain
        (1.0, 3.0)
    """
    labels = tuple(tick_labels) if tick_labels is not None else None
    if kind is ScaleKind.DISCRETE:
        if tick_values is not None:
            cats = union_categories([tick_values])
        elif domain_spec is not None:
            cats = union_categories([domain_spec])
        else:
            cats = union_categories([values])
        return DiscreteScale(tuple(cats), pixel_range, padding=padding, tick_labels=labels)

    ticks = tuple(float(v) for v in tick_values) if tick_values is not None else None
    if domain_spec is not None:
        lo, hi = float(domain_spec[0]), float(domain_spec[1])
        if hi < lo:
            lo, hi = hi, lo
        if hi == lo:
            lo, hi = expand_continuous(lo, hi, log=kind is ScaleKind.LOG)
    else:
        observed = _finite(values)
        if kind is ScaleKind.LOG:
            bad = [v for v in observed if v <= 0.0]
            if bad:
                raise NonPositiveLogDomain(
                    f"channel {channel.value!r} has non-positive value {bad[0]!r} on a log scale"
                )
        if not observed:
            observed = [1.0, 10.0] if kind is ScaleKind.LOG else [0.0, 1.0]
        lo, hi = expand_continuous(
            min(observed),
            max(observed),
            padding=padding,
            zero=zero,
            log=kind is ScaleKind.LOG,
        )
    logger.debug("%s scale for %s: [%g, %g]", kind.value, channel.value, lo, hi)
    if kind is ScaleKind.LOG:
        return LogScale((lo, hi), pixel_range, tick_values=ticks, tick_labels=labels)
    return LinearScale((lo, hi), pixel_range, tick_values=ticks, tick_labels=labels)
