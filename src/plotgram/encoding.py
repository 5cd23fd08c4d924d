"""
Encoding resolver: validate field bindings against a table schema and a mark kind.

Responsibilities
- Provide channel constructors (``x("price")``, ``color("species", title="Species")``...).
- Hold the per-mark channel rules (required, optional, and output-only channels).
- ``resolve`` checks, in order: duplicate channels, channel permitted for the mark,
  referenced fields present in the table, explicit scale compatible with the column dtype,
  and required channels present. It has no side effects.

Notes
- Output-only channels name a column the transform will create rather than one the
  table must already have (a histogram's y is the count column, default "count").
- Rule marks need at least one of x or y; every other mark lists its required channels.

Examples
--------
>>> import polars as pl
>>> from plotgram.core.grammar import MarkKind, Channel
>>> df = pl.DataFrame({"a": ["p", "q"], "b": [1.0, 2.0]})
>>> enc = resolve(df.schema, MarkKind.BAR, [x("a"), y("b")])
>>> enc.field(Channel.Y)
'b'
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

import polars as pl

from plotgram.core.errors import (
    DuplicateChannel,
    MissingField,
    MissingRequiredChannel,
    UnsupportedChannelForMark,
    UnsupportedColumnType,
)
from plotgram.core.grammar import (
    Channel,
    MarkKind,
    ScaleKind,
    channel_from_value,
    mark_kind_from_value,
)
from plotgram.core.schema import FieldEncoding

__all__ = [
    "ChannelRule",
    "CHANNEL_RULES",
    "ResolvedEncodings",
    "resolve",
    "infer_scale_kind",
    # constructors
    "x",
    "y",
    "y2",
    "theta",
    "color",
    "shape",
    "size",
    "opacity",
    "text",
    "stroke",
    "stroke_width",
]

logger = logging.getLogger(__name__)

DEFAULT_COUNT_FIELD = "count"


# -----------------------------------------------------------------------------
# Channel constructors
# -----------------------------------------------------------------------------


def x(
    field: str,
    *,
    bins: int | None = None,
    scale: str | ScaleKind | None = None,
    zero: bool | None = None,
    title: str | None = None,
) -> FieldEncoding:
    """Bind ``field`` to the horizontal position (before any axis swap)."""
    return FieldEncoding(
        channel=Channel.X, field=field, bins=bins, scale=scale, zero=zero, title=title
    )


def y(
    field: str,
    *,
    bins: int | None = None,
    scale: str | ScaleKind | None = None,
    zero: bool | None = None,
    normalize: bool = False,
    title: str | None = None,
) -> FieldEncoding:
    """
    Bind ``field`` to the vertical position.

    For histograms ``field`` names the output count column and ``normalize`` turns counts
    into fractions; for bars ``normalize`` scales each x category to sum to 1.
    """
    return FieldEncoding(
        channel=Channel.Y,
        field=field,
        bins=bins,
        scale=scale,
        zero=zero,
        normalize=normalize,
        title=title,
    )


def y2(field: str) -> FieldEncoding:
    """Bind the second vertical bound (rule/errorbar end, area band)."""
    return FieldEncoding(channel=Channel.Y2, field=field)


def theta(field: str) -> FieldEncoding:
    """Bind the angular magnitude of an arc mark."""
    return FieldEncoding(channel=Channel.THETA, field=field)


def color(
    field: str,
    *,
    scale: str | ScaleKind | None = None,
    normalize: bool = False,
    bins: int | None = None,
    title: str | None = None,
) -> FieldEncoding:
    """Bind fill color: a palette for discrete fields, a colormap for continuous ones."""
    return FieldEncoding(
        channel=Channel.COLOR, field=field, scale=scale, normalize=normalize, bins=bins, title=title
    )


def shape(field: str, *, title: str | None = None) -> FieldEncoding:
    return FieldEncoding(channel=Channel.SHAPE, field=field, scale=ScaleKind.DISCRETE, title=title)


def size(field: str, *, title: str | None = None) -> FieldEncoding:
    return FieldEncoding(channel=Channel.SIZE, field=field, title=title)


def opacity(field: str) -> FieldEncoding:
    return FieldEncoding(channel=Channel.OPACITY, field=field)


def text(field: str) -> FieldEncoding:
    return FieldEncoding(channel=Channel.TEXT, field=field)


def stroke(field: str) -> FieldEncoding:
    return FieldEncoding(channel=Channel.STROKE, field=field)


def stroke_width(field: str) -> FieldEncoding:
    return FieldEncoding(channel=Channel.STROKE_WIDTH, field=field)


# -----------------------------------------------------------------------------
# Per-mark channel rules
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ChannelRule:
    """
    Channel requirements for one mark kind.

    Attributes:
        required (frozenset[Channel]): Channels that must be bound.
        optional (frozenset[Channel]): Channels that may be bound.
        outputs (frozenset[Channel]): Channels whose field names a derived column.
        any_of (frozenset[Channel]): At least one of these must be bound (empty = no constraint).
        continuous (frozenset[Channel]): Channels that only accept numeric or temporal columns.
    """

    required: frozenset[Channel]
    optional: frozenset[Channel]
    outputs: frozenset[Channel] = frozenset()
    any_of: frozenset[Channel] = frozenset()
    continuous: frozenset[Channel] = frozenset()

    @property
    def allowed(self) -> frozenset[Channel]:
        return self.required | self.optional | self.outputs | self.any_of


_STYLE = frozenset({Channel.COLOR, Channel.OPACITY, Channel.STROKE, Channel.STROKE_WIDTH})
_XY = frozenset({Channel.X, Channel.Y})

CHANNEL_RULES: Mapping[MarkKind, ChannelRule] = {
    MarkKind.POINT: ChannelRule(_XY, _STYLE | {Channel.SHAPE, Channel.SIZE}),
    MarkKind.LINE: ChannelRule(_XY, _STYLE),
    MarkKind.BAR: ChannelRule(_XY, _STYLE),
    MarkKind.AREA: ChannelRule(_XY, _STYLE | {Channel.Y2}),
    MarkKind.ARC: ChannelRule(
        frozenset({Channel.THETA, Channel.COLOR}),
        frozenset({Channel.OPACITY, Channel.STROKE, Channel.STROKE_WIDTH}),
        continuous=frozenset({Channel.THETA}),
    ),
    MarkKind.RECT: ChannelRule(
        _XY | {Channel.COLOR}, frozenset({Channel.OPACITY, Channel.STROKE, Channel.STROKE_WIDTH})
    ),
    MarkKind.BOXPLOT: ChannelRule(_XY, _STYLE, continuous=frozenset({Channel.Y})),
    MarkKind.ERRORBAR: ChannelRule(
        _XY, _STYLE | {Channel.Y2}, continuous=frozenset({Channel.Y, Channel.Y2})
    ),
    MarkKind.HISTOGRAM: ChannelRule(
        frozenset({Channel.X}),
        _STYLE,
        outputs=frozenset({Channel.Y}),
        continuous=frozenset({Channel.X}),
    ),
    MarkKind.RULE: ChannelRule(frozenset(), _STYLE | {Channel.Y2}, any_of=_XY),
    MarkKind.TEXT: ChannelRule(_XY, _STYLE | {Channel.TEXT}),
}


# -----------------------------------------------------------------------------
# Resolution
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ResolvedEncodings:
    """
    Validated channel → encoding mapping for one mark.

    Attributes:
        mark (MarkKind): Mark kind the encodings were validated for.
        by_channel (dict[Channel, FieldEncoding]): Encodings keyed by channel, in binding order.
        scales (dict[Channel, ScaleKind]): Explicit or inferred scale kind per source channel.
    """

    mark: MarkKind
    by_channel: dict[Channel, FieldEncoding]
    scales: dict[Channel, ScaleKind]

    def __contains__(self, channel: object) -> bool:
        return channel in self.by_channel

    def __iter__(self) -> Iterator[FieldEncoding]:
        return iter(self.by_channel.values())

    def __len__(self) -> int:
        return len(self.by_channel)

    def get(self, channel: Channel) -> FieldEncoding | None:
        return self.by_channel.get(channel)

    def field(self, channel: Channel) -> str | None:
        enc = self.by_channel.get(channel)
        return enc.field if enc is not None else None

    def scale(self, channel: Channel) -> ScaleKind | None:
        return self.scales.get(channel)

    def is_discrete(self, channel: Channel) -> bool:
        return self.scales.get(channel) == ScaleKind.DISCRETE

    def source_fields(self) -> list[str]:
        """Fields read from the source table (outputs excluded), without duplicates."""
        outputs = CHANNEL_RULES[self.mark].outputs
        seen = [e.field for ch, e in self.by_channel.items() if ch not in outputs]
        return list(dict.fromkeys(seen))

    def with_field(self, channel: Channel, field_name: str) -> ResolvedEncodings:
        """Return a copy where ``channel`` points at a different (derived) column."""
        enc = self.by_channel[channel].model_copy(update={"field": field_name})
        return ResolvedEncodings(
            mark=self.mark,
            by_channel={**self.by_channel, channel: enc},
            scales=dict(self.scales),
        )


def infer_scale_kind(dtype: pl.DataType) -> ScaleKind:
    """Numeric and temporal columns are linear; everything else is discrete."""
    if dtype == pl.Null or dtype.is_numeric() or dtype.is_temporal():
        return ScaleKind.LINEAR
    return ScaleKind.DISCRETE


def _as_encodings(encodings: Iterable[FieldEncoding] | Mapping[Any, Any]) -> list[FieldEncoding]:
    if isinstance(encodings, FieldEncoding):
        return [encodings]
    if isinstance(encodings, Mapping):
        out: list[FieldEncoding] = []
        for ch, v in encodings.items():
            if isinstance(v, FieldEncoding):
                out.append(v.model_copy(update={"channel": channel_from_value(ch)}))
            else:
                out.append(FieldEncoding(channel=ch, field=v))
        return out
    return list(encodings)


def resolve(
    table_schema: Mapping[str, pl.DataType],
    mark_kind: MarkKind | str,
    encodings: Iterable[FieldEncoding] | Mapping[Any, Any],
) -> ResolvedEncodings:
    """
    Validate encodings for a mark against a table schema.

    Args:
        table_schema (Mapping[str, pl.DataType]): Column name → dtype (e.g., ``df.schema``).
        mark_kind (MarkKind | str): Mark the encodings are bound to.
        encodings: FieldEncoding values, or a mapping channel → field name / FieldEncoding.

    Returns:
        ResolvedEncodings: Normalized encodings with scale kinds resolved.

    Raises:
        DuplicateChannel: If a channel is bound more than once.
        UnsupportedChannelForMark: If a channel is not permitted for the mark kind.
        MissingField: If a referenced field is absent from the table.
        UnsupportedColumnType: If a continuous scale is requested for a discrete column.
        MissingRequiredChannel: If a required channel is not bound.
    """
    mark = mark_kind_from_value(mark_kind)
    rule = CHANNEL_RULES[mark]
    items = _as_encodings(encodings)

    by_channel: dict[Channel, FieldEncoding] = {}
    for enc in items:
        if enc.channel in by_channel:
            raise DuplicateChannel(
                f"channel {enc.channel.value!r} bound more than once for {mark.value}"
            )
        if enc.channel not in rule.allowed:
            allowed = sorted(c.value for c in rule.allowed)
            raise UnsupportedChannelForMark(
                f"channel {enc.channel.value!r} is not supported by {mark.value} marks "
                f"(allowed: {allowed})"
            )
        by_channel[enc.channel] = enc

    scales: dict[Channel, ScaleKind] = {}
    for ch, enc in by_channel.items():
        if ch in rule.outputs:
            scales[ch] = enc.scale or ScaleKind.LINEAR
            continue
        if enc.field not in table_schema:
            raise MissingField(
                f"field {enc.field!r} (channel {ch.value!r}) not found in table; "
                f"columns: {list(table_schema)}"
            )
        inferred = infer_scale_kind(table_schema[enc.field])
        if enc.scale in (ScaleKind.LINEAR, ScaleKind.LOG) and inferred == ScaleKind.DISCRETE:
            raise UnsupportedColumnType(
                f"field {enc.field!r} is {table_schema[enc.field]} and cannot use a "
                f"{enc.scale.value} scale"
            )
        scales[ch] = enc.scale or inferred
        if ch in rule.continuous and scales[ch] == ScaleKind.DISCRETE:
            raise UnsupportedColumnType(
                f"{mark.value} marks need a numeric field on channel {ch.value!r}; "
                f"{enc.field!r} is {table_schema[enc.field]} (or uses a discrete scale)"
            )

    missing = [c.value for c in rule.required if c not in by_channel]
    if missing:
        raise MissingRequiredChannel(
            f"{mark.value} marks require channel(s) {sorted(missing)}"
        )
    if rule.any_of and not any(c in by_channel for c in rule.any_of):
        raise MissingRequiredChannel(
            f"{mark.value} marks require at least one of {sorted(c.value for c in rule.any_of)}"
        )

    if mark == MarkKind.HISTOGRAM and Channel.Y not in by_channel:
        by_channel[Channel.Y] = FieldEncoding(channel=Channel.Y, field=DEFAULT_COUNT_FIELD)
        scales[Channel.Y] = ScaleKind.LINEAR

    logger.debug(
        "resolved %s encodings: %s", mark.value, {c.value: e.field for c, e in by_channel.items()}
    )
    return ResolvedEncodings(mark=mark, by_channel=by_channel, scales=scales)
