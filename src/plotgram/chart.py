"""
Chart: one immutable layer binding a table, a mark, and validated encodings.

Responsibilities
- Ingest the source table once (``Chart.build``) and normalize its dtypes.
- Record the mark kind and mark-level style overrides (``mark_*``, ``configure_mark``).
- Resolve encodings eagerly (``encode``), so channel/field mistakes fail at construction.
- Apply explicit statistical transforms eagerly (``transform_density``, ``transform_window``).
- Delegate rendering and export to a single-layer ``LayeredChart``.

Builder discipline
- Every builder call returns a new Chart (``dataclasses.replace``); nothing is mutated.
- Restyling only overlays ``MarkStyle`` values; the table is never touched.

Examples
--------
>>> import polars as pl
>>> from plotgram import Chart, x, y
>>> df = pl.DataFrame({"a": ["p", "q"], "b": [1.0, 2.0]})
>>> chart = Chart.build(df).mark_bar(color="steelblue").encode(x("a"), y("b"))
>>> chart.mark.value, chart.style.color
('bar', 'steelblue')
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

import polars as pl

from plotgram.core.errors import MissingRequiredChannel
from plotgram.core.grammar import MarkKind, WindowOp, channel_from_value, mark_kind_from_value
from plotgram.core.schema import FieldEncoding, MarkStyle
from plotgram.core.typing import JsonDict, MimeBlock
from plotgram.encoding import ResolvedEncodings, resolve
from plotgram.io.config import RenderSettings
from plotgram.io.display import Sink
from plotgram.io.table import load_table
from plotgram.transform.density import DensityTransform, kde
from plotgram.transform.window import WindowTransform, apply_window

if TYPE_CHECKING:
    from plotgram.layered import LayeredChart

__all__ = ["Chart"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Chart:
    """
    One renderable layer.

    Attributes:
        data (pl.DataFrame): Normalized source table (never mutated).
        mark (MarkKind | None): Mark kind; None until a ``mark_*`` call.
        encodings (ResolvedEncodings | None): Validated encodings; None until ``encode``.
        style (MarkStyle): Mark-level style overrides.
        ecdf (bool): ``data`` came from a cumulative-distribution window transform.
    """

    data: pl.DataFrame
    mark: MarkKind | None = None
    encodings: ResolvedEncodings | None = None
    style: MarkStyle = field(default_factory=MarkStyle)
    ecdf: bool = False

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def build(cls, source: Any) -> Chart:
        """
        Bind a table to a new chart.

        Args:
            source: ``polars.DataFrame``/``LazyFrame``, ``pyarrow.Table``, a column mapping,
                or Parquet bytes.

        Raises:
            TableDecodeError: If the source cannot be read.
            UnsupportedColumnType: If a column has an unsupported dtype.
        """
        return cls(data=load_table(source))

    def _reresolve(self, mark: MarkKind | None, data: pl.DataFrame) -> ResolvedEncodings | None:
        if self.encodings is None or mark is None:
            return None
        return resolve(data.schema, mark, list(self.encodings))

    # ------------------------------------------------------------------
    # Marks and style
    # ------------------------------------------------------------------

    def mark_as(self, kind: MarkKind | str, **style: Any) -> Chart:
        """
        Set the mark kind and overlay mark-level style.

        Raises:
            ValueError: On an unknown mark kind.
            pydantic.ValidationError: On unknown or invalid style keys.
            EncodingError: If existing encodings are invalid for the new mark.
        """
        mark = mark_kind_from_value(kind)
        overlay = MarkStyle(**style)
        return replace(
            self,
            mark=mark,
            style=self.style.merge(overlay),
            encodings=self._reresolve(mark, self.data),
        )

    def mark_point(self, **style: Any) -> Chart:
        return self.mark_as(MarkKind.POINT, **style)

    def mark_line(self, **style: Any) -> Chart:
        return self.mark_as(MarkKind.LINE, **style)

    def mark_bar(self, **style: Any) -> Chart:
        return self.mark_as(MarkKind.BAR, **style)

    def mark_area(self, **style: Any) -> Chart:
        return self.mark_as(MarkKind.AREA, **style)

    def mark_arc(self, **style: Any) -> Chart:
        """Pie (``inner_radius_ratio=0``) or donut (ratio in (0, 1))."""
        return self.mark_as(MarkKind.ARC, **style)

    def mark_rect(self, **style: Any) -> Chart:
        return self.mark_as(MarkKind.RECT, **style)

    def mark_boxplot(self, **style: Any) -> Chart:
        return self.mark_as(MarkKind.BOXPLOT, **style)

    def mark_errorbar(self, **style: Any) -> Chart:
        return self.mark_as(MarkKind.ERRORBAR, **style)

    def mark_histogram(self, **style: Any) -> Chart:
        return self.mark_as(MarkKind.HISTOGRAM, **style)

    def mark_rule(self, **style: Any) -> Chart:
        return self.mark_as(MarkKind.RULE, **style)

    def mark_text(self, **style: Any) -> Chart:
        return self.mark_as(MarkKind.TEXT, **style)

    def configure_mark(self, **style: Any) -> Chart:
        """Overlay additional mark-level style without changing the mark kind."""
        return replace(self, style=self.style.merge(MarkStyle(**style)))

    # ------------------------------------------------------------------
    # Encodings
    # ------------------------------------------------------------------

    def encode(self, *encodings: FieldEncoding, **channels: Any) -> Chart:
        """
        Bind fields to channels and validate them against the table and mark.

        Positional arguments are channel constructors (``x("a")``); keyword arguments map a
        channel name to a field name or FieldEncoding (``color="species"``).

        Raises:
            MissingRequiredChannel: If no mark has been chosen yet, or a required channel
                is missing.
            MissingField, UnsupportedChannelForMark, DuplicateChannel, UnsupportedColumnType:
                From encoding resolution.
        """
        if self.mark is None:
            raise MissingRequiredChannel("choose a mark (mark_point(), ...) before encode()")
        items: list[FieldEncoding] = list(encodings)
        if channels:
            items += list(_keyword_encodings(channels))
        return replace(self, encodings=resolve(self.data.schema, self.mark, items))

    # ------------------------------------------------------------------
    # Explicit transforms
    # ------------------------------------------------------------------

    def transform_density(self, params: DensityTransform | None = None, **kwargs: Any) -> Chart:
        """
        Replace the table with a kernel density estimate.

        Accepts a ``DensityTransform`` or its fields as keyword arguments.
        """
        if params is None:
            kwargs.setdefault("steps", RenderSettings.load().kde_steps)
            params = DensityTransform(**kwargs)
        data = kde(self.data, params)
        logger.debug("density transform on %r -> %d rows", params.field, data.height)
        return replace(
            self, data=data, encodings=self._reresolve(self.mark, data), ecdf=False
        )

    def transform_window(self, params: WindowTransform | None = None, **kwargs: Any) -> Chart:
        """
        Replace the table with a window statistic (cumulative distribution or row number).

        A ``cume_dist`` result drawn as a line renders as a step curve spanning its domain.
        """
        params = params or WindowTransform(**kwargs)
        data = apply_window(self.data, params)
        return replace(
            self,
            data=data,
            encodings=self._reresolve(self.mark, data),
            ecdf=params.op is WindowOp.CUME_DIST,
        )

    # ------------------------------------------------------------------
    # Output (single-layer document)
    # ------------------------------------------------------------------

    def layered(self) -> LayeredChart:
        from plotgram.layered import LayeredChart

        return LayeredChart(layers=(self,))

    def to_svg(self) -> str:
        return self.layered().to_svg()

    def to_png(self) -> bytes:
        return self.layered().to_png()

    def to_vegalite(self) -> JsonDict:
        return self.layered().to_vegalite()

    def to_json(self) -> str:
        return self.layered().to_json()

    def save(self, path: str | Path) -> Path:
        return self.layered().save(path)

    def show(self, sink: Sink | None = None) -> MimeBlock:
        return self.layered().show(sink)


def _keyword_encodings(channels: Mapping[str, Any]) -> list[FieldEncoding]:
    out: list[FieldEncoding] = []
    for name, value in channels.items():
        if isinstance(value, FieldEncoding):
            out.append(value.model_copy(update={"channel": channel_from_value(name)}))
        else:
            out.append(FieldEncoding(channel=name, field=value))
    return out
