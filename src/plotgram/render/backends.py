"""
Document backends: serialize a composited ``Document`` to an output format.

Every backend implements ``render_to(document)``; the compositor and ``io.save`` depend only
on that capability, never on a concrete backend type.

Backends
- ``SvgBackend``: walks the primitive tree and writes an SVG 1.1 document.
- ``PngBackend``: rasterizes the SVG text with cairosvg at a fixed scale factor.
- ``VegaLiteBackend``: rebuilds the layers as an altair ``LayerChart`` over the transformed
  rows and returns a Vega-Lite v5 specification (JSON text or dict).

Notes
- The Vega-Lite output is an interchange format. Geometry is recomputed by the consuming
  renderer, so it matches the SVG only up to that renderer's layout rules.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Protocol
from xml.sax.saxutils import escape, quoteattr

import altair as alt
import polars as pl

from plotgram.core.errors import MissingRequiredChannel, RasterizationFailure
from plotgram.core.grammar import Channel, MarkKind, OutputFormat, ScaleKind
from plotgram.core.serde import json_dumps_pretty, json_safe
from plotgram.core.typing import JsonDict
from plotgram.core.versioning import DOCUMENT_V, VEGALITE_SCHEMA
from plotgram.io.display import MIME_PNG, MIME_SVG, MIME_VEGALITE
from plotgram.render.primitives import Canvas, Group, Primitive, Text
from plotgram.scale.scales import DiscreteScale, Scale

if TYPE_CHECKING:
    from plotgram.layered import Document, ProcessedChartData

__all__ = [
    "Backend",
    "SvgBackend",
    "PngBackend",
    "VegaLiteBackend",
    "BACKENDS",
    "backend_for",
]

logger = logging.getLogger(__name__)


class Backend(Protocol):
    """Capability interface of an output backend."""

    format: ClassVar[OutputFormat]
    mime: ClassVar[str]

    def render_to(self, document: Document) -> str | bytes: ...


# ============================================================================
# SVG
# ============================================================================

_SVG_NS = "http://www.w3.org/2000/svg"


def _attr_text(attrs: Mapping[str, Any]) -> str:
    return "".join(f" {k}={quoteattr(str(v))}" for k, v in attrs.items() if v is not None)


def _clip_groups(canvas: Canvas) -> Iterator[tuple[Group, tuple[float, float, float, float]]]:
    def _walk(
        nodes: tuple[Primitive, ...],
    ) -> Iterator[tuple[Group, tuple[float, float, float, float]]]:
        for node in nodes:
            if isinstance(node, Group):
                if node.clip is not None:
                    yield node, node.clip
                yield from _walk(node.children)

    return _walk(canvas.children)


@dataclass(frozen=True)
class SvgBackend:
    """
    Serialize the primitive tree to SVG text.

    Groups with a clip rectangle get a ``<clipPath>`` in ``<defs>``; ids are assigned in
    paint order (``clip-0``, ``clip-1``, ...), so equal documents produce equal text.
    """

    format: ClassVar[OutputFormat] = OutputFormat.SVG
    mime: ClassVar[str] = MIME_SVG

    def render_to(self, document: Document) -> str:
        return self.render_canvas(document.canvas)

    def render_canvas(self, canvas: Canvas) -> str:
        clips = {id(g): f"clip-{i}" for i, (g, _) in enumerate(_clip_groups(canvas))}
        head = {
            "xmlns": _SVG_NS,
            "width": _fmt(canvas.width),
            "height": _fmt(canvas.height),
            "viewBox": f"0 0 {_fmt(canvas.width)} {_fmt(canvas.height)}",
            "font-family": canvas.font_family,
        }
        lines = [f"<svg{_attr_text(head)}>"]
        if clips:
            lines.append("<defs>")
            for g, (left, top, right, bottom) in _clip_groups(canvas):
                rect = {
                    "x": _fmt(left),
                    "y": _fmt(top),
                    "width": _fmt(right - left),
                    "height": _fmt(bottom - top),
                }
                lines.append(f'<clipPath id="{clips[id(g)]}"><rect{_attr_text(rect)}/></clipPath>')
            lines.append("</defs>")
        if canvas.background:
            bg = {"width": "100%", "height": "100%", "fill": canvas.background}
            lines.append(f'<rect class="background"{_attr_text(bg)}/>')
        for child in canvas.children:
            self._emit(child, clips, lines)
        lines.append("</svg>")
        return "\n".join(lines)

    def _emit(self, node: Primitive, clips: dict[int, str], out: list[str]) -> None:
        attrs = dict(node.attrs())
        if isinstance(node, Group):
            if id(node) in clips:
                attrs["clip-path"] = f"url(#{clips[id(node)]})"
            out.append(f"<g{_attr_text(attrs)}>")
            for child in node.children:
                self._emit(child, clips, out)
            out.append("</g>")
        elif isinstance(node, Text):
            out.append(f"<text{_attr_text(attrs)}>{escape(node.text)}</text>")
        else:
            out.append(f"<{node.tag}{_attr_text(attrs)}/>")


def _fmt(v: float) -> str:
    return f"{v:g}"


# ============================================================================
# PNG
# ============================================================================


@dataclass(frozen=True)
class PngBackend:
    """
    Rasterize the SVG document with cairosvg.

    Attributes:
        scale (float): Pixel multiplier applied to the canvas size.
    """

    format: ClassVar[OutputFormat] = OutputFormat.PNG
    mime: ClassVar[str] = MIME_PNG

    scale: float = 2.0

    def render_to(self, document: Document) -> bytes:
        return self.rasterize(SvgBackend().render_to(document))

    def rasterize(self, svg: str) -> bytes:
        """
        Raises:
            RasterizationFailure: cairosvg (or its cairo library) is unavailable, or it
                rejected the document.
        """
        try:
            cairosvg = importlib.import_module("cairosvg")
        except (ImportError, OSError) as exc:
            raise RasterizationFailure(f"PNG output needs cairosvg: {exc}") from exc
        try:
            png = cairosvg.svg2png(bytestring=svg.encode("utf-8"), scale=self.scale)
        except Exception as exc:
            raise RasterizationFailure(f"rasterization failed: {exc}") from exc
        if not png:
            raise RasterizationFailure("rasterizer returned no data")
        return bytes(png)


# ============================================================================
# Vega-Lite
# ============================================================================

_INTERPOLATE = {"step": "step", "step_before": "step-before", "step_after": "step-after"}

_CHANNELS: dict[Channel, type] = {
    Channel.X: alt.X,
    Channel.Y: alt.Y,
    Channel.Y2: alt.Y2,
    Channel.THETA: alt.Theta,
    Channel.COLOR: alt.Color,
    Channel.SHAPE: alt.Shape,
    Channel.SIZE: alt.Size,
    Channel.OPACITY: alt.Opacity,
    Channel.TEXT: alt.Text,
    Channel.STROKE: alt.Stroke,
    Channel.STROKE_WIDTH: alt.StrokeWidth,
}

_SWAP = {"x": "y", "y": "x", "x2": "y2", "y2": "x2"}


def _edge_names(field: str) -> tuple[str, str]:
    return f"{field}_start", f"{field}_end"


def _positional_scale(scale: Scale) -> alt.Scale:
    if isinstance(scale, DiscreteScale):
        return alt.Scale(domain=list(scale.categories))
    lo, hi = scale.domain
    kind = "log" if scale.kind is ScaleKind.LOG else "linear"
    return alt.Scale(type=kind, domain=[lo, hi], zero=False, nice=False)


class _LayerSpec:
    """Encoding and data assembly for one processed layer."""

    def __init__(self, layer: ProcessedChartData, document: Document) -> None:
        self.layer = layer
        self.doc = document
        self.enc = layer.derived.encodings
        self.style = layer.style
        self.frame = layer.derived.frame

    # --- channels ---------------------------------------------------------

    def _field(self, channel: Channel) -> str:
        name = self.enc.field(channel)
        if name is None:
            raise MissingRequiredChannel(
                f"{self.enc.mark.value} layer needs channel {channel.value!r}"
            )
        return name

    def _vl_type(self, channel: Channel) -> str:
        return "nominal" if self.enc.is_discrete(channel) else "quantitative"

    def _title(self, channel: Channel) -> str | None:
        if channel is Channel.X:
            return self.doc.x_title
        if channel is Channel.Y:
            return self.doc.y_title
        e = self.enc.get(channel)
        return e.title if e is not None else None

    def _position(self, slot: str, field: str, channel: Channel, **extra: Any) -> tuple[str, Any]:
        frame = self.doc.frame
        scale = frame.x if channel is Channel.X else frame.y
        name = _SWAP[slot] if self.doc.frame.swapped else slot
        cls = {"x": alt.X, "y": alt.Y, "x2": alt.X2, "y2": alt.Y2}[name]
        if name in ("x2", "y2"):
            return name, cls(field)
        kwargs: dict[str, Any] = {"type": self._vl_type(channel), "scale": _positional_scale(scale)}
        title = self._title(channel)
        if title is not None:
            kwargs["title"] = title
        kwargs.update(extra)
        return name, cls(field, **kwargs)

    def _color(self, channel: Channel) -> Any:
        field = self._field(channel)
        aes = self.layer.aesthetics
        info = aes.color if channel is Channel.COLOR else aes.stroke
        kwargs: dict[str, Any] = {"type": self._vl_type(channel)}
        if info is not None and info.discrete:
            cats = info.categories
            kwargs["scale"] = alt.Scale(domain=cats, range=[info.color_for(c) for c in cats])
        elif info is not None and info.colormap is not None:
            kwargs["scale"] = alt.Scale(scheme=info.colormap.name, domain=list(info.domain or ()))
        title = self._title(channel)
        if title is not None:
            kwargs["title"] = title
        return _CHANNELS[channel](field, **kwargs)

    def _extras(self, skip: tuple[Channel, ...] = ()) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for e in self.enc:
            ch = e.channel
            if ch in skip or ch in (Channel.X, Channel.Y, Channel.Y2, Channel.THETA):
                continue
            if e.field not in self.frame.columns:
                continue
            if ch in (Channel.COLOR, Channel.STROKE):
                out[ch.value] = self._color(ch)
            elif ch is Channel.STROKE_WIDTH:
                out["strokeWidth"] = alt.StrokeWidth(e.field, type=self._vl_type(ch))
            elif ch is Channel.TEXT:
                out["text"] = alt.Text(e.field, type=self._vl_type(ch))
            else:
                out[ch.value] = _CHANNELS[ch](e.field, type=self._vl_type(ch))
        return out

    def _mark_kwargs(self) -> dict[str, Any]:
        s = self.style
        out: dict[str, Any] = {}
        if Channel.COLOR not in self.enc and s.color is not None:
            out["color"] = s.color
        if s.opacity is not None:
            out["opacity"] = s.opacity
        if s.stroke is not None and s.stroke != "none":
            out["stroke"] = s.stroke
        if s.stroke_width:
            out["strokeWidth"] = s.stroke_width
        return out

    # --- data -------------------------------------------------------------

    def _data(self, frame: pl.DataFrame) -> alt.InlineData:
        return alt.InlineData(values=json_safe(frame.to_dicts()))

    def _with_edges(self) -> tuple[pl.DataFrame, dict[str, tuple[str, str]]]:
        frame = self.frame
        edges: dict[str, tuple[str, str]] = {}
        for field, spec in self.layer.derived.bins.items():
            if field not in frame.columns:
                continue
            lo, hi = _edge_names(field)
            half = spec.width / 2.0
            frame = frame.with_columns(
                (pl.col(field) - half).alias(lo), (pl.col(field) + half).alias(hi)
            )
            edges[field] = (lo, hi)
        return frame, edges

    # --- per mark ---------------------------------------------------------

    def build(self) -> list[alt.Chart]:
        mark = self.layer.mark
        builder = getattr(self, f"_build_{mark.value}", None)
        if builder is None:
            return [self._build_simple(mark)]
        return builder()

    def _xy(self, frame: pl.DataFrame | None = None) -> dict[str, Any]:
        columns = (self.frame if frame is None else frame).columns
        out: dict[str, Any] = {}
        for slot, ch in (("x", Channel.X), ("y", Channel.Y)):
            field = self.enc.field(ch)
            if field is not None and field in columns:
                name, value = self._position(slot, field, ch)
                out[name] = value
        y2 = self.enc.field(Channel.Y2)
        if y2 is not None and y2 in columns:
            name, value = self._position("y2", y2, Channel.Y)
            out[name] = value
        return out

    def _build_simple(self, mark: MarkKind) -> alt.Chart:
        kwargs = self._mark_kwargs()
        if mark is MarkKind.POINT:
            kwargs["filled"] = True
            if self.style.shape is not None and Channel.SHAPE not in self.enc:
                kwargs["shape"] = self.style.shape.value
        if mark is MarkKind.TEXT:
            kwargs.pop("stroke", None)
            kwargs.pop("strokeWidth", None)
            if self.style.font_size is not None:
                kwargs["fontSize"] = self.style.font_size
            if self.style.text_anchor is not None:
                kwargs["align"] = {"start": "left", "end": "right"}.get(
                    self.style.text_anchor, "center"
                )
        encoding = {**self._xy(), **self._extras()}
        chart = alt.Chart(self._data(self.frame))
        return getattr(chart, f"mark_{mark.value}")(**kwargs).encode(**encoding)

    def _build_line(self) -> list[alt.Chart]:
        kwargs = self._mark_kwargs()
        kwargs.pop("stroke", None)
        interp = self.style.interpolation
        if self.layer.derived.ecdf:
            kwargs["interpolate"] = "step-after"
        elif interp is not None and interp.value in _INTERPOLATE:
            kwargs["interpolate"] = _INTERPOLATE[interp.value]
        encoding = {**self._xy(), **self._extras()}
        return [alt.Chart(self._data(self.frame)).mark_line(**kwargs).encode(**encoding)]

    def _build_area(self) -> list[alt.Chart]:
        kwargs = self._mark_kwargs()
        interp = self.style.interpolation
        if interp is not None and interp.value in _INTERPOLATE:
            kwargs["interpolate"] = _INTERPOLATE[interp.value]
        encoding = {**self._xy(), **self._extras()}
        return [alt.Chart(self._data(self.frame)).mark_area(**kwargs).encode(**encoding)]

    def _build_bar(self) -> list[alt.Chart]:
        encoding = {**self._xy(), **self._extras()}
        color = self.enc.field(Channel.COLOR)
        if color is not None and self.enc.is_discrete(Channel.COLOR):
            slot = "yOffset" if self.doc.frame.swapped else "xOffset"
            offset = alt.XOffset if slot == "xOffset" else alt.YOffset
            encoding[slot] = offset(color, type="nominal")
        chart = alt.Chart(self._data(self.frame)).mark_bar(**self._mark_kwargs())
        return [chart.encode(**encoding)]

    def _binned_axes(self) -> tuple[pl.DataFrame, dict[str, Any]]:
        frame, edges = self._with_edges()
        encoding: dict[str, Any] = {}
        for slot, ch in (("x", Channel.X), ("y", Channel.Y)):
            field = self.enc.field(ch)
            if field is None:
                continue
            if field in edges:
                lo, hi = edges[field]
                name, value = self._position(slot, lo, ch, type="quantitative")
                encoding[name] = value
                name2, value2 = self._position(f"{slot}2", hi, ch)
                encoding[name2] = value2
            else:
                name, value = self._position(slot, field, ch)
                encoding[name] = value
        return frame, encoding

    def _build_histogram(self) -> list[alt.Chart]:
        frame, encoding = self._binned_axes()
        encoding.update(self._extras())
        return [alt.Chart(self._data(frame)).mark_bar(**self._mark_kwargs()).encode(**encoding)]

    def _build_rect(self) -> list[alt.Chart]:
        frame, encoding = self._binned_axes()
        encoding.update(self._extras())
        return [alt.Chart(self._data(frame)).mark_rect(**self._mark_kwargs()).encode(**encoding)]

    def _build_arc(self) -> list[alt.Chart]:
        theta = self._field(Channel.THETA)
        kwargs = self._mark_kwargs()
        ratio = self.style.inner_radius_ratio or 0.0
        if ratio > 0.0:
            kwargs["innerRadius"] = ratio * self.doc.frame.radius
        encoding = {"theta": alt.Theta(theta, type="quantitative", stack=True), **self._extras()}
        return [alt.Chart(self._data(self.frame)).mark_arc(**kwargs).encode(**encoding)]

    def _build_boxplot(self) -> list[alt.Chart]:
        chart = self.layer.chart
        fields = [f for f in self.enc.source_fields() if f in chart.data.columns]
        raw = chart.data.select(fields).drop_nulls()
        kwargs: dict[str, Any] = {"extent": 1.5}
        if Channel.COLOR not in self.enc and self.style.color is not None:
            kwargs["color"] = self.style.color
        encoding = {**self._xy(raw), **self._extras()}
        return [alt.Chart(self._data(raw)).mark_boxplot(**kwargs).encode(**encoding)]

    def _build_errorbar(self) -> list[alt.Chart]:
        names = self.layer.derived.errorbar
        if names is None:
            raise MissingRequiredChannel("errorbar layer needs derived lower/upper bounds")
        x_field = self._field(Channel.X)
        data = self._data(self.frame)
        extras = self._extras()
        x_name, x_value = self._position("x", x_field, Channel.X)
        lo_name, lo_value = self._position("y", names.lower, Channel.Y)
        hi_name, hi_value = self._position("y2", names.upper, Channel.Y)
        kwargs = self._mark_kwargs()
        rule = alt.Chart(data).mark_rule(**kwargs).encode(
            **{x_name: x_value, lo_name: lo_value, hi_name: hi_value}, **extras
        )
        charts = [rule]
        if self.style.show_center:
            c_name, c_value = self._position("y", names.center, Channel.Y)
            point_kwargs = {k: v for k, v in kwargs.items() if k != "strokeWidth"}
            point = alt.Chart(data).mark_point(filled=True, **point_kwargs)
            charts.append(point.encode(**{x_name: x_value, c_name: c_value}, **extras))
        return charts


@dataclass(frozen=True)
class VegaLiteBackend:
    """
    Vega-Lite v5 export through altair.

    Each non-empty layer becomes one or more altair layers over its transformed rows:
    binned axes are exported as start/end edges, errorbars as a rule plus a center point,
    boxplots as ``mark_boxplot`` over the source rows. Inline datasets are consolidated by
    altair into the top-level ``datasets`` block.
    """

    format: ClassVar[OutputFormat] = OutputFormat.JSON
    mime: ClassVar[str] = MIME_VEGALITE

    def render_to(self, document: Document) -> str:
        return json_dumps_pretty(self.spec(document))

    def spec(self, document: Document) -> JsonDict:
        left, top, right, bottom = document.frame.plot
        width, height = right - left, bottom - top
        meta = {"plotgram": DOCUMENT_V.as_dict()}
        if not document.layers:
            out: JsonDict = {
                "$schema": VEGALITE_SCHEMA,
                "width": width,
                "height": height,
                "layer": [],
                "usermeta": meta,
            }
            if document.title:
                out["title"] = document.title
            return out

        charts: list[alt.Chart] = []
        for layer in document.layers:
            charts.extend(_LayerSpec(layer, document).build())
        props: dict[str, Any] = {"width": width, "height": height, "usermeta": meta}
        if document.title:
            props["title"] = document.title
        background = document.canvas.background
        if background:
            props["background"] = background
        chart = alt.layer(*charts).properties(**props)
        chart = _apply_chart_defaults(chart, document)
        spec = chart.to_dict()
        spec["$schema"] = VEGALITE_SCHEMA
        logger.debug("vega-lite spec with %d layer(s)", len(spec.get("layer", [])))
        return spec


def _apply_chart_defaults(ch: alt.LayerChart, document: Document) -> alt.LayerChart:
    theme = document.theme
    return (
        ch.configure_axis(
            labelFontSize=theme.tick_size,
            titleFontSize=theme.label_size,
            grid=theme.grid,
            gridColor=theme.grid_color,
            domainColor=theme.axis_color,
            tickSize=theme.tick_length,
        )
        .configure_legend(labelFontSize=theme.tick_size, titleFontSize=theme.label_size)
        .configure_title(fontSize=theme.title_size)
        .configure_view(strokeOpacity=0)
    )


BACKENDS: dict[OutputFormat, type] = {
    OutputFormat.SVG: SvgBackend,
    OutputFormat.PNG: PngBackend,
    OutputFormat.JSON: VegaLiteBackend,
}


def backend_for(fmt: OutputFormat, *, raster_scale: float = 2.0) -> Backend:
    """Instantiate the backend registered for ``fmt``."""
    if fmt is OutputFormat.PNG:
        return PngBackend(scale=raster_scale)
    return BACKENDS[fmt]()
