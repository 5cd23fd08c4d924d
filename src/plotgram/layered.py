"""
Layer compositor: merge layers into one coordinate frame and emit a document.

Responsibilities
- Run each layer's transform (skipping layers with no rows after null-dropping).
- Merge domains per axis across layers: union of continuous extents, union of categories
  in first-appearance order; explicit domains override. Apply per-mark axis expansion.
- Merge legends: one discrete legend per color field shared across layers, one colorbar
  from the first layer with continuous color, plus shape and size keys.
- Lay out the canvas (margins, legend column, title) and draw layers in insertion order,
  index 0 bottom-most.
- Hand the resulting ``Document`` to a backend (SVG, PNG, Vega-Lite JSON).

Style precedence
- theme mark defaults < ``with_mark_defaults`` (chart-level) < the layer's own style.

Notes
- ``LayeredChart`` is immutable; every ``with_*`` call returns a new value.
- ``ProcessedChartData`` and ``Document`` live for one render call.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from plotgram.chart import Chart
from plotgram.core.constants import CONTINUOUS_PADDING, MIN_PLOT_WIDTH
from plotgram.core.errors import MissingRequiredChannel
from plotgram.core.grammar import Channel, MarkKind, ScaleKind, ShapeKind
from plotgram.core.schema import MarkStyle, merge_styles
from plotgram.core.typing import JsonDict, MimeBlock
from plotgram.io.config import RenderSettings
from plotgram.io.display import MIME_SVG, Sink
from plotgram.io.display import show as _show
from plotgram.render.axes import render_axes, render_grid
from plotgram.render.legend import (
    ColorbarLegend,
    DiscreteLegend,
    Legend,
    LegendEntry,
    SizeLegend,
    legend_width,
    render_legends,
)
from plotgram.render.marks import BEHAVIORS, Aesthetics, render_mark
from plotgram.render.primitives import Canvas, Group, Primitive, Text
from plotgram.scale.coord import CartesianFrame
from plotgram.scale.scales import (
    LinearScale,
    Scale,
    build_scale,
    expand_continuous,
    union_categories,
    union_extent,
)
from plotgram.transform.aggregate import ordered_unique
from plotgram.transform.pipeline import Derived, derive
from plotgram.visual.color import ColorInfo, get_colormap, get_palette
from plotgram.visual.theme import Theme, get_theme

__all__ = ["LayeredChart", "ProcessedChartData", "Document"]

logger = logging.getLogger(__name__)

_SHAPES = tuple(ShapeKind)
_SIZE_RANGE = (2.0, 10.0)
_OPACITY_RANGE = (0.2, 1.0)
_STROKE_WIDTH_RANGE = (0.5, 4.0)


@dataclass(frozen=True)
class ProcessedChartData:
    """
    Per-render state of one non-empty layer.

    Attributes:
        index (int): Position of the layer in the LayeredChart.
        chart (Chart): Source layer.
        derived (Derived): Transformed rows and metadata.
        style (MarkStyle): Style after theme < chart-level < layer precedence.
        aesthetics (Aesthetics): Resolved color/shape/size mappings.
        primitives (tuple[Primitive, ...]): Geometry drawn for this layer.
    """

    index: int
    chart: Chart
    derived: Derived
    style: MarkStyle
    aesthetics: Aesthetics = field(default_factory=Aesthetics)
    primitives: tuple[Primitive, ...] = ()

    @property
    def mark(self) -> MarkKind:
        return self.derived.mark


@dataclass(frozen=True)
class Document:
    """
    Composited output of one render pass, consumed by backends.

    Attributes:
        canvas (Canvas): Drawable tree.
        layers (tuple[ProcessedChartData, ...]): Non-empty layers in paint order.
        frame (CartesianFrame): Shared coordinate frame.
        settings (RenderSettings): Size, margins, palette, raster scale.
        theme (Theme): Theme in effect.
        title (str | None): Document title.
        x_title, y_title (str | None): Axis titles of the x and y channels.
        legends (tuple[Legend, ...]): Merged legends.
        show_axes (bool): Axes were drawn.
    """

    canvas: Canvas
    layers: tuple[ProcessedChartData, ...]
    frame: CartesianFrame
    settings: RenderSettings
    theme: Theme
    title: str | None = None
    x_title: str | None = None
    y_title: str | None = None
    legends: tuple[Legend, ...] = ()
    show_axes: bool = True


@dataclass(frozen=True)
class LayeredChart:
    """
    Ordered layers plus document-level overrides.

    Examples:
        >>> import polars as pl
        >>> from plotgram import Chart, x, y
        >>> a = Chart.build(pl.DataFrame({"u": [0.0, 10.0], "v": [1.0, 2.0]}))
        >>> b = Chart.build(pl.DataFrame({"u": [5.0, 20.0], "v": [1.0, 3.0]}))
        >>> lc = LayeredChart().with_layer(a.mark_line().encode(x("u"), y("v")))
        >>> lc = lc.with_layer(b.mark_point().encode(x("u"), y("v")))
        >>> lc.data_domain(Channel.X)
        (0.0, 20.0)
    """

    layers: tuple[Chart, ...] = ()
    settings: RenderSettings = field(default_factory=RenderSettings.load)
    theme: Theme | None = None
    title: str | None = None
    x_label: str | None = None
    y_label: str | None = None
    x_domain: tuple[Any, ...] | None = None
    y_domain: tuple[Any, ...] | None = None
    x_tick_values: tuple[Any, ...] | None = None
    x_tick_labels: tuple[str, ...] | None = None
    y_tick_values: tuple[Any, ...] | None = None
    y_tick_labels: tuple[str, ...] | None = None
    show_axes: bool | None = None
    show_legend: bool = True
    legend_title: str | None = None
    swapped: bool = False
    mark_defaults: MarkStyle | None = None

    # ------------------------------------------------------------------
    # Builder
    # ------------------------------------------------------------------

    def with_layer(self, chart: Chart) -> LayeredChart:
        """Append a layer on top of the existing ones."""
        return replace(self, layers=(*self.layers, chart))

    def with_layers(self, charts: Iterable[Chart]) -> LayeredChart:
        return replace(self, layers=(*self.layers, *charts))

    def with_settings(self, settings: RenderSettings) -> LayeredChart:
        return replace(self, settings=settings)

    def with_title(self, title: str | None) -> LayeredChart:
        return replace(self, title=title)

    def with_x_label(self, label: str | None) -> LayeredChart:
        return replace(self, x_label=label)

    def with_y_label(self, label: str | None) -> LayeredChart:
        return replace(self, y_label=label)

    def with_background(self, color: str | None) -> LayeredChart:
        return replace(self, settings=replace(self.settings, background=color))

    def with_axes(self, visible: bool = True) -> LayeredChart:
        return replace(self, show_axes=visible)

    def with_size(self, width: float, height: float) -> LayeredChart:
        if width <= 0 or height <= 0:
            raise ValueError(f"chart size must be positive (got {width}x{height})")
        return replace(self, settings=replace(self.settings, width=width, height=height))

    def with_margins(
        self,
        left: float | None = None,
        right: float | None = None,
        top: float | None = None,
        bottom: float | None = None,
    ) -> LayeredChart:
        """Proportional margins in [0, 0.5); unspecified sides are kept."""
        updates = {
            f"{side}_margin": v
            for side, v in (("left", left), ("right", right), ("top", top), ("bottom", bottom))
            if v is not None
        }
        for key, v in updates.items():
            if not 0.0 <= v < 0.5:
                raise ValueError(f"{key} must be in [0, 0.5) (got {v})")
        return replace(self, settings=replace(self.settings, **updates))

    def with_x_domain(self, *domain: Any) -> LayeredChart:
        """``(min, max)`` for a continuous x axis or the category list for a discrete one."""
        return replace(self, x_domain=_domain_arg(domain))

    def with_y_domain(self, *domain: Any) -> LayeredChart:
        return replace(self, y_domain=_domain_arg(domain))

    def with_x_tick_values(self, values: Sequence[Any]) -> LayeredChart:
        return replace(self, x_tick_values=tuple(values))

    def with_x_tick_labels(self, labels: Sequence[str]) -> LayeredChart:
        return replace(self, x_tick_labels=tuple(labels))

    def with_y_tick_values(self, values: Sequence[Any]) -> LayeredChart:
        return replace(self, y_tick_values=tuple(values))

    def with_y_tick_labels(self, labels: Sequence[str]) -> LayeredChart:
        return replace(self, y_tick_labels=tuple(labels))

    def with_legend(self, visible: bool = True) -> LayeredChart:
        return replace(self, show_legend=visible)

    def with_legend_title(self, title: str | None) -> LayeredChart:
        return replace(self, legend_title=title)

    def with_theme(self, theme: str | Theme) -> LayeredChart:
        """Select a registered theme by name, or pass a Theme instance."""
        return replace(self, theme=get_theme(theme))

    def with_mark_defaults(self, **style: Any) -> LayeredChart:
        """Chart-level style applied to every layer below the layer's own style."""
        base = self.mark_defaults or MarkStyle()
        return replace(self, mark_defaults=base.merge(MarkStyle(**style)))

    def swap_axes(self) -> LayeredChart:
        """Draw the x channel vertically and the y channel horizontally."""
        return replace(self, swapped=not self.swapped)

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def _theme(self) -> Theme:
        return self.theme or get_theme(self.settings.theme)

    def _style_for(self, mark: MarkKind, chart: Chart, theme: Theme) -> MarkStyle:
        return merge_styles(theme.mark_style(mark), self.mark_defaults, chart.style)

    def derive_layers(self) -> list[ProcessedChartData]:
        """
        Transform every layer; empty layers are skipped.

        Raises:
            MissingRequiredChannel: If a layer has no mark or no encodings.
        """
        theme = self._theme()
        out: list[ProcessedChartData] = []
        for i, chart in enumerate(self.layers):
            if chart.mark is None or chart.encodings is None:
                raise MissingRequiredChannel(f"layer {i} needs a mark and encodings")
            style = self._style_for(chart.mark, chart, theme)
            ecdf = chart.ecdf and chart.mark is MarkKind.LINE
            d = derive(chart.data, chart.encodings, style, ecdf=ecdf)
            if d.empty:
                logger.debug("skipping empty layer %d (%s)", i, chart.mark.value)
                continue
            out.append(ProcessedChartData(index=i, chart=chart, derived=d, style=style))
        return out

    def _axis_kind(self, layers: Sequence[ProcessedChartData], channel: Channel) -> ScaleKind:
        for p in layers:
            kind = p.derived.encodings.scale(channel)
            if kind is not None:
                return kind
        return ScaleKind.LINEAR

    def _axis_layers(
        self, layers: Sequence[ProcessedChartData], channel: Channel
    ) -> list[ProcessedChartData]:
        return [p for p in layers if channel in p.derived.encodings]

    def data_domain(self, channel: Channel) -> Any:
        """
        Merged, unpadded domain of a positional channel across non-empty layers.

        Returns ``(min, max)`` for continuous axes, a category list for discrete axes, or
        None when no layer binds the channel.
        """
        layers = self._axis_layers(self.derive_layers(), channel)
        return self._merged_domain(layers, channel)

    def _merged_domain(self, layers: Sequence[ProcessedChartData], channel: Channel) -> Any:
        if not layers:
            return None
        if self._axis_kind(layers, channel) is ScaleKind.DISCRETE:
            fields = [(p.derived.frame, p.derived.encodings.field(channel)) for p in layers]
            return union_categories(ordered_unique(f, name) for f, name in fields if name)
        return union_extent(p.derived.extents.get(channel) for p in layers)

    def _scale(
        self,
        layers: Sequence[ProcessedChartData],
        channel: Channel,
        pixel_range: tuple[float, float],
    ) -> Scale:
        bound = self._axis_layers(layers, channel)
        kind = self._axis_kind(bound, channel)
        override, ticks, labels = (
            (self.x_domain, self.x_tick_values, self.x_tick_labels)
            if channel is Channel.X
            else (self.y_domain, self.y_tick_values, self.y_tick_labels)
        )
        merged = self._merged_domain(bound, channel)
        if kind is ScaleKind.DISCRETE:
            padding = max((BEHAVIORS[p.mark].discrete_padding for p in bound), default=0.5)
            return build_scale(
                channel,
                override,
                merged or [],
                kind=kind,
                pixel_range=pixel_range,
                padding=padding,
                tick_values=ticks,
                tick_labels=labels,
            )
        zero = False
        for p in bound:
            enc = p.derived.encodings.get(channel)
            if enc is not None and enc.zero is not None:
                zero = zero or enc.zero
            elif channel is Channel.Y and BEHAVIORS[p.mark].zero_baseline:
                zero = True
        values = list(merged) if merged is not None else []
        return build_scale(
            channel,
            override,
            values,
            kind=kind,
            pixel_range=pixel_range,
            padding=CONTINUOUS_PADDING,
            zero=zero and kind is ScaleKind.LINEAR,
            tick_values=ticks,
            tick_labels=labels,
        )

    # ------------------------------------------------------------------
    # Legends and aesthetics
    # ------------------------------------------------------------------

    def _aesthetics(
        self, layers: Sequence[ProcessedChartData]
    ) -> tuple[list[ProcessedChartData], list[Legend]]:
        palette = get_palette(self.settings.palette)
        colormap = get_colormap(self.settings.colormap)

        def _collect(channel: Channel) -> tuple[dict[str, list[str]], dict[str, Any]]:
            discrete: dict[str, list[str]] = {}
            continuous: dict[str, Any] = {}
            for p in layers:
                enc = p.derived.encodings
                name = enc.field(channel)
                if name is None or name not in p.derived.frame.columns:
                    continue
                if enc.is_discrete(channel):
                    cats = ordered_unique(p.derived.frame, name)
                    discrete[name] = union_categories([discrete.get(name, []), cats])
                else:
                    ext = p.derived.extents.get(channel)
                    continuous[name] = union_extent([continuous.get(name), ext])
            return discrete, continuous

        def _continuous(ext: tuple[float, float] | None) -> tuple[float, float]:
            if ext is None:
                return (0.0, 1.0)
            return expand_continuous(*ext) if ext[0] == ext[1] else ext

        color_d, color_c = _collect(Channel.COLOR)
        colors = {f: ColorInfo.for_categories(f, cats, palette) for f, cats in color_d.items()}
        colors.update(
            {f: ColorInfo.for_range(f, _continuous(e), colormap) for f, e in color_c.items()}
        )
        stroke_d, stroke_c = _collect(Channel.STROKE)
        strokes = {f: ColorInfo.for_categories(f, cats, palette) for f, cats in stroke_d.items()}
        strokes.update(
            {f: ColorInfo.for_range(f, _continuous(e), colormap) for f, e in stroke_c.items()}
        )
        shape_d, _ = _collect(Channel.SHAPE)
        shapes = {
            f: {c: _SHAPES[i % len(_SHAPES)] for i, c in enumerate(cats)}
            for f, cats in shape_d.items()
        }
        _, size_c = _collect(Channel.SIZE)
        sizes = {f: LinearScale(_continuous(e), _SIZE_RANGE) for f, e in size_c.items()}

        def _linear(channel: Channel, rng: tuple[float, float]) -> dict[str, LinearScale]:
            _, ext = _collect(channel)
            return {f: LinearScale(_continuous(e), rng) for f, e in ext.items()}

        opacities = _linear(Channel.OPACITY, _OPACITY_RANGE)
        widths = _linear(Channel.STROKE_WIDTH, _STROKE_WIDTH_RANGE)

        processed: list[ProcessedChartData] = []
        for p in layers:
            enc = p.derived.encodings
            aes = Aesthetics(
                color=colors.get(enc.field(Channel.COLOR) or ""),
                stroke=strokes.get(enc.field(Channel.STROKE) or ""),
                shapes=shapes.get(enc.field(Channel.SHAPE) or ""),
                size=sizes.get(enc.field(Channel.SIZE) or ""),
                opacity=opacities.get(enc.field(Channel.OPACITY) or ""),
                stroke_width=widths.get(enc.field(Channel.STROKE_WIDTH) or ""),
            )
            processed.append(replace(p, aesthetics=aes))

        legends: list[Legend] = []
        if not self.show_legend:
            return processed, legends
        titles = self._legend_titles(layers)
        shape_fields_done: set[str] = set()
        for name, info in colors.items():
            title = self.legend_title or titles.get(name, name)
            if info.discrete:
                marks = shapes.get(name)
                if marks is not None:
                    shape_fields_done.add(name)
                entries = tuple(
                    LegendEntry(c, info.color_for(c), marks.get(c) if marks else None)
                    for c in info.categories
                )
                legends.append(DiscreteLegend(title, entries))
            elif info.domain is not None and info.colormap is not None:
                if any(isinstance(lg, ColorbarLegend) for lg in legends):
                    continue
                legends.append(ColorbarLegend(title, info.colormap, info.domain))
        for name, mapping in shapes.items():
            if name in shape_fields_done:
                continue
            entries = tuple(LegendEntry(c, None, s) for c, s in mapping.items())
            legends.append(DiscreteLegend(titles.get(name, name), entries))
        for name, scale in sizes.items():
            ticks = [t.value for t in scale.ticks(4)]
            legends.append(SizeLegend(titles.get(name, name), scale, tuple(ticks)))
        return processed, legends

    def _legend_titles(self, layers: Sequence[ProcessedChartData]) -> dict[str, str]:
        titles: dict[str, str] = {}
        for p in layers:
            for enc in p.derived.encodings:
                if enc.title and enc.field not in titles:
                    titles[enc.field] = enc.title
        return titles

    def _axis_title(self, layers: Sequence[ProcessedChartData], channel: Channel) -> str | None:
        explicit = self.x_label if channel is Channel.X else self.y_label
        if explicit is not None:
            return explicit
        for p in layers:
            enc = p.derived.encodings.get(channel)
            if enc is not None:
                return enc.title or enc.field
        return None

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def build_document(self) -> Document:
        """Run the full pipeline and return the composited document."""
        theme = self._theme()
        s = self.settings
        layers = self.derive_layers()
        layers, legends = self._aesthetics(layers)

        left, top, right, bottom = s.plot_rect
        lw = legend_width(legends, theme)
        if lw > 0.0:
            right = max(min(right, s.width - lw), left + MIN_PLOT_WIDTH)
        plot = (left, top, right, bottom)

        if self.swapped:
            x_range, y_range = (bottom, top), (left, right)
        else:
            x_range, y_range = (left, right), (bottom, top)
        frame = CartesianFrame(
            x=self._scale(layers, Channel.X, x_range),
            y=self._scale(layers, Channel.Y, y_range),
            plot=plot,
            swapped=self.swapped,
        )

        hide = not layers or all(BEHAVIORS[p.mark].polar for p in layers)
        show_axes = self.show_axes if self.show_axes is not None else not hide
        x_title = self._axis_title(layers, Channel.X)
        y_title = self._axis_title(layers, Channel.Y)

        children: list[Primitive] = []
        if show_axes:
            children.append(render_grid(frame, theme))
        drawn: list[ProcessedChartData] = []
        for p in layers:
            prims = tuple(render_mark(p.derived, frame, p.aesthetics, p.style))
            drawn.append(replace(p, primitives=prims))
            children.append(
                Group(prims, cls=f"layer layer-{p.index} mark-{p.mark.value}", clip=plot)
            )
        if show_axes:
            h_title, v_title = (y_title, x_title) if self.swapped else (x_title, y_title)
            children.append(render_axes(frame, theme, x_title=h_title, y_title=v_title))
        if self.title:
            children.append(
                Text(
                    s.width / 2.0,
                    top / 2.0 + theme.title_size / 3.0,
                    self.title,
                    size=theme.title_size,
                    fill=theme.text_color,
                    weight="bold",
                )
            )
        if legends:
            children.append(render_legends(legends, right + 12.0, top, theme))

        canvas = Canvas(
            width=s.width,
            height=s.height,
            background=s.background or theme.background,
            font_family=theme.font_family,
            children=tuple(children),
        )
        logger.debug(
            "composed %d/%d layers; x=%s y=%s",
            len(drawn),
            len(self.layers),
            frame.x.domain,
            frame.y.domain,
        )
        return Document(
            canvas=canvas,
            layers=tuple(drawn),
            frame=frame,
            settings=s,
            theme=theme,
            title=self.title,
            x_title=x_title,
            y_title=y_title,
            legends=tuple(legends),
            show_axes=show_axes,
        )

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def to_svg(self) -> str:
        from plotgram.render.backends import SvgBackend

        return SvgBackend().render_to(self.build_document())

    def to_png(self) -> bytes:
        """
        Rasterize the SVG document at ``settings.raster_scale``.

        Raises:
            RasterizationFailure: If cairosvg is unavailable or fails.
        """
        from plotgram.render.backends import PngBackend

        return PngBackend(scale=self.settings.raster_scale).render_to(self.build_document())

    def to_vegalite(self) -> JsonDict:
        """Vega-Lite v5 specification with embedded datasets."""
        from plotgram.render.backends import VegaLiteBackend

        return VegaLiteBackend().spec(self.build_document())

    def to_json(self) -> str:
        from plotgram.render.backends import VegaLiteBackend

        return VegaLiteBackend().render_to(self.build_document())

    def save(self, path: str | Path) -> Path:
        """
        Write the document, choosing the backend from the file extension.

        Raises:
            UnsupportedOutputFormat: If the extension is missing or unknown.
            RasterizationFailure: If PNG output cannot be produced.
            IOFailure: If the file cannot be written.
        """
        from plotgram.io.save import format_for_path, save_document

        format_for_path(path)
        return save_document(self.build_document(), path)

    def show(self, sink: Sink | None = None) -> MimeBlock:
        """Hand the SVG document to a display sink; a no-op when none is available."""
        return _show((MIME_SVG, self.to_svg()), sink)


def _domain_arg(domain: tuple[Any, ...]) -> tuple[Any, ...] | None:
    if len(domain) == 1 and (domain[0] is None or isinstance(domain[0], (list, tuple))):
        return None if domain[0] is None else tuple(domain[0])
    return tuple(domain)
