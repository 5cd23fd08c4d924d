from __future__ import annotations

import polars as pl
import pytest

from plotgram import Chart, LayeredChart, RenderSettings, x, y
from plotgram.core.errors import RasterizationFailure
from plotgram.render.backends import PngBackend, SvgBackend
from plotgram.render.primitives import Canvas, Group, Rect, Text


@pytest.fixture
def layered() -> LayeredChart:
    df = pl.DataFrame({"u": [0.0, 1.0, 2.0], "v": [1.0, 3.0, 2.0]})
    base = Chart.build(df)
    return (
        LayeredChart(settings=RenderSettings())
        .with_layer(base.mark_line().encode(x("u"), y("v")))
        .with_layer(base.mark_point().encode(x("u"), y("v")))
    )


def test_canvas_serialization_with_clip_and_escaping() -> None:
    canvas = Canvas(
        width=40,
        height=20,
        background="#eee",
        children=(
            Group((Rect(1, 2, 3, 4, fill="red"),), cls="inner", clip=(0, 0, 10, 10)),
            Text(5, 5, "a < b & c"),
        ),
    )

    svg = SvgBackend().render_canvas(canvas)

    assert svg.startswith("<svg")
    assert 'viewBox="0 0 40 20"' in svg
    assert '<clipPath id="clip-0"><rect x="0" y="0" width="10" height="10"/></clipPath>' in svg
    assert 'class="inner" clip-path="url(#clip-0)"' in svg
    assert 'fill="#eee"' in svg
    assert "a &lt; b &amp; c" in svg
    assert svg.rstrip().endswith("</svg>")


def test_layers_painted_in_insertion_order(layered: LayeredChart) -> None:
    svg = layered.with_title("Trend & points").to_svg()

    line_at = svg.index('class="layer layer-0 mark-line"')
    point_at = svg.index('class="layer layer-1 mark-point"')
    assert line_at < point_at
    assert 'id="clip-1"' in svg
    assert "Trend &amp; points" in svg
    assert 'class="background"' in svg


def test_svg_output_is_deterministic(layered: LayeredChart) -> None:
    assert layered.to_svg() == layered.to_svg()


def test_background_override(layered: LayeredChart) -> None:
    svg = layered.with_background("#123456").to_svg()

    assert 'fill="#123456"' in svg


def test_rasterize_failures_are_wrapped(monkeypatch: pytest.MonkeyPatch) -> None:
    import importlib

    def _missing(name: str):
        raise ImportError(f"no module named {name}")

    monkeypatch.setattr(importlib, "import_module", _missing)

    with pytest.raises(RasterizationFailure):
        PngBackend().rasterize("<svg/>")


def test_boxplot_chart_renders_to_svg() -> None:
    # Arrange
    df = pl.DataFrame({"k": ["a"] * 6 + ["b"] * 6, "v": [1.0, 2, 3, 4, 5, 50] * 2})
    chart = Chart.build(df).mark_boxplot().encode(x("k"), y("v"))

    # Act
    svg = chart.to_svg()

    # Assert
    assert 'class="layer layer-0 mark-boxplot"' in svg
    assert svg.count("<circle") >= 2
