from __future__ import annotations

from pathlib import Path

import polars as pl
import pytest
from pydantic import ValidationError

from plotgram import (
    Chart,
    DensityTransform,
    EncodingError,
    FieldEncoding,
    MissingField,
    MissingRequiredChannel,
    UnsupportedChannelForMark,
    x,
    y,
)
from plotgram.core.grammar import Channel, MarkKind


@pytest.fixture
def df() -> pl.DataFrame:
    return pl.DataFrame({"a": ["p", "q", "q"], "b": [1.0, 2.0, 4.0]})


def test_builders_return_new_charts(df: pl.DataFrame) -> None:
    # Arrange
    base = Chart.build(df)

    # Act
    bar = base.mark_bar(color="steelblue")
    encoded = bar.encode(x("a"), y("b"))

    # Assert
    assert base.mark is None
    assert bar.encodings is None
    assert encoded.mark is MarkKind.BAR
    assert encoded.encodings is not None
    assert encoded.encodings.field(Channel.X) == "a"
    assert encoded.data is base.data


def test_keyword_encodings(df: pl.DataFrame) -> None:
    chart = Chart.build(df).mark_point().encode(x="a", y=FieldEncoding(channel="x", field="b"))

    assert chart.encodings is not None
    assert chart.encodings.field(Channel.Y) == "b"


def test_encode_before_mark_fails(df: pl.DataFrame) -> None:
    with pytest.raises(MissingRequiredChannel):
        Chart.build(df).encode(x("a"), y("b"))


def test_encode_validates_against_table_and_mark(df: pl.DataFrame) -> None:
    with pytest.raises(MissingField):
        Chart.build(df).mark_point().encode(x("a"), y("nope"))
    with pytest.raises(UnsupportedChannelForMark):
        Chart.build(df).mark_point().encode(x("a"), y("b"), theta="b")


def test_changing_mark_revalidates_encodings(df: pl.DataFrame) -> None:
    chart = Chart.build(df).mark_point().encode(x("a"), y("b"))

    assert chart.mark_line().mark is MarkKind.LINE
    with pytest.raises(EncodingError):
        chart.mark_arc()


def test_restyle_overlays_and_rejects_unknown_keys(df: pl.DataFrame) -> None:
    chart = Chart.build(df).mark_point(color="red", size=4.0).configure_mark(size=9.0)

    assert chart.style.color == "red"
    assert chart.style.size == 9.0
    with pytest.raises(ValidationError):
        chart.configure_mark(colour="red")
    with pytest.raises(ValueError):
        chart.mark_as("sparkle")


def test_transform_density_grid_from_settings(
    df: pl.DataFrame, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PLOTGRAM_KDE_STEPS", "17")

    from_settings = Chart.build(df).transform_density(field="b")
    explicit = Chart.build(df).transform_density(DensityTransform(field="b", steps=5))

    assert from_settings.data.height == 17
    assert explicit.data.height == 5
    assert explicit.data.columns[:2] == ["value", "density"]


def test_transform_window_marks_ecdf(df: pl.DataFrame) -> None:
    chart = Chart.build(df).transform_window(field="b", op="ecdf").mark_line()

    assert chart.ecdf
    assert "cume_dist" in chart.data.columns
    assert not chart.transform_window(field="b", op="row_number").ecdf


def test_single_layer_outputs(df: pl.DataFrame, tmp_path: Path) -> None:
    chart = Chart.build(df).mark_bar().encode(x("a"), y("b"))

    assert chart.to_svg().startswith("<svg")
    assert chart.to_vegalite()["layer"]
    out = chart.save(tmp_path / "nested" / "bars.svg")
    assert out.read_text(encoding="utf-8") == chart.to_svg()
