from __future__ import annotations

import polars as pl
import pytest

from plotgram.core.errors import (
    DuplicateChannel,
    MissingField,
    MissingRequiredChannel,
    UnsupportedChannelForMark,
    UnsupportedColumnType,
)
from plotgram.core.grammar import Channel, MarkKind, ScaleKind
from plotgram.encoding import ResolvedEncodings, color, resolve, theta, x, y, y2
from plotgram.transform.pipeline import derive

SCHEMA = {"a": pl.Float64, "b": pl.Float64, "k": pl.String}


def test_resolve_infers_scale_kinds() -> None:
    enc = resolve(SCHEMA, "point", [x("a"), y("b"), color("k")])
    assert enc.scale(Channel.X) is ScaleKind.LINEAR
    assert enc.is_discrete(Channel.COLOR)
    assert enc.source_fields() == ["a", "b", "k"]


def test_resolve_mapping_form() -> None:
    enc = resolve(SCHEMA, MarkKind.BAR, {"x": "k", "y": "b"})
    assert enc.field(Channel.X) == "k"


def test_histogram_defaults_count_output() -> None:
    enc = resolve(SCHEMA, "hist", [x("a")])
    assert enc.field(Channel.Y) == "count"
    assert enc.source_fields() == ["a"]


@pytest.mark.parametrize(
    "mark,encodings,error",
    [
        ("point", [x("a"), y("missing")], MissingField),
        ("point", [x("a"), y("b"), theta("a")], UnsupportedChannelForMark),
        ("bar", [x("k")], MissingRequiredChannel),
        ("arc", [theta("a")], MissingRequiredChannel),
        ("rule", [color("k")], MissingRequiredChannel),
        ("point", [x("a"), x("b"), y("b")], DuplicateChannel),
        ("point", [x("k", scale="log"), y("b")], UnsupportedColumnType),
        ("histogram", [x("k")], UnsupportedColumnType),
        ("boxplot", [x("k"), y("k")], UnsupportedColumnType),
        ("errorbar", [x("k"), y("k")], UnsupportedColumnType),
        ("errorbar", [x("k"), y("a"), y2("k")], UnsupportedColumnType),
        ("arc", [theta("k"), color("k")], UnsupportedColumnType),
        ("histogram", [x("a", scale="discrete")], UnsupportedColumnType),
    ],
)
def test_resolve_failures(mark: str, encodings: list, error: type[Exception]) -> None:
    with pytest.raises(error):
        resolve(SCHEMA, mark, encodings)


def test_derive_drops_null_rows_and_reports_empty() -> None:
    df = pl.DataFrame(
        {"a": [None, 1.0], "b": [1.0, None]}, schema={"a": pl.Float64, "b": pl.Float64}
    )
    enc = resolve(df.schema, "point", [x("a"), y("b")])

    d = derive(df, enc)

    assert d.empty


def test_derive_histogram_extent_is_bin_edges() -> None:
    df = pl.DataFrame({"a": [0.0, 1.0, 2.0, 3.0, 10.0]})
    enc = resolve(df.schema, "histogram", [x("a", bins=5)])

    d = derive(df, enc)

    assert d.extents[Channel.X] == (0.0, 10.0)
    assert d.extents[Channel.Y] == (0.0, 2.0)
    assert d.bins["a"].count == 5


def test_derive_boxplot_extent_includes_outliers() -> None:
    df = pl.DataFrame({"k": ["a"] * 6, "b": [1.0, 2.0, 3.0, 4.0, 5.0, 50.0]})
    enc = resolve(df.schema, "boxplot", [x("k"), y("b")])

    d = derive(df, enc)

    assert d.extents[Channel.Y] == (1.0, 50.0)


def test_derive_line_with_ecdf_adds_step_points() -> None:
    df = pl.DataFrame({"v": [1.0, 2.0, 4.0], "n": [1.0, 2.0, 3.0]})
    enc = resolve(df.schema, "line", [x("v"), y("n")])

    d = derive(df, enc, ecdf=True)

    assert d.ecdf
    assert d.frame.rows() == [(1.0, 0.0), (1.0, 1.0), (2.0, 2.0), (4.0, 3.0), (4.0, 3.0)]


def test_derive_rect_with_color_on_an_axis_field() -> None:
    # Arrange
    df = pl.DataFrame({"a": [0.0, 1.0, 2.0, 3.0], "b": [0.0, 0.0, 1.0, 1.0]})
    enc = resolve(df.schema, "rect", [x("a", bins=2), y("b", bins=2), color("a")])

    # Act
    d = derive(df, enc)

    # Assert
    assert d.encodings.field(Channel.COLOR) == "a_cell"
    assert d.encodings.field(Channel.X) == "a"
    assert d.frame.height == 4
    assert d.frame.get_column("a_cell").sum() == 6.0
    assert sorted(d.frame.get_column("a").unique().to_list()) == [0.75, 2.25]


def test_derive_reports_unbound_channel_as_missing() -> None:
    # Arrange
    df = pl.DataFrame({"k": ["p", "q"], "a": [1.0, 2.0]})
    enc = ResolvedEncodings(
        mark=MarkKind.ERRORBAR,
        by_channel={Channel.X: x("k")},
        scales={Channel.X: ScaleKind.DISCRETE},
    )

    # Act / Assert
    with pytest.raises(MissingRequiredChannel, match="'y'"):
        derive(df, enc)
