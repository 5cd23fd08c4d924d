from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

import polars as pl
import pytest

from plotgram import Chart, LayeredChart, RenderSettings, color, x, y
from plotgram.core.versioning import DOCUMENT_V, VEGALITE_SCHEMA


def find_in_spec(spec: Any, key: str) -> Iterator[Any]:
    """Yield every value stored under ``key`` anywhere in a nested spec."""
    if isinstance(spec, dict):
        for k, v in spec.items():
            if k == key:
                yield v
            yield from find_in_spec(v, key)
    elif isinstance(spec, list):
        for item in spec:
            yield from find_in_spec(item, key)


def mark_types(spec: dict[str, Any]) -> list[str]:
    return [m if isinstance(m, str) else m["type"] for m in find_in_spec(spec, "mark")]


def _doc() -> LayeredChart:
    return LayeredChart(settings=RenderSettings())


@pytest.fixture
def groups() -> pl.DataFrame:
    return pl.DataFrame(
        {"k": ["a", "a", "a", "b", "b", "b"], "v": [1.0, 2.0, 3.0, 4.0, 6.0, 8.0]}
    )


def test_spec_header_and_metadata(groups: pl.DataFrame) -> None:
    chart = Chart.build(groups).mark_point().encode(x("k"), y("v"))

    spec = _doc().with_layer(chart).with_title("Groups").to_vegalite()

    assert spec["$schema"] == VEGALITE_SCHEMA
    assert spec["usermeta"]["plotgram"] == DOCUMENT_V.as_dict()
    assert spec["title"] == "Groups"
    assert spec["width"] == pytest.approx(375.0)
    assert spec["height"] == pytest.approx(300.0)


def test_rows_are_consolidated_into_datasets(groups: pl.DataFrame) -> None:
    chart = Chart.build(groups).mark_point().encode(x("k"), y("v"))

    spec = _doc().with_layer(chart).to_vegalite()

    datasets = spec["datasets"]
    assert [len(rows) for rows in datasets.values()] == [6]
    names = [d["name"] for d in find_in_spec(spec["layer"], "data")]
    assert set(names) <= set(datasets)


def test_errorbar_exports_rule_and_center_point(groups: pl.DataFrame) -> None:
    chart = Chart.build(groups).mark_errorbar().encode(x("k"), y("v"))

    spec = _doc().with_layer(chart).to_vegalite()

    assert mark_types(spec) == ["rule", "point"]
    rule_enc = spec["layer"][0]["encoding"]
    assert set(rule_enc) >= {"x", "y", "y2"}


def test_boxplot_uses_source_rows(groups: pl.DataFrame) -> None:
    chart = Chart.build(groups).mark_boxplot().encode(x("k"), y("v"))

    spec = _doc().with_layer(chart).to_vegalite()

    assert mark_types(spec) == ["boxplot"]
    assert spec["layer"][0]["mark"]["extent"] == 1.5
    assert [len(rows) for rows in spec["datasets"].values()] == [6]


def test_histogram_exports_bin_edges() -> None:
    df = pl.DataFrame({"a": [0.0, 1.0, 2.0, 3.0, 10.0]})
    chart = Chart.build(df).mark_histogram().encode(x("a", bins=5))

    spec = _doc().with_layer(chart).to_vegalite()

    enc = spec["layer"][0]["encoding"]
    assert enc["x"]["field"] == "a_start"
    assert enc["x2"]["field"] == "a_end"
    rows = next(iter(spec["datasets"].values()))
    assert rows[0]["a_start"] == pytest.approx(0.0)
    assert rows[0]["a_end"] == pytest.approx(2.0)


def test_ecdf_line_is_step_after() -> None:
    df = pl.DataFrame({"v": [3.0, 1.0, 2.0]})
    chart = (
        Chart.build(df)
        .transform_window(op="cume_dist", field="v", as_="F")
        .mark_line()
        .encode(x("v"), y("F"))
    )

    spec = _doc().with_layer(chart).to_vegalite()

    assert spec["layer"][0]["mark"]["interpolate"] == "step-after"


def test_swap_moves_categories_to_vertical_channel() -> None:
    df = pl.DataFrame({"k": ["a", "a", "b"], "g": ["p", "q", "p"], "v": [1.0, 2.0, 3.0]})
    chart = Chart.build(df).mark_bar().encode(x("k"), y("v"), color("g"))

    spec = _doc().with_layer(chart).swap_axes().to_vegalite()

    enc = spec["layer"][0]["encoding"]
    assert enc["y"]["field"] == "k"
    assert enc["x"]["field"] == "v"
    assert "yOffset" in enc
    assert enc["color"]["scale"]["domain"] == ["p", "q"]


def test_empty_document_has_no_layers() -> None:
    df = pl.DataFrame({"u": [None], "v": [1.0]}, schema={"u": pl.Float64, "v": pl.Float64})
    chart = Chart.build(df).mark_point().encode(x("u"), y("v"))

    spec = _doc().with_layer(chart).to_vegalite()

    assert spec["layer"] == []
    assert spec["usermeta"]["plotgram"]["major"] == DOCUMENT_V.major


def test_to_json_is_parseable(groups: pl.DataFrame) -> None:
    chart = Chart.build(groups).mark_point().encode(x("k"), y("v"))

    text = _doc().with_layer(chart).to_json()

    assert json.loads(text)["layer"][0]["mark"]["type"] == "point"
