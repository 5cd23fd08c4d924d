from __future__ import annotations

import datetime as dt

import polars as pl
import pyarrow as pa
import pytest

from plotgram.core.errors import TableDecodeError, UnsupportedColumnType
from plotgram.io.table import drop_null_rows, load_table, normalize_frame, to_parquet_bytes


def test_normalize_casts_numeric_and_discrete() -> None:
    df = pl.DataFrame(
        {
            "i": [1, 2],
            "f": [0.5, 1.5],
            "s": ["a", "b"],
            "b": [True, False],
            "c": pl.Series(["x", "y"], dtype=pl.Categorical),
        }
    )

    out = normalize_frame(df)

    assert out.schema == pl.Schema(
        {"i": pl.Float64, "f": pl.Float64, "s": pl.String, "b": pl.String, "c": pl.String}
    )


def test_temporal_columns_become_epoch_millis() -> None:
    df = pl.DataFrame({"t": [dt.datetime(1970, 1, 1, 0, 0, 1)], "d": [dt.date(1970, 1, 2)]})

    out = normalize_frame(df)

    assert out.get_column("t").to_list() == [1000.0]
    assert out.get_column("d").to_list() == [86_400_000.0]


def test_unsupported_dtype_raises() -> None:
    df = pl.DataFrame({"l": [[1, 2], [3]]})
    with pytest.raises(UnsupportedColumnType):
        normalize_frame(df)


@pytest.mark.parametrize(
    "source",
    [
        {"x": ["a", "b"], "y": [1, 2]},
        pl.DataFrame({"x": ["a", "b"], "y": [1, 2]}),
        pl.DataFrame({"x": ["a", "b"], "y": [1, 2]}).lazy(),
        pa.table({"x": ["a", "b"], "y": [1, 2]}),
    ],
)
def test_load_table_sources(source: object) -> None:
    out = load_table(source)
    assert out.columns == ["x", "y"]
    assert out.get_column("y").dtype == pl.Float64


def test_load_table_parquet_bytes() -> None:
    raw = to_parquet_bytes(pl.DataFrame({"v": [1.0, 2.0]}))
    assert load_table(raw).get_column("v").to_list() == [1.0, 2.0]


def test_load_table_rejects_garbage() -> None:
    with pytest.raises(TableDecodeError):
        load_table(b"not parquet")
    with pytest.raises(TableDecodeError):
        load_table(42)
    with pytest.raises(TableDecodeError):
        load_table({"a": [1, 2], "b": [1]})


def test_drop_null_rows_ignores_nan_and_unknown_fields() -> None:
    df = pl.DataFrame({"a": [1.0, None, float("nan"), 4.0], "b": ["p", "q", "r", None]})

    out = drop_null_rows(df, ["a", "count"])

    assert out.get_column("a").to_list() == [1.0, 4.0]
