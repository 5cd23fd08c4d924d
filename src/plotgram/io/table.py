"""
Table ingestion and dtype normalization for plotgram.

Purpose
- Accept the in-memory shapes callers hand to ``Chart.build`` and return one normalized
  polars DataFrame the rest of the pipeline can rely on.
- Decode self-describing Parquet bytes so callers are decoupled from our polars version.

Checks performed
- Every column maps to one of two kinds:
  - continuous: all integer/float widths cast to Float64; Date/Datetime become epoch ms (Float64).
  - discrete: String, Categorical, Enum, and Boolean become String.
- Any other dtype (lists, structs, binary, objects, durations) raises UnsupportedColumnType.

Notes
- The caller's table is never mutated; polars operations return new frames.
- All-null columns (dtype Null) are treated as continuous; their rows are dropped once the
  column is encoded.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Iterable, Mapping
from typing import Any

import polars as pl
import pyarrow as pa

from plotgram.core.errors import TableDecodeError, UnsupportedColumnType

__all__ = [
    "load_table",
    "normalize_frame",
    "drop_null_rows",
    "to_parquet_bytes",
]

logger = logging.getLogger(__name__)

_PARQUET_MAGIC = b"PAR1"


def _is_discrete_dtype(dtype: pl.DataType) -> bool:
    return dtype == pl.String or dtype == pl.Boolean or isinstance(dtype, (pl.Categorical, pl.Enum))


def _normalize_expr(name: str, dtype: pl.DataType) -> pl.Expr:
    col = pl.col(name)
    if dtype == pl.Null or dtype.is_numeric():
        return col.cast(pl.Float64)
    if dtype == pl.Date or isinstance(dtype, pl.Datetime):
        return col.dt.epoch("ms").cast(pl.Float64)
    if _is_discrete_dtype(dtype):
        return col.cast(pl.String)
    raise UnsupportedColumnType(
        f"column {name!r} has unsupported dtype {dtype}; "
        "expected numeric, temporal (date/datetime), string, categorical, or boolean"
    )


def normalize_frame(df: pl.DataFrame) -> pl.DataFrame:
    """
    Cast every column to Float64 (continuous) or String (discrete).

    Args:
        df (pl.DataFrame): Source frame.

    Returns:
        pl.DataFrame: New frame with the same column names and order.

    Raises:
        UnsupportedColumnType: If any column has a dtype outside the supported set.

    Examples:
        >>> import polars as pl
        >>> normalize_frame(pl.DataFrame({"a": [1, 2], "b": [True, False]})).dtypes
        [Float64, String]
    """
    exprs = [_normalize_expr(name, dtype) for name, dtype in df.schema.items()]
    if not exprs:
        return df
    return df.select(exprs)


def drop_null_rows(df: pl.DataFrame, fields: Iterable[str]) -> pl.DataFrame:
    """
    Drop rows with nulls (or NaN for floats) in any of the given fields.

    Fields absent from the frame are ignored so output-only names (e.g., a histogram's
    count column) can be passed through unchanged.
    """
    present = [f for f in dict.fromkeys(fields) if f in df.columns]
    if not present:
        return df
    out = df.drop_nulls(subset=present)
    nan_cols = [f for f in present if out.schema[f] == pl.Float64]
    if nan_cols:
        out = out.filter(~pl.any_horizontal([pl.col(c).is_nan() for c in nan_cols]))
    if out.height != df.height:
        logger.debug("dropped %d rows with missing values in %s", df.height - out.height, present)
    return out


def _decode_parquet(data: bytes) -> pl.DataFrame:
    if not data.startswith(_PARQUET_MAGIC):
        raise TableDecodeError("bytes do not look like a Parquet file (missing PAR1 header)")
    try:
        return pl.read_parquet(io.BytesIO(data))
    except Exception as exc:
        raise TableDecodeError(f"failed to decode Parquet bytes: {exc}") from exc


def load_table(source: Any) -> pl.DataFrame:
    """
    Ingest a table-like source and return a normalized polars DataFrame.

    Args:
        source: One of ``polars.DataFrame``, ``polars.LazyFrame`` (collected),
            ``pyarrow.Table``, ``Mapping[str, Sequence]``, or ``bytes`` holding a Parquet file.

    Returns:
        pl.DataFrame: Normalized frame (see ``normalize_frame``).

    Raises:
        TableDecodeError: If bytes cannot be decoded, columns have mismatched lengths,
            or the source type is not supported.
        UnsupportedColumnType: If a column dtype cannot be mapped to a scale.

    Examples:
        >>> load_table({"x": ["a", "b"], "y": [1, 2]}).schema
        Schema({'x': String, 'y': Float64})
    """
    if isinstance(source, pl.DataFrame):
        df = source
    elif isinstance(source, pl.LazyFrame):
        df = source.collect()
    elif isinstance(source, pa.Table):
        df = pl.from_arrow(source)  # type: ignore[assignment]
    elif isinstance(source, (bytes, bytearray, memoryview)):
        df = _decode_parquet(bytes(source))
    elif isinstance(source, Mapping):
        try:
            df = pl.DataFrame({str(k): list(v) for k, v in source.items()})
        except (pl.exceptions.PolarsError, TypeError, ValueError) as exc:
            raise TableDecodeError(f"could not build a table from mapping: {exc}") from exc
    else:
        raise TableDecodeError(
            f"unsupported table source {type(source).__name__}; expected a polars DataFrame, "
            "LazyFrame, pyarrow Table, mapping of columns, or Parquet bytes"
        )
    return normalize_frame(df)


def to_parquet_bytes(df: pl.DataFrame) -> bytes:
    """Serialize a frame to Parquet bytes (used by the external bridge)."""
    buf = io.BytesIO()
    df.write_parquet(buf)
    return buf.getvalue()
