"""
plotgram: a declarative grammar-of-graphics charting engine.

Build a ``Chart`` from a table, pick a mark, bind columns to visual channels, and render
to SVG, PNG, or a Vega-Lite JSON specification. Several charts stack into a
``LayeredChart`` that shares one coordinate frame and one set of legends.

Examples
--------
>>> import polars as pl
>>> from plotgram import Chart, x, y
>>> df = pl.DataFrame({"a": [1.0, 2.0, 3.0], "b": [2.0, 4.0, 3.0]})
>>> svg = Chart.build(df).mark_line().encode(x("a"), y("b")).to_svg()
>>> svg.startswith("<svg")
True
"""

from __future__ import annotations

import logging

from .chart import Chart
from .core.errors import (
    DataError,
    DegenerateDomain,
    DuplicateChannel,
    EmptySourceTable,
    EncodingError,
    ExportError,
    ExternalProcessFailure,
    InvalidBandwidth,
    IOFailure,
    MalformedExternalOutput,
    MissingField,
    MissingRequiredChannel,
    NonPositiveLogDomain,
    PlotgramError,
    RasterizationFailure,
    ScaleError,
    TableDecodeError,
    TransformError,
    UnsupportedChannelForMark,
    UnsupportedColumnType,
    UnsupportedOutputFormat,
    UnsupportedWindowOp,
)
from .core.schema import FieldEncoding, MarkStyle
from .encoding import color, opacity, shape, size, stroke, stroke_width, text, theta, x, y, y2
from .io.config import RenderSettings
from .io.table import load_table
from .layered import Document, LayeredChart
from .transform.density import DensityTransform
from .transform.window import WindowTransform
from .visual.theme import Theme

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Chart",
    "LayeredChart",
    "Document",
    "FieldEncoding",
    "MarkStyle",
    "DensityTransform",
    "WindowTransform",
    "Theme",
    "RenderSettings",
    "load_table",
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
    "PlotgramError",
    "EncodingError",
    "MissingField",
    "UnsupportedChannelForMark",
    "MissingRequiredChannel",
    "DuplicateChannel",
    "UnsupportedColumnType",
    "DataError",
    "EmptySourceTable",
    "TableDecodeError",
    "ScaleError",
    "NonPositiveLogDomain",
    "DegenerateDomain",
    "TransformError",
    "UnsupportedWindowOp",
    "InvalidBandwidth",
    "ExportError",
    "UnsupportedOutputFormat",
    "RasterizationFailure",
    "IOFailure",
    "ExternalProcessFailure",
    "MalformedExternalOutput",
]
