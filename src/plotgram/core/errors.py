"""
Exception types raised across the plotgram pipeline.

Provides typed exceptions for each stage of a chart build:
- EncodingError family for field/channel/mark validation (raised eagerly by the resolver).
- DataError family for table ingestion and empty inputs.
- ScaleError family for domain problems that cannot be recovered from.
- TransformError family for invalid statistical transform parameters.
- ExportError family for output format dispatch, rasterization, and filesystem writes.
- BridgeError family for the external rendering process boundary.

Notes:
    - This module uses only the Python standard library and has no side effects.
    - Every class derives from PlotgramError so callers can catch the whole family.
    - DegenerateDomain is a warning category, not an exception: a min == max domain is
      expanded and the pipeline continues.

Examples:
    Catch a resolver failure.

    >>> from plotgram.core.errors import EncodingError, MissingField
    >>> try:
    ...     raise MissingField("field 'price' not found in table")
    ... except EncodingError as e:
    ...     msg = str(e)
    >>> "price" in msg
    True
"""

from __future__ import annotations

__all__ = [
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
    "BridgeError",
    "ExternalProcessFailure",
    "MalformedExternalOutput",
]


class PlotgramError(Exception):
    """Base class for all plotgram failures."""


# -----------------------------------------------------------------------------
# Encoding resolution
# -----------------------------------------------------------------------------


class EncodingError(PlotgramError, ValueError):
    """Field bindings are inconsistent with the table schema or the mark kind."""


class MissingField(EncodingError):
    """An encoded field is absent from the table."""


class UnsupportedChannelForMark(EncodingError):
    """A channel was bound that the mark kind does not accept (e.g., shape on a bar)."""


class MissingRequiredChannel(EncodingError):
    """A channel the mark kind needs was not bound (e.g., rect without color)."""


class DuplicateChannel(EncodingError):
    """The same channel was bound twice for one mark."""


class UnsupportedColumnType(EncodingError):
    """A column has a dtype the engine cannot map to a continuous or discrete scale."""


# -----------------------------------------------------------------------------
# Data
# -----------------------------------------------------------------------------


class DataError(PlotgramError, ValueError):
    """Problems with the source table itself."""


class EmptySourceTable(DataError):
    """A transform needs at least one row but received none."""


class TableDecodeError(DataError):
    """Serialized table bytes could not be decoded, or the source object is unsupported."""


# -----------------------------------------------------------------------------
# Scales
# -----------------------------------------------------------------------------


class ScaleError(PlotgramError, ValueError):
    """A scale cannot be built from the requested domain."""


class NonPositiveLogDomain(ScaleError):
    """A log scale received a value <= 0."""


class DegenerateDomain(UserWarning):
    """A continuous domain had min == max and was expanded (warning category only)."""


# -----------------------------------------------------------------------------
# Transforms
# -----------------------------------------------------------------------------


class TransformError(PlotgramError, ValueError):
    """Invalid parameters for a statistical transform."""


class UnsupportedWindowOp(TransformError):
    """The window operation is not implemented."""


class InvalidBandwidth(TransformError):
    """A fixed KDE bandwidth was not a positive finite number."""


# -----------------------------------------------------------------------------
# Export
# -----------------------------------------------------------------------------


class ExportError(PlotgramError):
    """Failures while turning a composed document into an output artifact."""


class UnsupportedOutputFormat(ExportError, ValueError):
    """Unknown or backend-incompatible file extension."""


class RasterizationFailure(ExportError):
    """The vector document could not be rasterized."""


class IOFailure(ExportError, OSError):
    """Writing the output artifact to disk failed."""


# -----------------------------------------------------------------------------
# External bridge
# -----------------------------------------------------------------------------


class BridgeError(PlotgramError):
    """Failures at the external rendering process boundary."""


class ExternalProcessFailure(BridgeError):
    """The external process could not be started, timed out, or exited non-zero."""


class MalformedExternalOutput(BridgeError):
    """The external process produced output that is empty or not of the requested kind."""
