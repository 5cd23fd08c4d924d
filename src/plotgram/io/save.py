"""
Output-format dispatch for composited documents.

The file extension selects the backend: ``.svg`` → SVG text, ``.png`` → raster bytes,
``.json`` → Vega-Lite specification. Files are written atomically.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from plotgram.core.errors import UnsupportedOutputFormat
from plotgram.core.grammar import OutputFormat, output_format_from_suffix
from plotgram.io.fs import write_bytes_atomic, write_text_atomic

if TYPE_CHECKING:
    from plotgram.layered import Document

__all__ = ["format_for_path", "save_document"]

logger = logging.getLogger(__name__)


def format_for_path(path: str | os.PathLike[str]) -> OutputFormat:
    """
    Output format implied by a path's extension.

    Raises:
        UnsupportedOutputFormat: If the extension is missing or not one of svg/png/json.

    Examples:
        >>> format_for_path("out/chart.PNG") == OutputFormat.PNG
        True
    """
    suffix = Path(path).suffix
    try:
        return output_format_from_suffix(suffix)
    except ValueError as exc:
        raise UnsupportedOutputFormat(f"cannot save to {os.fspath(path)!r}: {exc}") from exc


def save_document(document: Document, path: str | os.PathLike[str]) -> Path:
    """
    Render ``document`` with the backend matching ``path`` and write it atomically.

    Args:
        document (Document): Composited document.
        path (str | PathLike): Destination; parent directories are created.

    Returns:
        Path: The written path.

    Raises:
        UnsupportedOutputFormat: Unknown or missing extension (nothing is rendered).
        RasterizationFailure: PNG output could not be produced.
        IOFailure: The file could not be written.
    """
    from plotgram.render.backends import backend_for

    fmt = format_for_path(path)
    backend = backend_for(fmt, raster_scale=document.settings.raster_scale)
    logger.debug("saving %s with %s", os.fspath(path), type(backend).__name__)
    payload = backend.render_to(document)
    if isinstance(payload, bytes):
        return write_bytes_atomic(path, payload)
    return write_text_atomic(path, payload)
