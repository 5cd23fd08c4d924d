"""
plotgram.io: boundaries between the charting core and the outside world.

## Responsibilities
- Ingest tables from polars/pyarrow objects, column mappings, or Parquet bytes and normalize
  column dtypes (``table``).
- Load render settings with env > TOML > defaults precedence (``config``).
- Write output files atomically and dispatch on the file extension (``fs``, ``save``).
- Hand labeled content blocks to a registered display sink (``display``).
- Run foreign plotting code in a separate process (``bridge``).

## Import DAG discipline
- Depends on stdlib, polars/pyarrow, and plotgram.core. Rendering modules are imported
  lazily where a boundary needs them.
"""

from __future__ import annotations

from .bridge import build_script, run_external
from .config import RenderSettings
from .display import MIME_PNG, MIME_SVG, MIME_VEGALITE, clear_sink, register_sink, show
from .fs import write_bytes_atomic, write_text_atomic
from .save import format_for_path, save_document
from .table import load_table, normalize_frame

__all__ = [
    "MIME_PNG",
    "MIME_SVG",
    "MIME_VEGALITE",
    "RenderSettings",
    "build_script",
    "clear_sink",
    "format_for_path",
    "load_table",
    "normalize_frame",
    "register_sink",
    "run_external",
    "save_document",
    "show",
    "write_bytes_atomic",
    "write_text_atomic",
]
