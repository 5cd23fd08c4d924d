"""
JSON serialization helpers for plotgram documents.

Provides the JSON policy used by the declarative Vega-Lite backend. This module is zero-IO
and uses only the Python standard library.

Notes:
    - ``json_dumps_pretty`` sorts keys, keeps non-ASCII text and indents for files meant
      to be read.
    - NaN/inf are not valid JSON; ``json_safe`` maps them to None before dumping.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping, Sequence
from typing import Any

__all__ = [
    "json_dumps_pretty",
    "json_safe",
]


def json_safe(obj: Any) -> Any:
    """
    Recursively replace non-finite floats with None and tuples with lists.

    Args:
        obj (Any): JSON-like object (dicts, lists, scalars).

    Returns:
        Any: Structure that ``json.dumps(..., allow_nan=False)`` accepts.

    Examples:
        >>> json_safe({"a": float("nan"), "b": (1, 2.5)})
        {'a': None, 'b': [1, 2.5]}
    """
    if isinstance(obj, float):
        return obj if math.isfinite(obj) else None
    if isinstance(obj, Mapping):
        return {str(k): json_safe(v) for k, v in obj.items()}
    if isinstance(obj, Sequence) and not isinstance(obj, (str, bytes, bytearray)):
        return [json_safe(v) for v in obj]
    return obj


def json_dumps_pretty(obj: Any) -> str:
    """Serialize with sorted keys and two-space indentation (for files on disk)."""
    return json.dumps(json_safe(obj), sort_keys=True, indent=2, ensure_ascii=False, allow_nan=False)
