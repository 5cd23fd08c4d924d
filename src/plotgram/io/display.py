"""
Display-sink boundary.

The library never talks to a display surface. It produces a labeled content block
``(mime_type, payload)`` and hands it to a sink callable if one is available. A host
(notebook kernel, web app, test) registers the sink; without one, ``show`` returns the
block and does nothing else.

Notes
- Registration is process-wide and guarded by a lock; rendering itself holds no shared state.
- Exceptions raised by a sink propagate to the caller.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

from plotgram.core.typing import MimeBlock

__all__ = [
    "MIME_SVG",
    "MIME_PNG",
    "MIME_VEGALITE",
    "Sink",
    "register_sink",
    "clear_sink",
    "current_sink",
    "show",
]

logger = logging.getLogger(__name__)

MIME_SVG = "image/svg+xml"
MIME_PNG = "image/png"
MIME_VEGALITE = "application/vnd.vegalite.v5+json"

Sink = Callable[[str, str | bytes], Any]

_lock = threading.Lock()
_sink: Sink | None = None


def register_sink(sink: Sink) -> None:
    """Install a process-wide display sink, replacing any previous one."""
    global _sink
    if not callable(sink):
        raise TypeError(f"display sink must be callable (got {type(sink).__name__})")
    with _lock:
        _sink = sink


def clear_sink() -> None:
    """Remove the registered display sink."""
    global _sink
    with _lock:
        _sink = None


def current_sink() -> Sink | None:
    with _lock:
        return _sink


def show(block: MimeBlock, sink: Sink | None = None) -> MimeBlock:
    """
    Hand a content block to a sink.

    Args:
        block (MimeBlock): ``(mime_type, payload)``.
        sink (Sink | None): Explicit sink; falls back to the registered one.

    Returns:
        MimeBlock: The block that was (or would have been) displayed.

    Examples:
        >>> seen = []
        >>> show(("image/svg+xml", "<svg/>"), sink=lambda m, p: seen.append(m))
        ('image/svg+xml', '<svg/>')
        >>> seen
        ['image/svg+xml']
    """
    target = sink if sink is not None else current_sink()
    if target is None:
        logger.debug("no display sink registered; skipping %s", block[0])
        return block
    mime, payload = block
    target(mime, payload)
    return block
