"""
Document schema version metadata for emitted plotgram artifacts.

Exposes the canonical document version (DOCUMENT_V) embedded in declarative JSON output
under ``usermeta.plotgram``. This module is zero-IO.

Notes:
    - The Vega-Lite schema URL is pinned separately (VEGALITE_SCHEMA) because it tracks
      the third-party renderer, not our own document layout.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

__all__ = [
    "DocumentVersion",
    "DOCUMENT_V",
    "VEGALITE_SCHEMA",
]


@dataclass(frozen=True)
class DocumentVersion:
    """
    Immutable semantic version with ISO release date for plotgram documents.

    Attributes:
        major (int): Non-negative major component signalling breaking changes.
        minor (int): Non-negative minor component for additive changes.
        date (str): ISO YYYY-MM-DD release date.

    Raises:
        ValueError: If any component is negative or the date is not ISO compliant.
    """

    major: int
    minor: int
    date: str  # ISO YYYY-MM-DD

    def __post_init__(self) -> None:
        if self.major < 0:
            raise ValueError(f"DocumentVersion major must be non-negative, got {self.major}")
        if self.minor < 0:
            raise ValueError(f"DocumentVersion minor must be non-negative, got {self.minor}")
        try:
            date.fromisoformat(self.date)
        except ValueError as exc:
            raise ValueError(
                f"DocumentVersion date must be ISO YYYY-MM-DD, got {self.date!r}"
            ) from exc

    def as_dict(self) -> dict[str, object]:
        return {"major": self.major, "minor": self.minor, "date": self.date}

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


DOCUMENT_V = DocumentVersion(0, 1, "2026-10-01")

VEGALITE_SCHEMA = "https://vega.github.io/schema/vega-lite/v5.json"
