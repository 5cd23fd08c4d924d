"""Tests for `plotgram.core.versioning` document version helpers."""

import pytest

from plotgram.core.versioning import DOCUMENT_V, DocumentVersion


def test_document_version_accepts_iso_date() -> None:
    version = DocumentVersion(major=DOCUMENT_V.major, minor=DOCUMENT_V.minor, date="2026-10-01")

    assert version.date == "2026-10-01"
    assert str(version) == f"{DOCUMENT_V.major}.{DOCUMENT_V.minor}"


@pytest.mark.parametrize("bad_date", ["2026/10/01", "2026-1-2", "01-10-2026"])
def test_document_version_rejects_non_iso_date(bad_date: str) -> None:
    with pytest.raises(ValueError, match="DocumentVersion date must be ISO"):
        DocumentVersion(major=0, minor=0, date=bad_date)


@pytest.mark.parametrize("field,value", [("major", -1), ("minor", -1)])
def test_document_version_rejects_negative_components(field: str, value: int) -> None:
    kwargs = {"major": 0, "minor": 1, "date": "2026-10-01"}
    kwargs[field] = value

    with pytest.raises(ValueError, match=f"DocumentVersion {field} must be non-negative"):
        DocumentVersion(**kwargs)  # type: ignore[arg-type]


def test_as_dict_shape() -> None:
    assert DOCUMENT_V.as_dict() == {
        "major": DOCUMENT_V.major,
        "minor": DOCUMENT_V.minor,
        "date": DOCUMENT_V.date,
    }
