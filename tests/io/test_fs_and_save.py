from __future__ import annotations

from pathlib import Path

import polars as pl
import pytest

from plotgram import Chart, LayeredChart, x, y
from plotgram.core.errors import IOFailure, UnsupportedOutputFormat
from plotgram.core.grammar import OutputFormat
from plotgram.io.fs import write_bytes_atomic, write_text_atomic
from plotgram.io.save import format_for_path


def _chart() -> Chart:
    df = pl.DataFrame({"a": [1.0, 2.0, 3.0], "b": [3.0, 1.0, 2.0]})
    return Chart.build(df).mark_point().encode(x("a"), y("b"))


def test_atomic_writes_create_parents(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "deeper" / "out.bin"

    written = write_bytes_atomic(target, b"\x00\x01")

    assert written == target
    assert target.read_bytes() == b"\x00\x01"
    assert not [p for p in target.parent.iterdir() if p.name != "out.bin"]


def test_atomic_text_overwrites(tmp_path: Path) -> None:
    target = tmp_path / "t.txt"
    write_text_atomic(target, "one")
    write_text_atomic(target, "two")
    assert target.read_text(encoding="utf-8") == "two"


def test_write_failure_is_typed(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x")
    with pytest.raises(IOFailure):
        write_bytes_atomic(blocker / "child.svg", b"data")


@pytest.mark.parametrize(
    "name,fmt",
    [("c.svg", OutputFormat.SVG), ("c.PNG", OutputFormat.PNG), ("c.json", OutputFormat.JSON)],
)
def test_format_for_path(name: str, fmt: OutputFormat) -> None:
    assert format_for_path(name) is fmt


@pytest.mark.parametrize("name", ["chart", "chart.pdf", "chart.svg.bak"])
def test_save_rejects_unknown_extension(tmp_path: Path, name: str) -> None:
    with pytest.raises(UnsupportedOutputFormat):
        _chart().save(tmp_path / name)
    assert not (tmp_path / name).exists()


def test_save_checks_extension_before_building_the_document(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    # Arrange
    def _fail(self: LayeredChart) -> None:
        raise AssertionError("document built for an unsupported extension")

    monkeypatch.setattr(LayeredChart, "build_document", _fail)

    # Act / Assert
    with pytest.raises(UnsupportedOutputFormat):
        _chart().save(tmp_path / "chart.pdf")


def test_save_svg_and_json(tmp_path: Path) -> None:
    chart = _chart()

    svg_path = chart.save(tmp_path / "out" / "c.svg")
    json_path = chart.save(tmp_path / "out" / "c.json")

    assert svg_path.read_text(encoding="utf-8").startswith("<svg")
    assert '"$schema"' in json_path.read_text(encoding="utf-8")
