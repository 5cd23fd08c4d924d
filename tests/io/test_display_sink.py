from __future__ import annotations

from collections.abc import Iterator

import polars as pl
import pytest

from plotgram import Chart, x, y
from plotgram.io.display import MIME_SVG, clear_sink, current_sink, register_sink, show


@pytest.fixture(autouse=True)
def _no_sink() -> Iterator[None]:
    clear_sink()
    yield
    clear_sink()


def test_show_without_sink_is_noop() -> None:
    block = show((MIME_SVG, "<svg/>"))
    assert block == (MIME_SVG, "<svg/>")


def test_registered_sink_receives_block() -> None:
    seen: list[tuple[str, object]] = []
    register_sink(lambda mime, payload: seen.append((mime, payload)))

    show(("application/json", "{}"))

    assert current_sink() is not None
    assert seen == [("application/json", "{}")]


def test_explicit_sink_wins_over_registered() -> None:
    registered: list[str] = []
    explicit: list[str] = []
    register_sink(lambda mime, payload: registered.append(mime))

    show((MIME_SVG, "<svg/>"), sink=lambda mime, payload: explicit.append(mime))

    assert registered == []
    assert explicit == [MIME_SVG]


def test_chart_show_emits_svg_block() -> None:
    df = pl.DataFrame({"a": [1.0, 2.0], "b": [1.0, 2.0]})
    captured: list[str] = []

    mime, payload = Chart.build(df).mark_line().encode(x("a"), y("b")).show(
        sink=lambda m, p: captured.append(m)
    )

    assert mime == MIME_SVG
    assert isinstance(payload, str) and payload.startswith("<svg")
    assert captured == [MIME_SVG]
