from __future__ import annotations

import math

import polars as pl
import pytest

from plotgram.core.errors import MissingRequiredChannel
from plotgram.core.schema import MarkStyle
from plotgram.encoding import color, resolve, theta, x, y
from plotgram.render.marks import BEHAVIORS, Aesthetics, arc_slices, box_layout, render_mark
from plotgram.render.primitives import Circle, Line, Path, Rect
from plotgram.scale.coord import CartesianFrame
from plotgram.scale.scales import DiscreteScale, LinearScale
from plotgram.transform.pipeline import derive

PLOT = (0.0, 0.0, 200.0, 100.0)


def _polar_frame() -> CartesianFrame:
    return CartesianFrame(
        x=LinearScale((0.0, 1.0), (0.0, 200.0)),
        y=LinearScale((0.0, 1.0), (100.0, 0.0)),
        plot=PLOT,
    )


def _arc(values: list[float]):
    df = pl.DataFrame({"k": [f"c{i}" for i in range(len(values))], "v": values})
    return derive(df, resolve(df.schema, "arc", [theta("v"), color("k")]))


def test_donut_first_slice_and_inner_radius() -> None:
    # Arrange
    d = _arc([25.0, 30.0, 15.0, 20.0, 10.0])
    style = MarkStyle(inner_radius_ratio=0.5)

    # Act
    slices = arc_slices(d, _polar_frame(), style)

    # Assert
    assert slices[0].start == 0.0
    assert slices[0].end == pytest.approx(2.0 * math.pi * 25.0 / 100.0)
    assert slices[0].r_outer == 50.0
    assert slices[0].r_inner == pytest.approx(25.0)


@pytest.mark.parametrize("values", [[1.0], [3.0, 3.0, 3.0], [0.1, 7.0, 2.5, 11.0, 0.4]])
def test_arc_spans_cover_full_turn(values: list[float]) -> None:
    slices = arc_slices(_arc(values), _polar_frame(), MarkStyle())

    assert math.fsum(s.span for s in slices) == pytest.approx(2.0 * math.pi)
    assert slices[-1].end == 2.0 * math.pi
    assert all(a.end == b.start for a, b in zip(slices, slices[1:]))


def test_non_positive_magnitudes_get_no_slice() -> None:
    slices = arc_slices(_arc([2.0, 0.0, -1.0, 2.0]), _polar_frame(), MarkStyle())

    assert [s.category for s in slices] == ["c0", "c3"]
    assert slices[0].span == pytest.approx(math.pi)


def test_render_arc_emits_one_path_per_slice() -> None:
    prims = render_mark(_arc([1.0, 1.0]), _polar_frame(), Aesthetics(), MarkStyle())

    assert len(prims) == 2
    assert all(isinstance(p, Path) for p in prims)


def test_box_layout_dodged_groups_fit_span() -> None:
    style = MarkStyle(box_width=0.5, box_spacing=0.2, box_span=0.7)

    box_w, gap = box_layout(3, 100.0, style)

    assert box_w == pytest.approx(70.0 / 3.4)
    assert gap == pytest.approx(0.2 * box_w)
    assert 3 * box_w + 2 * gap <= 70.0 + 1e-9


def test_bars_leave_inset_and_start_at_zero() -> None:
    df = pl.DataFrame({"k": ["a", "b"], "v": [2.0, 4.0]})
    d = derive(df, resolve(df.schema, "bar", [x("k"), y("v")]))
    frame = CartesianFrame(
        x=DiscreteScale(("a", "b"), (0.0, 200.0), padding=0.5),
        y=LinearScale((0.0, 4.0), (100.0, 0.0)),
        plot=PLOT,
    )

    rects = [p for p in render_mark(d, frame, Aesthetics(), MarkStyle()) if isinstance(p, Rect)]

    assert len(rects) == 2
    assert all(r.width < 100.0 for r in rects)
    assert rects[1].y == pytest.approx(0.0)
    assert rects[1].y + rects[1].height == pytest.approx(100.0)


def test_swapped_frame_draws_horizontal_bars() -> None:
    df = pl.DataFrame({"k": ["a", "b"], "v": [2.0, 4.0]})
    d = derive(df, resolve(df.schema, "bar", [x("k"), y("v")]))
    frame = CartesianFrame(
        x=DiscreteScale(("a", "b"), (100.0, 0.0), padding=0.5),
        y=LinearScale((0.0, 4.0), (0.0, 200.0)),
        plot=PLOT,
        swapped=True,
    )

    rects = [p for p in render_mark(d, frame, Aesthetics(), MarkStyle()) if isinstance(p, Rect)]

    assert rects[1].x == pytest.approx(0.0)
    assert rects[1].width == pytest.approx(200.0)
    assert rects[1].height < 50.0


def test_behaviors_cover_every_mark() -> None:
    from plotgram.core.grammar import MarkKind

    assert set(BEHAVIORS) == set(MarkKind)
    assert BEHAVIORS[MarkKind.ARC].polar
    assert BEHAVIORS[MarkKind.BAR].zero_baseline


def test_renderer_rejects_missing_channel() -> None:
    df = pl.DataFrame({"k": ["a"], "v": [1.0]})
    enc = resolve(df.schema, "arc", [theta("v"), color("k")])
    d = derive(df, enc)
    stripped = type(d)(mark=d.mark, frame=d.frame.drop("k"), encodings=enc)

    with pytest.raises(MissingRequiredChannel):
        arc_slices(stripped, _polar_frame(), MarkStyle())


def test_render_boxplot_draws_box_whiskers_and_outlier() -> None:
    # Arrange
    df = pl.DataFrame({"k": ["a"] * 6, "v": [1.0, 2.0, 3.0, 4.0, 5.0, 50.0]})
    d = derive(df, resolve(df.schema, "boxplot", [x("k"), y("v")]))
    frame = CartesianFrame(
        x=DiscreteScale(("a",), (0.0, 200.0), padding=0.5),
        y=LinearScale((0.0, 50.0), (100.0, 0.0)),
        plot=PLOT,
    )

    # Act
    prims = render_mark(d, frame, Aesthetics(), MarkStyle())

    # Assert
    assert sum(isinstance(p, Rect) for p in prims) == 1
    assert sum(isinstance(p, Line) for p in prims) == 5
    circles = [p for p in prims if isinstance(p, Circle)]
    assert len(circles) == 1
    assert circles[0].cy == pytest.approx(0.0)


def test_render_boxplot_rejects_frame_without_summary_columns() -> None:
    df = pl.DataFrame({"k": ["a", "a"], "v": [1.0, 2.0]})
    enc = resolve(df.schema, "boxplot", [x("k"), y("v")])
    d = derive(df, enc)
    stripped = type(d)(mark=d.mark, frame=d.frame.drop("median"), encodings=enc)
    frame = CartesianFrame(
        x=DiscreteScale(("a",), (0.0, 200.0)), y=LinearScale((0.0, 2.0), (100.0, 0.0)), plot=PLOT
    )

    with pytest.raises(MissingRequiredChannel):
        render_mark(stripped, frame, Aesthetics(), MarkStyle())
