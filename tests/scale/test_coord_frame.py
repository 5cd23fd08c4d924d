from __future__ import annotations

import math

import pytest

from plotgram.scale.coord import CartesianFrame, polar_point, sector_path
from plotgram.scale.scales import DiscreteScale, LinearScale


def _frame(swapped: bool) -> CartesianFrame:
    plot = (0.0, 0.0, 200.0, 100.0)
    if swapped:
        x = DiscreteScale(("a", "b"), (100.0, 0.0), padding=0.5)
        y = LinearScale((0.0, 10.0), (0.0, 200.0))
    else:
        x = DiscreteScale(("a", "b"), (0.0, 200.0), padding=0.5)
        y = LinearScale((0.0, 10.0), (100.0, 0.0))
    return CartesianFrame(x=x, y=y, plot=plot, swapped=swapped)


def test_point_unswapped_and_swapped() -> None:
    assert _frame(False).point("a", 10.0) == (50.0, 0.0)
    assert _frame(True).point("a", 10.0) == (200.0, 75.0)


def test_rect_normalizes_corners() -> None:
    f = _frame(True)
    # x channel spans run vertically when swapped
    assert f.rect(10.0, 40.0, 0.0, 120.0) == (0.0, 10.0, 120.0, 30.0)


def test_horizontal_and_vertical_axes_follow_swap() -> None:
    f = _frame(True)
    assert f.horizontal is f.y
    assert f.vertical is f.x
    assert f.center == (100.0, 50.0)
    assert f.radius == 50.0


def test_polar_point_clockwise_from_top() -> None:
    x, y = polar_point(0.0, 0.0, 1.0, math.pi)
    assert (x, y) == pytest.approx((0.0, 1.0))


def test_sector_path_full_turn_is_two_arcs() -> None:
    d = sector_path(50.0, 50.0, 40.0, 0.0, 0.0, 2.0 * math.pi)
    assert d.count(" A ") == 2
    donut = sector_path(50.0, 50.0, 40.0, 20.0, 0.0, math.pi / 2)
    assert donut.count("A ") == 2 and donut.endswith("Z")
