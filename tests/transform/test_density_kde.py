from __future__ import annotations

import numpy as np
import polars as pl
import pytest

from plotgram.core.errors import EmptySourceTable, InvalidBandwidth, MissingField
from plotgram.core.grammar import BandwidthRule
from plotgram.transform.density import DensityTransform, evaluation_grid, kde, select_bandwidth


def _trapezoid(x: np.ndarray, y: np.ndarray) -> float:
    return float(np.sum((y[1:] + y[:-1]) * np.diff(x)) / 2.0)


def test_grid_extends_thirty_percent_each_side() -> None:
    g = evaluation_grid(0.0, 10.0, steps=200)
    assert g[0] == pytest.approx(-3.0)
    assert g.size == 200
    assert g[1] - g[0] == pytest.approx(16.0 / 200)


def test_degenerate_grid_is_widened() -> None:
    g = evaluation_grid(5.0, 5.0, steps=10)
    assert g[0] == pytest.approx(4.5)
    assert g[-1] < 5.5


def test_bandwidth_rules() -> None:
    values = np.array([1.0, 2.0, 3.0, 4.0, 10.0])
    sigma = float(np.std(values, ddof=1))
    assert select_bandwidth(values, BandwidthRule.SCOTT) == pytest.approx(
        1.06 * sigma * 5 ** (-0.2)
    )
    iqr = 4.0 - 2.0
    assert select_bandwidth(values, BandwidthRule.SILVERMAN) == pytest.approx(
        0.9 * min(sigma, iqr / 1.34) * 5 ** (-0.2)
    )
    assert select_bandwidth(values, 0.7) == 0.7


def test_zero_bandwidth_replaced() -> None:
    assert select_bandwidth(np.array([2.0, 2.0]), BandwidthRule.SCOTT) == pytest.approx(0.002)


def test_density_integrates_to_about_one() -> None:
    df = pl.DataFrame({"v": np.linspace(0.0, 10.0, 41)})

    out = kde(df, DensityTransform(field="v"))

    assert out.columns == ["value", "density"]
    assert out.height == 200
    area = _trapezoid(out.get_column("value").to_numpy(), out.get_column("density").to_numpy())
    assert 0.9 < area <= 1.01


def test_cumulative_density_is_monotone() -> None:
    df = pl.DataFrame({"v": [1.0, 2.0, 2.5, 7.0]})
    out = kde(df, DensityTransform(field="v", cumulative=True, kernel="epanechnikov"))
    dens = out.get_column("density").to_numpy()
    assert np.all(np.diff(dens) >= -1e-12)
    assert 0.0 <= dens[0] and dens[-1] <= 1.0


def test_grouped_counts_scale_by_group_size() -> None:
    df = pl.DataFrame({"v": [1.0, 2.0, 3.0, 5.0, 6.0], "g": ["a", "a", "a", "b", "b"]})

    out = kde(df, DensityTransform(field="v", groupby="g", counts=True, steps=50))

    assert out.height == 100
    assert out.get_column("g").unique(maintain_order=True).to_list() == ["a", "b"]
    a = out.filter(pl.col("g") == "a")
    area = _trapezoid(a.get_column("value").to_numpy(), a.get_column("density").to_numpy())
    assert area == pytest.approx(3.0, rel=0.15)


def test_density_errors() -> None:
    df = pl.DataFrame({"v": [1.0, 2.0]})
    with pytest.raises(InvalidBandwidth):
        kde(df, DensityTransform(field="v", bandwidth=-1.0))
    with pytest.raises(MissingField):
        kde(df, DensityTransform(field="w"))
    with pytest.raises(EmptySourceTable):
        kde(pl.DataFrame({"v": [None]}, schema={"v": pl.Float64}), DensityTransform(field="v"))
