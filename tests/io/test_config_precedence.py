from __future__ import annotations

from pathlib import Path

import pytest

from plotgram.io.config import RenderSettings

_ENV_KEYS = [
    "PLOTGRAM_WIDTH",
    "PLOTGRAM_HEIGHT",
    "PLOTGRAM_PALETTE",
    "PLOTGRAM_THEME",
    "PLOTGRAM_LEFT_MARGIN",
    "PLOTGRAM_BACKGROUND",
    "PLOTGRAM_RASTER_SCALE",
]


def _write_plotgram_toml(tmp: Path, content: str) -> Path:
    p = tmp / "plotgram.toml"
    p.write_text(content)
    return p


def _clear_env(monkeypatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_render_settings_precedence_env_over_toml(tmp_path: Path, monkeypatch) -> None:
    # Arrange TOML
    _write_plotgram_toml(
        tmp_path,
        """
        [render]
        width = 640
        height = 480
        palette = "set2"
        """.strip(),
    )
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    # Arrange ENV that should override TOML
    monkeypatch.setenv("PLOTGRAM_WIDTH", "800")
    monkeypatch.setenv("PLOTGRAM_PALETTE", "dark2")

    # Act
    s = RenderSettings.load()

    # Assert precedence: env > TOML > defaults
    assert s.width == 800.0
    assert s.palette == "dark2"
    assert s.height == 480.0  # from TOML
    assert s.colormap == "viridis"  # default


def test_render_settings_from_pyproject_tool_table(tmp_path: Path, monkeypatch) -> None:
    (tmp_path / "pyproject.toml").write_text(
        """
        [tool.plotgram.render]
        theme = "minimal"
        background = "none"
        """.strip()
    )
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    s = RenderSettings.load()

    assert s.theme == "minimal"
    assert s.background is None


def test_render_settings_defaults_when_no_config(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    s = RenderSettings.load()

    assert s == RenderSettings()
    assert (s.width, s.height) == (500.0, 400.0)
    assert s.raster_scale == 2.0
    assert s.kde_steps == 200


def test_invalid_values_are_ignored(tmp_path: Path, monkeypatch) -> None:
    _write_plotgram_toml(tmp_path, 'width = -5\npalette = "rainbow"\nleft_margin = 0.7\n')
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    monkeypatch.setenv("PLOTGRAM_RASTER_SCALE", "lots")

    s = RenderSettings.load()

    assert s.width == 500.0
    assert s.palette == "tab10"
    assert s.left_margin == 0.15
    assert s.raster_scale == 2.0


def test_plot_rect_from_margins() -> None:
    s = RenderSettings(width=500, height=400)
    assert s.plot_rect == pytest.approx((75.0, 40.0, 450.0, 340.0))
