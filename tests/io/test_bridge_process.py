from __future__ import annotations

import sys

import polars as pl
import pytest

from plotgram.core.errors import ExternalProcessFailure, MalformedExternalOutput
from plotgram.io.bridge import build_script, run_external


def test_build_script_loads_each_dataset() -> None:
    script = build_script("print(df.height)", ["df", "other"])
    assert "df = pl.read_parquet(_here / 'df.parquet')" in script
    assert "other = pl.read_parquet(_here / 'other.parquet')" in script
    assert script.rstrip().endswith("print(df.height)")


def test_build_script_rejects_bad_names() -> None:
    with pytest.raises(ValueError):
        build_script("", ["not a name"])


def test_run_external_returns_json_output() -> None:
    df = pl.DataFrame({"v": [1.0, 2.0, 3.0]})
    code = "import json\nprint(json.dumps({'rows': df.height}))"

    out = run_external(sys.executable, code, {"df": df}, output="json")

    assert out == '{"rows": 3}'


def test_run_external_validates_svg_output() -> None:
    with pytest.raises(MalformedExternalOutput):
        run_external(sys.executable, "print('hello')", {}, output="svg")


def test_run_external_empty_output() -> None:
    with pytest.raises(MalformedExternalOutput):
        run_external(sys.executable, "pass", {}, output="text")


def test_run_external_failures() -> None:
    with pytest.raises(ExternalProcessFailure):
        run_external(sys.executable, "raise SystemExit(3)", {})
    with pytest.raises(ExternalProcessFailure):
        run_external("/nonexistent/interpreter", "print(1)", {})
