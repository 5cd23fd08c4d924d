"""
External rendering bridge (process boundary).

Delegates rendering to a foreign plotting environment: each dataset is serialized to
Parquet beside a generated script in a temporary directory, the executable runs the
script, and whatever the script prints to stdout is returned.

Contract
- Bytes in, bytes/string out. The generated prelude binds each dataset to a variable of
  the same name, read with polars from its Parquet file; the caller's code follows verbatim.
- Process failures (missing executable, non-zero exit, timeout) raise ExternalProcessFailure.
- Output that is empty or not of the requested kind raises MalformedExternalOutput.

Notes
- This is the only place plotgram applies a timeout; the core pipeline has none.
"""

from __future__ import annotations

import json
import logging
import subprocess
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Literal

import polars as pl

from plotgram.core.errors import ExternalProcessFailure, MalformedExternalOutput

from .table import to_parquet_bytes

__all__ = ["OutputKind", "build_script", "run_external"]

logger = logging.getLogger(__name__)

OutputKind = Literal["svg", "json", "png", "text"]

_PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def build_script(code: str, dataset_names: list[str]) -> str:
    """
    Prepend the dataset-loading prelude to the caller's code.

    Examples:
        >>> "df = pl.read_parquet" in build_script("print(1)", ["df"])
        True
    """
    lines = ["import polars as pl", "from pathlib import Path", "_here = Path(__file__).parent"]
    for name in dataset_names:
        if not name.isidentifier():
            raise ValueError(f"dataset name must be a valid identifier (got {name!r})")
        lines.append(f"{name} = pl.read_parquet(_here / {name + '.parquet'!r})")
    lines.append("")
    lines.append(code)
    return "\n".join(lines) + "\n"


def _check_output(raw: bytes, output: OutputKind) -> str | bytes:
    if not raw.strip():
        raise MalformedExternalOutput("external process produced no output")
    if output == "png":
        if not raw.startswith(_PNG_MAGIC):
            raise MalformedExternalOutput("external output is not a PNG image")
        return raw
    text = raw.decode("utf-8", errors="replace").strip()
    if output == "json":
        try:
            json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedExternalOutput(f"external output is not valid JSON: {exc}") from exc
    elif output == "svg":
        start = text.lstrip()
        if start.startswith("<?xml"):
            start = start[start.find("?>") + 2 :].lstrip()
        if not start.startswith("<svg"):
            raise MalformedExternalOutput("external output is not an SVG document")
    return text


def run_external(
    executable: str,
    code: str,
    datasets: Mapping[str, pl.DataFrame],
    *,
    output: OutputKind = "svg",
    timeout: float | None = 60.0,
) -> str | bytes:
    """
    Run plotting code in an external interpreter and return what it prints.

    Args:
        executable (str): Interpreter to run (e.g., a path to a Python executable).
        code (str): Plotting code; it must print the result to stdout.
        datasets (Mapping[str, pl.DataFrame]): Tables exposed to the code under these names.
        output (OutputKind): Expected output kind, used to validate stdout.
        timeout (float | None): Seconds before the process is killed.

    Returns:
        str | bytes: Text output (svg/json/text) or raw bytes (png).

    Raises:
        ExternalProcessFailure: If the process cannot start, times out, or exits non-zero.
        MalformedExternalOutput: If stdout is empty or not of the requested kind.
    """
    names = list(datasets)
    script = build_script(code, names)
    with tempfile.TemporaryDirectory(prefix="plotgram-bridge-") as tmp:
        root = Path(tmp)
        for name, df in datasets.items():
            (root / f"{name}.parquet").write_bytes(to_parquet_bytes(df))
        script_path = root / "plot.py"
        script_path.write_text(script, encoding="utf-8")
        logger.debug("running %s with %d dataset(s)", executable, len(names))
        try:
            proc = subprocess.run(
                [executable, str(script_path)],
                capture_output=True,
                timeout=timeout,
                cwd=root,
                check=False,
            )
        except FileNotFoundError as exc:
            raise ExternalProcessFailure(f"executable not found: {executable}") from exc
        except subprocess.TimeoutExpired as exc:
            raise ExternalProcessFailure(
                f"external process timed out after {timeout} seconds"
            ) from exc
        except OSError as exc:
            raise ExternalProcessFailure(f"could not start {executable}: {exc}") from exc
    if proc.returncode != 0:
        stderr = proc.stderr.decode("utf-8", errors="replace").strip()
        raise ExternalProcessFailure(
            f"external process exited with status {proc.returncode}: {stderr[-2000:]}"
        )
    return _check_output(proc.stdout, output)
