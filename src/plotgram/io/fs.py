"""
Filesystem helpers for plotgram.io (file protocol baseline).

Responsibilities
- Create missing parent directories for output paths.
- Write artifacts atomically: tmp write → fsync → atomic rename.

Import DAG discipline
- stdlib-only plus plotgram.core.errors.

Notes
- Atomicity via os.replace is guaranteed only when src and dst reside on the same filesystem;
  the temporary file is therefore created in the destination directory.
- OSError is wrapped in IOFailure so export callers catch one typed family.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import BinaryIO

from plotgram.core.errors import IOFailure

__all__ = [
    "makedirs",
    "fsync_file",
    "rename_atomic",
    "write_bytes_atomic",
    "write_text_atomic",
]


def makedirs(path: str | os.PathLike[str], exist_ok: bool = True) -> None:
    """Create directories recursively."""
    os.makedirs(path, exist_ok=exist_ok)


def fsync_file(fh: BinaryIO) -> None:
    """
    Flush and fsync an open file handle.

    Notes:
        Ensures file contents reach the storage device (subject to OS/filesystem semantics).
    """
    fh.flush()
    os.fsync(fh.fileno())


def rename_atomic(src: str | os.PathLike[str], dst: str | os.PathLike[str]) -> None:
    """Atomically rename src -> dst on the same filesystem."""
    os.replace(src, dst)


def write_bytes_atomic(path: str | os.PathLike[str], data: bytes) -> Path:
    """
    Write bytes to ``path`` atomically, creating parent directories as needed.

    Args:
        path: Destination file path.
        data (bytes): Payload.

    Returns:
        Path: The final destination path.

    Raises:
        IOFailure: If the directory cannot be created or the write/rename fails.
    """
    dst = Path(path)
    tmp_name: str | None = None
    try:
        makedirs(dst.parent)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{dst.name}.", suffix=".tmp", dir=dst.parent)
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fsync_file(fh)
        rename_atomic(tmp_name, dst)
        tmp_name = None
    except OSError as exc:
        raise IOFailure(f"failed to write {dst}: {exc}") from exc
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
    return dst


def write_text_atomic(path: str | os.PathLike[str], text: str) -> Path:
    """UTF-8 variant of ``write_bytes_atomic``."""
    return write_bytes_atomic(path, text.encode("utf-8"))
