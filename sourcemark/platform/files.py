"""Filesystem helpers."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Sequence
from pathlib import Path

__all__ = ["write_texts_atomically"]


def _stage(path: Path, content: str, *, encoding: str) -> Path:
    """Write content to a temp file next to path and return the temp path."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return tmp_path


def write_texts_atomically(files: Sequence[tuple[Path, str]], *, encoding: str = "utf-8") -> None:
    """Replace several files together.

    Every file is staged next to its target first. Targets are only replaced
    once all of them were staged, so a failed write leaves every target as
    it was.

    Raises:
        OSError: If staging or replacing fails.
    """
    staged: list[tuple[Path, Path]] = []
    try:
        for path, content in files:
            staged.append((_stage(path, content, encoding=encoding), path))
        for tmp_path, path in staged:
            os.replace(tmp_path, path)
    finally:
        for tmp_path, _ in staged:
            tmp_path.unlink(missing_ok=True)
