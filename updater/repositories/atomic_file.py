"""
updater/repositories/atomic_file.py

Whole-file replacement for JSON state files.
"""

from __future__ import annotations

import os
from pathlib import Path


def write_text_atomic(path: Path, content: str) -> None:
    """
    Write ``content`` to a sibling temp file, fsync it, then rename over ``path``.

    Readers see either the previous file or the complete new one.
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(f"{path.suffix}.tmp")
    try:
        with tmp_path.open("w", encoding="utf-8") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        tmp_path.replace(path)
    finally:
        if tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                pass
