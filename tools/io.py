"""tools/io.py

Single source of truth for tiny filesystem helpers used by the tool wrappers.

Design
------
- This module is intentionally small.
- It contains ONLY filesystem IO (no property policy).
- Writes go through a temp file + rename so a crashed run never leaves a
  half-written metadata file behind.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def write_text_atomic(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    """Write ``text`` to ``path`` via a temp file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(text)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def write_json(path: Path, data: Any) -> None:
    """Write pretty JSON to disk (UTF-8)."""
    write_text_atomic(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def read_json(path: Path) -> Any:
    """Read JSON from disk (UTF-8)."""
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)
