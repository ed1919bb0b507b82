"""Reading small text files such as secrets."""

from __future__ import annotations

import os
from pathlib import Path


class FileReadError(OSError):
    """A file could not be read."""


def read_string(path: str, root: str | os.PathLike[str] = "/") -> str:
    """Read a file with surrounding whitespace removed; absolute paths are taken relative to ``root``."""
    if os.path.isabs(path):
        path = os.path.relpath(path, "/")
    target = Path(root) / path
    try:
        return target.read_bytes().decode("utf-8").strip()
    except (OSError, UnicodeDecodeError) as exc:
        raise FileReadError(f"Failed to read {path!r}: {exc}") from exc