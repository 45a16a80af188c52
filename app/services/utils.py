from __future__ import annotations

from pathlib import Path


def is_safe_filename(filename: str) -> bool:
    """Return True when ``filename`` names a plain file with no directory parts."""
    if not filename or filename in {".", ".."}:
        return False
    if "/" in filename or "\\" in filename or "\x00" in filename:
        return False
    return Path(filename).name == filename
