from __future__ import annotations

import logging
import os
import stat as stat_module
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from audio_extraction import ArtifactNotFoundError, FilesystemError
from app.models import ArtifactRecord
from app.services.utils import is_safe_filename

logger = logging.getLogger(__name__)


class ArtifactStore:
    """Directory of converted files, keyed by file name.

    The directory listing is the only source of truth. Files may be removed
    concurrently by the sweep, the post-download timer and the shutdown purge,
    so every deletion treats an already-missing file as done.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def ensure_exists(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def list_artifacts(self) -> List[ArtifactRecord]:
        return [ArtifactRecord.from_stat(path, st) for path, st in self._iter_files()]

    def find_by_prefix(self, prefix: str, extension: str) -> Optional[Path]:
        if not self.root.is_dir():
            return None
        for path in self.root.iterdir():
            if path.name.startswith(prefix) and path.name.endswith(extension) and path.is_file():
                return path
        return None

    def resolve(self, filename: str) -> Path:
        if not is_safe_filename(filename):
            raise ArtifactNotFoundError(filename)
        path = self.root / filename
        if not path.is_file():
            raise ArtifactNotFoundError(filename)
        return path

    def delete_if_exists(self, filename: str) -> bool:
        if not is_safe_filename(filename):
            logger.warning("Refusing to delete unsafe file name %r", filename)
            return False
        try:
            (self.root / filename).unlink()
        except FileNotFoundError:
            return False
        except OSError:
            logger.exception("File deletion error: %s", filename)
            return False
        logger.info("File deleted: %s", filename)
        return True

    def sweep(self, max_age: float, now: Optional[datetime] = None) -> List[str]:
        """Delete artifacts whose modification time is more than ``max_age`` seconds old."""

        now = now or datetime.now(timezone.utc)
        removed: List[str] = []
        for path, st in self._iter_files():
            mtime = datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)
            if (now - mtime).total_seconds() > max_age and self.delete_if_exists(path.name):
                removed.append(path.name)
        return removed

    def purge(self) -> List[str]:
        return [path.name for path, _ in self._iter_files() if self.delete_if_exists(path.name)]

    def _iter_files(self) -> Iterator[Tuple[Path, os.stat_result]]:
        if not self.root.is_dir():
            return
        try:
            entries = sorted(self.root.iterdir())
        except OSError as exc:
            raise FilesystemError(f"Could not list {self.root}: {exc}") from exc
        for path in entries:
            try:
                st = path.stat()
            except FileNotFoundError:
                continue
            if stat_module.S_ISREG(st.st_mode):
                yield path, st
