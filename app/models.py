from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict


@dataclass
class ArtifactRecord:
    name: str
    size: int
    created_at: datetime
    modified_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "size": self.size,
            "created": self.created_at.isoformat(),
            "modified": self.modified_at.isoformat(),
        }

    @classmethod
    def from_stat(cls, path: Path, stat: os.stat_result) -> "ArtifactRecord":
        # st_birthtime only exists on some platforms; fall back to ctime
        created = getattr(stat, "st_birthtime", stat.st_ctime)
        return cls(
            name=path.name,
            size=stat.st_size,
            created_at=datetime.fromtimestamp(created, tz=timezone.utc),
            modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )
