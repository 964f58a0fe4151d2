"""
JSON persistence of the aggregated library.

The library file is a single JSON document:

    {
        "generated_at": "2026-01-31T18:02:11+00:00",
        "track_count": 2,
        "tracks": {
            "4cOdK2wGLETKBW3PvgPWqT": {
                "track": {...},
                "memberships": [{"playlist_id": "...", ...}, ...]
            },
            ...
        }
    }

Writes go to a temporary file next to the target, which then replaces the
target, so an interrupted write never leaves a truncated library behind.
Every I/O or decoding failure is raised as LibraryStoreError.
"""

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from spot_library.core.exceptions import LibraryStoreError
from spot_library.core.logger import get_logger
from spot_library.library.models import TrackRecord

logger = get_logger(__name__)


class LibraryStore:
    """Reads and writes one library file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def save(self, index: Mapping[str, TrackRecord]) -> None:
        """
        Write the index to the library file, replacing any previous version.

        Raises:
            LibraryStoreError: If the file or its directory cannot be written.
        """
        document = {
            "generated_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "track_count": len(index),
            "tracks": {identity: record.to_dict() for identity, record in index.items()},
        }
        tmp_path = self.path.with_name(self.path.name + ".tmp")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=4, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path.exists():
                tmp_path.unlink()
            raise LibraryStoreError(
                f"Failed to write library file: {e}",
                details={"path": str(self.path), "original_error": str(e)}
            ) from e

        logger.debug(f"Wrote {len(index)} tracks to {self.path}")

    def load(self) -> Mapping[str, TrackRecord]:
        """
        Read the library file back.

        Returns:
            Immutable mapping of track identity to TrackRecord.

        Raises:
            LibraryStoreError: If the file is missing, not valid JSON, or not
                               shaped like a library.
        """
        if not self.path.exists():
            raise LibraryStoreError(
                f"Library file not found: {self.path}",
                details={"path": str(self.path)}
            )

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise LibraryStoreError(
                f"Invalid JSON in library file: {e}",
                details={"path": str(self.path), "line": e.lineno}
            ) from e
        except UnicodeDecodeError as e:
            raise LibraryStoreError(
                f"Library file is not valid UTF-8: {e}",
                details={"path": str(self.path), "original_error": str(e)}
            ) from e
        except OSError as e:
            raise LibraryStoreError(
                f"Failed to read library file: {e}",
                details={"path": str(self.path), "original_error": str(e)}
            ) from e

        tracks = document.get("tracks") if isinstance(document, dict) else None
        if not isinstance(tracks, dict):
            raise LibraryStoreError(
                "Library file has no 'tracks' object",
                details={"path": str(self.path)}
            )

        try:
            records = {
                identity: TrackRecord.from_dict(data) for identity, data in tracks.items()
            }
        except (KeyError, TypeError, AttributeError) as e:
            raise LibraryStoreError(
                f"Library file has an invalid track entry: {e!r}",
                details={"path": str(self.path)}
            ) from e

        return MappingProxyType(records)
