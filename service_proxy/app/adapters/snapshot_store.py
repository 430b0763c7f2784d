"""
On-disk snapshot of the last upstream response.
"""

import asyncio
import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from shared.logging import get_logger
from shared.errors import SnapshotUnavailable


@dataclass
class SnapshotRead:
    """Outcome of a snapshot load; ``data`` is only meaningful when ``found``."""

    found: bool
    data: Any = None
    error: Optional[SnapshotUnavailable] = None


class SnapshotStore:
    """Reads and writes the resource as one pretty-printed JSON document."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.logger = get_logger("proxy.snapshot_store")

    async def load(self) -> SnapshotRead:
        """Load the snapshot without raising for a missing or corrupt file."""
        return await asyncio.to_thread(self._read)

    async def save(self, data: Any) -> bool:
        """Persist ``data``, returning False when the write failed."""
        try:
            await asyncio.to_thread(self._write, data)
        except (OSError, TypeError, ValueError) as exc:
            self.logger.error("Snapshot write failed", path=str(self.path), error=str(exc))
            return False

        self.logger.debug("Snapshot written", path=str(self.path))
        return True

    def exists(self) -> bool:
        return self.path.is_file()

    def _read(self) -> SnapshotRead:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return self._unavailable("file not found")
        except (OSError, UnicodeDecodeError) as exc:
            return self._unavailable(f"unreadable: {exc}")

        try:
            return SnapshotRead(found=True, data=json.loads(raw))
        except json.JSONDecodeError as exc:
            return self._unavailable(f"invalid JSON: {exc.msg}")
        except (ValueError, RecursionError) as exc:
            # Oversized integer literals and pathological nesting parse as errors too
            return self._unavailable(f"invalid JSON: {exc}")

    def _unavailable(self, reason: str) -> SnapshotRead:
        return SnapshotRead(found=False, error=SnapshotUnavailable(str(self.path), reason))

    def _write(self, data: Any) -> None:
        # Serialize before touching the filesystem so bad payloads leave the file intact
        payload = json.dumps(data, indent=2)
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
