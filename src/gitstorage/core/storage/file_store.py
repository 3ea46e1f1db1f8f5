"""
Snapshot file store for the key-value map.

Reads and writes the whole map as one pretty-printed JSON object. Reads are
forgiving (any failure means "no snapshot"); writes are atomic and loud.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from gitstorage.core.storage.errors import SnapshotWriteError

logger = logging.getLogger(__name__)


class SnapshotFileStore:
    """
    Store for the serialized key-value map at a single path.

    Example:
        >>> store = SnapshotFileStore(Path("/tmp/clone/root.json"))
        >>> await store.write({"user": {"id": 1}})
        >>> await store.read()
        {'user': {'id': 1}}
    """

    def __init__(self, file_path: Path) -> None:
        """
        Initialize SnapshotFileStore.

        Args:
            file_path: Location of the snapshot file
        """
        self._file_path = file_path

    @property
    def file_path(self) -> Path:
        """Get the path to the snapshot file."""
        return self._file_path

    def file_exists(self) -> bool:
        """Check if the snapshot file exists."""
        return self._file_path.exists()

    async def read(self) -> dict[str, Any] | None:
        """
        Read the snapshot.

        Returns:
            The stored map, or None when the file is missing, unreadable,
            malformed, or does not hold a JSON object
        """
        return await asyncio.to_thread(self._read_file)

    async def write(self, state: dict[str, Any]) -> None:
        """
        Overwrite the snapshot with the full map.

        Raises:
            SnapshotWriteError: If the file could not be written
        """
        await asyncio.to_thread(self._write_file, state)

    def _read_file(self) -> dict[str, Any] | None:
        try:
            content = self._file_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No snapshot at %s", self._file_path)
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read snapshot %s: %s", self._file_path, e)
            return None

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning("Ignoring malformed snapshot %s: %s", self._file_path, e)
            return None

        if not isinstance(data, dict):
            logger.warning("Ignoring snapshot %s: top level is not an object", self._file_path)
            return None
        return data

    def _write_file(self, state: dict[str, Any]) -> None:
        try:
            content = json.dumps(state, indent=2, ensure_ascii=False) + "\n"
        except (TypeError, ValueError) as e:
            raise SnapshotWriteError(f"Failed to save data to file: {e}") from e

        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                dir=self._file_path.parent,
                prefix=f".{self._file_path.stem}_",
                suffix=".json.tmp",
            )
        except OSError as e:
            raise SnapshotWriteError(f"Failed to save data to file: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)

            # Atomic rename (replaces existing file)
            os.replace(temp_path, self._file_path)

        except OSError as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise SnapshotWriteError(f"Failed to save data to file: {e}") from e
