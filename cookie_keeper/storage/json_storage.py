"""JSON file persistence for Cookie Keeper.

Stores string lists under namespaced keys in a single JSON object file,
the way a browser's local storage area would.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from cookie_keeper.core.constants import STORAGE_FILE
from cookie_keeper.core.interfaces import Persistence, PersistenceError

logger = logging.getLogger(__name__)


class JsonFileStorage(Persistence):
    """Persistence collaborator backed by one JSON file."""

    def __init__(self, path: Path | None = None) -> None:
        """
        Initialize the storage.

        Args:
            path: JSON file location. Defaults to STORAGE_FILE.
        """
        self.path = path or STORAGE_FILE

    def _read_all(self) -> dict[str, Any]:
        """Read the whole storage object; a missing file is empty storage."""
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Invalid JSON in storage file {self.path}: {e}") from e
        except UnicodeDecodeError as e:
            raise PersistenceError(f"Storage file {self.path} is not valid UTF-8: {e}") from e
        except OSError as e:
            raise PersistenceError(f"Cannot read storage file {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise PersistenceError(f"Storage file {self.path} does not hold a JSON object")
        return data

    def _get(self, key: str) -> list[str] | None:
        value = self._read_all().get(key)
        if value is None:
            return None
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise PersistenceError(f"Value under '{key}' is not a list of strings")
        return list(value)

    def _set(self, key: str, values: list[str]) -> None:
        data = self._read_all()
        data[key] = list(values)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Write to a sibling temp file, then swap it in
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=self.path.name, suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(f"Cannot write storage file {self.path}: {e}") from e

        logger.debug("Stored %d values under %s in %s", len(values), key, self.path)

    async def get(self, key: str) -> list[str] | None:
        """Read the list stored under key, or None if absent."""
        return await asyncio.to_thread(self._get, key)

    async def set(self, key: str, values: list[str]) -> None:
        """Replace the list stored under key."""
        await asyncio.to_thread(self._set, key, values)
