"""Snapshot copies of cookie databases for reading.

Browsers keep their cookie database open; reading a private copy avoids
"database is locked" errors and never touches the live file.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)

# Directory name for temp copies
TEMP_SUBDIR = "CookieKeeper"

# SQLite side files that must travel with a WAL-mode database
_SIDE_SUFFIXES = ("-wal", "-shm")


def copy_db_to_temp(db_path: Path) -> Path:
    """
    Copy a SQLite database and its WAL/SHM files to the temp directory.

    Every call gets a fresh file name, so concurrent snapshots of the same
    database never overwrite each other.

    Args:
        db_path: Path to the original database file.

    Returns:
        Path to the temporary copy.

    Raises:
        FileNotFoundError: If the source database doesn't exist.
        OSError: If copying fails.
    """
    if not db_path.exists():
        raise FileNotFoundError(f"Database not found: {db_path}")

    temp_dir = Path(tempfile.gettempdir()) / TEMP_SUBDIR
    temp_dir.mkdir(exist_ok=True)
    temp_file = temp_dir / f"{db_path.name}_{uuid.uuid4().hex[:12]}.db"

    logger.debug("Copying database %s to %s", db_path, temp_file)
    shutil.copy2(db_path, temp_file)

    for suffix in _SIDE_SUFFIXES:
        side = Path(str(db_path) + suffix)
        if side.exists():
            shutil.copy2(side, Path(str(temp_file) + suffix))

    return temp_file


def cleanup_temp_db(temp_path: Path) -> None:
    """
    Remove a temporary database copy and its side files.

    Args:
        temp_path: Path returned by copy_db_to_temp.
    """
    for path in [Path(str(temp_path) + s) for s in _SIDE_SUFFIXES] + [temp_path]:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to cleanup temp file %s: %s", path, e)


@contextmanager
def temp_db_copy(db_path: Path) -> Iterator[Path]:
    """Yield a private copy of db_path, removed again on exit."""
    temp_path = copy_db_to_temp(db_path)
    try:
        yield temp_path
    finally:
        cleanup_temp_db(temp_path)
