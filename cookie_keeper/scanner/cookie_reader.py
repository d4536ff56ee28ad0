"""Base cookie reader interface and factory."""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator

from cookie_keeper.core.models import CookieRecord
from cookie_keeper.scanner.db_copy import temp_db_copy

logger = logging.getLogger(__name__)


class BaseCookieReader(ABC):
    """
    Reads cookie records out of one browser cookie database.

    Subclasses name the table, the columns they need and how a row becomes a
    CookieRecord. Reading happens on a temporary copy; a missing, corrupted or
    unexpected database is logged and yields no records.
    """

    TABLE: str = ""
    REQUIRED_COLUMNS: frozenset[str] = frozenset()

    def __init__(self, db_path: Path, store_id: str = "0") -> None:
        """
        Initialize reader with a cookie database.

        Args:
            db_path: Path to the cookie database.
            store_id: Cookie store identifier stamped on every record.
        """
        self.db_path = db_path
        self.store_id = store_id

    @abstractmethod
    def _select_sql(self) -> str:
        """Return the SELECT statement reading every cookie."""

    @abstractmethod
    def _row_to_record(self, row: sqlite3.Row) -> CookieRecord:
        """Convert one result row into a CookieRecord."""

    def read_cookies(self) -> list[CookieRecord]:
        """Read all cookies from the database."""
        return list(self.iter_cookies())

    def iter_cookies(self) -> Iterator[CookieRecord]:
        """Yield cookies from the database one at a time."""
        if not self.db_path.exists():
            logger.warning("Cookie database not found: %s", self.db_path)
            return

        try:
            with temp_db_copy(self.db_path) as temp_db:
                conn = sqlite3.connect(f"file:{temp_db}?mode=ro", uri=True)
                conn.row_factory = sqlite3.Row
                try:
                    if not self._verify_schema(conn):
                        return
                    for row in conn.execute(self._select_sql()):
                        yield self._row_to_record(row)
                finally:
                    conn.close()
        except (sqlite3.Error, OSError) as e:
            logger.error("Failed to read cookies from %s: %s", self.db_path, e)

    def _verify_schema(self, conn: sqlite3.Connection) -> bool:
        """
        Verify the cookie table exists and has the required columns.

        Args:
            conn: SQLite connection.

        Returns:
            True if schema is valid, False otherwise.
        """
        cursor = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (self.TABLE,),
        )
        if cursor.fetchone() is None:
            logger.warning("No %s table in %s", self.TABLE, self.db_path)
            return False

        columns = {row[1] for row in conn.execute(f"PRAGMA table_info({self.TABLE})")}
        missing = self.REQUIRED_COLUMNS - columns
        if missing:
            logger.warning("Missing columns in %s: %s", self.db_path, sorted(missing))
            return False

        return True


def detect_is_chromium(db_path: Path) -> bool:
    """
    Determine if a database is Chromium or Firefox format.

    Args:
        db_path: Path to the database

    Returns:
        True if Chromium (has 'cookies' table), False if Firefox
    """
    path_lower = str(db_path).lower()
    inferred = "firefox" not in path_lower and "mozilla" not in path_lower and not path_lower.endswith(".sqlite")

    if not db_path.exists():
        return inferred

    try:
        conn = sqlite3.connect(f"file:{db_path}?mode=ro", uri=True)
        try:
            tables = {
                row[0]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            }
        finally:
            conn.close()
    except sqlite3.Error:
        return inferred

    if "cookies" in tables:
        return True
    if "moz_cookies" in tables:
        return False
    return inferred


def create_reader(db_path: Path, store_id: str = "0", is_chromium: bool | None = None) -> BaseCookieReader:
    """
    Create the appropriate reader for a cookie database.

    Args:
        db_path: Path to the cookie database.
        store_id: Cookie store identifier for the records.
        is_chromium: Database flavour; detected from the file when None.

    Returns:
        ChromiumCookieReader for Chromium-based browsers,
        FirefoxCookieReader for Firefox.
    """
    # Import here to avoid circular imports
    from cookie_keeper.scanner.chromium_cookie_reader import ChromiumCookieReader
    from cookie_keeper.scanner.firefox_cookie_reader import FirefoxCookieReader

    if is_chromium is None:
        is_chromium = detect_is_chromium(db_path)
    if is_chromium:
        return ChromiumCookieReader(db_path, store_id)
    return FirefoxCookieReader(db_path, store_id)
