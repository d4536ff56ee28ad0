"""Database lock detection for Cookie Keeper."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path

import psutil

from cookie_keeper.core.constants import BROWSER_EXECUTABLES

logger = logging.getLogger(__name__)

# Mapping of path fragments to browser executables, most specific first
BROWSER_PATH_MAPPINGS = {
    "microsoft/edge": "msedge",
    "brave-browser": "brave",
    "bravesoftware": "brave",
    "opera software": "opera",
    "vivaldi": "vivaldi",
    "mozilla/firefox": "firefox",
    "firefox": "firefox",
    "chromium": "chromium",
    "google/chrome": "chrome",
    "chrome": "chrome",
}


def _process_base_name(name: str) -> str:
    """Normalize a process name: "chrome.exe" -> "chrome"."""
    name = name.lower()
    return name[:-4] if name.endswith(".exe") else name


@dataclass
class LockReport:
    """Result of a lock check on a database file."""

    db_path: Path
    is_locked: bool
    blocking_processes: list[str] = field(default_factory=list)

    @property
    def can_proceed(self) -> bool:
        """Return True if the database is not locked."""
        return not self.is_locked


class LockResolver:
    """Detects if cookie databases are held by running browser processes."""

    def check_lock(self, db_path: Path) -> LockReport:
        """
        Check if a database file can be written.

        Args:
            db_path: Path to the database file

        Returns:
            LockReport with lock status and blocking processes
        """
        if not db_path.exists():
            return LockReport(db_path=db_path, is_locked=False)

        is_locked = self._check_write_lock(db_path)
        blocking_processes = self._find_blocking_processes(db_path) if is_locked else []

        return LockReport(
            db_path=db_path,
            is_locked=is_locked,
            blocking_processes=blocking_processes,
        )

    def get_running_browsers(self) -> set[str]:
        """
        Get the set of currently running browsers.

        Returns:
            Set of normalized browser names (e.g., {"chrome", "firefox"})
        """
        browsers = set()

        try:
            for proc in psutil.process_iter(["name"]):
                try:
                    name = proc.info["name"]
                    if name and name.lower() in BROWSER_EXECUTABLES:
                        browsers.add(_process_base_name(name))
                except (psutil.NoSuchProcess, psutil.AccessDenied):
                    continue
        except psutil.Error as e:
            logger.warning("Error enumerating processes: %s", e)

        return browsers

    def browser_for_path(self, db_path: Path) -> str | None:
        """Return the browser owning a cookie database, judged by its path."""
        path_lower = str(db_path).lower().replace("\\", "/")
        for fragment, browser in BROWSER_PATH_MAPPINGS.items():
            if fragment in path_lower:
                return browser
        return None

    def _check_write_lock(self, db_path: Path) -> bool:
        """
        Try to take SQLite's write lock without waiting.

        Returns:
            True if another connection holds the database
        """
        try:
            conn = sqlite3.connect(str(db_path), timeout=0)
            try:
                conn.execute("BEGIN IMMEDIATE")
                conn.execute("ROLLBACK")
            finally:
                conn.close()
            return False
        except sqlite3.OperationalError as e:
            if "locked" in str(e).lower() or "busy" in str(e).lower():
                return True
            logger.debug("SQLite error checking %s: %s", db_path, e)
            return False
        except PermissionError:
            return True
        except sqlite3.Error as e:
            logger.debug("SQLite error checking %s: %s", db_path, e)
            return False

    def _find_blocking_processes(self, db_path: Path) -> list[str]:
        """
        Find browser processes likely blocking the database.

        Args:
            db_path: Path to the locked database

        Returns:
            Browser names that may be blocking
        """
        running = self.get_running_browsers()
        browser = self.browser_for_path(db_path)

        if browser:
            return [browser] if browser in running else []
        # Unknown browser - report all running browsers
        return sorted(running)
