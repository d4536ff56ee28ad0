"""Cookie database host adapter for Cookie Keeper.

SAFETY CONTRACT:
- DELETE statements are ONLY executed in this module
- Lock check MUST pass before any DELETE statement
- All DELETEs are wrapped in BEGIN IMMEDIATE / COMMIT
- Any failure triggers ROLLBACK and surfaces as EraseError
- Writes to one database never run concurrently
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable
from urllib.parse import urlsplit

from cookie_keeper.core.domain import reduce_hostname
from cookie_keeper.core.interfaces import BulkEraser, EraseError, RecordEraser, RecordSource
from cookie_keeper.core.matching import is_allowed
from cookie_keeper.core.models import CookieRecord, EraseOptions
from cookie_keeper.execution.lock_resolver import LockResolver
from cookie_keeper.scanner.chromium_cookie_reader import epoch_millis_to_chromium_time
from cookie_keeper.scanner.cookie_reader import create_reader, detect_is_chromium
from cookie_keeper.scanner.firefox_cookie_reader import epoch_millis_to_firefox_time

logger = logging.getLogger(__name__)

# The only category a cookie database holds
COOKIES_CATEGORY = "cookies"


@dataclass(frozen=True)
class _Schema:
    """Table and column names of one cookie database flavour."""

    table: str
    host: str
    name: str
    path: str
    secure: str
    created: str
    to_created: Callable[[int], int]


CHROMIUM_SCHEMA = _Schema(
    table="cookies",
    host="host_key",
    name="name",
    path="path",
    secure="is_secure",
    created="creation_utc",
    to_created=epoch_millis_to_chromium_time,
)

FIREFOX_SCHEMA = _Schema(
    table="moz_cookies",
    host="host",
    name="name",
    path="path",
    secure="isSecure",
    created="creationTime",
    to_created=epoch_millis_to_firefox_time,
)


def _origin_host(origin: str) -> str | None:
    try:
        return urlsplit(origin).hostname
    except ValueError:
        logger.debug("Ignoring malformed origin %r", origin)
        return None


class SqliteCookieStore(RecordSource, BulkEraser, RecordEraser):
    """
    Record source and erasers over one browser cookie database.

    The bulk erase spares every cookie an excluded origin host allows, plus
    whole registrable domains of those hosts. That is coarser than allow-list
    matching; the retention engine's reconciliation pass removes what it
    leaves behind.
    """

    def __init__(
        self,
        db_path: Path,
        store_id: str = "0",
        is_chromium: bool | None = None,
        lock_resolver: LockResolver | None = None,
        reducer: Callable[[str], str] = reduce_hostname,
    ) -> None:
        """
        Initialize the store.

        Args:
            db_path: Path to the cookie database
            store_id: Cookie store identifier stamped on records
            is_chromium: Database flavour; detected from the file when None
            lock_resolver: LockResolver instance. Creates new one if None.
            reducer: Maps an excluded origin host to the domain it spares
        """
        self.db_path = db_path
        self.store_id = store_id
        if is_chromium is None:
            is_chromium = detect_is_chromium(db_path)
        self.is_chromium = is_chromium
        self.schema = CHROMIUM_SCHEMA if is_chromium else FIREFOX_SCHEMA
        self.reader = create_reader(db_path, store_id, is_chromium)
        self.lock_resolver = lock_resolver or LockResolver()
        self.reducer = reducer
        self._write_lock = asyncio.Lock()

    async def list_all_records(self) -> list[CookieRecord]:
        """Read every cookie in the database."""
        return await asyncio.to_thread(self.reader.read_cookies)

    async def erase_one(self, url: str, name: str, store_id: str) -> None:
        """
        Delete the cookie addressed by url, name and store.

        An http: URL never removes a secure cookie. Deleting a cookie that is
        already gone succeeds.

        Raises:
            EraseError: If the store is unknown, the URL unusable or the
                database could not be written
        """
        if store_id != self.store_id:
            raise EraseError(f"Unknown cookie store '{store_id}' (expected '{self.store_id}')")

        try:
            parts = urlsplit(url)
        except ValueError as e:
            raise EraseError(f"Malformed cookie URL {url!r}: {e}") from e

        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise EraseError(f"Malformed cookie URL {url!r}")

        async with self._write_lock:
            deleted = await asyncio.to_thread(
                self._delete_one,
                parts.netloc,
                name,
                parts.path or "/",
                parts.scheme == "https",
            )

        if deleted == 0:
            logger.debug("Cookie %s at %s already gone", name, url)

    async def erase(self, options: EraseOptions, categories: frozenset[str]) -> None:
        """
        Erase cookies created since options.since_epoch_millis.

        Categories other than cookies are not held by a cookie database and
        are skipped.

        Raises:
            EraseError: If the database could not be written
        """
        unsupported = sorted(set(categories) - {COOKIES_CATEGORY})
        if unsupported:
            logger.debug("Categories not held by %s: %s", self.db_path, ", ".join(unsupported))
        if COOKIES_CATEGORY not in categories:
            return

        origin_hosts = {host for host in map(_origin_host, options.exclude_origins) if host}

        async with self._write_lock:
            deleted = await asyncio.to_thread(
                self._delete_unspared,
                options.since_epoch_millis,
                origin_hosts,
            )

        logger.info("Bulk erase removed %d cookies from %s", deleted, self.db_path)

    def _ensure_unlocked(self) -> None:
        """Raise EraseError if a browser holds the database."""
        if not self.db_path.exists():
            raise EraseError(f"Cookie database not found: {self.db_path}")

        report = self.lock_resolver.check_lock(self.db_path)
        if report.is_locked:
            processes = ", ".join(report.blocking_processes) or "unknown process"
            raise EraseError(f"Database locked by {processes}")

    def _run_in_transaction(self, statements: Iterable[tuple[str, tuple]]) -> int:
        """Execute DELETE statements atomically and return rows removed."""
        self._ensure_unlocked()

        total_deleted = 0
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=5.0, isolation_level=None)
            try:
                cursor = conn.cursor()
                cursor.execute("BEGIN IMMEDIATE")
                try:
                    for sql, params in statements:
                        cursor.execute(sql, params)
                        total_deleted += cursor.rowcount
                    cursor.execute("COMMIT")
                except Exception:
                    cursor.execute("ROLLBACK")
                    raise
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error("Delete failed for %s: %s", self.db_path, e)
            raise EraseError(str(e)) from e

        return total_deleted

    def _delete_one(self, host: str, name: str, path: str, allow_secure: bool) -> int:
        s = self.schema
        sql = f"DELETE FROM {s.table} WHERE {s.host} = ? AND {s.name} = ? AND {s.path} = ?"
        if not allow_secure:
            sql += f" AND {s.secure} = 0"
        return self._run_in_transaction([(sql, (host, name, path))])

    def _is_spared(self, host: str, origin_hosts: set[str], spared: set[str]) -> bool:
        return self.reducer(host) in spared or is_allowed(host, origin_hosts)

    def _delete_unspared(self, since_epoch_millis: int, origin_hosts: set[str]) -> int:
        s = self.schema
        spared = {self.reducer(host) for host in origin_hosts}
        since = s.to_created(since_epoch_millis)

        try:
            conn = sqlite3.connect(f"file:{self.db_path}?mode=ro", uri=True)
            try:
                rows = conn.execute(
                    f"SELECT rowid, {s.host} FROM {s.table} WHERE {s.created} >= ?",
                    (since,),
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise EraseError(f"Cannot read {self.db_path}: {e}") from e

        doomed = [
            rowid for rowid, host in rows if not self._is_spared(host, origin_hosts, spared)
        ]
        sql = f"DELETE FROM {s.table} WHERE rowid = ?"
        return self._run_in_transaction((sql, (rowid,)) for rowid in doomed)
