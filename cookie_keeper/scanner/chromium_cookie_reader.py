"""Chromium-based browser cookie reader."""

from __future__ import annotations

import logging
import sqlite3

from cookie_keeper.core.models import CookieRecord
from cookie_keeper.scanner.cookie_reader import BaseCookieReader

logger = logging.getLogger(__name__)

# Chromium timestamp epoch offset
# Windows FILETIME epoch: 1601-01-01
# Unix epoch: 1970-01-01
# Difference: 11644473600 seconds
CHROMIUM_EPOCH_OFFSET = 11644473600


def epoch_millis_to_chromium_time(epoch_millis: int) -> int:
    """
    Convert Unix milliseconds to a Chromium timestamp.

    Chromium stores timestamps as microseconds since 1601-01-01.

    Args:
        epoch_millis: Milliseconds since 1970-01-01.

    Returns:
        Microseconds since 1601-01-01.
    """
    return (epoch_millis * 1000) + CHROMIUM_EPOCH_OFFSET * 1_000_000


class ChromiumCookieReader(BaseCookieReader):
    """Cookie reader for Chromium-based browsers (Chrome, Edge, Brave, etc.)."""

    TABLE = "cookies"
    REQUIRED_COLUMNS = frozenset({"host_key", "name", "path", "is_secure"})

    def _select_sql(self) -> str:
        return "SELECT host_key, name, path, is_secure FROM cookies"

    def _row_to_record(self, row: sqlite3.Row) -> CookieRecord:
        return CookieRecord(
            domain=row["host_key"],
            name=row["name"],
            path=row["path"] or "/",
            secure=bool(row["is_secure"]),
            store_id=self.store_id,
        )
