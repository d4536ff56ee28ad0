"""Firefox browser cookie reader."""

from __future__ import annotations

import logging
import sqlite3

from cookie_keeper.core.models import CookieRecord
from cookie_keeper.scanner.cookie_reader import BaseCookieReader

logger = logging.getLogger(__name__)


def epoch_millis_to_firefox_time(epoch_millis: int) -> int:
    """
    Convert Unix milliseconds to a Firefox creationTime value.

    Firefox stores creationTime as microseconds since 1970-01-01.
    """
    return epoch_millis * 1000


class FirefoxCookieReader(BaseCookieReader):
    """Cookie reader for Firefox browser."""

    TABLE = "moz_cookies"
    REQUIRED_COLUMNS = frozenset({"host", "name", "path", "isSecure"})

    def _select_sql(self) -> str:
        return "SELECT host, name, path, isSecure FROM moz_cookies"

    def _row_to_record(self, row: sqlite3.Row) -> CookieRecord:
        return CookieRecord(
            domain=row["host"],
            name=row["name"],
            path=row["path"] or "/",
            secure=bool(row["isSecure"]),
            store_id=self.store_id,
        )
