"""Cookie database readers for Cookie Keeper."""

from cookie_keeper.scanner.cookie_reader import BaseCookieReader, create_reader, detect_is_chromium
from cookie_keeper.scanner.chromium_cookie_reader import ChromiumCookieReader
from cookie_keeper.scanner.firefox_cookie_reader import FirefoxCookieReader
from cookie_keeper.scanner.db_copy import copy_db_to_temp, cleanup_temp_db

__all__ = [
    "BaseCookieReader",
    "ChromiumCookieReader",
    "FirefoxCookieReader",
    "create_reader",
    "detect_is_chromium",
    "copy_db_to_temp",
    "cleanup_temp_db",
]
