"""Shared pytest fixtures for Cookie Keeper tests."""

import json
import logging
import shutil
import sqlite3
import tempfile
from pathlib import Path
from urllib.parse import urlsplit

import pytest

from cookie_keeper.core.interfaces import (
    BulkEraser,
    EraseError,
    Persistence,
    PersistenceError,
    RecordEraser,
    RecordSource,
)
from cookie_keeper.core.domain import reduce_hostname
from cookie_keeper.core.logging_config import AUDIT_LOGGER_NAME
from cookie_keeper.core.matching import is_allowed
from cookie_keeper.core.models import CookieRecord


class MemoryPersistence(Persistence):
    """Dict-backed persistence with switchable failures."""

    def __init__(self, data=None):
        self.data = dict(data or {})
        self.fail_get = False
        self.fail_set = False
        self.set_calls = []

    async def get(self, key):
        if self.fail_get:
            raise PersistenceError("read failed")
        value = self.data.get(key)
        return list(value) if value is not None else None

    async def set(self, key, values):
        self.set_calls.append((key, list(values)))
        if self.fail_set:
            raise PersistenceError("write failed")
        self.data[key] = list(values)


class MemoryCookieJar(RecordSource, BulkEraser, RecordEraser):
    """
    In-memory cookie jar implementing every record collaborator.

    The bulk erase spares whatever the excluded origin hosts allow plus their
    whole registrable domains, mirroring the coarse exclusion of real browser APIs.
    """

    def __init__(self, records=()):
        self.records = list(records)
        self.events = []
        self.erase_calls = []
        self.erase_one_calls = []
        self.fail_bulk = False
        self.fail_names = set()
        self.bulk_erases_cookies = True

    async def list_all_records(self):
        self.events.append("list")
        return list(self.records)

    async def erase(self, options, categories):
        self.events.append("erase:start")
        self.erase_calls.append((options, frozenset(categories)))
        if self.fail_bulk:
            self.events.append("erase:failed")
            raise EraseError("bulk erase failed")
        if self.bulk_erases_cookies and "cookies" in categories:
            hosts = {urlsplit(o).hostname for o in options.exclude_origins}
            spared = {reduce_hostname(h) for h in hosts}
            self.records = [
                r for r in self.records
                if reduce_hostname(r.domain) in spared or is_allowed(r.domain, hosts)
            ]
        self.events.append("erase:done")

    async def erase_one(self, url, name, store_id):
        self.erase_one_calls.append((url, name, store_id))
        if name in self.fail_names:
            raise EraseError(f"cannot delete {name}")
        parts = urlsplit(url)
        self.records = [
            r for r in self.records
            if not (
                r.domain == parts.netloc
                and r.name == name
                and r.path == (parts.path or "/")
                and r.store_id == store_id
            )
        ]


def make_record(domain: str, name: str = "id", path: str = "/", secure: bool = False) -> CookieRecord:
    """Create a test CookieRecord."""
    return CookieRecord(domain=domain, name=name, path=path, secure=secure, store_id="0")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    path = Path(tempfile.mkdtemp())
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def temp_config_file(temp_dir):
    """Create a temporary config file path."""
    return temp_dir / "config.json"


@pytest.fixture
def valid_config_data():
    """Return valid configuration data."""
    return {
        "version": 1,
        "settings": {
            "display_cap": 7,
            "erase_categories": [
                "cache",
                "cookies",
                "fileSystems",
                "indexedDB",
                "localStorage",
                "serviceWorkers",
            ],
            "since_epoch_millis": 0,
        },
    }


@pytest.fixture
def temp_config_with_data(temp_config_file, valid_config_data):
    """Create a temporary config file with valid data."""
    with open(temp_config_file, "w", encoding="utf-8") as f:
        json.dump(valid_config_data, f)
    return temp_config_file


@pytest.fixture
def persistence():
    """Return an empty in-memory persistence."""
    return MemoryPersistence()


@pytest.fixture
def scenario_records():
    """Records of the apple.com / tracker.net scenario."""
    return [
        make_record("apple.com", "a"),
        make_record("www.apple.com", "b"),
        make_record("tracker.net", "c"),
        make_record(".ads.tracker.net", "d"),
    ]


@pytest.fixture
def cookie_jar(scenario_records):
    """Return an in-memory cookie jar holding the scenario records."""
    return MemoryCookieJar(scenario_records)


@pytest.fixture(autouse=True)
def isolated_logs(temp_dir, monkeypatch):
    """Keep log files produced by tests out of the user's home."""
    from cookie_keeper.core import constants

    logs_dir = temp_dir / "logs"
    monkeypatch.setattr(constants, "LOGS_DIR", logs_dir)
    monkeypatch.setattr(constants, "DEBUG_LOG_FILE", logs_dir / "debug.log")
    monkeypatch.setattr(constants, "AUDIT_LOG_FILE", logs_dir / "audit.log")


@pytest.fixture(autouse=True)
def restore_logging():
    """Put root and audit loggers back the way they were."""
    root = logging.getLogger()
    audit = logging.getLogger(AUDIT_LOGGER_NAME)
    saved = (root.level, list(root.handlers), audit.level, list(audit.handlers), audit.propagate)
    yield
    for logger in (root, audit):
        for handler in logger.handlers:
            if handler not in saved[1] and handler not in saved[3]:
                handler.close()
    root.setLevel(saved[0])
    root.handlers[:] = saved[1]
    audit.setLevel(saved[2])
    audit.handlers[:] = saved[3]
    audit.propagate = saved[4]


@pytest.fixture
def record_factory():
    """Return the CookieRecord factory."""
    return make_record


@pytest.fixture
def jar_factory():
    """Return the in-memory cookie jar class."""
    return MemoryCookieJar


# Chromium epoch offset: microseconds since 1601-01-01
CHROMIUM_EPOCH_OFFSET = 11644473600

# 2024-01-01 00:00:00 UTC
DEFAULT_CREATED_MILLIS = 1704067200 * 1000

# (host, name, path, is_secure, created epoch millis)
SAMPLE_COOKIES = [
    ("apple.com", "a", "/", 0, DEFAULT_CREATED_MILLIS),
    ("www.apple.com", "b", "/", 1, DEFAULT_CREATED_MILLIS),
    ("tracker.net", "c", "/", 0, DEFAULT_CREATED_MILLIS),
    (".ads.tracker.net", "d", "/", 1, DEFAULT_CREATED_MILLIS),
]


def _cookie_rows(cookies):
    """Fill in path, is_secure and created for short cookie tuples."""
    defaults = (None, None, "/", 0, DEFAULT_CREATED_MILLIS)
    for cookie in cookies:
        yield tuple(cookie) + defaults[len(cookie):]


def create_chromium_db(db_path: Path, cookies=SAMPLE_COOKIES) -> Path:
    """Create a Chromium cookies database holding the given cookies."""
    conn = sqlite3.connect(db_path)
    conn.execute("""
        CREATE TABLE cookies (
            creation_utc INTEGER NOT NULL,
            host_key TEXT NOT NULL,
            top_frame_site_key TEXT NOT NULL,
            name TEXT NOT NULL,
            value TEXT NOT NULL,
            encrypted_value BLOB NOT NULL,
            path TEXT NOT NULL,
            expires_utc INTEGER NOT NULL,
            is_secure INTEGER NOT NULL,
            is_httponly INTEGER NOT NULL,
            last_access_utc INTEGER NOT NULL,
            has_expires INTEGER NOT NULL,
            is_persistent INTEGER NOT NULL,
            priority INTEGER NOT NULL,
            samesite INTEGER NOT NULL,
            source_scheme INTEGER NOT NULL,
            source_port INTEGER NOT NULL,
            last_update_utc INTEGER NOT NULL
        )
    """)

    for host, name, path, is_secure, created in _cookie_rows(cookies):
        created_chromium = created * 1000 + CHROMIUM_EPOCH_OFFSET * 1_000_000
        conn.execute(
            """
            INSERT INTO cookies (
                creation_utc, host_key, top_frame_site_key, name, value,
                encrypted_value, path, expires_utc, is_secure, is_httponly,
                last_access_utc, has_expires, is_persistent, priority, samesite,
                source_scheme, source_port, last_update_utc
            ) VALUES (?, ?, '', ?, '', X'', ?, 0, ?, 0, ?, 1, 1, 1, 0, 2, 443, ?)
            """,
            (created_chromium, host, name, path, is_secure, created_chromium, created_chromium),
        )

    conn.commit()
    conn.close()
    return db_path


def create_firefox_db(db_path: Path, cookies=SAMPLE_COOKIES) -> Path:
    """Create a Firefox cookies.sqlite database holding the given cookies."""
    conn = sqlite3.connect(db_path)
    conn.execute("""
        CREATE TABLE moz_cookies (
            id INTEGER PRIMARY KEY,
            originAttributes TEXT NOT NULL DEFAULT '',
            name TEXT NOT NULL,
            value TEXT NOT NULL,
            host TEXT NOT NULL,
            path TEXT NOT NULL DEFAULT '/',
            expiry INTEGER NOT NULL,
            lastAccessed INTEGER NOT NULL,
            creationTime INTEGER NOT NULL,
            isSecure INTEGER NOT NULL DEFAULT 0,
            isHttpOnly INTEGER NOT NULL DEFAULT 0,
            sameSite INTEGER NOT NULL DEFAULT 0
        )
    """)

    for host, name, path, is_secure, created in _cookie_rows(cookies):
        conn.execute(
            """
            INSERT INTO moz_cookies (
                originAttributes, name, value, host, path, expiry,
                lastAccessed, creationTime, isSecure
            ) VALUES ('', ?, 'test_value', ?, ?, 0, ?, ?, ?)
            """,
            (name, host, path, created * 1000, created * 1000, is_secure),
        )

    conn.commit()
    conn.close()
    return db_path


@pytest.fixture
def chromium_db_factory(tmp_path: Path):
    """Return a builder of Chromium cookie databases under tmp_path."""

    def build(cookies=SAMPLE_COOKIES, name: str = "Cookies") -> Path:
        return create_chromium_db(tmp_path / name, cookies)

    return build


@pytest.fixture
def firefox_db_factory(tmp_path: Path):
    """Return a builder of Firefox cookie databases under tmp_path."""

    def build(cookies=SAMPLE_COOKIES, name: str = "cookies.sqlite") -> Path:
        return create_firefox_db(tmp_path / name, cookies)

    return build


@pytest.fixture
def chromium_cookie_db(chromium_db_factory) -> Path:
    """Chromium cookie database holding the sample cookies."""
    return chromium_db_factory()


@pytest.fixture
def firefox_cookie_db(firefox_db_factory) -> Path:
    """Firefox cookie database holding the sample cookies."""
    return firefox_db_factory()


@pytest.fixture
def corrupted_db(tmp_path: Path) -> Path:
    """Create a corrupted/invalid database file."""
    db_path = tmp_path / "Corrupted"
    db_path.write_bytes(b"This is not a valid SQLite database")
    return db_path
