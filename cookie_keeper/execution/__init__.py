"""Cookie database deletion package for Cookie Keeper."""

from cookie_keeper.execution.lock_resolver import LockResolver, LockReport
from cookie_keeper.execution.sqlite_eraser import SqliteCookieStore

__all__ = [
    "LockResolver",
    "LockReport",
    "SqliteCookieStore",
]
