"""Collaborator interfaces the retention engine depends on.

Host environments (a browser runtime, a sqlite cookie database, test fakes)
implement these. Every method is a coroutine; failures are raised, never
returned as status values.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cookie_keeper.core.models import CookieRecord, EraseOptions


class PersistenceError(Exception):
    """Raised when the persistence collaborator cannot read or write."""

    pass


class EraseError(Exception):
    """Raised when an eraser collaborator fails to delete data."""

    pass


class Persistence(ABC):
    """Key/value storage holding lists of strings."""

    @abstractmethod
    async def get(self, key: str) -> list[str] | None:
        """
        Read the list stored under key.

        Returns:
            The stored list, or None when the key is absent.

        Raises:
            PersistenceError: If the backing store cannot be read.
        """

    @abstractmethod
    async def set(self, key: str, values: list[str]) -> None:
        """
        Replace the list stored under key.

        Raises:
            PersistenceError: If the write did not succeed.
        """


class RecordSource(ABC):
    """Read-only source of cookie records."""

    @abstractmethod
    async def list_all_records(self) -> list[CookieRecord]:
        """Return every cookie record currently held; may be empty."""


class BulkEraser(ABC):
    """Clears whole categories of browsing data at once."""

    @abstractmethod
    async def erase(self, options: EraseOptions, categories: frozenset[str]) -> None:
        """
        Erase data of the given categories, sparing excluded origins.

        Raises:
            EraseError: If the erase did not complete.
        """


class RecordEraser(ABC):
    """Deletes a single cookie."""

    @abstractmethod
    async def erase_one(self, url: str, name: str, store_id: str) -> None:
        """
        Delete the cookie addressed by url, name and store.

        Raises:
            EraseError: If the cookie could not be deleted.
        """
