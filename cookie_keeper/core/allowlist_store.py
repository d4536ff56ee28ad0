"""Persisted allow-list state for Cookie Keeper.

Holds the current AllowList in memory and keeps it in step with the
persistence collaborator. Every mutation runs under one asyncio.Lock, so two
edits never interleave their read-modify-write.
"""

from __future__ import annotations

import asyncio
import logging

from .allowlist import AllowList
from .constants import ALLOWED_DOMAINS_KEY
from .interfaces import Persistence, PersistenceError

logger = logging.getLogger(__name__)


class AllowListStore:
    """
    Owns the allow-list of one install.

    Read failures keep the previous in-memory list and record a warning.
    Adding to a list that was never loaded is refused, so a failed read can
    not clobber the stored entries.
    Write failures propagate and leave the in-memory list unchanged.
    """

    def __init__(self, persistence: Persistence, key: str = ALLOWED_DOMAINS_KEY) -> None:
        """
        Initialize the AllowListStore with an empty list.

        Args:
            persistence: Storage collaborator
            key: Storage key of the allow-list
        """
        self.persistence = persistence
        self.key = key
        self._allow_list = AllowList()
        self._lock = asyncio.Lock()
        self.last_warning: str | None = None
        self._loaded = False

    @property
    def allow_list(self) -> AllowList:
        """Return the current allow-list."""
        return self._allow_list

    async def load(self) -> AllowList:
        """
        Read the allow-list from persistence.

        Returns:
            The loaded list, or the previous one if reading failed
        """
        async with self._lock:
            try:
                stored = await self.persistence.get(self.key)
            except PersistenceError as e:
                self.last_warning = f"Could not load allowed sites: {e}"
                logger.warning("Failed to load allow-list, keeping previous state: %s", e)
                return self._allow_list

            self._allow_list = AllowList.from_entries(stored)
            self._loaded = True
            self.last_warning = None
            logger.debug("Loaded %d allow-list entries", len(self._allow_list))
            return self._allow_list

    async def _commit(self, new_list: AllowList) -> AllowList:
        """Persist new_list, then publish it. Caller holds the lock."""
        await self.persistence.set(self.key, list(new_list))
        self._allow_list = new_list
        self._loaded = True
        self.last_warning = None
        return new_list

    async def replace_text(self, raw_text: str) -> AllowList:
        """
        Replace the allow-list with the entries of free text.

        Raises:
            PersistenceError: If the new list could not be saved
        """
        async with self._lock:
            return await self._commit(AllowList.from_text(raw_text))

    async def add(self, domain: str) -> AllowList:
        """
        Add one domain to the allow-list.

        Raises:
            PersistenceError: If the stored list was never loaded or the
                new list could not be saved
        """
        async with self._lock:
            if not self._loaded:
                raise PersistenceError("Allow-list not loaded; refusing to overwrite stored entries")
            new_list = self._allow_list.add(domain)
            if new_list == self._allow_list:
                logger.debug("Domain %s already allowed", domain)
                return self._allow_list
            logger.info("Allowing %s", domain)
            return await self._commit(new_list)
