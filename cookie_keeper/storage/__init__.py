"""Persistence collaborators for Cookie Keeper."""

from cookie_keeper.storage.json_storage import JsonFileStorage

__all__ = ["JsonFileStorage"]
