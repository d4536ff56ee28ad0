"""Allow-list model for Cookie Keeper.

The allow-list is the user's set of meaningful domains whose cookies are kept.
Its canonical form is a list of normalized, unique entries sorted by code
point; that order is both what the popup shows and what gets persisted.
This module contains list handling only - NO deletion operations.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Iterator, Tuple

from .matching import is_allowed
from .psl_loader import is_public_suffix

logger = logging.getLogger(__name__)

# Valid domain label pattern (simplified)
_DOMAIN_LABEL_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$")


def normalize_entry(value: str) -> str:
    """
    Normalize an allow-list entry.

    - Strips leading/trailing whitespace
    - Converts to lowercase
    - Removes leading dots

    Args:
        value: Entry as typed by the user

    Returns:
        Normalized entry (may be empty)
    """
    return value.strip().lower().lstrip(".")


def _canonical(entries: Iterable[str]) -> list[str]:
    """Normalize, drop blanks, dedupe and sort entries."""
    normalized = {normalize_entry(entry) for entry in entries}
    normalized.discard("")
    return sorted(normalized)


def parse(raw_text: str) -> list[str]:
    """
    Parse free text into canonical allow-list entries.

    One entry per line; blank and whitespace-only lines are dropped.

    Args:
        raw_text: Contents of the allow-list text box

    Returns:
        Sorted, deduplicated entries
    """
    return _canonical(raw_text.split("\n"))


def serialize(entries: Iterable[str]) -> str:
    """
    Render entries one per line, sorted, without a trailing newline.

    Args:
        entries: Allow-list entries

    Returns:
        Text suitable for the allow-list text box
    """
    return "\n".join(sorted(entries))


def add(entries: Iterable[str], domain: str) -> list[str]:
    """
    Add a domain to the allow-list.

    Adding a domain that is already present changes nothing.

    Args:
        entries: Current entries
        domain: Domain to allow

    Returns:
        Sorted, deduplicated entries including domain
    """
    return _canonical([*entries, domain])


def validate_entry(entry: str) -> Tuple[bool, str]:
    """
    Check whether an entry is a sensible domain to allow.

    Advisory only: parsing keeps every non-blank entry, this feeds warnings.

    Args:
        entry: Entry to check (normalized or not)

    Returns:
        Tuple of (is_valid, error_message). If valid, error_message is empty.
    """
    value = normalize_entry(entry) if isinstance(entry, str) else ""
    if not value:
        return False, "Entry must be a non-empty string"

    for label in value.split("."):
        if not label:
            return False, f"Invalid domain: empty label in '{value}'"
        if len(label) > 63:
            return False, f"Domain label too long: '{label}'"
        if not _DOMAIN_LABEL_PATTERN.match(label):
            return False, f"Invalid domain label: '{label}'"

    if is_public_suffix(value):
        return False, f"Public suffix '{value}' would allow unrelated sites"

    return True, ""


class AllowList:
    """
    Immutable, canonical allow-list.

    Supports exact membership (`in`) and subdomain-aware matching
    (`allows`). Mutating operations return a new AllowList.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[str] = ()) -> None:
        self._entries: tuple[str, ...] = tuple(_canonical(entries))

    @classmethod
    def from_text(cls, raw_text: str) -> AllowList:
        """Create an AllowList from free text, one entry per line."""
        return cls(parse(raw_text))

    @classmethod
    def from_entries(cls, entries: Iterable[str] | None) -> AllowList:
        """Create an AllowList from stored entries; None means empty."""
        return cls(entries or ())

    def to_text(self) -> str:
        """Render the entries one per line."""
        return serialize(self._entries)

    def add(self, domain: str) -> AllowList:
        """Return a new AllowList that also contains domain."""
        return AllowList(add(self._entries, domain))

    def allows(self, candidate: str) -> bool:
        """Return True if candidate equals or is a subdomain of an entry."""
        return is_allowed(candidate, self._entries)

    def invalid_entries(self) -> list[Tuple[str, str]]:
        """Return (entry, reason) for every entry failing validation."""
        problems = []
        for entry in self._entries:
            is_valid, error = validate_entry(entry)
            if not is_valid:
                problems.append((entry, error))
        return problems

    @property
    def entries(self) -> tuple[str, ...]:
        """Return the canonical entries."""
        return self._entries

    def __contains__(self, domain: object) -> bool:
        """Exact membership of a (normalized) domain."""
        return isinstance(domain, str) and normalize_entry(domain) in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AllowList):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self) -> int:
        return hash(self._entries)

    def __repr__(self) -> str:
        return f"AllowList({list(self._entries)!r})"
