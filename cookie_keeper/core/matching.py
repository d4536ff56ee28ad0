"""Allow-list matching for Cookie Keeper.

A candidate domain is allowed when it equals an allow-list entry or is a
subdomain of one. Matching happens on label boundaries only, so an entry
"example.com" covers "sub.example.com" but never "notexample.com".
"""

from __future__ import annotations

from typing import Iterable


def _normalize_candidate(domain: str) -> str:
    """Lowercase and strip the cookie leading-dot convention and root dot."""
    return domain.strip().lower().lstrip(".").rstrip(".")


def is_allowed(candidate: str, allow_list: Iterable[str]) -> bool:
    """
    Check a domain against allow-list entries.

    Walks up the label hierarchy: a.b.example.com -> b.example.com ->
    example.com -> com, looking each step up in the entry set.

    Args:
        candidate: Cookie domain or hostname, leading dot allowed
        allow_list: Allow-list entries

    Returns:
        True if candidate equals or is a subdomain of any entry
    """
    if not candidate:
        return False

    normalized = _normalize_candidate(candidate)
    if not normalized:
        return False

    entries = {_normalize_candidate(entry) for entry in allow_list}
    entries.discard("")
    if not entries:
        return False

    parts = normalized.split(".")
    for i in range(len(parts)):
        if ".".join(parts[i:]) in entries:
            return True

    return False
