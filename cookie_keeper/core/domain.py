"""Hostname reduction for Cookie Keeper.

Maps a hostname to the meaningful domain a person recognizes as "the site"
("careers.bbc.co.uk" -> "bbc.co.uk"). How many leading labels to drop is
decided by a suffix rule, so the label-length heuristic can be swapped for a
Public Suffix List lookup without touching callers.
"""

from __future__ import annotations

import logging
from typing import Callable
from urllib.parse import urlsplit

from .constants import COMMON_SUBDOMAIN_PREFIXES
from .psl_loader import get_public_suffix

logger = logging.getLogger(__name__)

# Maps the labels of a normalized hostname to the number of leading labels to strip
SuffixRule = Callable[[list[str]], int]


def normalize_hostname(hostname: str) -> str:
    """
    Normalize a hostname for comparison.

    - Strips surrounding whitespace
    - Removes exactly one leading dot (cookie "domain and subdomains" form)
    - Removes trailing root dots
    - Converts to lowercase

    Args:
        hostname: Raw hostname or cookie domain

    Returns:
        Normalized hostname
    """
    normalized = hostname.strip().lower()
    if normalized.startswith("."):
        normalized = normalized[1:]
    normalized = normalized.rstrip(".")
    return normalized


def _looks_like_cctld_sld(labels: list[str]) -> bool:
    """Label-length proxy for "co.uk" / "com.au" style suffixes."""
    return len(labels) > 2 and len(labels[-1]) == 2 and len(labels[-2]) <= 3


def heuristic_suffix_rule(labels: list[str]) -> int:
    """
    Decide how many leading labels to strip without a suffix table.

    Hosts ending in a two-letter label preceded by a label of at most three
    characters are treated as ccTLD + generic SLD: only a well-known subdomain
    prefix in first position is stripped. Everything else keeps its last two labels.

    Args:
        labels: Labels of a normalized hostname

    Returns:
        Number of leading labels to drop
    """
    if _looks_like_cctld_sld(labels):
        return 1 if labels[0] in COMMON_SUBDOMAIN_PREFIXES else 0
    return max(len(labels) - 2, 0)


def public_suffix_rule(labels: list[str]) -> int:
    """
    Decide how many leading labels to strip using the Public Suffix List.

    Keeps the public suffix plus one label. Hosts without a known suffix, or
    that are themselves a suffix, fall back to keeping their last two labels.

    Args:
        labels: Labels of a normalized hostname

    Returns:
        Number of leading labels to drop
    """
    suffix = get_public_suffix(".".join(labels))
    if suffix is None:
        return max(len(labels) - 2, 0)
    keep = len(suffix.split(".")) + 1
    if keep > len(labels):
        return max(len(labels) - 2, 0)
    return len(labels) - keep


def reduce_hostname(hostname: str, suffix_rule: SuffixRule = heuristic_suffix_rule) -> str:
    """
    Reduce a hostname to its meaningful domain.

    "www.apple.com" -> "apple.com", "careers.bbc.co.uk" -> "bbc.co.uk",
    "a.b.c.example.org" -> "example.org". Hostnames with two labels or fewer
    come back normalized but otherwise unchanged. Applying the reduction twice
    gives the same result as applying it once.

    Args:
        hostname: Hostname or cookie domain (leading dot allowed)
        suffix_rule: Strategy deciding how many leading labels to drop

    Returns:
        The meaningful domain
    """
    reduced = normalize_hostname(hostname)

    # Re-apply until stable so nested prefixes ("careers.news.bbc.co.uk") and
    # stray dots reduce in one call. Each pass only ever shortens the string.
    while reduced:
        labels = reduced.split(".")
        candidate = normalize_hostname(".".join(labels[suffix_rule(labels):]))
        if candidate == reduced:
            break
        reduced = candidate

    return reduced


def hostname_from_url(url: str | None) -> str | None:
    """
    Extract the hostname of an http(s) URL.

    Args:
        url: URL of the active tab, possibly missing or malformed

    Returns:
        The hostname, or None if the URL has no usable web host
    """
    if not url:
        return None

    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError as e:
        logger.debug("Could not parse URL %r: %s", url, e)
        return None

    if parts.scheme not in ("http", "https") or not hostname:
        return None
    return hostname
