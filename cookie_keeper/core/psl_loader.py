"""Public Suffix List lookup for Cookie Keeper.

Backs the optional `public_suffix_rule` of the domain reducer and the
allow-list entry warnings. A `public_suffix_list.dat` file placed in the
package data directory (or named by COOKIE_KEEPER_PSL) is used when present;
otherwise a built-in table of common suffixes applies.

Rule kinds understood:
- Plain suffix rules (com, co.uk)
- Wildcard rules (*.ck: every label under ck is a suffix)
- Exception rules (!www.ck: www.ck is not a suffix despite *.ck)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class PSLData:
    """Parsed Public Suffix List data."""

    suffixes: frozenset[str] = field(default_factory=frozenset)
    wildcards: frozenset[str] = field(default_factory=frozenset)  # "ck" for "*.ck"
    exceptions: frozenset[str] = field(default_factory=frozenset)  # "www.ck" for "!www.ck"


def _get_psl_path() -> Path:
    """Return the location of the PSL data file."""
    override = os.environ.get("COOKIE_KEEPER_PSL")
    if override:
        return Path(override)
    return Path(__file__).parent.parent / "data" / "public_suffix_list.dat"


# Built-in table used when no PSL file is available
_TOP_LEVEL = (
    "com net org edu gov mil int info biz eu asia mobi tel travel jobs museum coop "
    "io co app dev ai me tv cc ws ly to "
    "uk de fr jp cn au ca ru br in us es it nl be ch at pl se no dk fi "
    "pt ie nz za mx ar cl kr tw hk sg"
).split()

# Second-level registries per country code
_SECOND_LEVEL = {
    "uk": "co org ac gov me ltd plc",
    "au": "com net org edu gov asn",
    "jp": "co ne or ac go ed",
    "br": "com net org gov edu",
    "in": "co net org gov ac",
    "nz": "co net org govt ac",
    "za": "co net org gov ac",
    "mx": "com net org gob edu",
    "ar": "com net org gob edu",
    "kr": "co ne or go ac",
    "tw": "com net org gov edu",
    "hk": "com net org gov edu",
    "sg": "com net org gov edu",
}

# Hosting platforms whose customers get their own subdomain
_PLATFORMS = (
    "github.io gitlab.io herokuapp.com netlify.app vercel.app azurewebsites.net "
    "cloudfront.net amazonaws.com blogspot.com wordpress.com tumblr.com"
).split()

_FALLBACK_SUFFIXES = frozenset(
    _TOP_LEVEL
    + [f"{sld}.{tld}" for tld, slds in _SECOND_LEVEL.items() for sld in slds.split()]
    + _PLATFORMS
)


def parse_psl_lines(lines) -> PSLData:
    """
    Parse PSL rule lines into PSLData.

    Args:
        lines: Iterable of raw lines from a PSL file

    Returns:
        PSLData with suffixes, wildcards and exceptions
    """
    suffixes = set()
    wildcards = set()
    exceptions = set()

    for line in lines:
        line = line.strip().lower()
        if not line or line.startswith("//"):
            continue

        if line.startswith("!"):
            exceptions.add(line[1:])
            continue

        if line.startswith("*."):
            base = line[2:]
            wildcards.add(base)
            suffixes.add(base)
            continue

        suffixes.add(line)

    return PSLData(
        suffixes=frozenset(suffixes),
        wildcards=frozenset(wildcards),
        exceptions=frozenset(exceptions),
    )


@lru_cache(maxsize=1)
def load_public_suffixes() -> PSLData:
    """
    Load public suffixes, reading the data file at most once.

    Returns:
        PSLData from the data file, or the built-in table
    """
    psl_path = _get_psl_path()

    if not psl_path.exists():
        logger.debug("PSL data file not found at %s, using fallback list", psl_path)
        return PSLData(suffixes=_FALLBACK_SUFFIXES)

    try:
        with open(psl_path, "r", encoding="utf-8") as f:
            data = parse_psl_lines(f)
    except OSError as e:
        logger.warning("Failed to load PSL file: %s, using fallback", e)
        return PSLData(suffixes=_FALLBACK_SUFFIXES)

    logger.info(
        "Loaded PSL: %d suffixes, %d wildcards, %d exceptions from %s",
        len(data.suffixes),
        len(data.wildcards),
        len(data.exceptions),
        psl_path,
    )
    return data


def _matches_rule(candidate: str, psl_data: PSLData) -> bool:
    """Return True if candidate is a public suffix under the given rules."""
    if candidate in psl_data.exceptions:
        return False
    if candidate in psl_data.suffixes:
        return True
    labels = candidate.split(".")
    return len(labels) >= 2 and ".".join(labels[1:]) in psl_data.wildcards


def is_public_suffix(domain: str) -> bool:
    """
    Check if a domain is itself a public suffix.

    Args:
        domain: Domain to check (e.g., "co.uk", "com")

    Returns:
        True if the domain is a public suffix
    """
    domain = domain.lower().strip().lstrip(".")
    return _matches_rule(domain, load_public_suffixes())


def get_public_suffix(domain: str) -> str | None:
    """
    Get the longest public suffix of a domain.

    Args:
        domain: Full domain (e.g., "www.example.co.uk")

    Returns:
        The public suffix (e.g., "co.uk"), or None if nothing matches
    """
    domain = domain.lower().strip().lstrip(".")
    psl_data = load_public_suffixes()
    labels = domain.split(".")

    # Longest candidate first: "www.example.co.uk", "example.co.uk", "co.uk", "uk"
    for i in range(len(labels)):
        candidate = ".".join(labels[i:])
        if candidate and _matches_rule(candidate, psl_data):
            return candidate

    return None


def clear_cache() -> None:
    """Clear the cached PSL data (used by tests)."""
    load_public_suffixes.cache_clear()
