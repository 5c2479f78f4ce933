"""
Item catalog index and text resolver for marketboard-bot.

The index is built once at startup from the catalog file produced by
``marketboard-bot update-db`` and is read-only afterwards, so a single
instance can be shared by any number of concurrent lookups.
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any

from .models import CatalogEntry

logger = logging.getLogger(__name__)

MAX_ALTERNATES = 10


class CatalogLoadError(Exception):
    """The catalog file is missing or cannot be parsed."""


class MatchTier(IntEnum):
    """Partial match tiers, in priority order."""

    ENDS_WITH = 0
    STARTS_WITH = 1
    CONTAINS = 2


def normalize_name(name: str) -> str:
    """Lookup key for an item name."""
    return name.lower()


def classify_match(name_key: str, query_key: str) -> MatchTier | None:
    """
    Place a normalized name in the first tier it matches.

    Tiers are tested in order (ends-with, starts-with, contains), so a
    name that both starts and ends with the query is an ends-with match.
    """
    if name_key.endswith(query_key):
        return MatchTier.ENDS_WITH
    if name_key.startswith(query_key):
        return MatchTier.STARTS_WITH
    if query_key in name_key:
        return MatchTier.CONTAINS
    return None


class CatalogIndex:
    """
    Immutable name/id index over catalog entries.

    On duplicate normalized names the entry loaded last wins and the
    earlier one is no longer reachable by name or id.
    """

    def __init__(self, entries: Iterable[CatalogEntry] = (), degraded: bool = False):
        by_name: dict[str, CatalogEntry] = {}
        for entry in entries:
            by_name[normalize_name(entry.name)] = entry

        self._by_name = by_name
        self._by_id = {entry.id: entry for entry in by_name.values()}
        self.degraded = degraded

    @classmethod
    def empty(cls, degraded: bool = True) -> "CatalogIndex":
        """Index with no entries (catalog unavailable)."""
        return cls((), degraded=degraded)

    def __len__(self) -> int:
        return len(self._by_name)

    def __bool__(self) -> bool:
        return bool(self._by_name)

    def get_by_name(self, name: str) -> CatalogEntry | None:
        """Exact (case-insensitive) name lookup."""
        return self._by_name.get(normalize_name(name))

    def get_by_id(self, item_id: int) -> CatalogEntry | None:
        """Look up an indexed entry by numeric id."""
        return self._by_id.get(item_id)

    def items(self):
        """(normalized name, entry) pairs."""
        return self._by_name.items()


@dataclass
class Resolution:
    """Outcome of resolving a text query against the catalog."""

    query: str
    primary: CatalogEntry | None = None
    alternates: list[CatalogEntry] = field(default_factory=list)
    exact: bool = False

    @property
    def found(self) -> bool:
        return self.primary is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "query": self.query,
            "found": self.found,
            "exact": self.exact,
            "primary": self.primary.to_dict() if self.primary else None,
            "alternates": [a.to_dict() for a in self.alternates],
        }


class TextResolver:
    """
    Tiered text matcher over a CatalogIndex.

    Resolution order:
    1. Exact name match (short-circuits, no alternates)
    2. Names ending with the query
    3. Names starting with the query
    4. Names containing the query

    Within a tier, shorter names come first, then lower ids.
    """

    def __init__(self, index: CatalogIndex, max_alternates: int = MAX_ALTERNATES):
        self.index = index
        self.max_alternates = max_alternates

    def resolve(self, query: str) -> Resolution:
        """Resolve a query to a primary entry plus up to N alternates."""
        query_key = normalize_name(query)
        if not query_key.strip():
            return Resolution(query=query)

        exact = self.index.get_by_name(query_key)
        if exact is not None:
            return Resolution(query=query, primary=exact, exact=True)

        ranked: list[tuple[tuple[int, int, int], CatalogEntry]] = []
        for name_key, entry in self.index.items():
            tier = classify_match(name_key, query_key)
            if tier is not None:
                ranked.append(((tier, len(entry.name), entry.id), entry))

        if not ranked:
            logger.debug(f"No catalog match for {query!r}")
            return Resolution(query=query)

        ranked.sort(key=lambda pair: pair[0])
        matches = [entry for _, entry in ranked]

        return Resolution(
            query=query,
            primary=matches[0],
            alternates=matches[1 : self.max_alternates + 1],
        )


def load_catalog_file(path: Path) -> list[CatalogEntry]:
    """
    Read catalog entries from a JSON file.

    File format:
        [{"id": 17534, "name": "염료: 순백색", "icon": "/i/025000/025847.png"}, ...]

    Raises:
        CatalogLoadError: if the file is missing or malformed
    """
    if not path.exists():
        raise CatalogLoadError(f"Catalog file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise CatalogLoadError(f"Could not read catalog {path}: {e}") from e

    if not isinstance(data, list):
        raise CatalogLoadError(f"Catalog {path} is not a list of items")

    entries = []
    for record in data:
        try:
            entry = CatalogEntry.from_dict(record)
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogLoadError(f"Malformed catalog record in {path}: {e}") from e
        # ids are positive integers, names non-empty text
        if isinstance(record["id"], bool) or entry.id <= 0:
            raise CatalogLoadError(f"Invalid item id in {path}: {record!r}")
        if not isinstance(entry.name, str) or not entry.name.strip():
            raise CatalogLoadError(f"Invalid item name in {path}: {record!r}")
        entries.append(entry)
    return entries


def load_catalog_index(path: Path, enabled: bool = True) -> CatalogIndex:
    """
    Build the startup catalog index.

    A missing or unreadable catalog is not fatal: an empty, degraded index
    is returned so text lookups report not-found while id lookups still work.
    """
    if not enabled:
        logger.info("Catalog disabled; text search will only use name search fallback")
        return CatalogIndex.empty()

    try:
        entries = load_catalog_file(path)
    except CatalogLoadError as e:
        logger.warning(f"{e}")
        logger.warning("Catalog search disabled. Run 'marketboard-bot update-db' to build it.")
        return CatalogIndex.empty()

    index = CatalogIndex(entries)
    logger.info(f"Catalog loaded: {len(index)} items from {path}")
    return index
