"""
Lookup pipeline for marketboard-bot.

Turns a text query or item id into the payload handed to the chat layer:
resolved item, alternates, aggregated prices and their summary.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .aggregator import PriceAggregator
from .catalog import CatalogIndex, TextResolver, load_catalog_index
from .config import BotConfig
from .models import AggregatedPriceReport, CatalogEntry
from .summary import PriceSummary, build_summary
from .universalis import UniversalisClient
from .xivapi import XivapiClient

logger = logging.getLogger(__name__)


class ResolvedBy(str, Enum):
    """How the item for a lookup was identified."""

    CATALOG = "catalog"
    NAME_SEARCH = "name_search"
    ITEM_ID = "item_id"


@dataclass
class LookupResult:
    """Everything the chat layer needs to render a price reply."""

    query: str
    entry: CatalogEntry | None = None
    resolved_by: ResolvedBy | None = None
    icon_url: str | None = None
    alternates: list[CatalogEntry] = field(default_factory=list)
    report: AggregatedPriceReport | None = None
    summary: PriceSummary | None = None

    @property
    def found(self) -> bool:
        return self.entry is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {"query": self.query, "found": self.found}
        if self.entry:
            result["entry"] = self.entry.to_dict()
            result["resolved_by"] = self.resolved_by.value if self.resolved_by else None
        if self.icon_url:
            result["icon_url"] = self.icon_url
        if self.report:
            result["report"] = self.report.to_dict()
        if self.summary:
            result["summary"] = self.summary.to_dict()
        result["alternates"] = [a.to_dict() for a in self.alternates]
        return result


class PriceLookup:
    """
    Resolves queries and aggregates prices.

    Text queries go to the local catalog first and, when that finds
    nothing, to XIVAPI name search (if enabled).
    """

    def __init__(
        self,
        config: BotConfig,
        index: CatalogIndex,
        universalis_client: UniversalisClient | None = None,
        xivapi_client: XivapiClient | None = None,
    ):
        """
        Initialize the lookup pipeline.

        Args:
            config: Bot configuration
            index: Catalog index built at startup
            universalis_client: Optional UniversalisClient (for testing)
            xivapi_client: Optional XivapiClient (for testing)
        """
        self.config = config
        self.index = index
        self.resolver = TextResolver(index, max_alternates=config.catalog.max_alternates)
        self.universalis = universalis_client or UniversalisClient(
            api_base=config.universalis.api_base,
            unified_timeout_seconds=config.universalis.unified_timeout_seconds,
            shard_timeout_seconds=config.universalis.shard_timeout_seconds,
            unified_history_entries=config.universalis.unified_history_entries,
            shard_history_entries=config.universalis.shard_history_entries,
        )
        self.xivapi = xivapi_client or XivapiClient(
            base_url=config.xivapi.base_url,
            timeout_seconds=config.xivapi.timeout_seconds,
            search_limit=config.xivapi.search_limit,
        )
        self.aggregator = PriceAggregator(
            self.universalis,
            config.shards,
            region=config.universalis.region,
        )

    @classmethod
    def from_config(cls, config: BotConfig) -> "PriceLookup":
        """Build the pipeline, loading the catalog index from disk."""
        index = load_catalog_index(config.catalog.path, enabled=config.catalog.enabled)
        return cls(config, index)

    async def lookup(self, query: str) -> LookupResult:
        """
        Look up prices for a text query.

        Returns a result with found=False when neither the catalog nor
        name search matched; no prices are fetched in that case.
        """
        result = LookupResult(query=query)

        resolution = self.resolver.resolve(query)
        if resolution.found:
            result.entry = resolution.primary
            result.alternates = resolution.alternates
            result.resolved_by = ResolvedBy.CATALOG
        elif self.config.xivapi.enabled:
            entry = await self.xivapi.search_item(query)
            if entry is not None:
                result.entry = entry
                result.resolved_by = ResolvedBy.NAME_SEARCH

        if result.entry is None:
            logger.info(f"No item found for {query!r}")
            return result

        logger.info(f"Resolved {query!r} to {result.entry.name} ({result.entry.id})")
        await self._attach_prices(result)
        return result

    async def lookup_by_id(self, item_id: int) -> LookupResult:
        """
        Look up prices for an item id.

        The catalog only supplies the display name and icon; prices are
        fetched even when the id is not in the catalog.
        """
        if item_id <= 0:
            raise ValueError(f"Item id must be positive: {item_id}")

        entry = self.index.get_by_id(item_id) or CatalogEntry(id=item_id, name=f"Item #{item_id}")
        result = LookupResult(query=str(item_id), entry=entry, resolved_by=ResolvedBy.ITEM_ID)
        await self._attach_prices(result)
        return result

    async def _attach_prices(self, result: LookupResult) -> None:
        entry = result.entry
        result.icon_url = entry.icon_url(self.config.xivapi.base_url)
        result.report = await self.aggregator.fetch(entry.id)
        result.summary = build_summary(result.report)
        if result.summary.no_data:
            logger.info(f"No listings for {entry.name} in {result.report.region}")
