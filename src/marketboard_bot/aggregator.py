"""
Price aggregation for marketboard-bot.

Prices are gathered in two stages:

1. UnifiedPriceStage makes a single region-wide Universalis call and splits
   the listings per world. It also yields region-wide recent sale minimums.
2. FallbackPriceStage runs only when stage 1 fails. It queries every world
   independently and concurrently; a failing world is marked as failed
   without affecting the others.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .models import AggregatedPriceReport, ServerQuoteSummary, ShardInfo, SourceLabel
from .universalis import MalformedResponseError, MarketDataError, UniversalisClient

logger = logging.getLogger(__name__)

Price = int | float


@dataclass
class StageResult:
    """Result from a price stage."""

    success: bool
    message: str | None = None
    report: AggregatedPriceReport | None = None


# =============================================================================
# Payload decomposition
# =============================================================================


def _entries(payload: dict[str, Any], key: str) -> list[dict[str, Any]]:
    """Read a list of listing/sale objects from a payload."""
    entries = payload.get(key)
    if entries is None:
        return []
    if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
        raise MalformedResponseError(f"'{key}' is not a list of objects")
    return entries


def _price_per_unit(entry: dict[str, Any]) -> Price:
    price = entry.get("pricePerUnit")
    if isinstance(price, bool) or not isinstance(price, (int, float)) or price <= 0:
        raise MalformedResponseError(f"Invalid pricePerUnit: {price!r}")
    return price


def min_prices(entries: Iterable[dict[str, Any]]) -> tuple[Price | None, Price | None]:
    """
    Minimum pricePerUnit per quality.

    Returns (standard, high_quality); a quality with no entries is None.
    """
    min_nq: Price | None = None
    min_hq: Price | None = None
    for entry in entries:
        price = _price_per_unit(entry)
        if entry.get("hq"):
            if min_hq is None or price < min_hq:
                min_hq = price
        elif min_nq is None or price < min_nq:
            min_nq = price
    return min_nq, min_hq


def _upload_time(upload_times: Any, shard_id: int) -> int | None:
    if not isinstance(upload_times, dict):
        return None
    for key in (str(shard_id), shard_id):
        if key in upload_times:
            return upload_times[key]
    return None


def decompose_region_payload(
    payload: dict[str, Any] | None,
    shards: list[ShardInfo],
    region: str,
) -> AggregatedPriceReport:
    """
    Split a region-wide payload into per-world summaries.

    A None payload (404 from Universalis) is an empty market: every world
    gets listing_count=0 and no failure marker.

    Raises:
        MalformedResponseError: if listings or sales are unusable
    """
    report = AggregatedPriceReport(source_label=SourceLabel.UNIFIED, region=region)

    if payload is None:
        report.per_shard = [
            ServerQuoteSummary(shard_id=s.id, display_name=s.name, emoji=s.emoji)
            for s in shards
        ]
        return report

    listings = _entries(payload, "listings")
    by_world: dict[int, list[dict[str, Any]]] = {}
    for listing in listings:
        world_id = listing.get("worldID")
        if isinstance(world_id, bool) or not isinstance(world_id, int):
            raise MalformedResponseError(f"Listing without worldID: {listing!r}")
        by_world.setdefault(world_id, []).append(listing)

    upload_times = payload.get("worldUploadTimes")
    for shard in shards:
        world_listings = by_world.get(shard.id, [])
        min_nq, min_hq = min_prices(world_listings)
        report.per_shard.append(
            ServerQuoteSummary(
                shard_id=shard.id,
                display_name=shard.name,
                emoji=shard.emoji,
                listing_count=len(world_listings),
                min_price_standard=min_nq,
                min_price_high_quality=min_hq,
                last_update_timestamp=_upload_time(upload_times, shard.id),
            )
        )

    # Recent sales are region-wide, independent of current listings
    report.recent_trade_min_standard, report.recent_trade_min_high_quality = min_prices(
        _entries(payload, "recentHistory")
    )
    report.region = payload.get("dcName") or region
    return report


def summarize_world_payload(
    payload: dict[str, Any] | None,
    shard: ShardInfo,
) -> ServerQuoteSummary:
    """
    Summarize a single-world payload.

    Raises:
        MalformedResponseError: if listings are unusable
    """
    summary = ServerQuoteSummary(shard_id=shard.id, display_name=shard.name, emoji=shard.emoji)
    if payload is None:
        return summary

    listings = _entries(payload, "listings")
    summary.listing_count = len(listings)
    summary.min_price_standard, summary.min_price_high_quality = min_prices(listings)
    summary.last_update_timestamp = payload.get("lastUploadTime")
    return summary


# =============================================================================
# Stages
# =============================================================================


class PriceStage(ABC):
    """Base class for price stages."""

    name: str = "base"

    def __init__(self, client: UniversalisClient, shards: list[ShardInfo], region: str):
        self.client = client
        self.shards = shards
        self.region = region

    @abstractmethod
    async def run(self, item_id: int) -> StageResult:
        """Collect prices for an item."""
        pass


class UnifiedPriceStage(PriceStage):
    """Stage 1: one region-wide call, decomposed per world. Never retried."""

    name = "unified"

    async def run(self, item_id: int) -> StageResult:
        try:
            payload = await self.client.get_region_prices(self.region, item_id)
            report = decompose_region_payload(payload, self.shards, self.region)
        except MarketDataError as e:
            logger.warning(f"{self.region} lookup failed for item {item_id}: {e}")
            return StageResult(success=False, message=str(e))

        return StageResult(success=True, message="Region lookup complete", report=report)


class FallbackPriceStage(PriceStage):
    """
    Stage 2: independent per-world calls.

    All worlds are queried concurrently (up to max_concurrency at a time).
    Results are composed in declared world order, not completion order.
    """

    name = "fallback"

    def __init__(
        self,
        client: UniversalisClient,
        shards: list[ShardInfo],
        region: str,
        max_concurrency: int | None = None,
    ):
        super().__init__(client, shards, region)
        self.max_concurrency = max_concurrency or max(len(shards), 1)

    async def run(self, item_id: int) -> StageResult:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def fetch(shard: ShardInfo) -> ServerQuoteSummary:
            async with semaphore:
                return await self._fetch_shard(shard, item_id)

        outcomes = await asyncio.gather(
            *(fetch(shard) for shard in self.shards),
            return_exceptions=True,
        )

        per_shard: list[ServerQuoteSummary] = []
        for shard, outcome in zip(self.shards, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.error(f"Unexpected error for world {shard.id}", exc_info=outcome)
                outcome = ServerQuoteSummary.failed(shard, str(outcome))
            per_shard.append(outcome)

        failed = sum(1 for s in per_shard if s.failure is not None)
        report = AggregatedPriceReport(
            per_shard=per_shard,
            source_label=SourceLabel.FALLBACK,
            region=self.region,
        )
        return StageResult(
            success=True,
            message=f"Per-world lookup complete: {failed}/{len(per_shard)} failed",
            report=report,
        )

    async def _fetch_shard(self, shard: ShardInfo, item_id: int) -> ServerQuoteSummary:
        try:
            payload = await self.client.get_world_prices(shard.id, item_id)
            return summarize_world_payload(payload, shard)
        except MarketDataError as e:
            logger.warning(f"World {shard.name} ({shard.id}) lookup failed: {e}")
            return ServerQuoteSummary.failed(shard, str(e))


class PriceAggregator:
    """
    Collects prices for an item across all configured worlds.

    Runs the unified stage and, only if it fails, the fallback stage.
    Always returns a report.
    """

    def __init__(
        self,
        client: UniversalisClient,
        shards: list[ShardInfo],
        region: str = "Korea",
    ):
        self.client = client
        self.shards = list(shards)
        self.region = region
        self.unified = UnifiedPriceStage(client, self.shards, region)
        self.fallback = FallbackPriceStage(client, self.shards, region)

    async def fetch(self, item_id: int) -> AggregatedPriceReport:
        """Aggregate current prices for an item."""
        result = await self.unified.run(item_id)

        if not result.success:
            logger.info(f"Falling back to per-world lookups for item {item_id}")
            result = await self.fallback.run(item_id)

        logger.info(f"Item {item_id}: {result.message}")
        return result.report
