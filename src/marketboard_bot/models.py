"""
Data models for marketboard-bot.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SourceLabel(str, Enum):
    """Which price source produced a report."""

    UNIFIED = "unified"  # Single region-wide call
    FALLBACK = "fallback"  # Independent per-world calls


@dataclass(frozen=True)
class ShardInfo:
    """A world (market board shard) in the configured region."""

    id: int
    name: str
    emoji: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"id": self.id, "name": self.name, "emoji": self.emoji}


@dataclass(frozen=True)
class CatalogEntry:
    """A catalog item: numeric id, display name and optional icon path."""

    id: int
    name: str
    icon: str | None = None  # e.g., "/i/025000/025847.png"

    def icon_url(self, base_url: str) -> str | None:
        """Absolute icon URL on the given icon host."""
        if not self.icon:
            return None
        return f"{base_url.rstrip('/')}{self.icon}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (catalog file format)."""
        result: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.icon:
            result["icon"] = self.icon
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CatalogEntry":
        """Create from a catalog file record."""
        return cls(id=int(data["id"]), name=data["name"], icon=data.get("icon"))


@dataclass
class ServerQuoteSummary:
    """Current listing summary for one world."""

    shard_id: int
    display_name: str
    emoji: str = ""
    listing_count: int = 0
    min_price_standard: int | float | None = None
    min_price_high_quality: int | float | None = None
    last_update_timestamp: int | None = None
    failure: str | None = None

    @property
    def has_data(self) -> bool:
        return self.failure is None and self.listing_count > 0

    @property
    def has_prices(self) -> bool:
        """True when at least one quality has a minimum price."""
        return self.min_price_standard is not None or self.min_price_high_quality is not None

    @classmethod
    def failed(cls, shard: ShardInfo, reason: str) -> "ServerQuoteSummary":
        """Summary carrying only a failure marker."""
        return cls(
            shard_id=shard.id,
            display_name=shard.name,
            emoji=shard.emoji,
            failure=reason,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "shard_id": self.shard_id,
            "display_name": self.display_name,
            "emoji": self.emoji,
        }
        if self.failure:
            result["failure"] = self.failure
            return result
        result["listing_count"] = self.listing_count
        result["has_data"] = self.has_data
        if self.min_price_standard is not None:
            result["min_price_standard"] = self.min_price_standard
        if self.min_price_high_quality is not None:
            result["min_price_high_quality"] = self.min_price_high_quality
        if self.last_update_timestamp is not None:
            result["last_update_timestamp"] = self.last_update_timestamp
        return result


@dataclass
class AggregatedPriceReport:
    """Per-world summaries for one item, in declared world order."""

    per_shard: list[ServerQuoteSummary] = field(default_factory=list)
    recent_trade_min_standard: int | float | None = None
    recent_trade_min_high_quality: int | float | None = None
    source_label: SourceLabel = SourceLabel.UNIFIED
    region: str = "Korea"

    def failed_shards(self) -> list[ServerQuoteSummary]:
        """Summaries that carry a failure marker."""
        return [s for s in self.per_shard if s.failure is not None]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "region": self.region,
            "source_label": self.source_label.value,
            "per_shard": [s.to_dict() for s in self.per_shard],
        }
        if self.recent_trade_min_standard is not None:
            result["recent_trade_min_standard"] = self.recent_trade_min_standard
        if self.recent_trade_min_high_quality is not None:
            result["recent_trade_min_high_quality"] = self.recent_trade_min_high_quality
        return result
