"""
Report summary for presentation.

Derives overall minimums and per-world "cheapest" flags from an
AggregatedPriceReport. Pure functions only.
"""

from dataclasses import dataclass, field
from typing import Any

from .models import AggregatedPriceReport, ServerQuoteSummary


@dataclass
class ShardHighlight:
    """Per-world presentation flags."""

    shard_id: int
    is_cheapest: bool = False
    failed: bool = False


@dataclass
class PriceSummary:
    """Overall minimums and highlight flags for a report."""

    overall_min_standard: int | float | None = None
    overall_min_high_quality: int | float | None = None
    highlights: list[ShardHighlight] = field(default_factory=list)
    no_data: bool = True

    def cheapest_shard_ids(self) -> list[int]:
        """Ids of every world flagged as cheapest (ties included)."""
        return [h.shard_id for h in self.highlights if h.is_cheapest]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "overall_min_standard": self.overall_min_standard,
            "overall_min_high_quality": self.overall_min_high_quality,
            "cheapest_shard_ids": self.cheapest_shard_ids(),
            "no_data": self.no_data,
        }


def _overall_min(values: list[int | float | None]) -> int | float | None:
    present = [v for v in values if v is not None]
    return min(present) if present else None


def _is_cheapest(
    summary: ServerQuoteSummary,
    overall_nq: int | float | None,
    overall_hq: int | float | None,
) -> bool:
    nq = summary.min_price_standard
    hq = summary.min_price_high_quality
    return (nq is not None and nq == overall_nq) or (hq is not None and hq == overall_hq)


def build_summary(report: AggregatedPriceReport) -> PriceSummary:
    """
    Summarize a report for presentation.

    Every world matching an overall minimum is flagged, so ties produce
    several cheapest worlds. When no world has any price the whole report
    is flagged no_data.
    """
    shards = [s for s in report.per_shard if s.failure is None]
    overall_nq = _overall_min([s.min_price_standard for s in shards])
    overall_hq = _overall_min([s.min_price_high_quality for s in shards])

    highlights = [
        ShardHighlight(
            shard_id=s.shard_id,
            is_cheapest=s.failure is None and _is_cheapest(s, overall_nq, overall_hq),
            failed=s.failure is not None,
        )
        for s in report.per_shard
    ]

    return PriceSummary(
        overall_min_standard=overall_nq,
        overall_min_high_quality=overall_hq,
        highlights=highlights,
        no_data=overall_nq is None and overall_hq is None,
    )
