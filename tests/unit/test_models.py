"""Tests for marketboard-bot data models."""

from marketboard_bot.models import (
    AggregatedPriceReport,
    CatalogEntry,
    ServerQuoteSummary,
    ShardInfo,
    SourceLabel,
)


class TestCatalogEntry:
    """Test CatalogEntry."""

    def test_icon_url(self):
        entry = CatalogEntry(id=1, name="Potion", icon="/i/020000/020601.png")
        assert entry.icon_url("https://xivapi.com/") == "https://xivapi.com/i/020000/020601.png"

    def test_icon_url_without_icon(self):
        assert CatalogEntry(id=1, name="Potion").icon_url("https://xivapi.com") is None

    def test_from_dict(self):
        entry = CatalogEntry.from_dict({"id": "17534", "name": "염료: 순백색"})
        assert entry.id == 17534
        assert entry.icon is None


class TestServerQuoteSummary:
    """Test ServerQuoteSummary."""

    def test_failed_carries_only_marker(self):
        shard = ShardInfo(id=2075, name="카벙클", emoji="💎")
        summary = ServerQuoteSummary.failed(shard, "timeout")

        assert summary.failure == "timeout"
        assert summary.listing_count == 0
        assert summary.has_data is False
        assert summary.to_dict() == {
            "shard_id": 2075,
            "display_name": "카벙클",
            "emoji": "💎",
            "failure": "timeout",
        }

    def test_to_dict_omits_absent_prices(self):
        summary = ServerQuoteSummary(
            shard_id=2076, display_name="초코보", listing_count=2, min_price_standard=30
        )
        data = summary.to_dict()

        assert data["min_price_standard"] == 30
        assert "min_price_high_quality" not in data
        assert data["has_data"] is True

    def test_has_prices(self):
        assert ServerQuoteSummary(shard_id=1, display_name="A").has_prices is False
        assert ServerQuoteSummary(
            shard_id=1, display_name="A", min_price_high_quality=5
        ).has_prices is True


class TestAggregatedPriceReport:
    """Test AggregatedPriceReport."""

    def test_to_dict(self):
        report = AggregatedPriceReport(
            per_shard=[ServerQuoteSummary(shard_id=1, display_name="A")],
            recent_trade_min_standard=10,
            source_label=SourceLabel.FALLBACK,
        )
        data = report.to_dict()

        assert data["source_label"] == "fallback"
        assert data["recent_trade_min_standard"] == 10
        assert "recent_trade_min_high_quality" not in data
        assert len(data["per_shard"]) == 1
