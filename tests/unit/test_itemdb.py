"""Tests for the Item.csv catalog builder."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from marketboard_bot.catalog import CatalogLoadError, load_catalog_file
from marketboard_bot.itemdb import (
    download_item_csv,
    icon_path,
    parse_item_csv,
    update_catalog,
    write_catalog_file,
)
from marketboard_bot.models import CatalogEntry

HEADER = (
    "key,0,1,2\n"
    "#,Singular,Name,Icon\n"
    "int32,str,str,Image\n"
)


class TestIconPath:
    """Test icon path construction."""

    def test_pads_and_buckets(self):
        """Icon ids are padded to six digits and bucketed by thousands."""
        assert icon_path("25847") == "/i/025000/025847.png"

    def test_six_digit_id(self):
        assert icon_path(123456) == "/i/123000/123456.png"

    def test_small_id(self):
        assert icon_path("7") == "/i/000000/000007.png"

    @pytest.mark.parametrize("value", ["0", "", None, "abc", "-5"])
    def test_invalid_ids_have_no_icon(self, value):
        """Zero, missing and non-numeric ids produce no icon."""
        assert icon_path(value) is None


class TestParseItemCsv:
    """Test Item.csv parsing."""

    def test_parses_rows(self):
        """Should build entries from data rows."""
        csv_text = HEADER + '1,a,"염료: 순백색",25847\n2,b,철광석,0\n'
        entries, stats = parse_item_csv(csv_text)

        assert entries == [
            CatalogEntry(id=1, name="염료: 순백색", icon="/i/025000/025847.png"),
            CatalogEntry(id=2, name="철광석", icon=None),
        ]
        assert stats.items == 2
        assert stats.malformed == 0
        assert stats.last_id == 2

    def test_finds_columns_by_header(self):
        """Name and Icon columns should be located from the header row."""
        _, stats = parse_item_csv(HEADER + "1,a,Name,1\n")
        assert stats.name_index == 2
        assert stats.icon_index == 3

    def test_default_columns_without_labels(self):
        """Missing labels should fall back to columns 10 and 11."""
        header = "key\n#\nint32\n"
        row = ",".join(["5"] + ["x"] * 9 + ["Potion", "20601"])
        entries, stats = parse_item_csv(header + row + "\n")

        assert stats.name_index == 10
        assert stats.icon_index == 11
        assert entries[0].name == "Potion"
        assert entries[0].icon == "/i/020000/020601.png"

    def test_multiline_quoted_cell(self):
        """Quoted cells may span lines."""
        csv_text = HEADER + '1,"line one\nline two",Potion,20601\n2,b,Ether,20602\n'
        entries, stats = parse_item_csv(csv_text)

        assert [e.name for e in entries] == ["Potion", "Ether"]
        assert stats.malformed == 0

    def test_escaped_quotes(self):
        """Doubled quotes inside a quoted cell are a literal quote."""
        entries, _ = parse_item_csv(HEADER + '1,a,"The ""Best"" Potion",0\n')
        assert entries[0].name == 'The "Best" Potion'

    def test_counts_malformed_rows(self):
        """Short rows and bad ids are counted and skipped."""
        csv_text = HEADER + "1,a\nabc,b,Ether,1\n3,c,Elixir,1\n"
        entries, stats = parse_item_csv(csv_text)

        assert [e.id for e in entries] == [3]
        assert stats.malformed == 2

    def test_skips_blank_names_and_zero_ids(self):
        """Rows with id 0 or a blank name are skipped, not malformed."""
        csv_text = HEADER + "0,a,Nothing,1\n4,b,   ,1\n5,c,Elixir,1\n"
        entries, stats = parse_item_csv(csv_text)

        assert [e.id for e in entries] == [5]
        assert stats.malformed == 0

    def test_trims_names(self):
        entries, _ = parse_item_csv(HEADER + "1,a,  Potion  ,0\n")
        assert entries[0].name == "Potion"

    def test_too_short_raises(self):
        """A file without data rows is not a usable Item.csv."""
        with pytest.raises(CatalogLoadError):
            parse_item_csv(HEADER)


class TestCatalogFile:
    """Test writing the catalog file."""

    def test_round_trip(self, tmp_path):
        """Written file should load back with the same entries."""
        entries = [
            CatalogEntry(id=1, name="염료: 순백색", icon="/i/025000/025847.png"),
            CatalogEntry(id=2, name="철광석"),
        ]
        path = tmp_path / "data" / "items_ko.json"
        write_catalog_file(entries, path)

        assert load_catalog_file(path) == entries
        raw = json.loads(path.read_text(encoding="utf-8"))
        assert "icon" not in raw[1]
        assert "염료" in path.read_text(encoding="utf-8")


class TestDownload:
    """Test Item.csv download and update."""

    @pytest.mark.asyncio
    async def test_download(self):
        """Should return response text."""
        response = MagicMock()
        response.text = HEADER
        response.content = HEADER.encode()
        response.raise_for_status = MagicMock()

        with patch("httpx.AsyncClient") as MockClient:
            mock_client = AsyncMock()
            mock_client.get.return_value = response
            mock_client.__aenter__.return_value = mock_client
            mock_client.__aexit__.return_value = None
            MockClient.return_value = mock_client

            text = await download_item_csv("https://example.org/Item.csv")

        assert text == HEADER
        assert mock_client.get.call_args.kwargs["follow_redirects"] is True

    @pytest.mark.asyncio
    async def test_download_error_raises_load_error(self):
        """Network errors should surface as CatalogLoadError."""
        with patch("httpx.AsyncClient") as MockClient:
            mock_client = AsyncMock()
            mock_client.get.side_effect = httpx.ConnectError("refused")
            mock_client.__aenter__.return_value = mock_client
            mock_client.__aexit__.return_value = None
            MockClient.return_value = mock_client

            with pytest.raises(CatalogLoadError):
                await download_item_csv("https://example.org/Item.csv")

    @pytest.mark.asyncio
    async def test_update_catalog(self, tmp_path):
        """Should download, parse and write the catalog."""
        csv_text = HEADER + "1,a,Potion,20601\n"
        path = tmp_path / "items_ko.json"

        with patch(
            "marketboard_bot.itemdb.download_item_csv",
            AsyncMock(return_value=csv_text),
        ):
            stats = await update_catalog("https://example.org/Item.csv", path)

        assert stats.items == 1
        assert load_catalog_file(path)[0].name == "Potion"
