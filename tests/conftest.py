"""Shared pytest fixtures for marketboard-bot tests."""

import json
from unittest.mock import MagicMock

import pytest

from marketboard_bot.catalog import CatalogIndex
from marketboard_bot.config import BotConfig
from marketboard_bot.models import CatalogEntry, ShardInfo


@pytest.fixture
def shards():
    """The five Korean worlds, in declared order."""
    return [
        ShardInfo(id=2075, name="카벙클", emoji="💎"),
        ShardInfo(id=2076, name="초코보", emoji="🐤"),
        ShardInfo(id=2077, name="모그리", emoji="🧸"),
        ShardInfo(id=2078, name="톤베리", emoji="🗡️"),
        ShardInfo(id=2080, name="펜리르", emoji="🐺"),
    ]


@pytest.fixture
def catalog_entries():
    """A small Korean catalog."""
    return [
        CatalogEntry(id=17534, name="염료: 순백색", icon="/i/025000/025847.png"),
        CatalogEntry(id=17535, name="염료: 칠흑색", icon="/i/025000/025848.png"),
        CatalogEntry(id=5057, name="철광석", icon="/i/021000/021201.png"),
        CatalogEntry(id=5111, name="철 주괴"),
    ]


@pytest.fixture
def index(catalog_entries):
    """Catalog index over the sample entries."""
    return CatalogIndex(catalog_entries)


@pytest.fixture
def catalog_file(tmp_path, catalog_entries):
    """Catalog JSON file on disk."""
    path = tmp_path / "items_ko.json"
    path.write_text(
        json.dumps([e.to_dict() for e in catalog_entries], ensure_ascii=False),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def config(shards, catalog_file):
    """Bot config pointing at the sample catalog."""
    config = BotConfig()
    config.shards = shards
    config.catalog.path = catalog_file
    return config


@pytest.fixture
def mock_response():
    """Factory for mock httpx responses."""

    def _make_response(json_data=None, status_code=200, json_error=None):
        response = MagicMock()
        response.status_code = status_code
        if json_error is not None:
            response.json.side_effect = json_error
        else:
            response.json.return_value = json_data
        response.raise_for_status = MagicMock()
        if status_code >= 400:
            from httpx import HTTPStatusError

            response.raise_for_status.side_effect = HTTPStatusError(
                "Error", request=MagicMock(), response=response
            )
        return response

    return _make_response
