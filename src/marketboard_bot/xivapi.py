"""
XIVAPI client for marketboard-bot.

Used as the name search fallback when the local Korean catalog has no
match (e.g., the user typed an English item name).
"""

import logging
from typing import Any

import httpx

from .models import CatalogEntry

logger = logging.getLogger(__name__)

XIVAPI_BASE = "https://xivapi.com"


class XivapiClient:
    """Client for the XIVAPI item search endpoint."""

    def __init__(
        self,
        base_url: str = XIVAPI_BASE,
        timeout_seconds: float = 10.0,
        search_limit: int = 10,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout_seconds
        self.search_limit = search_limit

    async def search_item(self, name: str) -> CatalogEntry | None:
        """
        Search items by (English) name.

        Returns the best match as a CatalogEntry, or None when nothing
        matched or the search failed. Failures are logged, never raised.
        """
        url = f"{self.base_url}/api/search"
        params = {
            "sheets": "Item",
            "query": f'Name~"{name}"',
            "fields": "Name,Icon",
            "limit": self.search_limit,
        }

        logger.debug(f"Searching XIVAPI: {name}")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(url, params=params, follow_redirects=True)
                response.raise_for_status()
                data = response.json()
                return self._parse_first_result(data)
            except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
                logger.warning(f"XIVAPI search failed for {name!r}: {e}")
                return None

    def _parse_first_result(self, data: Any) -> CatalogEntry | None:
        """Parse the first search hit."""
        if not isinstance(data, dict):
            logger.warning(f"Unexpected XIVAPI response: {type(data).__name__}")
            return None

        results = data.get("results") or []
        if not isinstance(results, list) or not results:
            return None

        first = results[0]
        if not isinstance(first, dict):
            return None
        fields = first.get("fields") or {}
        if not isinstance(fields, dict):
            return None

        row_id = int(first["row_id"])
        name = fields["Name"]
        if row_id <= 0 or not isinstance(name, str) or not name.strip():
            return None

        icon = fields.get("Icon") or {}
        return CatalogEntry(
            id=row_id,
            name=name,
            icon=icon.get("path_hr1") if isinstance(icon, dict) else None,
        )
