"""
Universalis API client for marketboard-bot.

Fetches current market board listings either for a whole region (data
center) in one call, or for a single world.

API Documentation: https://docs.universalis.app/
"""

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

UNIVERSALIS_API_BASE = "https://universalis.app/api/v2"


class MarketDataError(Exception):
    """A price source call failed."""


class MarketTransportError(MarketDataError):
    """Timeout, connection failure, or error status from the price source."""


class MalformedResponseError(MarketDataError):
    """The price source answered with a payload we cannot use."""


class UniversalisClient:
    """
    Client for the Universalis market board API.

    Both lookups return None when Universalis answers 404 (no data for the
    item), which callers treat as an empty market rather than an error.
    """

    def __init__(
        self,
        api_base: str = UNIVERSALIS_API_BASE,
        unified_timeout_seconds: float = 15.0,
        shard_timeout_seconds: float = 10.0,
        unified_history_entries: int = 10,
        shard_history_entries: int = 5,
    ):
        """
        Initialize the Universalis client.

        Args:
            api_base: API root, e.g. "https://universalis.app/api/v2"
            unified_timeout_seconds: Timeout for region-wide lookups
            shard_timeout_seconds: Timeout for single-world lookups
            unified_history_entries: Recent sales to request per region lookup
            shard_history_entries: Recent sales to request per world lookup
        """
        self.api_base = api_base.rstrip("/")
        self.unified_timeout = unified_timeout_seconds
        self.shard_timeout = shard_timeout_seconds
        self.unified_history_entries = unified_history_entries
        self.shard_history_entries = shard_history_entries

    async def get_region_prices(self, region: str, item_id: int) -> dict[str, Any] | None:
        """
        Fetch listings for every world in a region.

        Args:
            region: Data center or region name (e.g., "Korea")
            item_id: Item id

        Returns:
            Raw payload, or None if Universalis has no data for the item

        Raises:
            MarketTransportError: on timeout, connection or HTTP errors
            MalformedResponseError: if the body is not a JSON object
        """
        url = f"{self.api_base}/{region}/{item_id}"
        params = {"entries": self.unified_history_entries}
        logger.debug(f"Fetching region prices: {region}/{item_id}")
        return await self._get_json(url, params, self.unified_timeout)

    async def get_world_prices(self, world_id: int, item_id: int) -> dict[str, Any] | None:
        """
        Fetch listings for a single world.

        Args:
            world_id: World id (e.g., 2075)
            item_id: Item id

        Returns:
            Raw payload, or None if Universalis has no data for the item

        Raises:
            MarketTransportError: on timeout, connection or HTTP errors
            MalformedResponseError: if the body is not a JSON object
        """
        url = f"{self.api_base}/{world_id}/{item_id}"
        params = {"entries": self.shard_history_entries}
        logger.debug(f"Fetching world prices: {world_id}/{item_id}")
        return await self._get_json(url, params, self.shard_timeout)

    async def _get_json(
        self,
        url: str,
        params: dict[str, Any],
        timeout: float,
    ) -> dict[str, Any] | None:
        async with httpx.AsyncClient(timeout=timeout) as client:
            try:
                response = await client.get(url, params=params, follow_redirects=True)
            except httpx.TimeoutException as e:
                raise MarketTransportError(f"Timed out after {timeout}s: {url}") from e
            except httpx.HTTPError as e:
                raise MarketTransportError(f"Request failed for {url}: {e}") from e

            if response.status_code == 404:
                logger.debug(f"No market data at {url}")
                return None

            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise MarketTransportError(f"HTTP {response.status_code} from {url}") from e

            try:
                data = response.json()
            except ValueError as e:
                raise MalformedResponseError(f"Invalid JSON from {url}") from e

        if not isinstance(data, dict):
            raise MalformedResponseError(f"Expected a JSON object from {url}")
        return data
