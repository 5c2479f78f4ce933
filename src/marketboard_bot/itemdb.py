"""
Korean item catalog builder for marketboard-bot.

Downloads Item.csv from the ffxiv-datamining-ko repository and converts it
into the JSON catalog file loaded at startup.

CSV layout:
    Row 1: key, 0, 1, 2, ...            (column numbers)
    Row 2: #, Singular, ..., Name, Icon (column names)
    Row 3: int32, str, ..., str, Image  (column types)
    Row 4+: data
"""

import csv
import io
import json
import logging
from dataclasses import dataclass
from pathlib import Path

import httpx

from .catalog import CatalogLoadError
from .models import CatalogEntry

logger = logging.getLogger(__name__)

# Fallback column positions when the header row has no Name/Icon labels
DEFAULT_NAME_INDEX = 10
DEFAULT_ICON_INDEX = 11

HEADER_ROW = 1
FIRST_DATA_ROW = 3


@dataclass
class ParseStats:
    """Counters from a CSV conversion run."""

    rows: int = 0
    items: int = 0
    malformed: int = 0
    last_id: int = 0
    name_index: int = DEFAULT_NAME_INDEX
    icon_index: int = DEFAULT_ICON_INDEX


def icon_path(icon_id: str | int | None) -> str | None:
    """
    Build the icon path for a numeric icon id.

    The id is zero-padded to six digits and bucketed into a folder named
    after its first three digits: 25847 -> "/i/025000/025847.png".
    Returns None for 0, empty, or non-numeric ids.
    """
    if icon_id is None:
        return None
    try:
        icon_num = int(str(icon_id).strip())
    except ValueError:
        return None
    if icon_num <= 0:
        return None

    padded = f"{icon_num:06d}"
    folder = padded[:3] + "000"
    return f"/i/{folder}/{padded}.png"


def _find_columns(header: list[str]) -> tuple[int, int]:
    """Locate the Name and Icon columns by header label."""
    name_index = -1
    icon_index = -1
    for i, col in enumerate(header):
        label = col.strip()
        if label == "Name":
            name_index = i
        if label == "Icon":
            icon_index = i

    if name_index == -1:
        name_index = DEFAULT_NAME_INDEX
    if icon_index == -1:
        icon_index = DEFAULT_ICON_INDEX
    return name_index, icon_index


def parse_item_csv(csv_text: str) -> tuple[list[CatalogEntry], ParseStats]:
    """
    Convert Item.csv text into catalog entries.

    Rows with too few columns or a non-integer id are counted as malformed
    and skipped. Rows with id <= 0 or a blank name are skipped silently.

    Raises:
        CatalogLoadError: if the text is not a usable Item.csv
    """
    try:
        rows = [row for row in csv.reader(io.StringIO(csv_text)) if "".join(row).strip()]
    except csv.Error as e:
        raise CatalogLoadError(f"Item.csv could not be parsed: {e}") from e

    if len(rows) <= FIRST_DATA_ROW:
        raise CatalogLoadError("Item.csv is missing header or data rows")

    stats = ParseStats()
    stats.name_index, stats.icon_index = _find_columns(rows[HEADER_ROW])
    logger.info(f"Name column: {stats.name_index}, Icon column: {stats.icon_index}")

    required = max(stats.name_index, stats.icon_index) + 1
    entries: list[CatalogEntry] = []

    for line_no, cols in enumerate(rows[FIRST_DATA_ROW:], FIRST_DATA_ROW + 1):
        stats.rows += 1

        if len(cols) < required:
            stats.malformed += 1
            continue

        try:
            item_id = int(cols[0].strip())
        except ValueError:
            stats.malformed += 1
            if stats.malformed <= 5:
                logger.warning(f"Row {line_no}: invalid item id {cols[0]!r}")
            continue

        name = cols[stats.name_index].strip()
        if item_id <= 0 or not name:
            continue

        entries.append(
            CatalogEntry(id=item_id, name=name, icon=icon_path(cols[stats.icon_index]))
        )
        stats.last_id = item_id

    stats.items = len(entries)
    if stats.malformed:
        logger.info(f"Skipped {stats.malformed} malformed row(s)")
    logger.info(f"Last parsed id: {stats.last_id}")

    return entries, stats


async def download_item_csv(url: str, timeout_seconds: float = 60.0) -> str:
    """
    Download Item.csv text.

    Raises:
        CatalogLoadError: on network or HTTP errors
    """
    logger.info(f"Downloading {url}")
    async with httpx.AsyncClient(timeout=timeout_seconds) as client:
        try:
            response = await client.get(url, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise CatalogLoadError(f"Item.csv download failed: {e}") from e

    logger.info(f"Downloaded {len(response.content)} bytes")
    return response.text


def write_catalog_file(entries: list[CatalogEntry], path: Path) -> None:
    """Write catalog entries as the JSON file read at startup."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump([e.to_dict() for e in entries], f, ensure_ascii=False, indent=2)


async def update_catalog(url: str, path: Path, timeout_seconds: float = 60.0) -> ParseStats:
    """Download Item.csv, convert it, and write the catalog file."""
    csv_text = await download_item_csv(url, timeout_seconds)
    entries, stats = parse_item_csv(csv_text)
    write_catalog_file(entries, path)
    logger.info(f"Saved {stats.items} items to {path}")
    return stats
