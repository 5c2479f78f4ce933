"""
CLI runner for marketboard-bot.

Usage:
    python -m marketboard_bot.run [OPTIONS] [QUERY...]

    # Look up prices by item name
    python -m marketboard_bot.run 염료: 순백색

    # Look up prices by item id
    python -m marketboard_bot.run --item-id 17534

    # Rebuild the Korean item catalog
    python -m marketboard_bot.run --update-db
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .catalog import CatalogLoadError
from .config import BotConfig
from .itemdb import update_catalog
from .pipeline import PriceLookup

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("marketboard-bot")


async def run_lookup(config: BotConfig, query: str | None, item_id: int | None) -> dict:
    """Run one lookup and return the presentation payload."""
    lookup = PriceLookup.from_config(config)
    if item_id is not None:
        result = await lookup.lookup_by_id(item_id)
    else:
        result = await lookup.lookup(query or "")
    return result.to_dict()


async def run_update_db(config: BotConfig) -> int:
    """Download Item.csv and rebuild the catalog file."""
    logger.info(f"Updating item catalog from {config.catalog.csv_url}")
    try:
        stats = await update_catalog(
            config.catalog.csv_url,
            config.catalog.path,
            timeout_seconds=config.catalog.download_timeout_seconds,
        )
    except CatalogLoadError as e:
        logger.error(f"Catalog update failed: {e}")
        return 1

    logger.info(
        f"Catalog updated: {stats.items} items, {stats.malformed} malformed rows skipped"
    )
    return 0


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="marketboard-bot: Korean data center market board prices",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Look up by name (Korean catalog, then English name search)
    python -m marketboard_bot.run 염료: 순백색
    python -m marketboard_bot.run Pure White

    # Look up by item id
    python -m marketboard_bot.run --item-id 17534

    # Use a specific config file
    python -m marketboard_bot.run --config marketboard.yaml 순백색
        """,
    )

    parser.add_argument(
        "query",
        nargs="*",
        help="Item name to look up",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("marketboard.yaml"),
        help="Path to config file (default: marketboard.yaml)",
    )
    parser.add_argument(
        "--catalog",
        type=Path,
        help="Override catalog file path from config",
    )
    parser.add_argument(
        "--item-id",
        type=int,
        help="Look up an item by numeric id",
    )
    parser.add_argument(
        "--update-db",
        action="store_true",
        help="Download Item.csv and rebuild the catalog file",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Load config
    config = BotConfig.from_yaml(args.config)
    if args.catalog:
        config.catalog.path = args.catalog

    logger.info(f"Config loaded from {args.config}")
    logger.info(
        f"Region: {config.universalis.region}, "
        f"worlds: {', '.join(s.name for s in config.shards)}"
    )

    if args.update_db:
        return asyncio.run(run_update_db(config))

    query = " ".join(args.query).strip()
    if args.item_id is None and not query:
        parser.print_help()
        return 0

    if args.item_id is not None and args.item_id <= 0:
        logger.error(f"Item id must be positive: {args.item_id}")
        return 1

    payload = asyncio.run(run_lookup(config, query, args.item_id))
    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0 if payload["found"] else 1


if __name__ == "__main__":
    sys.exit(main())
