"""
Configuration for marketboard-bot.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .models import ShardInfo

DEFAULT_SHARDS = [
    ShardInfo(id=2075, name="카벙클", emoji="💎"),
    ShardInfo(id=2076, name="초코보", emoji="🐤"),
    ShardInfo(id=2077, name="모그리", emoji="🧸"),
    ShardInfo(id=2078, name="톤베리", emoji="🗡️"),
    ShardInfo(id=2080, name="펜리르", emoji="🐺"),
]


@dataclass
class UniversalisConfig:
    """Universalis market API configuration."""

    api_base: str = "https://universalis.app/api/v2"
    region: str = "Korea"
    unified_timeout_seconds: float = 15.0
    shard_timeout_seconds: float = 10.0
    unified_history_entries: int = 10
    shard_history_entries: int = 5


@dataclass
class XivapiConfig:
    """XIVAPI configuration (icons and English name search)."""

    enabled: bool = True  # Fall back to English name search
    base_url: str = "https://xivapi.com"
    timeout_seconds: float = 10.0
    search_limit: int = 10


@dataclass
class CatalogConfig:
    """Local item catalog configuration."""

    enabled: bool = True
    path: Path = field(default_factory=lambda: Path("data/items_ko.json"))
    csv_url: str = (
        "https://raw.githubusercontent.com/Ra-Workspace/"
        "ffxiv-datamining-ko/master/csv/Item.csv"
    )
    download_timeout_seconds: float = 60.0
    max_alternates: int = 10


@dataclass
class BotConfig:
    """Complete marketboard-bot configuration."""

    shards: list[ShardInfo] = field(default_factory=lambda: list(DEFAULT_SHARDS))
    universalis: UniversalisConfig = field(default_factory=UniversalisConfig)
    xivapi: XivapiConfig = field(default_factory=XivapiConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BotConfig":
        """Create config from a dictionary (e.g., from YAML)."""
        config = cls()

        if "shards" in data:
            config.shards = [
                ShardInfo(
                    id=int(s["id"]),
                    name=s.get("name", str(s["id"])),
                    emoji=s.get("emoji", ""),
                )
                for s in data["shards"]
            ]

        if "universalis" in data:
            u = data["universalis"]
            config.universalis = UniversalisConfig(
                api_base=u.get("api_base", config.universalis.api_base),
                region=u.get("region", "Korea"),
                unified_timeout_seconds=u.get("unified_timeout_seconds", 15.0),
                shard_timeout_seconds=u.get("shard_timeout_seconds", 10.0),
                unified_history_entries=u.get("unified_history_entries", 10),
                shard_history_entries=u.get("shard_history_entries", 5),
            )

        if "xivapi" in data:
            x = data["xivapi"]
            config.xivapi = XivapiConfig(
                enabled=x.get("enabled", True),
                base_url=x.get("base_url", config.xivapi.base_url),
                timeout_seconds=x.get("timeout_seconds", 10.0),
                search_limit=x.get("search_limit", 10),
            )

        if "catalog" in data:
            c = data["catalog"]
            config.catalog = CatalogConfig(
                enabled=c.get("enabled", True),
                path=Path(c.get("path", config.catalog.path)),
                csv_url=c.get("csv_url", config.catalog.csv_url),
                download_timeout_seconds=c.get("download_timeout_seconds", 60.0),
                max_alternates=c.get("max_alternates", 10),
            )

        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "BotConfig":
        """Load config from a YAML file."""
        if not path.exists():
            return cls()

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        # Settings live under the top-level "marketboard" key
        return cls.from_dict(data.get("marketboard", {}))

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for JSON serialization."""
        return {
            "shards": [s.to_dict() for s in self.shards],
            "universalis": {
                "api_base": self.universalis.api_base,
                "region": self.universalis.region,
                "unified_timeout_seconds": self.universalis.unified_timeout_seconds,
                "shard_timeout_seconds": self.universalis.shard_timeout_seconds,
            },
            "xivapi": {
                "enabled": self.xivapi.enabled,
                "base_url": self.xivapi.base_url,
            },
            "catalog": {
                "enabled": self.catalog.enabled,
                "path": str(self.catalog.path),
                "max_alternates": self.catalog.max_alternates,
            },
        }
