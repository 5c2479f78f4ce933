"""
marketboard-bot: Market board price lookups for the Korean FFXIV data center.

Resolves item names against a local Korean item catalog and aggregates
current listings from every world in the region, degrading to per-world
lookups when the region-wide endpoint is unavailable.
"""

__version__ = "0.1.0"
