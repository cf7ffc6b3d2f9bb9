"""Chained randomness beacons: records, round timing, chain info, storage, caching, ticking and syncing."""

__version__ = "0.1.0"

__all__ = [
    "beacon",
    "cache",
    "info",
    "store",
    "storewrap",
    "sync",
    "ticker",
    "timing",
]