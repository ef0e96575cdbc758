"""Defines common Value Objects used across different domain contexts.

These objects represent simple values like file keys, node ids and cache
keys, plus the stats shapes reported by the cache and the rate limiter.
"""

from datetime import datetime
from typing import Any, Dict, NewType, Optional, TypedDict

# === Design File Context ===
FileKey = NewType("FileKey", str)              # Key of a design file, e.g. 'aBcD1234'
NodeId = NewType("NodeId", str)                # Node inside a file, e.g. '1:23'

# === Caching Context ===
CacheKey = NewType("CacheKey", str)            # Unique key for a cache entry


class RateLimitStats(TypedDict):
    """Snapshot of the rate limiter window."""
    requests_in_window: int
    max_requests: int
    window_seconds: float
    next_reset_time: datetime


class CacheStats(TypedDict):
    """Snapshot of cache size and hit/miss ratios."""
    size: int
    max_size: int
    hit_rate: float
    miss_rate: float
    total_hits: int
    total_misses: int


class ConnectionResult(TypedDict, total=False):
    """Outcome of a credential check against the design API."""
    success: bool
    user: Optional[Dict[str, Any]]
    error: Optional[str]
