"""Interface for caching mechanisms.

Defines the contract for storing, retrieving, and expiring cached API
responses. All operations are synchronous: a lookup never suspends the
calling task.
"""

import abc
from typing import Any, Optional

# Import relevant domain models
from figlink.domain.models.common import CacheKey, CacheStats


class CacheService(abc.ABC):
    """Abstract Base Class for caching operations."""

    @abc.abstractmethod
    def get(self, key: CacheKey, default: Any = None) -> Any:
        """Retrieves an item from the cache.

        Args:
            key: The cache key to retrieve.
            default: Returned on a miss, so callers can tell a cached
                ``None`` apart from an absent entry.

        Returns:
            The cached item if found and not expired, otherwise ``default``.
        """

    @abc.abstractmethod
    def set(self, key: CacheKey, value: Any, ttl: Optional[float] = None) -> None:
        """Stores an item in the cache.

        Args:
            key: The cache key to store the item under.
            value: The item to store.
            ttl: Time-to-live in seconds (uses the cache default if None).
        """

    @abc.abstractmethod
    def delete(self, key: CacheKey) -> bool:
        """Deletes a single item. Returns True if something was removed."""

    @abc.abstractmethod
    def invalidate(self, pattern: str) -> int:
        """Removes every key matching a regular expression.

        Args:
            pattern: Regular expression searched against each key.

        Returns:
            Number of removed entries.
        """

    @abc.abstractmethod
    def clear(self) -> None:
        """Removes all items from the cache."""

    @abc.abstractmethod
    def cleanup(self) -> int:
        """Removes all expired items. Returns the number removed."""

    @abc.abstractmethod
    def get_stats(self) -> CacheStats:
        """Returns size and hit/miss statistics."""
