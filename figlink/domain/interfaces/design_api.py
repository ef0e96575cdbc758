"""Interface for the remote design-file service.

Defines what the application layer may ask of a design API client. The
wizard/export collaborators and the health service depend on this port,
never on the HTTP details.
"""

import abc
from typing import Any, Dict, List, Optional

from figlink.domain.models.common import CacheStats, ConnectionResult, FileKey, NodeId, RateLimitStats
from figlink.domain.models.metrics import ApiMetrics


class DesignFileApi(abc.ABC):
    """Abstract Base Class for design-file API access."""

    @abc.abstractmethod
    async def get_file(
        self,
        file_key: FileKey,
        version: Optional[str] = None,
        ids: Optional[List[NodeId]] = None,
    ) -> Dict[str, Any]:
        """Fetches the document tree and metadata of a design file.

        Raises:
            FigmaApiError: On any failure.
        """

    @abc.abstractmethod
    async def get_images(
        self,
        file_key: FileKey,
        node_ids: List[NodeId],
        format: str = "png",
        scale: float = 1,
        version: Optional[str] = None,
        use_absolute_bounds: bool = False,
    ) -> Dict[str, Any]:
        """Fetches rendered image URLs for the given nodes.

        Raises:
            FigmaApiError: On any failure.
        """

    @abc.abstractmethod
    async def get_comments(self, file_key: FileKey) -> Dict[str, Any]:
        """Fetches the comments of a design file.

        Raises:
            FigmaApiError: On any failure.
        """

    @abc.abstractmethod
    async def test_connection(self) -> ConnectionResult:
        """Checks the configured credential. Never raises."""

    @abc.abstractmethod
    def get_metrics(self) -> ApiMetrics:
        """Returns a snapshot of request metrics."""

    @abc.abstractmethod
    def get_rate_limit_stats(self) -> RateLimitStats:
        """Returns the current rate limiter window stats."""

    @abc.abstractmethod
    def get_cache_stats(self) -> CacheStats:
        """Returns the backing cache stats."""

    @abc.abstractmethod
    def clear_cache(self) -> None:
        """Empties the backing cache."""
