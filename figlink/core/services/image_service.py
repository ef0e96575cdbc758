"""Application service for rendering many nodes to image URLs.

The images endpoint accepts a limited number of node ids per call, so large
exports are split into batches. A failing batch does not sink the whole
export unless the credential itself is rejected.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from figlink.domain.interfaces.design_api import DesignFileApi
from figlink.domain.models.common import FileKey, NodeId
from figlink.domain.models.errors import ApiErrorType, FigmaApiError

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 50


@dataclass
class ImageBatchResult:
    images: Dict[str, Optional[str]] = field(default_factory=dict)
    failed_node_ids: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    batches: int = 0


def make_batches(items: List[str], batch_size: int) -> List[List[str]]:
    return [items[i:i + batch_size] for i in range(0, len(items), batch_size)]


class ImageService:
    """Fetches image URLs for arbitrarily many nodes in rate-limited batches."""

    def __init__(self, api_client: DesignFileApi, batch_size: int = MAX_BATCH_SIZE):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.api_client = api_client
        self.batch_size = batch_size

    async def fetch_images(
        self,
        file_key: FileKey,
        node_ids: List[NodeId],
        format: str = "png",
        scale: float = 1,
    ) -> ImageBatchResult:
        """Fetches image URLs batch by batch.

        Batches run sequentially; the client's rate limiter spaces them out.

        Raises:
            FigmaApiError: Only for AUTHENTICATION_ERROR, which would fail
                every remaining batch as well.
        """
        # Preserve order, drop duplicates
        unique_ids = list(dict.fromkeys(node_ids))
        batches = make_batches(unique_ids, self.batch_size)
        result = ImageBatchResult(batches=len(batches))

        for index, batch in enumerate(batches, start=1):
            logger.info(f"Processing image batch {index}/{len(batches)} ({len(batch)} nodes)")
            try:
                response = await self.api_client.get_images(file_key, batch, format=format, scale=scale)
            except FigmaApiError as e:
                if e.error_type is ApiErrorType.AUTHENTICATION_ERROR:
                    raise
                logger.error(f"Image batch {index} failed: [{e.error_type.value}] {e.message}")
                result.failed_node_ids.extend(batch)
                result.errors.append(f"batch {index}: {e.message}")
                continue

            images = response.get("images") or {}
            for node_id in batch:
                url = images.get(node_id)
                result.images[node_id] = url
                if url is None:
                    result.failed_node_ids.append(node_id)

        rendered = sum(1 for url in result.images.values() if url)
        logger.info(f"Image export finished: {rendered} of {len(unique_ids)} nodes rendered")
        return result
