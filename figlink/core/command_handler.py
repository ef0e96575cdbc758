"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), resolves file
references, delegates to the API client and application services, and
surfaces results or typed errors through the UserInterface.
"""

import logging
from typing import List, Optional

# Core Services Imports
from figlink.core.services.health_service import HealthCheckService
from figlink.core.services.image_service import ImageService

# Domain Layer Imports
from figlink.domain.interfaces.design_api import DesignFileApi
from figlink.domain.interfaces.user_interface import UserInterface
from figlink.domain.models.errors import ApiErrorType, FigmaApiError
from figlink.domain.models.health import UNHEALTHY
from figlink.utils.figma_url import generate_node_url, parse_figma_url, resolve_file_key, to_api_node_id

logger = logging.getLogger(__name__)


def format_api_error(error: FigmaApiError) -> str:
    """Renders a typed error the way every UI layer shows it."""
    message = f"[{error.error_type.value}] {error.message}"
    if error.error_type is ApiErrorType.RATE_LIMIT_ERROR and error.retry_after is not None:
        message += f" (retry after {error.retry_after:g}s)"
    return message


class CommandHandler:
    """Handles incoming commands and delegates to appropriate services."""

    def __init__(
        self,
        api_client: DesignFileApi,
        health_service: HealthCheckService,
        image_service: ImageService,
        ui: UserInterface,
    ):
        """Initializes the CommandHandler with required services."""
        self.api_client = api_client
        self.health_service = health_service
        self.image_service = image_service
        self.ui = ui

    def _report_error(self, action: str, error: Exception) -> None:
        if isinstance(error, FigmaApiError):
            logger.error(f"{action} failed: {error!r}")
            self.ui.display_error(format_api_error(error))
        else:
            logger.error(f"{action} failed unexpectedly: {error}", exc_info=True)
            self.ui.display_error(f"{action} failed: {error}")

    async def handle_get_file(self, file_ref: str, version: Optional[str] = None, ids: Optional[List[str]] = None) -> bool:
        """Handles the 'file' command."""
        logger.info(f"Handling 'file' command for: {file_ref}")
        try:
            file_key = resolve_file_key(file_ref)
            data = await self.api_client.get_file(file_key, version=version, ids=ids or None)
        except Exception as e:
            self._report_error("Fetching file", e)
            return False
        self.ui.display_json(data, title=data.get("name", file_key) if isinstance(data, dict) else file_key)
        return True

    async def handle_get_images(
        self,
        file_ref: str,
        node_ids: List[str],
        format: str = "png",
        scale: float = 1,
    ) -> bool:
        """Handles the 'images' command, batching large node lists."""
        logger.info(f"Handling 'images' command for: {file_ref} ({len(node_ids)} nodes)")
        if not node_ids:
            parsed = parse_figma_url(file_ref)
            if parsed.node_id:
                node_ids = [parsed.node_id]
            else:
                self.ui.display_error("No node ids given. Pass --ids or a URL with a node-id.")
                return False
        # Links carry node ids as 1-2, the images endpoint answers with 1:2
        node_ids = [to_api_node_id(node_id) for node_id in node_ids]
        try:
            file_key = resolve_file_key(file_ref)
            result = await self.image_service.fetch_images(file_key, node_ids, format=format, scale=scale)
        except Exception as e:
            self._report_error("Fetching images", e)
            return False

        self.ui.display_json(result.images, title=f"Images ({format}, x{scale:g})")
        for error in result.errors:
            self.ui.display_warning(error)
        if result.failed_node_ids:
            self.ui.display_warning(f"No image rendered for: {', '.join(result.failed_node_ids)}")
        return not result.failed_node_ids

    async def handle_get_comments(self, file_ref: str) -> bool:
        """Handles the 'comments' command."""
        logger.info(f"Handling 'comments' command for: {file_ref}")
        try:
            file_key = resolve_file_key(file_ref)
            data = await self.api_client.get_comments(file_key)
        except Exception as e:
            self._report_error("Fetching comments", e)
            return False
        comments = data.get("comments", []) if isinstance(data, dict) else data
        self.ui.display_json(comments, title=f"Comments ({len(comments)})")
        return True

    async def handle_test_connection(self) -> bool:
        """Handles the 'test-connection' command."""
        result = await self.api_client.test_connection()
        if result.get("success"):
            user = result.get("user") or {}
            who = user.get("email") or user.get("handle") or "unknown user"
            self.ui.display_info(f"Connected to the Figma API as {who}.")
            return True
        self.ui.display_error(f"Connection failed: {result.get('error')}")
        return False

    async def handle_health(self) -> bool:
        """Handles the 'health' command."""
        report = await self.health_service.generate_health_report()
        self.ui.display_health_report(report)
        return report.overall.status != UNHEALTHY

    def handle_metrics(self) -> None:
        """Handles the 'metrics' command."""
        self.ui.display_metrics(
            self.api_client.get_metrics(),
            cache_stats=self.api_client.get_cache_stats(),
            rate_limit_stats=self.api_client.get_rate_limit_stats(),
        )

    def handle_parse_url(self, url: str) -> bool:
        """Handles the 'parse-url' command."""
        parsed = parse_figma_url(url)
        if not parsed.is_valid:
            self.ui.display_error(format_api_error(
                FigmaApiError(ApiErrorType.PARSING_ERROR, f"Not a Figma file URL: {url}")
            ))
            return False
        details = {
            "file_key": parsed.file_key,
            "file_name": parsed.file_name,
            "node_id": parsed.node_id,
        }
        if parsed.node_id:
            details["node_url"] = generate_node_url(parsed.file_key, parsed.node_id, parsed.file_name)
        self.ui.display_json(details, title="Parsed URL")
        return True
