"""Concrete implementation of the DesignFileApi interface over the Figma REST API.

Every operation goes through the same path: cache lookup, rate limiter
admission, an ``httpx`` request with a hard timeout, then classification of
any failure into a ``FigmaApiError``. The client never retries on its own;
``retry_after`` on rate limit errors is the caller's hint.
"""

import asyncio
import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

# Domain Layer Imports
from figlink.domain.events.api_events import (
    ApiCallDeferred, ApiCallFailed, ApiCallInitiated, ApiCallSucceeded, CacheHit, DomainEvent
)
from figlink.domain.interfaces.cache import CacheService
from figlink.domain.interfaces.design_api import DesignFileApi
from figlink.domain.models.common import CacheKey, CacheStats, ConnectionResult, FileKey, NodeId, RateLimitStats
from figlink.domain.models.errors import ApiErrorType, FigmaApiError
from figlink.domain.models.metrics import ApiMetrics

# Infrastructure Layer Imports
from figlink.infrastructure.cache.caching_service import CachingServiceImpl
from figlink.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.figma.com/v1"
TOKEN_ENV_VAR = "FIGMA_ACCESS_TOKEN"
TOKEN_HEADER = "X-Figma-Token"

FILE_CACHE_TTL_SECONDS = 5 * 60
IMAGES_CACHE_TTL_SECONDS = 10 * 60
COMMENTS_CACHE_TTL_SECONDS = 2 * 60

_MISSING = object()


@dataclass
class FigmaApiConfig:
    """Construction-time settings for FigmaApiClient. Durations in seconds."""
    base_url: str = DEFAULT_BASE_URL
    token: Optional[str] = None
    rate_limit_per_minute: int = 60
    cache_enabled: bool = True
    cache_ttl: float = 5 * 60
    timeout: float = 30.0


def _default_event_handler(event: DomainEvent) -> None:
    logger.debug(f"EVENT: {event}")


def _status_to_error_type(status_code: int) -> ApiErrorType:
    if status_code in (401, 403):
        return ApiErrorType.AUTHENTICATION_ERROR
    if status_code == 404:
        return ApiErrorType.FILE_NOT_FOUND
    if status_code == 429:
        return ApiErrorType.RATE_LIMIT_ERROR
    return ApiErrorType.NETWORK_ERROR


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Reads a ``Retry-After`` header given in seconds. Other forms are ignored."""
    if not value:
        return None
    try:
        return float(int(value.strip()))
    except ValueError:
        logger.debug(f"Ignoring non-numeric Retry-After header: {value!r}")
        return None


class FigmaApiClient(DesignFileApi):
    """Figma implementation of the DesignFileApi interface."""

    def __init__(
        self,
        config: Optional[FigmaApiConfig] = None,
        cache: Optional[CacheService] = None,
        rate_limiter: Optional[RateLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        event_handler: Optional[Callable[[DomainEvent], None]] = None,
    ):
        """Initializes the client.

        Args:
            config: Client settings. Defaults are used when None.
            cache: Shared cache. A private cache is created when None.
            rate_limiter: Shared limiter. A private one is created from
                ``config.rate_limit_per_minute`` when None.
            transport: Optional httpx transport (used by tests).
            event_handler: Receives API domain events. Logs them by default.
        """
        self.config = config or FigmaApiConfig()
        self.base_url = self.config.base_url.rstrip("/")
        self.timeout = self.config.timeout
        self.cache_enabled = self.config.cache_enabled
        self._token = self.config.token if self.config.token is not None else os.getenv(TOKEN_ENV_VAR, "")

        self.cache = cache if cache is not None else CachingServiceImpl(default_ttl=self.config.cache_ttl)
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter(
            max_requests=self.config.rate_limit_per_minute,
            window_seconds=60.0,
        )
        self._transport = transport
        self._dispatch = event_handler or _default_event_handler

        self.metrics = ApiMetrics()
        self._cache_lookups = 0
        self._cache_hits = 0

        if not self._token:
            logger.warning(f"Figma API token not provided. Set the {TOKEN_ENV_VAR} environment variable.")
        logger.info(
            f"FigmaApiClient initialized: base_url={self.base_url}, timeout={self.timeout}s, "
            f"cache={'on' if self.cache_enabled else 'off'}, token={self.get_token()}"
        )

    # ------------------------------------------------------------------
    # Cache helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _cache_key(operation: str, *parts: Any) -> CacheKey:
        encoded = ":".join(json.dumps(part, sort_keys=True, default=str) for part in parts)
        return CacheKey(f"{operation}:{encoded}")

    def _cache_lookup(self, key: CacheKey) -> Any:
        """Returns the cached body, or ``_MISSING`` (a cached body may be ``None``)."""
        if not self.cache_enabled:
            return _MISSING
        cached = self.cache.get(key, _MISSING)
        self._cache_lookups += 1
        if cached is not _MISSING:
            self._cache_hits += 1
        self.metrics.cache_hit_rate = self._cache_hits / self._cache_lookups
        if cached is not _MISSING:
            logger.debug(f"Cache hit: {key}")
            self._dispatch(CacheHit(cache_key=key))
        return cached

    def _cache_store(self, key: CacheKey, value: Any, ttl: float) -> None:
        if self.cache_enabled:
            self.cache.set(key, value, ttl)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_file(
        self,
        file_key: FileKey,
        version: Optional[str] = None,
        ids: Optional[List[NodeId]] = None,
    ) -> Dict[str, Any]:
        cache_key = self._cache_key("file", file_key, {"version": version, "ids": ids})
        cached = self._cache_lookup(cache_key)
        if cached is not _MISSING:
            return cached

        params: Dict[str, str] = {}
        if version:
            params["version"] = version
        if ids:
            params["ids"] = ",".join(ids)

        data = await self._make_request(f"/files/{file_key}", params)
        self._cache_store(cache_key, data, FILE_CACHE_TTL_SECONDS)
        logger.info(f"Fetched file {file_key}: {data.get('name', '<unnamed>') if isinstance(data, dict) else ''}")
        return data

    async def get_images(
        self,
        file_key: FileKey,
        node_ids: List[NodeId],
        format: str = "png",
        scale: float = 1,
        version: Optional[str] = None,
        use_absolute_bounds: bool = False,
    ) -> Dict[str, Any]:
        options = {
            "format": format,
            "scale": scale,
            "version": version,
            "use_absolute_bounds": use_absolute_bounds,
        }
        cache_key = self._cache_key("images", file_key, list(node_ids), options)
        cached = self._cache_lookup(cache_key)
        if cached is not _MISSING:
            return cached

        params: Dict[str, str] = {
            "ids": ",".join(node_ids),
            "format": format or "png",
            "scale": str(scale or 1),
        }
        if version:
            params["version"] = version
        if use_absolute_bounds:
            params["use_absolute_bounds"] = "true"

        data = await self._make_request(f"/images/{file_key}", params)
        self._cache_store(cache_key, data, IMAGES_CACHE_TTL_SECONDS)
        images = data.get("images") if isinstance(data, dict) else None
        logger.info(f"Fetched {len(images or {})} image URLs for file {file_key}")
        return data

    async def get_comments(self, file_key: FileKey) -> Dict[str, Any]:
        cache_key = self._cache_key("comments", file_key)
        cached = self._cache_lookup(cache_key)
        if cached is not _MISSING:
            return cached

        data = await self._make_request(f"/files/{file_key}/comments")
        self._cache_store(cache_key, data, COMMENTS_CACHE_TTL_SECONDS)
        return data

    async def test_connection(self) -> ConnectionResult:
        try:
            user = await self._make_request("/me")
        except FigmaApiError as e:
            logger.error(f"Figma API connection failed: [{e.error_type.value}] {e.message}")
            return ConnectionResult(success=False, error=e.message)
        logger.info(f"Figma API connection successful for user: {user.get('email') if isinstance(user, dict) else user}")
        return ConnectionResult(success=True, user=user)

    # ------------------------------------------------------------------
    # Request path
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with base URL, credential and timeout."""
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={TOKEN_HEADER: self._token, "Content-Type": "application/json"},
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
        )

    async def _send(self, path: str, params: Optional[Dict[str, str]]) -> Tuple[httpx.Response, Any]:
        """Issues the GET and decodes the body. Raises FigmaApiError for non-2xx or invalid JSON."""
        async with self._client() as client:
            response = await client.get(path, params=params or None)
        if not response.is_success:
            raise self._error_from_response(response)
        try:
            return response, response.json()
        except ValueError as e:
            raise FigmaApiError(
                ApiErrorType.UNKNOWN_ERROR,
                f"Invalid JSON in response from {path}: {e}",
                status_code=response.status_code,
            ) from e

    async def _make_request(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        if not self._token:
            raise FigmaApiError(ApiErrorType.AUTHENTICATION_ERROR, "Figma API token is required")

        wait_time = self.rate_limiter.get_wait_time()
        if wait_time > 0:
            self._dispatch(ApiCallDeferred(endpoint=path, wait_time_seconds=wait_time))
        await self.rate_limiter.wait_if_needed()

        self._dispatch(ApiCallInitiated(endpoint=path))
        start_time = time.perf_counter()
        self.metrics.total_requests += 1

        try:
            # httpx timeouts bound each connect/read step; wait_for bounds the whole call
            response, data = await asyncio.wait_for(self._send(path, params), timeout=self.timeout)
        except FigmaApiError as e:
            self._record_failure(path, e, start_time)
            raise
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            error = FigmaApiError(
                ApiErrorType.NETWORK_ERROR,
                f"Request timeout after {int(self.timeout * 1000)}ms",
            )
            self._record_failure(path, error, start_time)
            raise error from e
        except httpx.TransportError as e:
            error = FigmaApiError(ApiErrorType.NETWORK_ERROR, f"Network error: {e}")
            self._record_failure(path, error, start_time)
            raise error from e
        except Exception as e:
            logger.error(f"Unexpected error calling {path}: {type(e).__name__} - {e}", exc_info=True)
            error = FigmaApiError(ApiErrorType.UNKNOWN_ERROR, f"Unknown error occurred: {e}")
            self._record_failure(path, error, start_time)
            raise error from e

        latency_ms = (time.perf_counter() - start_time) * 1000
        self.metrics.successful_requests += 1
        self.metrics.record_response_time(latency_ms)
        logger.debug(f"GET {path} -> {response.status_code} in {latency_ms:.0f}ms")
        self._dispatch(ApiCallSucceeded(endpoint=path, latency_ms=latency_ms, status_code=response.status_code))
        return data

    def _error_from_response(self, response: httpx.Response) -> FigmaApiError:
        """Maps a non-2xx response to a FigmaApiError."""
        status_code = response.status_code
        error_message = f"HTTP {status_code}: {response.reason_phrase}"
        try:
            body = response.json()
            if isinstance(body, dict):
                detail = body.get("err") or body.get("message")
                if detail:
                    error_message = str(detail)
        except ValueError:
            pass  # Body is not JSON; keep the status line

        error_type = _status_to_error_type(status_code)
        retry_after = None
        if error_type is ApiErrorType.RATE_LIMIT_ERROR:
            self.metrics.rate_limit_hits += 1
            retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            logger.warning(f"Figma API rate limit hit (retry after: {retry_after}s)")

        return FigmaApiError(error_type, error_message, status_code=status_code, retry_after=retry_after)

    def _record_failure(self, path: str, error: FigmaApiError, start_time: float) -> None:
        latency_ms = (time.perf_counter() - start_time) * 1000
        self.metrics.failed_requests += 1
        self.metrics.record_error(error.error_type)
        self.metrics.record_response_time(latency_ms)
        logger.warning(f"GET {path} failed: [{error.error_type.value}] {error.message}")
        self._dispatch(ApiCallFailed(
            endpoint=path,
            error_type=error.error_type.value,
            error_message=error.message,
            status_code=error.status_code,
        ))

    # ------------------------------------------------------------------
    # Monitoring accessors
    # ------------------------------------------------------------------

    def get_metrics(self) -> ApiMetrics:
        return self.metrics.snapshot()

    def get_rate_limit_stats(self) -> RateLimitStats:
        return self.rate_limiter.get_stats()

    def get_cache_stats(self) -> CacheStats:
        return self.cache.get_stats()

    def clear_cache(self) -> None:
        self.cache.clear()

    def set_token(self, token: str) -> None:
        self._token = token
        logger.info(f"Figma API token updated: {self.get_token()}")

    def get_token(self) -> str:
        """Returns a redacted form of the token, never the full credential."""
        return f"{self._token[:8]}..." if self._token else "Not set"
