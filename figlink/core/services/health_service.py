"""Application service for health checks.

Samples the API client, its rate limiter and its cache, and turns the raw
numbers into verdicts a dashboard can show. No check ever raises.
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, Iterable

# Domain Layer Imports
from figlink.domain.interfaces.design_api import DesignFileApi
from figlink.domain.models.health import (
    DEGRADED, HEALTHY, LEVEL_CRITICAL, LEVEL_HEALTHY, LEVEL_WARNING, UNHEALTHY,
    HealthReport, HealthStatus,
)

logger = logging.getLogger(__name__)

SLOW_RESPONSE_THRESHOLD_MS = 5000
RATE_LIMIT_WARNING_UTILIZATION = 0.7
RATE_LIMIT_CRITICAL_UTILIZATION = 0.9
CACHE_HEALTHY_HIT_RATE = 0.8
CACHE_WARNING_HIT_RATE = 0.5


def combine_verdicts(signals: Iterable[str]) -> str:
    """Folds individual signals into one overall verdict.

    Any unhealthy/critical signal wins, then any degraded/warning one.
    """
    signals = set(signals)
    if signals & {UNHEALTHY, LEVEL_CRITICAL}:
        return UNHEALTHY
    if signals & {DEGRADED, LEVEL_WARNING}:
        return DEGRADED
    return HEALTHY


class HealthCheckService:
    """Produces health verdicts for the design API integration."""

    def __init__(self, api_client: DesignFileApi, clock: Callable[[], float] = time.perf_counter):
        """Initializes the service.

        Args:
            api_client: The client whose connection, limiter and cache are sampled.
            clock: Time source in seconds used to measure round trips.
        """
        self.api_client = api_client
        self._clock = clock

    async def check_api_health(self) -> HealthStatus:
        """Runs a connection test and grades the round trip."""
        start_time = self._clock()
        errors = []
        try:
            result = await self.api_client.test_connection()
        except Exception as e:
            logger.error(f"Connection test raised unexpectedly: {e}", exc_info=True)
            response_time = (self._clock() - start_time) * 1000
            return HealthStatus(status=UNHEALTHY, response_time=response_time, errors=[str(e) or "Unknown error"])

        response_time = (self._clock() - start_time) * 1000
        if not result.get("success"):
            errors.append(result.get("error") or "Connection test failed")
            return HealthStatus(status=UNHEALTHY, response_time=response_time, errors=errors)

        status = DEGRADED if response_time > SLOW_RESPONSE_THRESHOLD_MS else HEALTHY
        return HealthStatus(status=status, response_time=response_time, errors=errors)

    def check_rate_limit(self) -> Dict[str, Any]:
        """Grades the share of the rate limit window already used."""
        stats = dict(self.api_client.get_rate_limit_stats())
        max_requests = stats.get("max_requests") or 0
        utilization = stats["requests_in_window"] / max_requests if max_requests else 1.0

        if utilization < RATE_LIMIT_WARNING_UTILIZATION:
            status = LEVEL_HEALTHY
        elif utilization < RATE_LIMIT_CRITICAL_UTILIZATION:
            status = LEVEL_WARNING
        else:
            status = LEVEL_CRITICAL
        stats.update(status=status, utilization=utilization)
        return stats

    def check_cache_health(self) -> Dict[str, Any]:
        """Grades the cache hit rate."""
        stats = dict(self.api_client.get_cache_stats())
        hit_rate = stats["hit_rate"]

        if hit_rate > CACHE_HEALTHY_HIT_RATE:
            status = LEVEL_HEALTHY
        elif hit_rate > CACHE_WARNING_HIT_RATE:
            status = LEVEL_WARNING
        else:
            status = LEVEL_CRITICAL
        stats["status"] = status
        return stats

    async def _check_rate_limit_async(self) -> Dict[str, Any]:
        return self.check_rate_limit()

    async def _check_cache_health_async(self) -> Dict[str, Any]:
        return self.check_cache_health()

    async def generate_health_report(self) -> HealthReport:
        """Runs all three checks concurrently and combines them."""
        api_health, rate_limit_health, cache_health = await asyncio.gather(
            self.check_api_health(),
            self._check_rate_limit_async(),
            self._check_cache_health_async(),
        )

        overall_status = combine_verdicts(
            [api_health.status, rate_limit_health["status"], cache_health["status"]]
        )
        logger.info(
            f"Health report: overall={overall_status}, api={api_health.status}, "
            f"rate_limit={rate_limit_health['status']}, cache={cache_health['status']}"
        )
        return HealthReport(
            overall=HealthStatus(
                status=overall_status,
                response_time=api_health.response_time,
                last_check=datetime.now(),
                errors=list(api_health.errors),
            ),
            api=api_health,
            rate_limit=rate_limit_health,
            cache=cache_health,
        )
