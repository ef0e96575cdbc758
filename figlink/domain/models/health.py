"""Health verdict models produced by the health check service."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

# Overall / API verdicts
HEALTHY = "healthy"
DEGRADED = "degraded"
UNHEALTHY = "unhealthy"

# Resource utilization levels (rate limit window, cache)
LEVEL_HEALTHY = "healthy"
LEVEL_WARNING = "warning"
LEVEL_CRITICAL = "critical"


@dataclass
class HealthStatus:
    """Verdict for the remote API (or the system as a whole).

    ``response_time`` is in milliseconds.
    """
    status: str
    response_time: float
    last_check: datetime = field(default_factory=datetime.now)
    errors: List[str] = field(default_factory=list)


@dataclass
class HealthReport:
    """Combined report across API, rate limiter and cache."""
    overall: HealthStatus
    api: HealthStatus
    rate_limit: Dict[str, Any]
    cache: Dict[str, Any]
    timestamp: datetime = field(default_factory=datetime.now)
