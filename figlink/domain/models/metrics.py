"""Request metrics kept by the API client."""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict

from figlink.domain.models.errors import ApiErrorType


@dataclass
class ApiMetrics:
    """Running counters for one API client instance.

    ``average_response_time`` is in milliseconds.
    """
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    average_response_time: float = 0.0
    cache_hit_rate: float = 0.0
    rate_limit_hits: int = 0
    errors_by_type: Dict[ApiErrorType, int] = field(default_factory=dict)
    last_updated: datetime = field(default_factory=datetime.now)

    def record_response_time(self, response_time_ms: float) -> None:
        """Folds one sample into the running mean (n = total_requests)."""
        n = self.total_requests
        if n <= 0:
            return
        self.average_response_time = (self.average_response_time * (n - 1) + response_time_ms) / n
        self.last_updated = datetime.now()

    def record_error(self, error_type: ApiErrorType) -> None:
        self.errors_by_type[error_type] = self.errors_by_type.get(error_type, 0) + 1

    def snapshot(self) -> "ApiMetrics":
        """Returns an independent copy safe to hand to callers."""
        return copy.deepcopy(self)
