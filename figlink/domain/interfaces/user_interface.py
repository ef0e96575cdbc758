"""Interface for interacting with the user (output).

Defines the contract for displaying results, errors, warnings, health
reports and metrics, allowing different UI implementations (console,
dashboard) to sit on top of the same application services.
"""

import abc
from typing import Any

from figlink.domain.models.health import HealthReport
from figlink.domain.models.metrics import ApiMetrics


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_output(self, output: str, **kwargs: Any) -> None:
        """Displays standard output to the user.

        Args:
            output: The text to display.
            **kwargs: Additional arguments for formatting (e.g., title).
        """

    @abc.abstractmethod
    def display_json(self, data: Any, **kwargs: Any) -> None:
        """Displays a JSON-compatible structure (API payloads)."""

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""

    @abc.abstractmethod
    def display_health_report(self, report: HealthReport) -> None:
        """Renders a combined health report."""

    @abc.abstractmethod
    def display_metrics(self, metrics: ApiMetrics, **kwargs: Any) -> None:
        """Renders API request metrics.

        Args:
            metrics: Snapshot of the client metrics.
            **kwargs: Extra sections, e.g. ``cache_stats`` and ``rate_limit_stats``.
        """
