"""Concrete UserInterface rendering to the terminal with rich."""

import json
import logging
from typing import Any, Dict, Optional

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from figlink.domain.interfaces.user_interface import UserInterface
from figlink.domain.models.health import HealthReport
from figlink.domain.models.metrics import ApiMetrics

logger = logging.getLogger(__name__)

STATUS_STYLES = {
    "healthy": "bold green",
    "degraded": "bold yellow",
    "warning": "bold yellow",
    "unhealthy": "bold red",
    "critical": "bold red",
}

# Keep huge document trees from flooding the terminal
MAX_JSON_CHARS = 20_000


def _styled_status(status: str) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status}[/{style}]"


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console."""
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_output(self, output: str, **kwargs: Any) -> None:
        title = kwargs.get("title")
        if title:
            self.console.print(Panel(Text(str(output)), title=f"[bold]{title}[/bold]", box=ROUNDED, padding=(0, 1)))
        else:
            self.console.print(str(output))

    def display_json(self, data: Any, **kwargs: Any) -> None:
        """Pretty-prints an API payload, truncating very large documents."""
        rendered = json.dumps(data, indent=2, ensure_ascii=False, default=str)
        truncated = len(rendered) > MAX_JSON_CHARS
        if truncated:
            logger.debug(f"Truncating JSON output of {len(rendered)} characters")
            rendered = rendered[:MAX_JSON_CHARS]
        self.console.print(Panel(
            Syntax(rendered, "json", word_wrap=True),
            title=f"[bold cyan]{kwargs.get('title', 'Result')}[/bold cyan]",
            title_align="left",
            border_style="cyan",
            box=ROUNDED,
            padding=(0, 1),
        ))
        if truncated:
            self.display_warning(f"Output truncated to {MAX_JSON_CHARS} characters.")

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style."""
        self.console.print(Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        ))

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Display warning: {warning_message}")
        self.console.print(Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        ))

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        self.console.print(Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        ))

    def display_health_report(self, report: HealthReport) -> None:
        """Renders the three health signals and the overall verdict as a table."""
        table = Table(title="Figma API Health", box=ROUNDED, border_style="cyan")
        table.add_column("Check", style="bold")
        table.add_column("Status")
        table.add_column("Details")

        api = report.api
        table.add_row("API", _styled_status(api.status), f"{api.response_time:.0f} ms round trip")

        rate = report.rate_limit
        table.add_row(
            "Rate limit",
            _styled_status(rate["status"]),
            f"{rate['requests_in_window']}/{rate['max_requests']} requests in {rate['window_seconds']:g}s window",
        )

        cache = report.cache
        table.add_row(
            "Cache",
            _styled_status(cache["status"]),
            f"hit rate {cache['hit_rate']:.0%}, {cache['size']}/{cache['max_size']} entries",
        )
        table.add_row("Overall", _styled_status(report.overall.status), report.timestamp.strftime("%Y-%m-%d %H:%M:%S"))

        self.console.print(table)
        for error in report.overall.errors:
            self.display_error(error)

    def display_metrics(self, metrics: ApiMetrics, **kwargs: Any) -> None:
        table = Table(title="Figma API Metrics", show_header=False, box=ROUNDED, border_style="cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right")

        table.add_row("Total requests", str(metrics.total_requests))
        table.add_row("Successful", str(metrics.successful_requests))
        table.add_row("Failed", str(metrics.failed_requests))
        table.add_row("Avg response time", f"{metrics.average_response_time:.0f} ms")
        table.add_row("Cache hit rate", f"{metrics.cache_hit_rate:.0%}")
        table.add_row("Rate limit hits", str(metrics.rate_limit_hits))
        for error_type, count in sorted(metrics.errors_by_type.items(), key=lambda item: item[0].value):
            table.add_row(f"Errors: {error_type.value}", str(count))

        cache_stats: Optional[Dict[str, Any]] = kwargs.get("cache_stats")
        if cache_stats:
            table.add_row("Cache entries", f"{cache_stats['size']}/{cache_stats['max_size']}")
        rate_limit_stats: Optional[Dict[str, Any]] = kwargs.get("rate_limit_stats")
        if rate_limit_stats:
            table.add_row(
                "Requests in window",
                f"{rate_limit_stats['requests_in_window']}/{rate_limit_stats['max_requests']}",
            )
        table.add_row("Last updated", metrics.last_updated.strftime("%H:%M:%S"))

        self.console.print(table)
