"""Main entry point for the figlink application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Coroutine, Dict, List, Optional

import typer
from typing_extensions import Annotated

logger = logging.getLogger(__name__)

# --- Core Layer ---
from figlink.core.command_handler import CommandHandler
from figlink.core.services.health_service import HealthCheckService
from figlink.core.services.image_service import ImageService

# --- Infrastructure Layer ---
# Config
from figlink.infrastructure.config.settings import (
    DEFAULT_CONFIG_FILE, get_cache_max_size, get_config, get_figma_api_config, load_configuration
)
# UI
from figlink.infrastructure.cli.display import ConsoleDisplay
# Cache
from figlink.infrastructure.cache.caching_service import CacheSweeper, CachingServiceImpl
# Resilience
from figlink.infrastructure.resilience.rate_limiter import RateLimiter
# API Client
from figlink.infrastructure.figma.figma_client import FigmaApiClient
# Monitoring
from figlink.infrastructure.monitoring.logger_setup import setup_logging

# --- Dependency Injection Container (Manual) ---

_dependencies: Optional[Dict[str, Any]] = None


def create_dependencies(config_file: Path = DEFAULT_CONFIG_FILE) -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root. The cache and the rate limiter are
    created exactly once here and injected into every API client.
    """
    # 1. Load Configuration First
    load_configuration(config_file=config_file)
    log_level_name = str(get_config('logging.level', 'WARNING')).upper()
    log_level = getattr(logging, log_level_name, logging.WARNING)
    setup_logging(
        log_level=log_level,
        log_file=get_config('logging.file'),
        log_format=get_config('logging.format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
    )
    logger.info("Initializing application dependencies...")

    api_config = get_figma_api_config()
    dependencies: Dict[str, Any] = {}

    # 2. Shared infrastructure
    dependencies['ui'] = ConsoleDisplay()
    dependencies['cache_service'] = CachingServiceImpl(
        max_size=get_cache_max_size(),
        default_ttl=api_config.cache_ttl,
    )
    dependencies['rate_limiter'] = RateLimiter(
        max_requests=api_config.rate_limit_per_minute,
        window_seconds=60.0,
    )
    dependencies['cache_sweeper'] = CacheSweeper(
        dependencies['cache_service'],
        interval_seconds=float(get_config('cache.sweep_interval_seconds', 60)),
    )

    # 3. API client
    dependencies['api_client'] = FigmaApiClient(
        config=api_config,
        cache=dependencies['cache_service'],
        rate_limiter=dependencies['rate_limiter'],
    )

    # 4. Application services
    dependencies['health_service'] = HealthCheckService(dependencies['api_client'])
    dependencies['image_service'] = ImageService(
        dependencies['api_client'],
        batch_size=int(get_config('figma.image_batch_size', 50)),
    )

    # 5. Command handler
    dependencies['command_handler'] = CommandHandler(
        api_client=dependencies['api_client'],
        health_service=dependencies['health_service'],
        image_service=dependencies['image_service'],
        ui=dependencies['ui'],
    )
    logger.info("All dependencies initialized successfully.")
    return dependencies


def get_dependencies() -> Dict[str, Any]:
    """Returns the wired-up dependencies, creating them on first use."""
    global _dependencies
    if _dependencies is None:
        _dependencies = create_dependencies()
    return _dependencies


def reset_dependencies() -> None:
    global _dependencies
    _dependencies = None


# --- Typer App Definition ---
app = typer.Typer(
    name="figlink",
    help="figlink: fetch Figma files, images and comments through a rate-limited, cached client.",
    add_completion=False,
)


def run_async(coro: Coroutine[Any, Any, bool]) -> None:
    """Runs an async command handler and converts a failed result into exit code 1."""
    succeeded = asyncio.run(coro)
    if not succeeded:
        raise typer.Exit(code=1)


def _split_ids(values: Optional[List[str]]) -> List[str]:
    """Accepts repeated --ids options as well as comma separated lists."""
    ids: List[str] = []
    for value in values or []:
        ids.extend(part.strip() for part in value.split(",") if part.strip())
    return ids


# --- CLI Commands ---

FileRefArgument = Annotated[str, typer.Argument(help="Figma file URL or bare file key.")]
IdsOption = Annotated[
    Optional[List[str]],
    typer.Option("--ids", help="Node ids (repeatable or comma separated).")
]


@app.command(name="file")
def file_command(
    file_ref: FileRefArgument,
    version: Annotated[Optional[str], typer.Option(help="File version id.")] = None,
    ids: IdsOption = None,
):
    """Fetch a design file's document tree."""
    handler: CommandHandler = get_dependencies()['command_handler']
    run_async(handler.handle_get_file(file_ref, version=version, ids=_split_ids(ids)))


@app.command(name="images")
def images_command(
    file_ref: FileRefArgument,
    ids: IdsOption = None,
    format: Annotated[str, typer.Option("--format", "-f", help="jpg, png, svg or pdf.")] = "png",
    scale: Annotated[float, typer.Option(min=0.01, max=4.0, help="Render scale.")] = 1.0,
):
    """Render nodes and print their image URLs."""
    handler: CommandHandler = get_dependencies()['command_handler']
    run_async(handler.handle_get_images(file_ref, _split_ids(ids), format=format, scale=scale))


@app.command(name="comments")
def comments_command(file_ref: FileRefArgument):
    """List the comments on a design file."""
    handler: CommandHandler = get_dependencies()['command_handler']
    run_async(handler.handle_get_comments(file_ref))


@app.command(name="test-connection")
def test_connection_command():
    """Check that the configured access token works."""
    handler: CommandHandler = get_dependencies()['command_handler']
    run_async(handler.handle_test_connection())


@app.command(name="health")
def health_command():
    """Report API, rate limit and cache health."""
    handler: CommandHandler = get_dependencies()['command_handler']
    run_async(handler.handle_health())


async def _watch_health(dependencies: Dict[str, Any], interval: float, count: int) -> bool:
    sweeper: CacheSweeper = dependencies['cache_sweeper']
    handler: CommandHandler = dependencies['command_handler']
    await sweeper.start()
    healthy = True
    try:
        for iteration in range(count):
            healthy = await handler.handle_health()
            if iteration < count - 1:
                await asyncio.sleep(interval)
    finally:
        await sweeper.stop()
    return healthy


@app.command(name="watch-health")
def watch_health_command(
    interval: Annotated[float, typer.Option(min=1.0, help="Seconds between checks.")] = 30.0,
    count: Annotated[int, typer.Option(min=1, help="Number of checks to run.")] = 10,
):
    """Sample health periodically while sweeping expired cache entries."""
    run_async(_watch_health(get_dependencies(), interval, count))


@app.command(name="parse-url")
def parse_url_command(url: Annotated[str, typer.Argument(help="Figma file URL.")]):
    """Show the file key, name and node id contained in a Figma URL."""
    handler: CommandHandler = get_dependencies()['command_handler']
    if not handler.handle_parse_url(url):
        raise typer.Exit(code=1)


@app.callback()
def main_callback(
    ctx: typer.Context,
    metrics: Annotated[bool, typer.Option("--metrics", help="Print request metrics after the command.")] = False,
):
    """Figma design-file access with rate limiting, caching and health checks."""
    if metrics:
        ctx.call_on_close(lambda: get_dependencies()['command_handler'].handle_metrics())


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
