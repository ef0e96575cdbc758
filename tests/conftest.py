import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from typer.testing import CliRunner

from figlink import main
from figlink.infrastructure.cache.caching_service import CachingServiceImpl
from figlink.infrastructure.cli.display import ConsoleDisplay
from figlink.infrastructure.config import settings
from figlink.infrastructure.figma.figma_client import FigmaApiClient, FigmaApiConfig
from figlink.infrastructure.resilience.rate_limiter import RateLimiter


class FakeClock:
    """Manually advanced time source (seconds)."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSleep:
    """Async sleep replacement that advances a FakeClock instead of waiting."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        self.clock.advance(seconds)


class RecordingHandler:
    """httpx MockTransport handler that records requests and replays canned responses."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]):
        self.responder = responder
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    @property
    def call_count(self) -> int:
        return len(self.requests)


def json_response(status_code: int, body: Any, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(body).encode(), headers={
        "Content-Type": "application/json", **(headers or {})
    })


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_sleep(clock: FakeClock) -> FakeSleep:
    return FakeSleep(clock)


@pytest.fixture
def cache(clock: FakeClock) -> CachingServiceImpl:
    return CachingServiceImpl(max_size=10, default_ttl=300, clock=clock)


@pytest.fixture
def rate_limiter(clock: FakeClock, fake_sleep: FakeSleep) -> RateLimiter:
    return RateLimiter(max_requests=60, window_seconds=60.0, clock=clock, sleep=fake_sleep)


@pytest.fixture
def make_client(cache: CachingServiceImpl, rate_limiter: RateLimiter):
    """Factory building a FigmaApiClient wired to a MockTransport."""

    def _make(responder: Callable[[httpx.Request], httpx.Response], **config_overrides: Any):
        handler = RecordingHandler(responder)
        config = FigmaApiConfig(**{"token": "figd_test_token_123", **config_overrides})
        client = FigmaApiClient(
            config=config,
            cache=cache,
            rate_limiter=rate_limiter,
            transport=httpx.MockTransport(handler),
        )
        return client, handler

    return _make


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keeps every test away from the developer's real token and config files."""
    monkeypatch.delenv("FIGMA_ACCESS_TOKEN", raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(settings, "_config", {})
    monkeypatch.setattr(settings, "_loaded", False)
    settings.clear_test_config()
    yield
    settings.clear_test_config()


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def mock_console_display(mocker):
    """Mocks the ConsoleDisplay to capture output easily.

    Patches the ConsoleDisplay where main.py builds it.
    """
    mock = mocker.MagicMock(spec=ConsoleDisplay)
    mocker.patch('figlink.main.ConsoleDisplay', return_value=mock)
    return mock


@pytest.fixture
def figma_api(mocker):
    """Routes every FigmaApiClient built by main.py through a MockTransport.

    Tests set ``figma_api.responder`` to control the canned responses.
    """
    handler = RecordingHandler(lambda request: json_response(404, {"status": 404, "err": "Not found"}))
    real_client = main.FigmaApiClient

    def build_client(*args, **kwargs):
        kwargs.setdefault("transport", httpx.MockTransport(handler))
        return real_client(*args, **kwargs)

    mocker.patch('figlink.main.FigmaApiClient', side_effect=build_client)
    mocker.patch('figlink.main.load_configuration')
    # Keep pytest's own log capture handlers on the root logger
    mocker.patch('figlink.main.setup_logging')
    main.reset_dependencies()
    yield handler
    main.reset_dependencies()
