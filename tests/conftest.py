import asyncio
import base64
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from kube_request.auth import ProviderRegistry  # noqa: E402
from kube_request.config import Settings  # noqa: E402


def pytest_configure(config):
    # Register the asyncio marker so pytest doesn't warn when it's used.
    config.addinivalue_line(
        "markers", "asyncio: mark test to run in an asyncio event loop"
    )
    # Add custom markers for test organization
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "auth: mark test as testing authentication"
    )


@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch):
    """Keep the process environment from leaking into Settings."""
    for name in (
        "KUBE_REQUEST_TIMEOUT",
        "KUBE_REQUEST_CONNECT_TIMEOUT",
        "KUBE_REQUEST_HTTP2",
        "KUBE_REQUEST_USER_AGENT",
        "KUBE_REQUEST_SESSION_MAX_MESSAGES",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("KUBE_REQUEST_LOG_LEVEL", "INFO")
    yield


@pytest.fixture(autouse=True)
def clean_registry():
    """Run every test against an empty provider registry."""
    ProviderRegistry.clear()
    yield
    ProviderRegistry.clear()


@pytest.fixture
def settings():
    return Settings(timeout=5.0, connect_timeout=2.0)


def frame(channel: int, text: str) -> bytes:
    """Build a raw channel frame the way the API server sends it."""
    return bytes([channel]) + base64.b64encode(text.encode("utf-8"))


@pytest.fixture
def make_frame():
    return frame


class FakeWebSocket:
    """Scripted stand-in for a websockets client connection."""

    def __init__(
        self,
        messages: Optional[List[Any]] = None,
        close_code: Optional[int] = 1000,
        close_reason: str = "",
        error: Optional[BaseException] = None,
        gate: Optional[asyncio.Event] = None,
    ):
        self.messages = list(messages or [])
        self.close_code = close_code
        self.close_reason = close_reason
        self.error = error
        self.gate = gate
        self.sent: List[Any] = []

    async def send(self, message: Any) -> None:
        self.sent.append(message)

    async def _iterate(self):
        for message in self.messages:
            await asyncio.sleep(0)
            yield message
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error

    def __aiter__(self):
        return self._iterate()


class FakeConnect:
    """Callable mimicking ``websockets.asyncio.client.connect``."""

    def __init__(self, ws: Optional[FakeWebSocket] = None, error: Optional[BaseException] = None):
        self.ws = ws or FakeWebSocket()
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, url: str, **kwargs: Any) -> "FakeConnect":
        self.calls.append({"url": url, **kwargs})
        return self

    async def __aenter__(self) -> FakeWebSocket:
        if self.error is not None:
            raise self.error
        return self.ws

    async def __aexit__(self, *exc_info: Any) -> None:
        return None


@pytest.fixture
def fake_connect() -> Callable[..., FakeConnect]:
    """Factory for scripted WebSocket connections."""

    def factory(messages=None, **kwargs) -> FakeConnect:
        error = kwargs.pop("connect_error", None)
        return FakeConnect(FakeWebSocket(messages, **kwargs), error=error)

    return factory


class MockServer:
    """Queue of canned responses behind an ``httpx.MockTransport``."""

    def __init__(self, *responses: Any):
        self.responses = list(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(request)
        return item

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def mock_server() -> Callable[..., MockServer]:
    return MockServer
