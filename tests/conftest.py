"""
Shared fixtures for live session and REST tests.
"""

import asyncio
import json
import time
from typing import Any, Callable, Dict, List, Optional

import pytest
from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK
from websockets.frames import Close

from src.deepgram_client.config import ClientConfig


class MockWebSocket:
    """Mock WebSocket standing in for a websockets client connection."""

    def __init__(self):
        self.sent: List[Any] = []
        self.closed = False
        self.fail_sends = False
        self.incoming: asyncio.Queue = asyncio.Queue()

    async def send(self, frame):
        """Mock send method."""
        if self.fail_sends:
            raise ConnectionClosedError(None, None)
        self.sent.append(frame)

    async def recv(self):
        """Mock recv method; raises queued exceptions."""
        item = await self.incoming.get()
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self, code: int = 1000, reason: str = ""):
        """Mock close method."""
        self.closed = True
        self.incoming.put_nowait(ConnectionClosedOK(Close(code, reason), Close(code, reason)))

    def feed(self, *frames):
        """Helper method to queue inbound frames (dicts are JSON-encoded)."""
        for frame in frames:
            self.incoming.put_nowait(json.dumps(frame) if isinstance(frame, dict) else frame)

    def server_close(self, code: int = 1000, reason: str = "bye"):
        """Helper method to simulate a clean close initiated by the server."""
        self.incoming.put_nowait(ConnectionClosedOK(Close(code, reason), None))

    def transport_failure(self):
        """Helper method to simulate a dropped connection."""
        self.incoming.put_nowait(ConnectionClosedError(None, None))

    def text_frames(self) -> List[Dict[str, Any]]:
        return [json.loads(f) for f in self.sent if isinstance(f, str)]

    def frame_types(self) -> List[str]:
        return [f.get("type") for f in self.text_frames()]


class EventRecorder:
    """Async event sink recording every delivered event."""

    def __init__(self):
        self.events = []

    async def __call__(self, event):
        self.events.append(event)

    def types(self) -> List[str]:
        return [e.type for e in self.events]

    def of_type(self, event_type: str):
        return [e for e in self.events if e.type == event_type]


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.01) -> None:
    """Poll ``predicate`` until it holds or fail the test."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            pytest.fail("Condition not met before timeout")
        await asyncio.sleep(interval)


@pytest.fixture
def clean_env(monkeypatch):
    """Fixture removing Deepgram env vars so tests control credentials."""
    for name in ("DEEPGRAM_API_KEY", "DEEPGRAM_ACCESS_TOKEN", "DEEPGRAM_BASE_URL"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def config(clean_env):
    """Fixture providing an API-key config against a test host."""
    return ClientConfig(api_key="test-key", base_url="https://api.example.com", timeout=5)


@pytest.fixture
def mock_websocket():
    """Fixture providing a mock WebSocket."""
    return MockWebSocket()


@pytest.fixture
def connect_calls(monkeypatch, mock_websocket):
    """Fixture replacing the websockets connect used by live sessions."""
    calls: List[Dict[str, Any]] = []

    async def fake_connect(url, **kwargs):
        calls.append({"url": url, **kwargs})
        return mock_websocket

    monkeypatch.setattr("src.deepgram_client.live.session.connect", fake_connect)
    return calls


@pytest.fixture
def recorder():
    """Fixture providing a recording event sink."""
    return EventRecorder()


@pytest.fixture(name="wait_until")
def wait_until_fixture():
    """Fixture exposing the polling helper."""
    return wait_until
