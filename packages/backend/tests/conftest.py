"""Test fixtures — a fresh app (own store + registry) per test.

Learn: create_app() builds a new EventStore and BroadcastRegistry each
time, so tests never share events or listeners. The HTTP client talks to
the app in-process over ASGITransport; no server, no sockets.
"""

import asyncio
import json

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from structlog.testing import capture_logs

from eventcast.config import Settings
from eventcast.events.models import Event
from eventcast.main import create_app

CLICK_EVENT = {
    "eventName": "click",
    "eventTimestamp": "t1",
    "prop1": "x",
    "prop2": "y",
    "prop3": "z",
}


class RecordingSink:
    """In-memory ListenerSink that records frames, optionally failing."""

    def __init__(self, fail_with: Exception | None = None):
        self.frames: list[str] = []
        self.fail_with = fail_with
        self.close_calls = 0

    def write(self, frame: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.frames.append(frame)

    def close(self) -> None:
        self.close_calls += 1


def make_event(event_id: int, name: str = "click") -> Event:
    return Event(
        id=event_id,
        event_name=name,
        event_timestamp=f"t{event_id}",
        prop1="x",
        prop2="y",
        prop3="z",
    )


async def wait_for_listeners(registry, count: int):
    for _ in range(500):
        if len(registry) >= count:
            return
        await asyncio.sleep(0.01)
    raise AssertionError(f"expected {count} listeners, have {len(registry)}")


def sse_events(body: str) -> list[dict]:
    """Decode the data records of an SSE body."""
    return [
        json.loads(chunk[len("data: "):])
        for chunk in body.split("\n\n")
        if chunk.startswith("data: ")
    ]


@pytest.fixture(autouse=True)
def logs():
    """Capture structlog output instead of printing it."""
    with capture_logs() as captured:
        yield captured


@pytest.fixture()
def settings():
    return Settings(keepalive_seconds=30.0, listener_queue_size=100)


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
