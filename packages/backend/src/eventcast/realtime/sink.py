"""Listener sinks — the write side of one SSE connection.

Learn: publish() must never wait on a slow client. Each listener gets a
buffer of at most `maxsize` frames and write() never blocks. If the
buffer is full the client has stalled, write() raises DeliveryError, and
the registry drops that listener. The HTTP layer drains the queue at
whatever pace the socket allows.

SSE framing: each record is "data: <json>\\n\\n". Lines starting with ":"
are comments. Browsers ignore them, so they work as keepalives.
"""

import asyncio
import json
import threading
from collections.abc import AsyncIterator
from typing import Optional

from eventcast.events.models import Event

KEEPALIVE_FRAME = ": keepalive\n\n"

# Wakes the reader after close(); never reaches the client
_CLOSED = None


class DeliveryError(Exception):
    """Raised when a frame cannot be handed to a listener's sink."""


def format_frame(event: Event) -> str:
    """Serialize an event as one SSE data record."""
    payload = json.dumps(event.to_dict(), separators=(",", ":"), ensure_ascii=False)
    return f"data: {payload}\n\n"


class QueueSink:
    """Bounded, non-blocking frame buffer bound to one event loop.

    Capacity is reserved inside write() itself, so a full buffer is always
    reported to the caller, even when the frame is handed to the loop from
    another thread.
    """

    def __init__(self, maxsize: int = 100, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()
        self._maxsize = maxsize
        # Unbounded; _buffered enforces maxsize and the close marker always fits
        self._queue: asyncio.Queue[Optional[str]] = asyncio.Queue()
        self._lock = threading.Lock()
        self._buffered = 0  # accepted by write(), not yet taken by the reader
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _on_loop(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def _enqueue(self, item: Optional[str]) -> None:
        if self._on_loop():
            self._queue.put_nowait(item)
        else:
            # asyncio.Queue is not thread-safe; the owning loop does the put,
            # in the order the calls were made.
            self._loop.call_soon_threadsafe(self._queue.put_nowait, item)

    def write(self, frame: str) -> None:
        """Queue a frame without blocking. Raises DeliveryError if the
        sink is closed or its buffer is full."""
        with self._lock:
            if self._closed:
                raise DeliveryError("sink closed")
            if self._buffered >= self._maxsize:
                raise DeliveryError("listener buffer full")
            self._buffered += 1
        try:
            self._enqueue(frame)
        except RuntimeError as e:  # loop already closed
            raise DeliveryError(str(e)) from e

    def close(self) -> None:
        """Stop accepting frames and wake the reader. Idempotent.

        Frames accepted before close() are still delivered.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
        try:
            self._enqueue(_CLOSED)
        except RuntimeError:
            pass  # loop gone; nobody left to wake

    async def frames(self, keepalive: Optional[float] = None) -> AsyncIterator[str]:
        """Yield queued frames until the sink is closed and drained.

        When no frame arrives within `keepalive` seconds a keepalive
        comment is yielded instead, so dead connections get noticed. The
        pending get() is kept across keepalives, never cancelled, so a
        frame cannot be lost to a timeout.
        """
        getter: Optional[asyncio.Future] = None
        try:
            while True:
                if getter is None:
                    getter = asyncio.ensure_future(self._queue.get())
                done, _ = await asyncio.wait({getter}, timeout=keepalive or None)
                if not done:
                    yield KEEPALIVE_FRAME
                    continue

                frame = getter.result()
                getter = None
                if frame is _CLOSED:
                    return
                with self._lock:
                    self._buffered -= 1
                yield frame
        finally:
            if getter is not None:
                getter.cancel()
