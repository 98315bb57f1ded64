"""SSE endpoint — real-time event delivery to browser clients.

Learn: Each client opens GET /events (e.g. `new EventSource("/events")`).
The handler:
1. Creates a bounded QueueSink and registers it with the registry
2. Streams frames from the sink as the response body
3. Deregisters when the response ends, however it ends

The response ends when the client disconnects (Starlette cancels it, even
before the first frame), when the registry drops the listener (stalled
buffer, shutdown), or when writing a keepalive to a dead socket fails.
deregister() is idempotent, so this is safe even if the registry got
there first.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from starlette.types import Receive, Scope, Send

from eventcast.config import Settings
from eventcast.dependencies import get_registry, get_settings
from eventcast.realtime.registry import BroadcastRegistry, Listener
from eventcast.realtime.sink import QueueSink

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    # Stop reverse proxies (nginx) from buffering the stream
    "X-Accel-Buffering": "no",
}


class ListenerStreamingResponse(StreamingResponse):
    """SSE response bound to one registered listener."""

    def __init__(self, registry: BroadcastRegistry, listener: Listener,
                 sink: QueueSink, keepalive: float):
        super().__init__(
            sink.frames(keepalive=keepalive),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )
        self.registry = registry
        self.listener = listener

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            self.registry.deregister(self.listener)


@router.get("/events")
async def event_stream(
    registry: BroadcastRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings),
):
    """Open a Server-Sent Events stream of newly published events."""
    sink = QueueSink(maxsize=settings.listener_queue_size)
    listener = registry.register(sink)
    return ListenerStreamingResponse(registry, listener, sink, settings.keepalive_seconds)
