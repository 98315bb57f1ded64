"""Broadcast registry — who is listening, and fan-out to all of them.

Learn: Two locks, always taken in the same order (publish → members):

- _members_lock guards the live-listener dict. register/deregister hold it
  only for an O(1) dict operation.
- _publish_lock serializes publish() calls. Every listener therefore sees
  events in one global order, and register/deregister never wait for a
  whole fan-out: publish copies the membership, drops the members lock,
  then writes.

A listener registered while a publish is running may or may not get that
event, but never twice and never half of it.

Sink failures are contained: whatever one listener's write raises, that
listener is deregistered and delivery carries on to the rest. Nothing
propagates back to the publisher.
"""

import enum
import itertools
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol

import structlog

from eventcast.events.models import Event
from eventcast.realtime.sink import DeliveryError, format_frame

logger = structlog.get_logger()


class ListenerSink(Protocol):
    """Anything that accepts SSE frames without blocking."""

    def write(self, frame: str) -> None: ...

    def close(self) -> None: ...


class ListenerState(str, enum.Enum):
    CONNECTING = "connecting"
    ACTIVE = "active"
    CLOSED = "closed"


@dataclass(eq=False)
class Listener:
    """Registry-side handle for one open stream."""

    id: int
    sink: ListenerSink
    state: ListenerState = ListenerState.CONNECTING
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class BroadcastRegistry:
    """Tracks live listeners and delivers published events to them."""

    def __init__(self):
        self._listeners: dict[int, Listener] = {}
        self._ids = itertools.count(1)
        self._members_lock = threading.Lock()
        self._publish_lock = threading.Lock()

    # ─── Membership ──────────────────────────────────────

    def register(self, sink: ListenerSink) -> Listener:
        """Add a listener for `sink`. Returns the handle for deregister()."""
        with self._members_lock:
            listener = Listener(id=next(self._ids), sink=sink)
            listener.state = ListenerState.ACTIVE
            self._listeners[listener.id] = listener
            count = len(self._listeners)
        logger.info("eventcast.listener_registered", listener_id=listener.id, listeners=count)
        return listener

    def deregister(self, listener: Listener) -> bool:
        """Remove a listener and close its sink.

        Returns False if it was already gone; calling this twice is fine.
        """
        with self._members_lock:
            removed = self._listeners.pop(listener.id, None)
            if removed is None:
                return False
            removed.state = ListenerState.CLOSED
            count = len(self._listeners)

        try:
            removed.sink.close()
        except Exception as e:
            logger.warning("eventcast.sink_close_failed", listener_id=removed.id, error=str(e))
        logger.info(
            "eventcast.listener_deregistered",
            listener_id=removed.id,
            listeners=count,
            connected_seconds=round(
                (datetime.now(timezone.utc) - removed.connected_at).total_seconds(), 1
            ),
        )
        return True

    def listeners(self) -> list[Listener]:
        """Snapshot of the current members."""
        with self._members_lock:
            return list(self._listeners.values())

    def __len__(self) -> int:
        with self._members_lock:
            return len(self._listeners)

    def __contains__(self, listener: Listener) -> bool:
        with self._members_lock:
            return self._listeners.get(listener.id) is listener

    # ─── Fan-out ─────────────────────────────────────────

    def publish(self, event: Event) -> int:
        """Deliver `event` to every current listener.

        Returns the number of listeners the frame was handed to.
        """
        frame = format_frame(event)
        delivered = 0
        with self._publish_lock:
            for listener in self.listeners():
                try:
                    listener.sink.write(frame)
                except DeliveryError as e:
                    logger.info(
                        "eventcast.delivery_failed",
                        listener_id=listener.id,
                        event_id=event.id,
                        error=str(e),
                    )
                    self.deregister(listener)
                except Exception as e:
                    logger.warning(
                        "eventcast.delivery_failed",
                        listener_id=listener.id,
                        event_id=event.id,
                        error=repr(e),
                    )
                    self.deregister(listener)
                else:
                    delivered += 1

        logger.info("eventcast.event_published", event_id=event.id, delivered=delivered)
        return delivered

    def close(self) -> None:
        """Deregister everyone (shutdown). Open streams end after draining."""
        for listener in self.listeners():
            self.deregister(listener)
