"""Event store — append-only, in-memory event log.

Learn: The store is the only place ids are assigned. A single lock covers
"take the next id" and "append", so concurrent submissions never share an
id and list order always equals id order. Ids come from a counter, not
the clock: two events created in the same millisecond must not collide.

Nothing is persisted; the log lives as long as the process. Growth is
unbounded.
"""

import itertools
import threading
from collections.abc import Mapping
from typing import Any, Optional

from eventcast.events.models import REQUIRED_FIELDS, Event

MISSING_FIELDS_HINT = (
    "Please provide eventName, eventTimestamp, prop1, prop2, and prop3."
)


class EventValidationError(ValueError):
    """Raised when a submission is missing required fields."""

    def __init__(self, missing: list[str], invalid: Optional[list[str]] = None):
        self.missing = missing
        self.invalid = invalid or []
        parts = []
        if self.missing:
            parts.append(f"Missing required fields: {', '.join(self.missing)}.")
        if self.invalid:
            parts.append(f"Fields must be text: {', '.join(self.invalid)}.")
        parts.append(MISSING_FIELDS_HINT)
        super().__init__(" ".join(parts))


def validate_fields(fields: Mapping[str, Any]) -> None:
    """Check required fields are present, non-empty text.

    Whitespace-only values are accepted; only absent, None, or "" count
    as missing.
    """
    missing = []
    invalid = []
    for name in REQUIRED_FIELDS:
        value = fields.get(name)
        if value is None or value == "":
            missing.append(name)
        elif not isinstance(value, str):
            invalid.append(name)

    img_url = fields.get("imgURL")
    if img_url is not None and not isinstance(img_url, str):
        invalid.append("imgURL")

    if missing or invalid:
        raise EventValidationError(missing, invalid)


class EventStore:
    """Append-only event store held in process memory."""

    def __init__(self):
        self._events: list[Event] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def append(self, fields: Mapping[str, Any]) -> Event:
        """Validate, assign an id, and append. Returns the created event."""
        validate_fields(fields)
        with self._lock:
            event = Event(
                id=next(self._ids),
                event_name=fields["eventName"],
                event_timestamp=fields["eventTimestamp"],
                prop1=fields["prop1"],
                prop2=fields["prop2"],
                prop3=fields["prop3"],
                img_url=fields.get("imgURL") or "",
            )
            self._events.append(event)
        return event

    def read_all(self, after_id: int = 0, limit: Optional[int] = None) -> list[Event]:
        """Read events in order, optionally after a given id."""
        with self._lock:
            events = [e for e in self._events if e.id > after_id]
        if limit is not None:
            events = events[:limit]
        return events

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
