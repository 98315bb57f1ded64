"""Event service — validate, store, then fan out.

Learn: This is the only path that feeds the registry. Validation happens
inside EventStore.append before an id is taken, so a rejected submission
leaves both the store and every listener untouched.
"""

from collections.abc import Mapping
from typing import Any

import structlog

from eventcast.events.models import Event
from eventcast.events.store import EventStore, EventValidationError
from eventcast.realtime.registry import BroadcastRegistry

logger = structlog.get_logger()


class EventService:
    """Accepts new events and broadcasts them."""

    def __init__(self, store: EventStore, registry: BroadcastRegistry):
        self.store = store
        self.registry = registry

    def submit(self, fields: Mapping[str, Any]) -> Event:
        """Store a new event and publish it to all listeners.

        Raises EventValidationError if required fields are missing.
        """
        try:
            event = self.store.append(fields)
        except EventValidationError as e:
            logger.info("eventcast.event_rejected", missing=e.missing, invalid=e.invalid)
            raise

        logger.info("eventcast.event_stored", event_id=event.id, event_name=event.event_name)
        self.registry.publish(event)
        return event
