"""Dependency providers for route handlers.

Learn: The store and registry are created once per application in
create_app() and hung off app.state rather than kept in module globals.
Each app instance (and each test) gets its own independent state.
"""

from fastapi import Depends, Request

from eventcast.config import Settings
from eventcast.events.store import EventStore
from eventcast.realtime.registry import BroadcastRegistry
from eventcast.services.event_service import EventService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> EventStore:
    return request.app.state.store


def get_registry(request: Request) -> BroadcastRegistry:
    return request.app.state.registry


def get_event_service(
    store: EventStore = Depends(get_store),
    registry: BroadcastRegistry = Depends(get_registry),
) -> EventService:
    return EventService(store=store, registry=registry)
