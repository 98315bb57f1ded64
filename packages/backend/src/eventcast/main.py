"""FastAPI application factory.

Learn: App factory pattern. create_app() returns a configured FastAPI
instance that owns its EventStore and BroadcastRegistry (app.state).
Lifespan configures logging at startup and closes any listeners left at
shutdown. Under `eventcast serve`, StreamingServer has already closed
them before uvicorn starts waiting on open connections.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from eventcast import __version__
from eventcast.api import api_router
from eventcast.config import Settings, settings as default_settings
from eventcast.events.store import EventStore
from eventcast.logging_config import configure_logging
from eventcast.realtime.registry import BroadcastRegistry

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    settings: Settings = app.state.settings
    configure_logging(settings.log_level, json=settings.log_json)
    logger.info(
        "eventcast.starting",
        version=__version__,
        environment=settings.environment,
    )

    yield

    # Shutdown
    registry: BroadcastRegistry = app.state.registry
    logger.info("eventcast.shutdown", listeners=len(registry), events=len(app.state.store))
    registry.close()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or default_settings

    app = FastAPI(
        title="eventcast",
        description="Submit events over HTTP, receive them live over Server-Sent Events",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = EventStore()
    app.state.registry = BroadcastRegistry()

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → SecurityHeaders → CORS → handler

    from eventcast.middleware.request_id import RequestIdMiddleware
    from eventcast.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)

    # Static frontend last, so API routes win
    if settings.static_dir:
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")

    return app


# Default app instance (used by uvicorn: eventcast.main:app)
app = create_app()
