"""API route aggregation.

All routers registered here get mounted in main.py. Routes sit at the
root (no /api prefix) so a frontend served from the same origin can
POST to /events and open an EventSource on /events directly.
"""

from fastapi import APIRouter

from eventcast.api.events import router as events_router
from eventcast.api.health import router as health_router
from eventcast.realtime.sse import router as sse_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(events_router, tags=["events"])
api_router.include_router(sse_router, tags=["stream"])
