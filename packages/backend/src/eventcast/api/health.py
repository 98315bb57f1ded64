"""Health check endpoint."""

from fastapi import APIRouter, Depends

from eventcast import __version__
from eventcast.dependencies import get_registry, get_store
from eventcast.events.store import EventStore
from eventcast.realtime.registry import BroadcastRegistry

router = APIRouter()


@router.get("/health")
async def health_check(
    store: EventStore = Depends(get_store),
    registry: BroadcastRegistry = Depends(get_registry),
):
    """Server status plus live listener and stored event counts."""
    return {
        "status": "ok",
        "server": "ok",
        "version": __version__,
        "listeners": len(registry),
        "events": len(store),
    }
