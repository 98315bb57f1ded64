"""Event submission API.

Learn: Routes:
- POST /events → validate, store, broadcast; 201 with the stored event
- GET /events/history → stored events in submission order

The live stream (GET /events) lives in eventcast.realtime.sse.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from eventcast.dependencies import get_event_service, get_store
from eventcast.events.store import EventStore, EventValidationError
from eventcast.schemas.event import EventCreate, EventRead
from eventcast.services.event_service import EventService

router = APIRouter()


@router.post("/events", response_model=EventRead, status_code=201)
async def submit_event(
    body: EventCreate,
    svc: EventService = Depends(get_event_service),
):
    """Accept a new event and push it to every connected stream."""
    try:
        return svc.submit(body.to_fields())
    except EventValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/events/history", response_model=list[EventRead])
async def event_history(
    after_id: int = Query(0, ge=0, description="Only events with a larger id"),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    store: EventStore = Depends(get_store),
):
    """List stored events, oldest first."""
    return store.read_all(after_id=after_id, limit=limit)
