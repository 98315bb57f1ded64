"""Pydantic schemas for event submission and read-back.

Learn: Field names on the wire are camelCase (eventName, imgURL) because
that is what browser clients send; aliases map them onto snake_case
attributes. Create fields are all optional: "missing or empty" is decided
by the event store, which answers with a 400 naming every missing field
at once.
"""

from typing import Optional

from pydantic import BaseModel, Field


# ─── Create (client → server) ───────────────────────────


class EventCreate(BaseModel):
    """Incoming event submission."""
    event_name: Optional[str] = Field(None, alias="eventName")
    event_timestamp: Optional[str] = Field(
        None, alias="eventTimestamp", description="Caller-supplied, not parsed"
    )
    prop1: Optional[str] = None
    prop2: Optional[str] = None
    prop3: Optional[str] = None
    img_url: Optional[str] = Field(None, alias="imgURL")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    def to_fields(self) -> dict:
        """Wire-named dict as accepted by EventStore.append."""
        return self.model_dump(by_alias=True)


# ─── Read (server → client) ─────────────────────────────


class EventRead(BaseModel):
    """A stored event with its assigned id."""
    id: int
    event_name: str = Field(..., alias="eventName")
    event_timestamp: str = Field(..., alias="eventTimestamp")
    prop1: str
    prop2: str
    prop3: str
    img_url: str = Field("", alias="imgURL")

    model_config = {"from_attributes": True, "populate_by_name": True}
