"""Event record — the immutable unit of fan-out.

Learn: An Event is created once by the store and then shared, read-only,
with every listener it is delivered to. frozen=True makes accidental
mutation an error instead of a silent cross-listener bug.

Attribute names are snake_case; the wire format keeps the camelCase
names browsers send (eventName, imgURL, ...).
"""

from dataclasses import dataclass
from typing import Any

# Required fields in canonical (wire) order
REQUIRED_FIELDS = ("eventName", "eventTimestamp", "prop1", "prop2", "prop3")


@dataclass(frozen=True, slots=True)
class Event:
    id: int
    event_name: str
    event_timestamp: str
    prop1: str
    prop2: str
    prop3: str
    img_url: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Wire representation, keys in the order clients expect."""
        return {
            "id": self.id,
            "eventName": self.event_name,
            "eventTimestamp": self.event_timestamp,
            "prop1": self.prop1,
            "prop2": self.prop2,
            "prop3": self.prop3,
            "imgURL": self.img_url,
        }
