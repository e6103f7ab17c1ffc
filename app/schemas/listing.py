"""Listing Schemas — Pydantic models for listing endpoints and event payloads.

Invariants:
    - ListingCreate.donorId / title: stripped, non-empty, bounded to column sizes
    - ListingCreate.description / quantity: optional, null or absent becomes ""
    - TransitionRequest.userId: stripped, non-empty
    - ListingResponse mirrors ListingRecord one-to-one (camelCase on the wire)

Design Decisions:
    - alias_generator=to_camel + populate_by_name: clients send/receive camelCase,
      Python code keeps snake_case attributes
    - Event payloads built here so REST and WebSocket share one serialization
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.core.domain_types import LifecycleEvent, ListingStatus
from app.core.listing_lifecycle import ListingRecord


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _strip(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("cannot be empty or whitespace")
    return v


class ListingCreate(_CamelModel):
    """Listing creation — donor posts a surplus-food offer."""
    donor_id: str = Field(min_length=1, max_length=64)
    title: str = Field(min_length=1, max_length=200)
    description: str = Field("", max_length=5_000)
    quantity: str = Field("", max_length=200)

    @field_validator("donor_id", "title")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return _strip(v)

    @field_validator("description", "quantity", mode="before")
    @classmethod
    def null_as_empty(cls, v):
        return "" if v is None else v


class TransitionRequest(_CamelModel):
    """Body of accept / mark-picked / mark-delivered."""
    user_id: str = Field(min_length=1, max_length=64)

    @field_validator("user_id")
    @classmethod
    def strip_user_id(cls, v: str) -> str:
        return _strip(v)


class ListingResponse(_CamelModel):
    """Listing response — public-facing listing data."""
    id: str
    donor_id: str
    title: str
    description: str
    quantity: str
    status: ListingStatus
    accepted_by: str | None = None
    created_at: datetime
    accepted_at: datetime | None = None
    picked_at: datetime | None = None
    delivered_at: datetime | None = None

    @classmethod
    def from_record(cls, record: ListingRecord) -> "ListingResponse":
        return cls(
            id=record.id,
            donor_id=record.donor_id,
            title=record.title,
            description=record.description,
            quantity=record.quantity,
            status=record.status,
            accepted_by=record.accepted_by,
            created_at=record.created_at,
            accepted_at=record.accepted_at,
            picked_at=record.picked_at,
            delivered_at=record.delivered_at,
        )


class ListingEnvelope(BaseModel):
    listing: ListingResponse


class ListingCollection(BaseModel):
    listings: list[ListingResponse]


# --- Event payloads -----------------------------------------------------------

def listing_payload(record: ListingRecord) -> dict:
    """Full listing, JSON-ready (new_listing event)."""
    return ListingResponse.from_record(record).model_dump(mode="json", by_alias=True)


def transition_payload(listing_id: str, by: str) -> dict:
    """{listingId, by} (accept / picked / delivered events)."""
    return {"listingId": listing_id, "by": by}


def event_payload(event: LifecycleEvent, record: ListingRecord, by: str) -> dict:
    if event == LifecycleEvent.NEW_LISTING:
        return listing_payload(record)
    return transition_payload(record.id, by)
