"""Listing Lifecycle — pure state machine for donation listings.

Invariants:
    - Status only moves forward: available -> accepted -> picked -> delivered
    - A transition is legal only from the immediately preceding status
    - accepted_by is set exactly once, by the accept transition
    - Each stage timestamp is set exactly once and never precedes the previous stage's
    - apply_transition is PURE: returns a new record, never mutates its input

Design Decisions:
    - Frozen dataclass for ListingRecord: the store hands records to mutators,
      a mutator can only produce a replacement, never edit shared state in place
    - Transition table keyed by target status: one source of truth for the
      required prior status, the timestamp field and the event name
"""

import uuid
from dataclasses import dataclass, replace
from datetime import datetime

from app.core.domain_types import LifecycleEvent, ListingStatus
from app.core.errors import InvalidTransitionError


@dataclass(frozen=True)
class ListingRecord:
    """A donation listing as seen by the service layer."""
    id: str
    donor_id: str
    title: str
    created_at: datetime
    description: str = ""
    quantity: str = ""
    status: ListingStatus = ListingStatus.AVAILABLE
    accepted_by: str | None = None
    accepted_at: datetime | None = None
    picked_at: datetime | None = None
    delivered_at: datetime | None = None


@dataclass(frozen=True)
class Transition:
    source: ListingStatus
    target: ListingStatus
    timestamp_field: str
    event: LifecycleEvent


TRANSITIONS: dict[ListingStatus, Transition] = {
    ListingStatus.ACCEPTED: Transition(
        ListingStatus.AVAILABLE, ListingStatus.ACCEPTED,
        "accepted_at", LifecycleEvent.LISTING_ACCEPTED,
    ),
    ListingStatus.PICKED: Transition(
        ListingStatus.ACCEPTED, ListingStatus.PICKED,
        "picked_at", LifecycleEvent.LISTING_PICKED,
    ),
    ListingStatus.DELIVERED: Transition(
        ListingStatus.PICKED, ListingStatus.DELIVERED,
        "delivered_at", LifecycleEvent.LISTING_DELIVERED,
    ),
}

TERMINAL_STATUS = ListingStatus.DELIVERED


def latest_timestamp(record: ListingRecord) -> datetime:
    """Most recent stage timestamp reached so far."""
    stamps = [
        record.created_at, record.accepted_at,
        record.picked_at, record.delivered_at,
    ]
    return max(s for s in stamps if s is not None)


def apply_transition(
    record: ListingRecord,
    target: ListingStatus,
    user_id: str,
    now: datetime,
) -> ListingRecord:
    """Move record to target status. Raises InvalidTransitionError on wrong prior status."""
    transition = TRANSITIONS.get(target)
    if transition is None or record.status != transition.source:
        raise InvalidTransitionError(record.id, record.status.value, target.value)

    # clock skew must not break timestamp monotonicity
    stamp = max(now, latest_timestamp(record))
    changes: dict = {"status": target, transition.timestamp_field: stamp}
    if target == ListingStatus.ACCEPTED:
        changes["accepted_by"] = user_id
    return replace(record, **changes)


def event_for(target: ListingStatus) -> LifecycleEvent:
    """Event published after a successful transition to target."""
    return TRANSITIONS[target].event


def new_listing(
    donor_id: str,
    title: str,
    now: datetime,
    description: str = "",
    quantity: str = "",
) -> ListingRecord:
    """Fresh listing in the initial status with a never-reused id."""
    return ListingRecord(
        id=uuid.uuid4().hex,
        donor_id=donor_id,
        title=title,
        created_at=now,
        description=description,
        quantity=quantity,
    )
