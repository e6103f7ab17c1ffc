"""Listing Service — lifecycle state machine over the listing store, with event fan-out.

Invariants:
    - Required inputs validated before anything reaches the store
    - The status precondition is checked INSIDE store.update's atomic unit, never before it:
      two concurrent accepts cannot both observe `available`
    - Events published only after the store write committed; publication is
      best-effort and never fails the operation
    - Store errors propagate unchanged (no swallowing, no retries here)

Design Decisions:
    - Pure transition logic lives in core/listing_lifecycle.py; this class is the shell
      that wires clock, store and bus around it
    - notify_scope=participants narrows accept/pick/deliver events to donor + acceptor;
      new_listing is always broadcast so recipients can discover offers
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from app.core.domain_types import LifecycleEvent, ListingStatus, NotifyScope
from app.core.errors import ValidationError
from app.core.listing_lifecycle import (
    ListingRecord, apply_transition, event_for, new_listing,
)
from app.schemas.listing import event_payload
from app.services.event_bus import EventBus
from app.services.listing_store import ListingStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required", field)
    return value.strip()


class ListingService:
    """Validates and applies listing lifecycle transitions."""

    def __init__(
        self,
        store: ListingStore,
        bus: EventBus,
        notify_scope: NotifyScope = NotifyScope.BROADCAST,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._store = store
        self._bus = bus
        self._notify_scope = NotifyScope(notify_scope)
        self._clock = clock

    async def post(
        self,
        donor_id: str,
        title: str,
        description: str | None = "",
        quantity: str | None = "",
    ) -> ListingRecord:
        donor_id = _require(donor_id, "donor_id")
        title = _require(title, "title")
        record = await self._store.create(new_listing(
            donor_id, title, self._clock(),
            description=description or "", quantity=quantity or "",
        ))
        self._publish(LifecycleEvent.NEW_LISTING, record, by=donor_id)
        return record

    async def accept(self, listing_id: str, user_id: str) -> ListingRecord:
        return await self._advance(listing_id, user_id, ListingStatus.ACCEPTED)

    async def mark_picked(self, listing_id: str, user_id: str) -> ListingRecord:
        return await self._advance(listing_id, user_id, ListingStatus.PICKED)

    async def mark_delivered(self, listing_id: str, user_id: str) -> ListingRecord:
        return await self._advance(listing_id, user_id, ListingStatus.DELIVERED)

    async def get(self, listing_id: str) -> ListingRecord:
        return await self._store.get(listing_id)

    async def list(self, status: ListingStatus | None = None) -> list[ListingRecord]:
        return await self._store.list(status)

    async def _advance(
        self, listing_id: str, user_id: str, target: ListingStatus,
    ) -> ListingRecord:
        user_id = _require(user_id, "user_id")
        record = await self._store.update(
            listing_id,
            lambda current: apply_transition(current, target, user_id, self._clock()),
        )
        logger.info(
            f"Listing moved to {target.value}",
            extra={"listing_id": listing_id, "user_id": user_id},
        )
        self._publish(event_for(target), record, by=user_id)
        return record

    def _publish(self, event: LifecycleEvent, record: ListingRecord, by: str) -> None:
        targets = None
        if (self._notify_scope == NotifyScope.PARTICIPANTS
                and event != LifecycleEvent.NEW_LISTING):
            targets = {u for u in (record.donor_id, record.accepted_by) if u}
        self._bus.publish(event.value, event_payload(event, record, by), targets)
