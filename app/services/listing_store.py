"""Listing Store — sole writer of listing records, atomic read-modify-write per listing.

Invariants:
    - update() never interleaves two mutations of the same listing id
    - A mutator that raises aborts the update: nothing is written
    - Only lifecycle fields are written by update(); id, donor, title, created_at are immutable
    - Every successful create/update is committed before the call returns
    - Store failures surface as StoreUnavailableError and are never retried here

Design Decisions:
    - Per-id KeyedLock serializes same-id updates within this process; different ids
      run fully concurrently
    - version column guards against writers in other processes: a lost race re-reads
      and re-runs the mutator (the loser then sees the new status and fails its own
      precondition), bounded by update_attempts
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy import select, update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import ListingStatus
from app.core.errors import ConcurrencyError, ListingNotFoundError
from app.core.listing_lifecycle import ListingRecord
from app.infrastructure.database import DatabaseSessionManager
from app.infrastructure.keyed_lock import KeyedLock
from app.models.listing import Listing

logger = logging.getLogger(__name__)

Mutator = Callable[[ListingRecord], ListingRecord]

_LIFECYCLE_FIELDS = (
    "accepted_by", "accepted_at", "picked_at", "delivered_at",
)


def _as_utc(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo on the way back; stored values are always UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_record(row: Listing) -> ListingRecord:
    return ListingRecord(
        id=row.id,
        donor_id=row.donor_id,
        title=row.title,
        description=row.description,
        quantity=row.quantity,
        status=ListingStatus(row.status),
        accepted_by=row.accepted_by,
        created_at=_as_utc(row.created_at),
        accepted_at=_as_utc(row.accepted_at),
        picked_at=_as_utc(row.picked_at),
        delivered_at=_as_utc(row.delivered_at),
    )


class ListingStore:
    """Listing persistence over the document store."""

    def __init__(self, db: DatabaseSessionManager, update_attempts: int = 3):
        self._db = db
        self._locks = KeyedLock()
        self._update_attempts = update_attempts

    async def create(self, record: ListingRecord) -> ListingRecord:
        async with self._db.session() as db:
            row = Listing(
                id=record.id,
                donor_id=record.donor_id,
                title=record.title,
                description=record.description,
                quantity=record.quantity,
                status=record.status.value,
                accepted_by=record.accepted_by,
                version=1,
                created_at=record.created_at,
                accepted_at=record.accepted_at,
                picked_at=record.picked_at,
                delivered_at=record.delivered_at,
            )
            db.add(row)
            await db.commit()
        logger.info(
            "Listing created", extra={"listing_id": record.id},
        )
        return _to_record(row)

    async def list(self, status: ListingStatus | None = None) -> list[ListingRecord]:
        """All listings, newest first, optionally filtered by exact status."""
        query = select(Listing).order_by(Listing.seq.desc())
        if status is not None:
            query = query.where(Listing.status == ListingStatus(status).value)
        async with self._db.session() as db:
            result = await db.execute(query)
            return [_to_record(row) for row in result.scalars().all()]

    async def get(self, listing_id: str) -> ListingRecord:
        async with self._db.session() as db:
            return _to_record(await self._get_row(db, listing_id))

    async def update(self, listing_id: str, mutator: Mutator) -> ListingRecord:
        """Apply mutator as one atomic read-modify-write on a single listing."""
        async with self._locks.hold(listing_id):
            for attempt in range(1, self._update_attempts + 1):
                async with self._db.session() as db:
                    row = await self._get_row(db, listing_id)
                    current = _to_record(row)
                    updated = mutator(current)
                    result = await db.execute(
                        sa_update(Listing)
                        .where(
                            Listing.id == listing_id,
                            Listing.version == row.version,
                        )
                        .values(
                            status=ListingStatus(updated.status).value,
                            version=row.version + 1,
                            **{f: getattr(updated, f) for f in _LIFECYCLE_FIELDS},
                        )
                        .execution_options(synchronize_session=False)
                    )
                    if result.rowcount == 1:
                        await db.commit()
                        return replace(
                            current,
                            status=ListingStatus(updated.status),
                            **{f: getattr(updated, f) for f in _LIFECYCLE_FIELDS},
                        )
                    await db.rollback()
                logger.warning(
                    f"Listing changed underneath update (attempt {attempt})",
                    extra={"listing_id": listing_id},
                )
        raise ConcurrencyError(
            f"Listing '{listing_id}' kept changing during update",
        )

    async def _get_row(self, db: AsyncSession, listing_id: str) -> Listing:
        result = await db.execute(
            select(Listing).where(Listing.id == listing_id),
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise ListingNotFoundError(listing_id)
        return row
