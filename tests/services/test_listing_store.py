"""Listing store tests — persistence, ordering, atomic update and conflict handling.

Invariants:
    - update() serializes same-id mutations: exactly one check-then-set wins
    - A raising mutator leaves the stored record untouched
    - A version conflict re-runs the mutator on fresh state; endless conflicts raise
"""

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update as sa_update

from app.core.domain_types import ListingStatus
from app.core.errors import (
    ConcurrencyError, InvalidTransitionError, ListingNotFoundError,
    StoreUnavailableError,
)
from app.core.listing_lifecycle import apply_transition, new_listing
from app.models.listing import Listing
from app.services.listing_store import ListingStore

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


async def _seed(store, title="Bread", minutes=0):
    return await store.create(
        new_listing("u1", title, T0 + timedelta(minutes=minutes)),
    )


# ─── create / get / list ─────────────────────────────────────────

async def test_create_then_get_round_trips(store):
    created = await _seed(store)
    fetched = await store.get(created.id)
    assert fetched == created
    assert fetched.created_at.tzinfo is not None


async def test_get_twice_returns_identical_records(store):
    created = await _seed(store)
    assert await store.get(created.id) == await store.get(created.id)


async def test_get_unknown_id_raises_not_found(store):
    with pytest.raises(ListingNotFoundError):
        await store.get("missing")


async def test_list_is_newest_first(store):
    first = await _seed(store, "A")
    second = await _seed(store, "B")
    third = await _seed(store, "C")
    assert [r.id for r in await store.list()] == [third.id, second.id, first.id]


async def test_list_order_does_not_depend_on_timestamps(store):
    # same created_at for all: insertion order still decides
    ids = [(await _seed(store, f"T{i}")).id for i in range(3)]
    assert [r.id for r in await store.list()] == ids[::-1]


async def test_list_filters_by_exact_status(store):
    a = await _seed(store, "A")
    await _seed(store, "B")
    await store.update(
        a.id, lambda r: apply_transition(r, ListingStatus.ACCEPTED, "u2", T0),
    )
    accepted = await store.list(ListingStatus.ACCEPTED)
    assert [r.id for r in accepted] == [a.id]
    assert len(await store.list(ListingStatus.AVAILABLE)) == 1
    assert await store.list(ListingStatus.DELIVERED) == []


# ─── update ──────────────────────────────────────────────────────

async def test_update_persists_mutation(store):
    created = await _seed(store)
    updated = await store.update(
        created.id,
        lambda r: apply_transition(r, ListingStatus.ACCEPTED, "u2", T0 + timedelta(minutes=5)),
    )
    assert updated.status == ListingStatus.ACCEPTED
    assert await store.get(created.id) == updated


async def test_update_unknown_id_raises_not_found(store):
    with pytest.raises(ListingNotFoundError):
        await store.update("missing", lambda r: r)


async def test_raising_mutator_writes_nothing(store):
    created = await _seed(store)

    def refuse(record):
        raise InvalidTransitionError(record.id, record.status.value, "picked")

    with pytest.raises(InvalidTransitionError):
        await store.update(created.id, refuse)
    assert await store.get(created.id) == created


async def test_update_never_rewrites_identity_fields(store):
    created = await _seed(store)
    updated = await store.update(
        created.id, lambda r: replace(r, donor_id="intruder", title="Changed"),
    )
    assert updated.donor_id == "u1"
    assert (await store.get(created.id)).title == "Bread"


async def test_concurrent_check_then_set_has_one_winner(store):
    created = await _seed(store)

    def accept_as(user_id):
        return lambda r: apply_transition(r, ListingStatus.ACCEPTED, user_id, T0)

    results = await asyncio.gather(
        *(store.update(created.id, accept_as(f"u{i}")) for i in range(2, 7)),
        return_exceptions=True,
    )
    winners = [r for r in results if not isinstance(r, Exception)]
    losers = [r for r in results if isinstance(r, InvalidTransitionError)]
    assert len(winners) == 1
    assert len(losers) == 4
    assert (await store.get(created.id)).accepted_by == winners[0].accepted_by


async def test_updates_to_different_listings_both_apply(store):
    a, b = await _seed(store, "A"), await _seed(store, "B")
    await asyncio.gather(
        store.update(a.id, lambda r: apply_transition(r, ListingStatus.ACCEPTED, "u2", T0)),
        store.update(b.id, lambda r: apply_transition(r, ListingStatus.ACCEPTED, "u3", T0)),
    )
    assert (await store.get(a.id)).accepted_by == "u2"
    assert (await store.get(b.id)).accepted_by == "u3"


# ─── version conflicts (writer outside this process) ─────────────

def _race_on_read(store, db, times):
    """Make another writer commit between the store's read and its write."""
    original = store._get_row
    raced = {"count": 0}

    async def racing_get_row(session, listing_id):
        row = await original(session, listing_id)
        if raced["count"] < times:
            raced["count"] += 1
            async with db.session() as other:
                await other.execute(
                    sa_update(Listing)
                    .where(Listing.id == listing_id)
                    .values(
                        version=Listing.version + 1,
                        status="accepted",
                        accepted_by="other-process",
                        accepted_at=T0,
                    )
                )
                await other.commit()
        return row

    store._get_row = racing_get_row
    return raced


async def test_lost_race_reruns_mutator_on_fresh_state(store, db):
    created = await _seed(store)
    _race_on_read(store, db, times=1)
    with pytest.raises(InvalidTransitionError):
        await store.update(
            created.id, lambda r: apply_transition(r, ListingStatus.ACCEPTED, "u2", T0),
        )
    assert (await store.get(created.id)).accepted_by == "other-process"


async def test_endless_conflicts_raise_concurrency_error(db):
    store = ListingStore(db, update_attempts=2)
    created = await _seed(store)
    raced = _race_on_read(store, db, times=10)
    with pytest.raises(ConcurrencyError):
        await store.update(created.id, lambda r: r)
    assert raced["count"] == 2


# ─── store failures ──────────────────────────────────────────────

async def test_store_failure_surfaces_as_store_unavailable(tmp_path):
    from app.infrastructure.database import DatabaseSessionManager

    # schema never created: every query fails
    broken = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    try:
        with pytest.raises(StoreUnavailableError):
            await ListingStore(broken).get("anything")
    finally:
        await broken.dispose()
