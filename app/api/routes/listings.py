"""Listing Routes — create, read and advance donation listings.

Invariants:
    - Bodies validated by Pydantic before reaching the handler (400 on failure)
    - Domain errors raised by ListingService map to HTTP via the global handler:
      ValidationError/InvalidTransitionError -> 400, ListingNotFoundError -> 404
    - An empty `status` query value lists everything; an unknown one is a 400
    - Mutating endpoints are POST (not idempotent)
"""

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_listing_service
from app.core.domain_types import ListingStatus
from app.core.errors import ValidationError
from app.schemas.listing import (
    ListingCollection, ListingCreate, ListingEnvelope,
    ListingResponse, TransitionRequest,
)
from app.services.listing_service import ListingService

router = APIRouter(prefix="/api/v1/listings", tags=["listings"])


def _envelope(record) -> ListingEnvelope:
    return ListingEnvelope(listing=ListingResponse.from_record(record))


def _parse_status(raw: str | None) -> ListingStatus | None:
    """Blank means no filter; anything else must name a status."""
    if raw is None or not raw.strip():
        return None
    try:
        return ListingStatus(raw.strip())
    except ValueError:
        allowed = ", ".join(s.value for s in ListingStatus)
        raise ValidationError(
            f"Unknown status '{raw}' (expected one of: {allowed})", "status",
        )


@router.post(
    "", response_model=ListingEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def create_listing(
    body: ListingCreate,
    service: ListingService = Depends(get_listing_service),
):
    """Donor posts a new listing (starts `available`)."""
    record = await service.post(
        body.donor_id, body.title, body.description, body.quantity,
    )
    return _envelope(record)


@router.get("", response_model=ListingCollection)
async def list_listings(
    status_filter: str | None = Query(None, alias="status"),
    service: ListingService = Depends(get_listing_service),
):
    """List listings newest first, optionally by exact status."""
    records = await service.list(_parse_status(status_filter))
    return ListingCollection(
        listings=[ListingResponse.from_record(r) for r in records],
    )


@router.get("/{listing_id}", response_model=ListingEnvelope)
async def get_listing(
    listing_id: str,
    service: ListingService = Depends(get_listing_service),
):
    return _envelope(await service.get(listing_id))


@router.post("/{listing_id}/accept", response_model=ListingEnvelope)
async def accept_listing(
    listing_id: str,
    body: TransitionRequest,
    service: ListingService = Depends(get_listing_service),
):
    """Recipient claims an available listing. Exactly one concurrent caller wins."""
    return _envelope(await service.accept(listing_id, body.user_id))


@router.post("/{listing_id}/mark-picked", response_model=ListingEnvelope)
async def mark_listing_picked(
    listing_id: str,
    body: TransitionRequest,
    service: ListingService = Depends(get_listing_service),
):
    return _envelope(await service.mark_picked(listing_id, body.user_id))


@router.post("/{listing_id}/mark-delivered", response_model=ListingEnvelope)
async def mark_listing_delivered(
    listing_id: str,
    body: TransitionRequest,
    service: ListingService = Depends(get_listing_service),
):
    return _envelope(await service.mark_delivered(listing_id, body.user_id))
