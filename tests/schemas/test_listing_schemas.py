"""Listing schema tests — camelCase wire format and boundary validation."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from app.core.domain_types import LifecycleEvent
from app.core.listing_lifecycle import new_listing
from app.schemas.listing import (
    ListingCreate, ListingResponse, TransitionRequest, event_payload,
)
from app.schemas.realtime import InboundMessage, identify_user_id

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def test_listing_create_accepts_camel_case():
    body = ListingCreate.model_validate({"donorId": "u1", "title": " Bread "})
    assert body.donor_id == "u1"
    assert body.title == "Bread"
    assert body.description == ""
    assert body.quantity == ""


def test_listing_create_treats_null_optionals_as_empty():
    body = ListingCreate.model_validate({
        "donorId": "u1", "title": "Bread", "description": None, "quantity": None,
    })
    assert body.description == ""
    assert body.quantity == ""


@pytest.mark.parametrize("payload", [
    {"title": "Bread"},
    {"donorId": "u1"},
    {"donorId": "   ", "title": "Bread"},
    {"donorId": "u1", "title": ""},
])
def test_listing_create_rejects_missing_required(payload):
    with pytest.raises(ValidationError):
        ListingCreate.model_validate(payload)


def test_transition_request_requires_user_id():
    with pytest.raises(ValidationError):
        TransitionRequest.model_validate({})
    assert TransitionRequest.model_validate({"userId": "u2"}).user_id == "u2"


def test_listing_response_serializes_camel_case():
    record = new_listing("u1", "Bread", T0, quantity="3 loaves")
    data = ListingResponse.from_record(record).model_dump(mode="json", by_alias=True)
    assert data["donorId"] == "u1"
    assert data["status"] == "available"
    assert data["acceptedBy"] is None
    assert data["quantity"] == "3 loaves"
    assert data["createdAt"].startswith("2026-03-01T09:00:00")


def test_new_listing_event_carries_full_record():
    record = new_listing("u1", "Bread", T0)
    payload = event_payload(LifecycleEvent.NEW_LISTING, record, by="u1")
    assert payload["id"] == record.id
    assert payload["title"] == "Bread"


def test_transition_event_carries_listing_id_and_actor():
    record = new_listing("u1", "Bread", T0)
    payload = event_payload(LifecycleEvent.LISTING_ACCEPTED, record, by="u2")
    assert payload == {"listingId": record.id, "by": "u2"}


# --- realtime -----------------------------------------------------------------

def test_inbound_message_requires_event():
    with pytest.raises(ValidationError):
        InboundMessage.model_validate_json('{"data": "u1"}')


@pytest.mark.parametrize("data,expected", [
    ("u1", "u1"),
    ({"userId": "u1"}, "u1"),
    (" u1 ", "u1"),
    ("", None),
    (None, None),
    ({"id": "u1"}, None),
    (42, None),
])
def test_identify_user_id(data, expected):
    assert identify_user_id(data) == expected
