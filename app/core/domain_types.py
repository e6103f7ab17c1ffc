"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - ListingId, UserId, ConnectionId are opaque strings — never parsed
    - ListingStatus order is the lifecycle order (forward-only)
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (REST + WebSocket payloads)
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

ListingId = NewType("ListingId", str)
UserId = NewType("UserId", str)
ConnectionId = NewType("ConnectionId", str)


# ─── Enums ───────────────────────────────────────────────────────

class ListingStatus(str, Enum):
    """Listing lifecycle states — maps to DB `status` column."""
    AVAILABLE = "available"
    ACCEPTED = "accepted"
    PICKED = "picked"
    DELIVERED = "delivered"


class LifecycleEvent(str, Enum):
    """Outbound real-time event names."""
    NEW_LISTING = "new_listing"
    LISTING_ACCEPTED = "listing_accepted"
    LISTING_PICKED = "listing_picked"
    LISTING_DELIVERED = "listing_delivered"


class NotifyScope(str, Enum):
    """Who receives accept/pick/deliver events."""
    BROADCAST = "broadcast"
    PARTICIPANTS = "participants"
