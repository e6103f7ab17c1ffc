"""Realtime Schemas — inbound WebSocket messages.

Invariants:
    - Every inbound frame is an envelope {"event": str, "data": any}
    - identify accepts data as a bare userId string or {"userId": str}
"""

from typing import Any

from pydantic import BaseModel, Field


class InboundMessage(BaseModel):
    event: str = Field(min_length=1, max_length=64)
    data: Any = None


def identify_user_id(data: Any) -> str | None:
    """userId carried by an identify message, or None if malformed."""
    if isinstance(data, dict):
        data = data.get("userId")
    if isinstance(data, str) and data.strip():
        return data.strip()
    return None
