"""Realtime Channel — WebSocket transport for lifecycle events.

Invariants:
    - The outbound queue is attached BEFORE the handshake completes: a client that is
      connected never misses a broadcast published after connect
    - One sender task per socket drains the queue; nothing else writes to the socket
      (replies to identify also go through the queue, keeping one ordered stream)
    - Disconnect is the only path that forgets the identity binding; a failed send
      detaches the queue early so publishers stop filling it
    - Malformed, binary-but-not-UTF-8 or unknown inbound messages get an error event;
      the connection stays open

Design Decisions:
    - Connection handle is a random hex id, never the WebSocket object: the registry and
      bus can hold it without keeping the socket alive
    - Inbound identity is taken at face value; authenticating it belongs to the
      authentication service in front of this API
"""

import asyncio
import logging
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError

from app.core.domain_types import ConnectionId, UserId
from app.core.errors import ErrorCategory, FoodShareError, ValidationError
from app.schemas.realtime import InboundMessage, identify_user_id
from app.services.connection_registry import ConnectionRegistry
from app.services.event_bus import EventBus

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["realtime"])


class UnknownEventError(FoodShareError):
    def __init__(self, event: str):
        super().__init__(
            f"Unknown event '{event}'", "UNKNOWN_EVENT",
            ErrorCategory.VALIDATION, http_status=400,
        )


@router.websocket("/ws")
async def realtime_channel(websocket: WebSocket):
    """Persistent client connection: inbound identify, outbound lifecycle events."""
    registry: ConnectionRegistry = websocket.app.state.registry
    bus: EventBus = websocket.app.state.event_bus
    handle = ConnectionId(uuid.uuid4().hex)
    queue = bus.attach(handle)
    await websocket.accept()
    sender = asyncio.create_task(_pump(websocket, queue, handle, bus))
    logger.info("Realtime connection opened", extra={"connection_id": handle})
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            reply = _handle_inbound(_frame_text(message), handle, registry)
            await queue.put(reply)
    except WebSocketDisconnect:
        pass
    finally:
        registry.forget(handle)
        bus.detach(handle)
        sender.cancel()
        try:
            await sender
        except asyncio.CancelledError:
            pass
        logger.info("Realtime connection closed", extra={"connection_id": handle})


def _frame_text(message: dict) -> str | None:
    """Text of an inbound frame; binary frames must be UTF-8 JSON."""
    text = message.get("text")
    if text is not None:
        return text
    data = message.get("bytes")
    if data is None:
        return None
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return None


def _handle_inbound(
    raw: str | None, handle: ConnectionId, registry: ConnectionRegistry,
) -> dict:
    """Process one inbound frame. Returns the reply envelope."""
    if raw is None:
        return ValidationError("Unreadable frame", "event").to_ws_event()
    try:
        message = InboundMessage.model_validate_json(raw)
    except PydanticValidationError:
        return ValidationError("Malformed message", "event").to_ws_event()

    if message.event != "identify":
        return UnknownEventError(message.event).to_ws_event()

    user_id = identify_user_id(message.data)
    if user_id is None:
        return ValidationError("identify requires a userId", "userId").to_ws_event()
    registry.identify(handle, UserId(user_id))
    return {"event": "identified", "data": {"userId": user_id}}


async def _pump(
    websocket: WebSocket, queue: asyncio.Queue,
    handle: ConnectionId, bus: EventBus,
) -> None:
    """Drain the connection's queue onto the socket, in order."""
    try:
        while True:
            message = await queue.get()
            await websocket.send_json(message)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        # dead socket: stop queueing for it, remaining events are dropped
        bus.detach(handle)
        logger.debug(
            f"Realtime send failed: {e}", extra={"connection_id": handle},
        )
