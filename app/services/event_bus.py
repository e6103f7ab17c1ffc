"""Event Bus — best-effort fan-out of lifecycle events to live connections.

Invariants:
    - publish() never raises and never awaits: it cannot fail or stall the request
    - Each connection has one FIFO queue, so per-connection order == publish order
    - Delivery is at-most-once: a full queue or detached connection drops the event
    - No ordering guarantee across different connections

Design Decisions:
    - asyncio.Queue per connection, drained by the transport's sender task:
      a slow socket only backs up its own queue
    - Targeted delivery resolves user ids through ConnectionRegistry at publish time;
      an unidentified connection only receives broadcasts
    - Envelope {"event", "data"} mirrors the inbound WebSocket message shape
"""

import asyncio
import logging
from typing import Any, Iterable

from app.core.domain_types import ConnectionId, UserId
from app.services.connection_registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class EventBus:
    """Publishes named events to all (or targeted) live connections."""

    def __init__(self, registry: ConnectionRegistry, queue_size: int = 256):
        self._registry = registry
        self._queue_size = queue_size
        self._queues: dict[ConnectionId, asyncio.Queue] = {}

    def attach(self, handle: ConnectionId) -> asyncio.Queue:
        """Open the outbound queue for a newly connected client."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._queues[handle] = queue
        return queue

    def detach(self, handle: ConnectionId) -> None:
        self._queues.pop(handle, None)

    @property
    def connection_count(self) -> int:
        return len(self._queues)

    def publish(
        self,
        event: str,
        payload: Any,
        target_user_ids: Iterable[UserId] | None = None,
    ) -> None:
        """Fire-and-forget. Broadcast when target_user_ids is None."""
        try:
            handles = self._resolve(target_user_ids)
            message = {"event": event, "data": payload}
            delivered = sum(self._offer(h, message, event) for h in handles)
            logger.debug(
                f"Published {event}",
                extra={"event": event, "recipients": delivered},
            )
        except Exception as e:
            logger.error(
                f"Event publish failed: {e}",
                extra={"event": event}, exc_info=True,
            )

    def _resolve(
        self, target_user_ids: Iterable[UserId] | None,
    ) -> list[ConnectionId]:
        if target_user_ids is None:
            return list(self._queues)
        handles: set[ConnectionId] = set()
        for user_id in target_user_ids:
            handles |= self._registry.connections_for(user_id)
        return [h for h in handles if h in self._queues]

    def _offer(self, handle: ConnectionId, message: dict, event: str) -> bool:
        queue = self._queues.get(handle)
        if queue is None:
            return False
        try:
            queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(
                "Outbound queue full, event dropped",
                extra={"event": event, "connection_id": handle},
            )
            return False
        return True
