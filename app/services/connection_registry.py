"""Connection Registry — maps live connection handles to authenticated user ids.

Invariants:
    - One handle maps to at most one user; one user may hold many handles
    - identify() on a known handle rebinds it (old user loses the handle)
    - forget() is the only way an entry disappears; the transport calls it on disconnect
    - Holds handles only, never the connection objects themselves

Design Decisions:
    - Instance owned by the application (app.state), not module-level state:
      each app (and each test) gets its own registry
    - Reverse index user -> handles kept in sync for O(1) targeted lookup
"""

import logging

from app.core.domain_types import ConnectionId, UserId

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Live connection handle <-> user identity bindings."""

    def __init__(self) -> None:
        self._user_by_handle: dict[ConnectionId, UserId] = {}
        self._handles_by_user: dict[UserId, set[ConnectionId]] = {}

    def identify(self, handle: ConnectionId, user_id: UserId) -> None:
        previous = self._user_by_handle.get(handle)
        if previous == user_id:
            return
        if previous is not None:
            self._unlink(handle, previous)
        self._user_by_handle[handle] = user_id
        self._handles_by_user.setdefault(user_id, set()).add(handle)
        logger.info(
            "Connection identified",
            extra={"connection_id": handle, "user_id": user_id},
        )

    def forget(self, handle: ConnectionId) -> None:
        user_id = self._user_by_handle.pop(handle, None)
        if user_id is not None:
            self._unlink(handle, user_id)

    def connections_for(self, user_id: UserId) -> set[ConnectionId]:
        # copy: callers iterate while connections come and go
        return set(self._handles_by_user.get(user_id, ()))

    def user_for(self, handle: ConnectionId) -> UserId | None:
        return self._user_by_handle.get(handle)

    def _unlink(self, handle: ConnectionId, user_id: UserId) -> None:
        handles = self._handles_by_user.get(user_id)
        if handles is None:
            return
        handles.discard(handle)
        if not handles:
            del self._handles_by_user[user_id]

    def __contains__(self, handle: object) -> bool:
        return handle in self._user_by_handle

    def __len__(self) -> int:
        return len(self._user_by_handle)
