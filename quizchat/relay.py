"""Real-time message relay.

Rooms are named after user ids. A connection (Socket.IO sid) is bound to the
principal it authenticated as, joins rooms, and is dropped from all of them
when the transport closes. Delivery is fire-and-forget: whoever is in the room
at send time gets the payload, nothing is queued or persisted.

Flask-SocketIO runs handlers on OS threads in threading mode, so the registry
guards its maps with a lock.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Set

log = logging.getLogger(__name__)

RECEIVE_EVENT = "receiveMessage"


class ConnectionRegistry:
    def __init__(self):
        self._lock = threading.Lock()
        self._rooms: Dict[str, Set[str]] = {}
        self._memberships: Dict[str, Set[str]] = {}
        self._principals: Dict[str, str] = {}

    def bind(self, sid: str, user_id: str) -> None:
        with self._lock:
            self._principals[sid] = user_id
            self._memberships.setdefault(sid, set())

    def principal(self, sid: str) -> Optional[str]:
        with self._lock:
            return self._principals.get(sid)

    def join(self, sid: str, room: str) -> bool:
        """Add ``sid`` to ``room``. Returns False if it was already a member."""
        with self._lock:
            members = self._rooms.setdefault(room, set())
            if sid in members:
                return False
            members.add(sid)
            self._memberships.setdefault(sid, set()).add(room)
            return True

    def members(self, room: str) -> List[str]:
        with self._lock:
            return list(self._rooms.get(room, ()))

    def rooms_of(self, sid: str) -> List[str]:
        with self._lock:
            return list(self._memberships.get(sid, ()))

    def drop(self, sid: str) -> List[str]:
        """Forget ``sid`` entirely; returns the rooms it was removed from."""
        with self._lock:
            self._principals.pop(sid, None)
            rooms = self._memberships.pop(sid, set())
            for room in rooms:
                members = self._rooms.get(room)
                if members is None:
                    continue
                members.discard(sid)
                if not members:
                    del self._rooms[room]
            return list(rooms)

    def clear(self) -> None:
        with self._lock:
            self._rooms.clear()
            self._memberships.clear()
            self._principals.clear()

    @property
    def connection_count(self) -> int:
        with self._lock:
            return len(self._principals)


class MessageRelay:
    """Delivers payloads to every connection in a user's room.

    ``emit(event, payload, sid)`` performs one transport write; it is injected so
    the relay does not depend on a live Socket.IO server.
    """

    def __init__(self, registry: ConnectionRegistry, emit: Callable[[str, Any, str], None]):
        self.registry = registry
        self._emit = emit

    def connect(self, sid: str, user_id: str) -> None:
        self.registry.bind(sid, user_id)

    def join(self, sid: str, user_id: str) -> bool:
        return self.registry.join(sid, user_id)

    def deliver(self, receiver_id: str, payload: Any) -> int:
        """Send ``payload`` to room ``receiver_id``; returns successful writes."""
        delivered = 0
        for sid in self.registry.members(receiver_id):
            try:
                self._emit(RECEIVE_EVENT, payload, sid)
            except Exception:
                log.exception("Error sending message to %s (sid=%s)", receiver_id, sid)
                continue
            delivered += 1
        if not delivered:
            log.debug("No live connection for %s; message dropped", receiver_id)
        return delivered

    def disconnect(self, sid: str) -> List[str]:
        return self.registry.drop(sid)
