"""
WebSocket connection hub.

Keeps the online-user table and room membership for every live socket.
Delivery is at-most-once: nothing is queued for disconnected users.

Rooms:
- ``user-<id>``: every connection of that user
- ``admin-room``: connections of administrators
- ``order-<id>``: explicit subscriptions (owner or admin only)
"""
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from fastapi import WebSocket

from core.application.interfaces import IRealtimeHub
from core.application.services.notification_service import ADMIN_ROOM, order_room, user_room
from core.domain.value_objects import UserIdentity


logger = logging.getLogger(__name__)


MAX_ROOMS_PER_CONNECTION = 10

AccessCheck = Callable[[str, UserIdentity], Awaitable[bool]]


class ConnectionManager(IRealtimeHub):
    """In-process WebSocket registry shared by every request handler."""

    def __init__(self, max_rooms: int = MAX_ROOMS_PER_CONNECTION):
        self._max_rooms = max_rooms
        self._identities: Dict[WebSocket, UserIdentity] = {}
        self._user_sockets: Dict[str, Set[WebSocket]] = defaultdict(set)
        self._rooms: Dict[str, Set[WebSocket]] = defaultdict(set)
        self._socket_rooms: Dict[WebSocket, Set[str]] = defaultdict(set)
        self._subscriptions: Dict[WebSocket, Set[str]] = defaultdict(set)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def connect(self, websocket: WebSocket, identity: UserIdentity) -> None:
        await websocket.accept()
        self._identities[websocket] = identity
        self._user_sockets[identity.user_id].add(websocket)
        self._join(websocket, user_room(identity.user_id))
        if identity.is_admin:
            self._join(websocket, ADMIN_ROOM)
        logger.info(f"User {identity.user_id} connected ({len(self._user_sockets[identity.user_id])} socket(s))")

    def disconnect(self, websocket: WebSocket) -> None:
        identity = self._identities.pop(websocket, None)
        for room in self._socket_rooms.pop(websocket, set()):
            members = self._rooms.get(room)
            if members is not None:
                members.discard(websocket)
                if not members:
                    del self._rooms[room]
        self._subscriptions.pop(websocket, None)

        if identity is not None:
            sockets = self._user_sockets.get(identity.user_id)
            if sockets is not None:
                sockets.discard(websocket)
                if not sockets:
                    del self._user_sockets[identity.user_id]
            logger.info(f"User {identity.user_id} disconnected")

    # ------------------------------------------------------------------
    # Client commands
    # ------------------------------------------------------------------

    async def handle_message(
        self,
        websocket: WebSocket,
        message: Dict[str, Any],
        can_access_order: AccessCheck,
    ) -> Optional[Dict[str, Any]]:
        """
        Handle one client command and return the reply.

        Commands: ``ping``, ``subscribe`` / ``unsubscribe`` with ``orderId``.
        """
        identity = self._identities.get(websocket)
        action = message.get("action")

        if action == "ping":
            return {"event": "pong"}

        if identity is None:
            return {"event": "error", "message": "not connected"}

        if action in ("subscribe", "unsubscribe"):
            order_id = str(message.get("orderId") or "")
            if not order_id:
                return {"event": "error", "message": "orderId is required"}
            room = order_room(order_id)

            if action == "unsubscribe":
                self._leave(websocket, room)
                self._subscriptions[websocket].discard(room)
                return {"event": "unsubscribed", "room": room}

            if room in self._subscriptions[websocket]:
                return {"event": "subscribed", "room": room}
            if len(self._subscriptions[websocket]) >= self._max_rooms:
                return {"event": "error", "message": f"room limit ({self._max_rooms}) reached"}
            if not await can_access_order(order_id, identity):
                logger.warning(f"User {identity.user_id} denied access to {room}")
                return {"event": "error", "message": "access denied"}

            self._join(websocket, room)
            self._subscriptions[websocket].add(room)
            return {"event": "subscribed", "room": room}

        return {"event": "error", "message": f"unknown action: {action}"}

    # ------------------------------------------------------------------
    # IRealtimeHub
    # ------------------------------------------------------------------

    def is_online(self, user_id: str) -> bool:
        return bool(self._user_sockets.get(user_id))

    async def emit_to_user(self, user_id: str, event: str, payload: Dict[str, Any]) -> bool:
        sockets = list(self._user_sockets.get(user_id, ()))
        if not sockets:
            logger.debug(f"User {user_id} offline, dropping {event}")
            return False
        delivered = await self._send_all(sockets, event, payload)
        return delivered > 0

    async def emit_to_room(self, room: str, event: str, payload: Dict[str, Any]) -> int:
        return await self._send_all(list(self._rooms.get(room, ())), event, payload)

    # ------------------------------------------------------------------

    def _join(self, websocket: WebSocket, room: str) -> None:
        self._rooms[room].add(websocket)
        self._socket_rooms[websocket].add(room)

    def _leave(self, websocket: WebSocket, room: str) -> None:
        members = self._rooms.get(room)
        if members is not None:
            members.discard(websocket)
            if not members:
                del self._rooms[room]
        self._socket_rooms[websocket].discard(room)

    async def _send_all(self, sockets, event: str, payload: Dict[str, Any]) -> int:
        delivered = 0
        for websocket in sockets:
            try:
                await websocket.send_json({"event": event, "data": payload})
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping dead socket while sending {event}: {e!r}")
                self.disconnect(websocket)
        return delivered
