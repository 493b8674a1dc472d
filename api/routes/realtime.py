"""
Real-time WebSocket endpoint.

Clients connect with ``/ws?token=<access token>`` and may send JSON
commands: ``{"action": "ping"}``, ``{"action": "subscribe", "orderId": ...}``
and ``{"action": "unsubscribe", "orderId": ...}``.
"""
import json
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from api.dependencies import get_websocket_container
from core.domain.exceptions import Unauthorized


logger = logging.getLogger(__name__)
router = APIRouter()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, token: str = Query(default="")):
    container = get_websocket_container(websocket)
    try:
        identity = container.identity_provider.resolve(token)
    except Unauthorized as e:
        logger.warning(f"WebSocket rejected: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    hub = container.hub
    await hub.connect(websocket, identity)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                await websocket.send_json({"event": "error", "message": "invalid JSON"})
                continue
            if not isinstance(message, dict):
                await websocket.send_json({"event": "error", "message": "expected an object"})
                continue

            reply = await hub.handle_message(websocket, message, container.order_service.can_access_order)
            if reply is not None:
                await websocket.send_json(reply)
    except WebSocketDisconnect:
        pass
    finally:
        hub.disconnect(websocket)
