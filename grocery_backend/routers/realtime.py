"""
Canal en tiempo real para seguir pedidos.

Protocolo (JSON sobre WebSocket):
- cliente -> servidor: {"event": "joinRoom", "orderId": "<id>"}
- servidor -> cliente: {"event": "joinedRoom", "orderId": "<id>"}
- servidor -> cliente: {"event": <nombre>, "data": <payload>} en cada publish
Al desconectarse, la conexión sale de todas sus salas.
"""
import json
import logging
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from ..services.order_rooms import OrderRoomBroadcaster, get_broadcaster

logger = logging.getLogger(__name__)
router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def order_updates(websocket: WebSocket, broadcaster: OrderRoomBroadcaster = Depends(get_broadcaster)):
    await websocket.accept()
    logger.info("Usuario conectado ✅")
    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000))

            # Frames binarios se interpretan como JSON en UTF-8
            raw = frame.get("text")
            if raw is None:
                raw = (frame.get("bytes") or b"").decode("utf-8", errors="replace")
            try:
                message = json.loads(raw)
            except ValueError:
                await websocket.send_json({"event": "error", "message": "Invalid JSON"})
                continue

            if not isinstance(message, dict) or message.get("event") != "joinRoom":
                await websocket.send_json({"event": "error", "message": "Unknown event"})
                continue

            order_id = message.get("orderId")
            if order_id is None or str(order_id).strip() == "":
                await websocket.send_json({"event": "error", "message": "orderId is required"})
                continue

            order_id = str(order_id).strip()
            broadcaster.join(order_id, websocket)
            await websocket.send_json({"event": "joinedRoom", "orderId": order_id})
    except WebSocketDisconnect:
        logger.info("Usuario desconectado ❌")
    finally:
        broadcaster.leave(websocket)
