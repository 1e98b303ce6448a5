"""WebSocket endpoint for the order-code chat relay."""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from escrowswap.schemas.relay import JoinEvent, MessageEvent, RelayFrame
from escrowswap.services.relay import RoomRelay

logger = logging.getLogger(__name__)

router = APIRouter()

MALFORMED_FRAME = "Malformed frame; expected {\"event\": ..., \"data\": {...}}."


async def dispatch_frame(relay: RoomRelay, websocket: WebSocket, raw: str) -> None:
    """Handle one client frame. Bad frames get a system notice; the socket stays open."""
    try:
        incoming = RelayFrame.model_validate_json(raw)
    except ValidationError:
        await relay.system(websocket, MALFORMED_FRAME)
        return

    if incoming.event == "join":
        try:
            join = JoinEvent.model_validate(incoming.data)
        except ValidationError:
            await relay.system(websocket, "Invalid payload for 'join'.")
            return
        await relay.join(websocket, join.code, join.name)
    elif incoming.event == "msg":
        try:
            msg = MessageEvent.model_validate(incoming.data)
        except ValidationError:
            await relay.system(websocket, "Invalid payload for 'msg'.")
            return
        await relay.send_message(websocket, msg.code, msg.text)
    else:
        await relay.system(websocket, f"Unknown event '{incoming.event}'.")


@router.websocket("/ws")
async def relay_socket(websocket: WebSocket) -> None:
    """
    Chat relay keyed by order code.

    Client frames: `join {code, name}`, `msg {code, text}`.
    Server frames: `joined`, `system`, `msg`, `order-updated`.
    Binary frames are answered with a system notice.
    Membership is dropped on disconnect without telling the room.
    """
    relay: RoomRelay = websocket.app.state.relay
    await websocket.accept()
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                await relay.system(websocket, MALFORMED_FRAME)
                continue
            await dispatch_frame(relay, websocket, raw)
    except WebSocketDisconnect:
        pass
    finally:
        rooms = relay.rooms_of(websocket)
        relay.leave_all(websocket)
        if rooms:
            logger.info("Relay disconnect: left %s room(s)", len(rooms))
