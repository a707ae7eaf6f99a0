# chatrooms/api/live.py
import asyncio
import json
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from chatrooms.infrastructure.activity import request_metadata

router = APIRouter()


@router.websocket("/ws")
async def live_delivery(websocket: WebSocket, token: Optional[str] = None):
    """Live channel for new messages in the caller's chatrooms.

    Client -> server frames:
        {"action": "ping"}  ->  {"type": "pong"}

    Server -> client frames:
        {"type": "message_created", "chatroom_id": 1, "message": {...}}
        {"type": "error", "message": "..."}
    """
    state = websocket.app.state
    identity = state.security_service.decode_access_token(token) if token else None
    if identity is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    hub = state.delivery_hub
    handle = hub.register(identity.user_id, websocket)
    metadata = request_metadata(websocket)
    state.activity_recorder.record(
        identity.user_id, "Opened live connection", metadata=metadata
    )
    try:
        while True:
            try:
                message = await asyncio.wait_for(
                    websocket.receive(),
                    timeout=state.config.WS_IDLE_TIMEOUT_SECONDS,
                )
            except TimeoutError:
                state.logger.info(f"Live connection of user {identity.user_id} idle, closing")
                break

            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            if raw is None:
                hub.send_to(
                    handle, {"type": "error", "message": "Binary frames are not supported"}
                )
                continue

            try:
                frame = json.loads(raw)
            except ValueError:
                hub.send_to(handle, {"type": "error", "message": "Invalid JSON"})
                continue

            if isinstance(frame, dict) and frame.get("action") == "ping":
                hub.send_to(handle, {"type": "pong"})
            else:
                hub.send_to(handle, {"type": "error", "message": "Unknown action"})
    except (WebSocketDisconnect, RuntimeError) as e:
        # peer closed, or the hub already closed this socket after a failed push
        state.logger.debug(f"Live connection of user {identity.user_id} ended: {e!r}")
    finally:
        await hub.unregister(handle)
        state.activity_recorder.record(
            identity.user_id, "Closed live connection", metadata=metadata
        )
