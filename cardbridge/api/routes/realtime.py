"""
Push channel: browser clients connect here to receive card events.
No handshake, no replay. Inbound frames are read only to detect disconnects.
"""
import asyncio
import logging

from fastapi import APIRouter, Depends, WebSocket

from cardbridge.api.deps import get_ws_hub
from cardbridge.services.fanout.hub import ClientHub, WebSocketClient


logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def client_channel(websocket: WebSocket, hub: ClientHub = Depends(get_ws_hub)) -> None:
    client = WebSocketClient(websocket, queue_size=websocket.app.state.settings.client_queue_size)
    # Registered before accept so nothing broadcast after the handshake is missed.
    hub.register(client)
    sender: asyncio.Task | None = None
    try:
        await websocket.accept()
        sender = asyncio.create_task(client.pump())
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        hub.unregister(client)
        if sender is not None:
            sender.cancel()
            try:
                await sender
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.warning("client_send_failed", extra={"client_id": client.id, "error": str(e)})
