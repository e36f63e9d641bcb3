"""
Push-channel fan-out to connected browser clients.
Broadcast is fire-and-forget: each connection owns a bounded queue drained by
its own sender, so a slow or dead client never blocks the broadcaster.
"""
import asyncio
import logging
from typing import Any, Protocol
from uuid import uuid4

from fastapi import WebSocket

from cardbridge.utils.metrics import (
    broadcasts_total,
    client_messages_dropped_total,
    connected_clients,
)


logger = logging.getLogger(__name__)


class ClientSink(Protocol):
    """Opaque handle the hub delivers messages to."""

    id: str

    def offer(self, message: dict[str, Any]) -> bool:
        """Queue a message without waiting. False if it was dropped."""
        ...


class WebSocketClient:
    """A WebSocket connection with its own outbound queue."""

    def __init__(self, websocket: WebSocket, queue_size: int = 100) -> None:
        self.id = uuid4().hex[:12]
        self.websocket = websocket
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=queue_size)

    def offer(self, message: dict[str, Any]) -> bool:
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            return False
        return True

    async def pump(self) -> None:
        """Send queued messages in order until cancelled or the socket fails."""
        while True:
            message = await self._queue.get()
            await self.websocket.send_json(message)


class ClientHub:
    """Registry of live client sinks."""

    def __init__(self) -> None:
        self._clients: dict[str, ClientSink] = {}

    def register(self, client: ClientSink) -> None:
        self._clients[client.id] = client
        connected_clients.set(len(self._clients))
        logger.info("client_connected", extra={"client_id": client.id, "clients": len(self._clients)})

    def unregister(self, client: ClientSink) -> None:
        if self._clients.pop(client.id, None) is None:
            return
        connected_clients.set(len(self._clients))
        logger.info("client_disconnected", extra={"client_id": client.id, "clients": len(self._clients)})

    @property
    def count(self) -> int:
        return len(self._clients)

    def broadcast(self, event: str, data: Any) -> int:
        """Queue `{"event", "data"}` for every client registered right now."""
        message = {"event": event, "data": data}
        delivered = 0
        dropped = 0
        for client in list(self._clients.values()):
            if client.offer(message):
                delivered += 1
            else:
                dropped += 1
                client_messages_dropped_total.labels(event=event).inc()
                logger.warning("client_queue_full", extra={"client_id": client.id, "event": event})
        broadcasts_total.labels(event=event).inc()
        logger.debug("broadcast", extra={"event": event, "clients": delivered, "dropped": dropped})
        return delivered
