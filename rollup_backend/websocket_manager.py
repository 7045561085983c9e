"""
WebSocket Manager - Handles real-time connections and broadcasts.

This module manages WebSocket connections and broadcasts animation frames
and tree updates to all connected clients.
"""
from fastapi import WebSocket
from typing import Set
import json
import asyncio
import logging

from rollup_core import Frame

logger = logging.getLogger(__name__)


class WebSocketManager:
    """
    Manages WebSocket connections and broadcasts.

    All connected clients receive `frame` messages while a transition
    plays and a `tree_updated` event after each change.
    """

    def __init__(self):
        self._connections: Set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket):
        """Accept and register a new WebSocket connection."""
        await websocket.accept()
        async with self._lock:
            self._connections.add(websocket)
        logger.info("WebSocket connected. Total connections: %d", len(self._connections))

    async def disconnect(self, websocket: WebSocket):
        """Remove a WebSocket connection."""
        async with self._lock:
            self._connections.discard(websocket)
        logger.info("WebSocket disconnected. Total connections: %d", len(self._connections))

    async def broadcast(self, message: dict):
        """
        Broadcast a message to all connected clients.

        Failed sends (disconnected clients) are dropped from the registry.
        """
        if not self._connections:
            return

        # Serialize once for all clients
        message_text = json.dumps(message)

        # Track failed connections for cleanup
        failed: Set[WebSocket] = set()

        async with self._lock:
            for websocket in self._connections:
                try:
                    await websocket.send_text(message_text)
                except Exception as e:
                    logger.debug("Send failed, dropping client: %s", e)
                    failed.add(websocket)

            # Remove failed connections
            self._connections -= failed

    async def send_frame(self, frame: Frame):
        """Send one animation frame to all clients."""
        await self.broadcast({
            "type": "frame",
            "frame": frame.to_dict()
        })

    async def notify_tree_updated(self, render_count: int):
        """
        Notify all clients that the tree has changed.

        Clients can fetch the full state via GET /api/tree.
        """
        await self.broadcast({
            "type": "tree_updated",
            "render": render_count
        })

    @property
    def connection_count(self) -> int:
        """Get the number of active connections."""
        return len(self._connections)
