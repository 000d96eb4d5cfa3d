"""
Realtime notification rooms
Tracks open WebSocket connections per room (a room is a user id)
"""

import json
import logging
from collections import defaultdict
from typing import Any

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages WebSocket connections grouped by room"""

    def __init__(self):
        # room -> set of websocket connections
        self.active_connections: dict[str, set[Any]] = defaultdict(set)
        # websocket -> room
        self.connection_rooms: dict[Any, str] = {}

    async def connect(self, websocket: Any, room: str, accept: bool = True):
        """Register a new WebSocket connection in a room"""
        if accept:
            await websocket.accept()
        self.active_connections[room].add(websocket)
        self.connection_rooms[websocket] = room
        logger.info(f"🔌 Room {room} connected. Total connections: {len(self.active_connections[room])}")

    def disconnect(self, websocket: Any):
        """Remove a WebSocket connection"""
        room = self.connection_rooms.pop(websocket, None)
        if room is None:
            return
        self.active_connections[room].discard(websocket)
        if not self.active_connections[room]:
            del self.active_connections[room]
        logger.info(
            f"🔌 Room {room} disconnected. Remaining connections: {len(self.active_connections.get(room, set()))}"
        )

    async def emit(self, room: str, event: str, payload: dict) -> int:
        """
        Send an event to every connection in a room.

        Returns:
            Number of connections the event was delivered to
        """
        connections = list(self.active_connections.get(room, set()))
        if not connections:
            logger.debug(f"No active connections for room {room}")
            return 0

        message_text = json.dumps({"event": event, "data": payload}, default=str)
        delivered = 0
        disconnected = []

        for websocket in connections:
            try:
                await websocket.send_text(message_text)
                delivered += 1
            except Exception as e:
                logger.error(f"Error sending {event} to room {room}: {e}")
                disconnected.append(websocket)

        # Clean up failed connections
        for ws in disconnected:
            self.disconnect(ws)

        return delivered


connection_manager = ConnectionManager()
