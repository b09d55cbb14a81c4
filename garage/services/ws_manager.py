"""WebSocket connection manager with user and branch rooms."""

from __future__ import annotations

import json
import logging

from fastapi import WebSocket

logger = logging.getLogger(__name__)


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


def branch_room(branch_id: str) -> str:
    return f"branch:{branch_id}"


class ConnectionManager:
    def __init__(self):
        self._rooms: dict[str, list[WebSocket]] = {}

    async def connect(self, rooms: list[str], websocket: WebSocket):
        await websocket.accept()
        for room in rooms:
            self._rooms.setdefault(room, []).append(websocket)

    def disconnect(self, rooms: list[str], websocket: WebSocket):
        for room in rooms:
            conns = self._rooms.get(room, [])
            if websocket in conns:
                conns.remove(websocket)
            if not conns:
                self._rooms.pop(room, None)

    def connection_count(self, room: str) -> int:
        return len(self._rooms.get(room, []))

    async def broadcast(self, room: str, message: dict):
        """Send a JSON message to every client in a room."""
        conns = self._rooms.get(room, [])
        dead = []
        for ws in list(conns):
            try:
                await ws.send_text(json.dumps(message, default=str))
            except Exception:
                logger.info("Dropping dead websocket in room %s", room)
                dead.append(ws)
        for ws in dead:
            conns.remove(ws)


ws_manager = ConnectionManager()
