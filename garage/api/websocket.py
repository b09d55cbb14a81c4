from __future__ import annotations

import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from garage.db.engine import async_session_factory
from garage.errors import AuthError
from garage.services.auth import resolve_token
from garage.services.ws_manager import branch_room, user_room, ws_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])


@router.websocket("/api/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: str = Query(default=""),
):
    async with async_session_factory() as db:
        try:
            ctx = await resolve_token(token, db)
        except AuthError:
            await websocket.close(code=4001, reason="Unauthorized")
            return

    rooms = [user_room(ctx.user_id)]
    if ctx.branch_id:
        rooms.append(branch_room(ctx.branch_id))
    await ws_manager.connect(rooms, websocket)
    logger.info("WebSocket connected for %s (%s)", ctx.email, ", ".join(rooms))
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        ws_manager.disconnect(rooms, websocket)
