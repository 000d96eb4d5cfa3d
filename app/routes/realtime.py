"""
Realtime notification WebSocket
Providers subscribe to their room and receive appointment events as they happen
"""

import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from ..auth import resolve_user
from ..database import get_db
from ..services.realtime import connection_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["Realtime"])


@router.websocket("/notifications")
async def notifications_websocket(
    websocket: WebSocket,
    token: str = Query(...),
    db: Session = Depends(get_db),
):
    """
    Subscribe to the caller's notification room.

    The room is the user id; events arrive as ``{"event": ..., "data": ...}``.
    Client messages are ignored apart from "ping", which is answered with "pong".
    """
    user = resolve_user(token, db)
    if not user:
        logger.warning("🚫 WebSocket rejected: invalid token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    room = str(user.id)
    await connection_manager.connect(websocket, room)
    await websocket.send_json({"event": "connected", "data": {"room": room}})

    try:
        while True:
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for user {user.id}")
    finally:
        connection_manager.disconnect(websocket)
