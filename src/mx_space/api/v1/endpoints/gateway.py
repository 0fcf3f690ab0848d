# src/mx_space/api/v1/endpoints/gateway.py
"""WebSocket gateways pushing live events to the public site and the admin panel."""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from mx_space.api.v1.dependencies import BroadcasterDep
from mx_space.core.security import is_master_token
from mx_space.services.notifications import (
    CHANNEL_ADMIN,
    CHANNEL_WEB,
    EventBroadcaster,
    EventType,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/gateway", tags=["gateway"])


async def _serve(websocket: WebSocket, broadcaster: EventBroadcaster, channel: str) -> None:
    await broadcaster.connect(websocket, channel)
    try:
        await websocket.send_json(
            {
                "type": EventType.GATEWAY_CONNECT.value,
                "data": {"online": broadcaster.connection_count(channel)},
            }
        )
        # Client messages are ignored; the loop only waits for the disconnect.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect as exc:
        logger.debug("%s gateway client left with code %s", channel, exc.code)
    finally:
        await broadcaster.disconnect(websocket, channel)


@router.websocket("/web")
async def web_gateway(websocket: WebSocket, broadcaster: BroadcasterDep) -> None:
    """Public events: posts and notes created, updated or deleted."""
    await _serve(websocket, broadcaster, CHANNEL_WEB)


@router.websocket("/admin")
async def admin_gateway(websocket: WebSocket, broadcaster: BroadcasterDep) -> None:
    """Admin events such as new comments; requires ``?token=`` with a master JWT."""
    if not is_master_token(websocket.query_params.get("token")):
        logger.warning("Rejected admin gateway connection without a valid token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    await _serve(websocket, broadcaster, CHANNEL_ADMIN)
