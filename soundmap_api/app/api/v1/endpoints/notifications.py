"""
WebSocket notification channel.

Clients connect to ``/notifications`` with the same bearer token used
for HTTP, either in the ``Authorization`` header or, for browsers, in
the ``token`` query parameter.  Pushed messages are JSON objects
``{"message": ..., "code": ...}``.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from soundmap_api.app.core.errors import Unauthorized
from soundmap_api.app.core.notifications import relay
from soundmap_api.app.core.security import extract_bearer_token, identity_from_token
from soundmap_api.app.services.user_service import UserService


logger = logging.getLogger(__name__)
router = APIRouter()


@router.websocket("/notifications")
async def notifications(ws: WebSocket, token: Optional[str] = Query(None)) -> None:
    try:
        raw = token or extract_bearer_token(ws.headers.get("authorization"))
        identity = identity_from_token(raw)
    except Unauthorized as exc:
        logger.info("Refused notification socket: %s", exc.detail)
        await ws.close(code=status.WS_1008_POLICY_VIOLATION, reason=exc.detail)
        return
    user_id = identity["user_id"]
    if await UserService.get_user_by_id(user_id) is None:
        await ws.close(code=status.WS_1008_POLICY_VIOLATION, reason="User not found")
        return

    # Registered before accepting so that anything sent after the
    # handshake completes is already routed to this socket.
    await relay.register(user_id, ws)
    await ws.accept()
    try:
        while True:
            message = await ws.receive_text()
            await ws.send_text(f"Received your message: {message}")
    except WebSocketDisconnect:
        pass
    finally:
        await relay.unregister(user_id, ws)
