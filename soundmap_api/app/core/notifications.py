"""
Best‑effort push notifications over WebSocket.

``NotificationRelay`` is a small actor: one asyncio task owns the
registry mapping user ids to open sockets, and the public coroutines
(``register``, ``unregister``, ``send``) only put commands on its
queue.  Connect/disconnect and delivery therefore never touch the
registry concurrently.

Messages are JSON objects ``{"message": ..., "code": ...}``.  Pushing
to a user without an open socket is a no‑op; a socket that fails to
receive a message is dropped from the registry.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Set

from fastapi.websockets import WebSocket, WebSocketState


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Register:
    user_id: int
    ws: WebSocket


@dataclass(frozen=True)
class _Unregister:
    user_id: int
    ws: WebSocket


@dataclass(frozen=True)
class _Send:
    user_id: int
    payload: str


@dataclass(frozen=True)
class _Count:
    user_id: Optional[int]
    reply: "asyncio.Future[int]"


_STOP = object()


class NotificationRelay:
    """Single‑owner registry of notification sockets."""

    def __init__(self) -> None:
        self._queue: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._queue = asyncio.Queue()
        self._task = asyncio.create_task(self._run(self._queue), name="notification-relay")
        logger.info("Notification relay started")

    async def stop(self) -> None:
        if not self.running:
            return
        await self._queue.put(_STOP)
        await self._task
        self._task = None
        self._queue = None
        logger.info("Notification relay stopped")

    async def register(self, user_id: int, ws: WebSocket) -> None:
        await self._submit(_Register(user_id, ws))

    async def unregister(self, user_id: int, ws: WebSocket) -> None:
        await self._submit(_Unregister(user_id, ws))

    async def send(self, user_id: int, message: str, code: Any) -> None:
        """Queue ``{message, code}`` for every socket of ``user_id``."""
        payload = json.dumps({"message": message, "code": code})
        await self._submit(_Send(user_id, payload))

    async def connection_count(self, user_id: Optional[int] = None) -> int:
        """Number of open sockets, for one user or overall."""
        if not self.running:
            return 0
        reply: asyncio.Future = asyncio.get_running_loop().create_future()
        await self._queue.put(_Count(user_id, reply))
        return await reply

    async def _submit(self, command: object) -> None:
        if not self.running:
            logger.debug("Notification relay is not running; dropping %s", type(command).__name__)
            return
        await self._queue.put(command)

    async def _run(self, queue: asyncio.Queue) -> None:
        clients: Dict[int, Set[WebSocket]] = {}
        while True:
            command = await queue.get()
            if command is _STOP:
                break
            if isinstance(command, _Register):
                clients.setdefault(command.user_id, set()).add(command.ws)
                logger.info("User %s connected to notifications", command.user_id)
            elif isinstance(command, _Unregister):
                sockets = clients.get(command.user_id)
                if sockets is not None:
                    sockets.discard(command.ws)
                    if not sockets:
                        del clients[command.user_id]
                logger.info("User %s disconnected from notifications", command.user_id)
            elif isinstance(command, _Send):
                await self._deliver(clients, command)
            elif isinstance(command, _Count):
                if command.user_id is None:
                    total = sum(len(s) for s in clients.values())
                else:
                    total = len(clients.get(command.user_id, ()))
                if not command.reply.done():
                    command.reply.set_result(total)

    async def _deliver(self, clients: Dict[int, Set[WebSocket]], command: _Send) -> None:
        sockets = clients.get(command.user_id)
        if not sockets:
            return
        dead = []
        for ws in list(sockets):
            if ws.application_state is WebSocketState.CONNECTING:
                # Registered but the handshake is not finished yet.
                continue
            try:
                await ws.send_text(command.payload)
            except Exception as exc:  # delivery is best effort
                logger.warning("Dropping notification socket of user %s: %s", command.user_id, exc)
                dead.append(ws)
        for ws in dead:
            sockets.discard(ws)
        if not sockets:
            clients.pop(command.user_id, None)


relay = NotificationRelay()
