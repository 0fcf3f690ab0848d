"""Owner/guest notifications: mail plus live WebSocket broadcasts."""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from typing import Any, Protocol

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder
from starlette.websockets import WebSocketDisconnect, WebSocketState

from mx_space.core.settings import settings
from mx_space.models.comment import Comment

logger = logging.getLogger(__name__)

CHANNEL_WEB = "web"
CHANNEL_ADMIN = "admin"


class EventType(StrEnum):
    """Event names pushed over the gateways."""

    POST_CREATE = "POST_CREATE"
    POST_UPDATE = "POST_UPDATE"
    POST_DELETE = "POST_DELETE"
    NOTE_CREATE = "NOTE_CREATE"
    NOTE_UPDATE = "NOTE_UPDATE"
    NOTE_DELETE = "NOTE_DELETE"
    COMMENT_CREATE = "COMMENT_CREATE"
    GATEWAY_CONNECT = "GATEWAY_CONNECT"


class ReplyMailType(StrEnum):
    """Who a new-comment mail is addressed to."""

    OWNER = "owner"
    GUEST = "guest"


class EventBroadcaster:
    """Fan-out of JSON events to every socket connected to a channel."""

    def __init__(self) -> None:
        self._connections: dict[str, set[WebSocket]] = {CHANNEL_WEB: set(), CHANNEL_ADMIN: set()}
        self._lock = asyncio.Lock()

    def connection_count(self, channel: str = CHANNEL_WEB) -> int:
        return len(self._connections.get(channel, ()))

    async def connect(self, websocket: WebSocket, channel: str = CHANNEL_WEB) -> None:
        """Accept ``websocket`` and subscribe it to ``channel``."""
        await websocket.accept()
        async with self._lock:
            self._connections.setdefault(channel, set()).add(websocket)
        logger.info("WebSocket connected to %s gateway", channel)

    async def disconnect(self, websocket: WebSocket, channel: str = CHANNEL_WEB) -> None:
        async with self._lock:
            self._connections.get(channel, set()).discard(websocket)
        logger.info("WebSocket disconnected from %s gateway", channel)

    async def broadcast(self, event: str, data: Any, channel: str = CHANNEL_WEB) -> int:
        """Send ``{"type": event, "data": data}`` to every socket on ``channel``.

        Sockets that fail to receive are dropped. Returns the delivery count.
        """
        message = {"type": str(event), "data": jsonable_encoder(data)}
        async with self._lock:
            targets = list(self._connections.get(channel, ()))
        delivered = 0
        for websocket in targets:
            try:
                if websocket.application_state != WebSocketState.CONNECTED:
                    raise RuntimeError("socket is not connected")
                await websocket.send_json(message)
                delivered += 1
            except (WebSocketDisconnect, RuntimeError, OSError) as exc:
                logger.warning("Dropping %s socket after failed send: %s", channel, exc)
                await self.disconnect(websocket, channel)
        logger.debug("Broadcast %s to %d/%d %s sockets", event, delivered, len(targets), channel)
        return delivered


class MailSender(Protocol):
    """Outbound mail transport."""

    async def send(self, to: str, subject: str, body: str) -> None: ...


class LoggingMailSender:
    """Mail transport that only records the message in the log."""

    async def send(self, to: str, subject: str, body: str) -> None:
        logger.info("Mail to %s: %s\n%s", to, subject, body)


class CommentNotifier:
    """Tells the owner about new comments and guests about replies."""

    def __init__(self, mailer: MailSender, broadcaster: EventBroadcaster) -> None:
        self.mailer = mailer
        self.broadcaster = broadcaster

    async def notify_new_comment(
        self,
        comment: Comment,
        reply_type: ReplyMailType,
        parent: Comment | None = None,
    ) -> None:
        """Mail and broadcast a freshly accepted comment.

        ``OWNER`` mails the site owner and pushes ``COMMENT_CREATE`` to admin
        sockets; ``GUEST`` mails the author of ``parent`` when they left an
        address.
        """
        if reply_type is ReplyMailType.OWNER:
            if settings.master_mail:
                await self.mailer.send(
                    settings.master_mail,
                    f"[{settings.app_name}] New comment from {comment.author}",
                    comment.text,
                )
            payload = {
                "id": comment.id,
                "ref_id": comment.ref_id,
                "ref_type": comment.ref_type,
                "parent_id": comment.parent_id,
                "author": comment.author,
                "text": comment.text,
                "created": comment.created,
            }
            await self.broadcaster.broadcast(EventType.COMMENT_CREATE, payload, CHANNEL_ADMIN)
            return

        if parent is None or not parent.mail:
            logger.debug("Reply %s has no guest address to notify", comment.id)
            return
        await self.mailer.send(
            parent.mail,
            f"[{settings.app_name}] {comment.author} replied to your comment",
            comment.text,
        )


_broadcaster: EventBroadcaster | None = None
_notifier: CommentNotifier | None = None


def get_broadcaster() -> EventBroadcaster:
    """Return the process-wide broadcaster shared by routers and gateways."""
    global _broadcaster
    if _broadcaster is None:
        _broadcaster = EventBroadcaster()
    return _broadcaster


def get_notifier() -> CommentNotifier:
    global _notifier
    if _notifier is None:
        _notifier = CommentNotifier(LoggingMailSender(), get_broadcaster())
    return _notifier
