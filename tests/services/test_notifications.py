# tests/services/test_notifications.py
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.websockets import WebSocketState

from mx_space.core.settings import settings
from mx_space.models import Comment
from mx_space.services.notifications import (
    CHANNEL_ADMIN,
    CHANNEL_WEB,
    CommentNotifier,
    EventBroadcaster,
    EventType,
    ReplyMailType,
)


def _socket(*, fails: bool = False) -> MagicMock:
    websocket = MagicMock()
    websocket.accept = AsyncMock()
    websocket.send_json = AsyncMock(side_effect=RuntimeError("closed") if fails else None)
    websocket.application_state = WebSocketState.CONNECTED
    return websocket


def _comment(**overrides) -> Comment:
    values = {
        "id": "c" * 24,
        "ref_type": "Post",
        "ref_id": "p" * 24,
        "key": "c" * 24,
        "author": "Alice",
        "text": "Nice post",
        "created": datetime(2024, 5, 1, tzinfo=UTC),
    }
    values.update(overrides)
    return Comment(**values)


@pytest.mark.asyncio
async def test_broadcast_reaches_only_its_channel() -> None:
    broadcaster = EventBroadcaster()
    public, admin = _socket(), _socket()
    await broadcaster.connect(public, CHANNEL_WEB)
    await broadcaster.connect(admin, CHANNEL_ADMIN)

    delivered = await broadcaster.broadcast(EventType.POST_CREATE, {"id": "1", "at": datetime(2024, 5, 1, tzinfo=UTC)})

    assert delivered == 1
    public.accept.assert_awaited_once()
    public.send_json.assert_awaited_once_with(
        {"type": "POST_CREATE", "data": {"id": "1", "at": "2024-05-01T00:00:00+00:00"}}
    )
    admin.send_json.assert_not_awaited()


@pytest.mark.asyncio
async def test_failed_sockets_are_dropped() -> None:
    broadcaster = EventBroadcaster()
    healthy, broken, gone = _socket(), _socket(fails=True), _socket()
    for websocket in (healthy, broken, gone):
        await broadcaster.connect(websocket)
    gone.application_state = WebSocketState.DISCONNECTED

    delivered = await broadcaster.broadcast(EventType.NOTE_DELETE, {"id": "n1"})

    assert delivered == 1
    assert broadcaster.connection_count(CHANNEL_WEB) == 1
    gone.send_json.assert_not_awaited()
    assert await broadcaster.broadcast(EventType.NOTE_DELETE, {"id": "n2"}) == 1


@pytest.mark.asyncio
async def test_broadcast_without_listeners() -> None:
    assert await EventBroadcaster().broadcast(EventType.POST_UPDATE, {}) == 0


@pytest.mark.asyncio
async def test_owner_notification_mails_master_and_pushes_to_admin(monkeypatch) -> None:
    monkeypatch.setattr(settings, "master_mail", "owner@example.com")
    mailer = AsyncMock()
    broadcaster = AsyncMock(spec=EventBroadcaster)
    notifier = CommentNotifier(mailer, broadcaster)

    await notifier.notify_new_comment(_comment(), ReplyMailType.OWNER)

    to, subject, body = mailer.send.await_args.args
    assert to == "owner@example.com"
    assert "Alice" in subject
    assert body == "Nice post"
    event, payload, channel = broadcaster.broadcast.await_args.args
    assert event == EventType.COMMENT_CREATE
    assert payload["author"] == "Alice"
    assert channel == CHANNEL_ADMIN


@pytest.mark.asyncio
async def test_owner_notification_without_master_mail(monkeypatch) -> None:
    monkeypatch.setattr(settings, "master_mail", None)
    mailer = AsyncMock()
    broadcaster = AsyncMock(spec=EventBroadcaster)

    await CommentNotifier(mailer, broadcaster).notify_new_comment(_comment(), ReplyMailType.OWNER)

    mailer.send.assert_not_awaited()
    broadcaster.broadcast.assert_awaited_once()


@pytest.mark.asyncio
async def test_guest_notification_needs_parent_address() -> None:
    mailer = AsyncMock()
    notifier = CommentNotifier(mailer, AsyncMock(spec=EventBroadcaster))
    reply = _comment(author="Master", text="Thanks!")

    await notifier.notify_new_comment(reply, ReplyMailType.GUEST, _comment(mail=None))
    mailer.send.assert_not_awaited()

    await notifier.notify_new_comment(reply, ReplyMailType.GUEST, _comment(mail="alice@example.com"))
    mailer.send.assert_awaited_once()
    assert mailer.send.await_args.args[0] == "alice@example.com"
