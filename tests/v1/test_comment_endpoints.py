# tests/v1/test_comment_endpoints.py
"""Tests for comment endpoints."""

import pytest
from fastapi import status

from mx_space.core.settings import settings
from mx_space.models import CommentState
from mx_space.repositories.post_repo import PostRepository


@pytest.mark.asyncio
async def test_guest_comment_and_reply(client, post) -> None:
    created = await client.post(
        f"/api/v1/comments/{post.id}",
        json={"author": "Alice", "text": "First!", "mail": "alice@example.com"},
        headers={"User-Agent": "pytest-agent"},
    )
    assert created.status_code == status.HTTP_201_CREATED
    root = created.json()
    assert root["key"] == root["id"]
    assert root["ref_type"] == "Post"
    assert root["state"] == CommentState.UNREAD
    assert "ip" not in root and "agent" not in root

    replied = await client.post(f"/api/v1/comments/reply/{root['id']}", json={"author": "Bob", "text": "Second"})
    assert replied.status_code == status.HTTP_201_CREATED
    assert replied.json()["key"] == f"{root['id']}#0"
    assert replied.json()["ref_id"] == post.id

    detail = (await client.get(f"/api/v1/comments/{root['id']}")).json()
    assert detail["comments_index"] == 1
    assert [child["author"] for child in detail["children"]] == ["Bob"]
    assert detail["parent"] is None


@pytest.mark.asyncio
async def test_comment_on_note_uses_ref_query(client, note) -> None:
    response = await client.post(
        f"/api/v1/comments/{note.id}",
        params={"ref": "Note"},
        json={"author": "Alice", "text": "Lovely"},
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["ref_type"] == "Note"

    wrong_type = await client.post(f"/api/v1/comments/{note.id}", json={"author": "Alice", "text": "Lovely"})
    assert wrong_type.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
async def test_comment_errors(client, session_factory, post) -> None:
    missing = await client.post(f"/api/v1/comments/{'0' * 24}", json={"author": "A", "text": "hi"})
    assert missing.status_code == status.HTTP_404_NOT_FOUND

    impostor = await client.post(f"/api/v1/comments/{post.id}", json={"author": settings.master_name, "text": "hi"})
    assert impostor.status_code == status.HTTP_400_BAD_REQUEST

    empty = await client.post(f"/api/v1/comments/{post.id}", json={"author": "A", "text": ""})
    assert empty.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    await PostRepository(session_factory).update_by_id(post.id, {"allow_comment": False})
    closed = await client.post(f"/api/v1/comments/{post.id}", json={"author": "A", "text": "hi"})
    assert closed.status_code == status.HTTP_403_FORBIDDEN

    orphan_reply = await client.post(f"/api/v1/comments/reply/{'0' * 24}", json={"author": "A", "text": "hi"})
    assert orphan_reply.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
async def test_master_comment_and_reply(client, comment_service, post, master_headers) -> None:
    guest = await comment_service.create_comment(post.id, "Post", {"author": "Alice", "text": "Question?"})

    reply = await client.post(
        f"/api/v1/comments/master/reply/{guest.id}",
        json={"text": "Answer."},
        headers=master_headers,
    )
    assert reply.status_code == status.HTTP_201_CREATED
    assert reply.json()["author"] == settings.master_name
    assert reply.json()["state"] == CommentState.READ

    parent = (await client.get(f"/api/v1/comments/{guest.id}")).json()
    assert parent["state"] == CommentState.READ

    comment = await client.post(
        f"/api/v1/comments/master/comment/{post.id}",
        json={"text": "Pinned thought"},
        headers=master_headers,
    )
    assert comment.status_code == status.HTTP_201_CREATED
    assert comment.json()["parent_id"] is None

    anonymous = await client.post(f"/api/v1/comments/master/comment/{post.id}", json={"text": "x"})
    assert anonymous.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_public_thread_listing(client, comment_service, post) -> None:
    root = await comment_service.create_comment(post.id, "Post", {"author": "A", "text": "root", "ip": "192.0.2.9"})
    await comment_service.reply_to(root.id, {"author": "B", "text": "reply"})
    junk = await comment_service.create_comment(post.id, "Post", {"author": "C", "text": "junk"})
    await comment_service.moderate(junk.id, CommentState.JUNK)

    response = await client.get(f"/api/v1/comments/ref/{post.id}")

    body = response.json()
    assert body["pagination"]["total"] == 1
    (thread,) = body["data"]
    assert thread["id"] == root.id
    assert [child["author"] for child in thread["children"]] == ["B"]
    assert "ip" not in thread
    assert "ip" not in thread["children"][0]


@pytest.mark.asyncio
async def test_admin_listing_and_counts(client, comment_service, post, master_headers) -> None:
    unread = await comment_service.create_comment(post.id, "Post", {"author": "A", "text": "new", "ip": "192.0.2.9"})
    junk = await comment_service.create_comment(post.id, "Post", {"author": "B", "text": "bad"})
    await comment_service.moderate(junk.id, CommentState.JUNK)

    assert (await client.get("/api/v1/comments")).status_code == status.HTTP_401_UNAUTHORIZED

    listing = (await client.get("/api/v1/comments", headers=master_headers)).json()
    assert [item["id"] for item in listing["data"]] == [unread.id]
    assert listing["data"][0]["ip"] == "192.0.2.9"
    assert listing["data"][0]["ref"]["title"] == post.title

    junk_listing = (await client.get("/api/v1/comments", params={"state": 2}, headers=master_headers)).json()
    assert [item["id"] for item in junk_listing["data"]] == [junk.id]

    counts = await client.get("/api/v1/comments/info", headers=master_headers)
    assert counts.json() == {"passed": 0, "gomi": 1, "need_checked": 1}


@pytest.mark.asyncio
async def test_moderate_comment(client, comment_service, post, master_headers) -> None:
    comment = await comment_service.create_comment(post.id, "Post", {"author": "A", "text": "hi"})

    response = await client.patch(
        f"/api/v1/comments/{comment.id}",
        json={"state": CommentState.JUNK},
        headers=master_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["state"] == CommentState.JUNK

    invalid = await client.patch(f"/api/v1/comments/{comment.id}", json={"state": 7}, headers=master_headers)
    assert invalid.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_delete_comment_removes_thread(client, comment_service, post, master_headers) -> None:
    root = await comment_service.create_comment(post.id, "Post", {"author": "A", "text": "hi"})
    reply = await comment_service.reply_to(root.id, {"author": "B", "text": "yo"})

    response = await client.delete(f"/api/v1/comments/{root.id}", headers=master_headers)

    assert response.json() == {"deleted_count": 2}
    assert (await client.get(f"/api/v1/comments/{reply.id}")).status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
async def test_guests_cannot_force_commenter_ip_and_agent(client, post, master_headers) -> None:
    created = await client.post(
        f"/api/v1/comments/{post.id}",
        json={"author": "Alice", "text": "Hello"},
        headers={"X-Forwarded-For": "203.0.113.9", "User-Agent": "secret-agent"},
    )
    assert created.status_code == status.HTTP_201_CREATED

    guest = await client.get(f"/api/v1/comments/ref/{post.id}", params={"select": "+ip +agent"})
    assert guest.status_code == status.HTTP_200_OK
    (thread,) = guest.json()["data"]
    assert thread["author"] == "Alice"
    assert "ip" not in thread and "agent" not in thread

    master = await client.get(
        f"/api/v1/comments/ref/{post.id}",
        params={"select": "+ip +agent"},
        headers=master_headers,
    )
    (thread,) = master.json()["data"]
    assert thread["ip"] == "203.0.113.9"
    assert thread["agent"] == "secret-agent"
