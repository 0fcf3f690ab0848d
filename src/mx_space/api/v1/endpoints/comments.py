# src/mx_space/api/v1/endpoints/comments.py
"""Comment endpoints for the mx-space API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, Request, status

from mx_space.api.v1.dependencies import (
    CommentServiceDep,
    IpDep,
    IsMasterDep,
    PageWindowDep,
    RequireMaster,
    SelectDep,
)
from mx_space.core.settings import settings
from mx_space.models.comment import Comment, CommentRefType, CommentState
from mx_space.schemas.comment import (
    CommentCounts,
    CommentCreate,
    CommentResponse,
    CommentStateUpdate,
    TextOnly,
)
from mx_space.schemas.common import DeleteResponse

router = APIRouter(prefix="/comments", tags=["comments"])


def _guest_payload(body: CommentCreate, request: Request, ip: str | None) -> dict[str, Any]:
    return {**body.model_dump(), "ip": ip, "agent": request.headers.get("user-agent")}


def _master_payload(body: TextOnly, request: Request, ip: str | None) -> dict[str, Any]:
    return {
        "author": settings.master_name,
        "mail": settings.master_mail,
        "url": settings.master_url,
        "text": body.text,
        "ip": ip,
        "agent": request.headers.get("user-agent"),
    }


@router.get("", dependencies=[RequireMaster])
async def list_recent_comments(
    service: CommentServiceDep,
    window: PageWindowDep,
    state: CommentState = Query(CommentState.UNREAD),
) -> dict[str, Any]:
    """List comments in one moderation state, newest first, with their target."""
    page = await service.list_recent(window, state)
    return page.to_dict()


@router.get("/info", response_model=CommentCounts, dependencies=[RequireMaster])
async def get_comment_counts(service: CommentServiceDep) -> dict[str, int]:
    """Return how many comments are read, junk and waiting for review."""
    return await service.count_by_state()


@router.get("/ref/{ref_id}")
async def list_comments_for_target(
    ref_id: str,
    service: CommentServiceDep,
    window: PageWindowDep,
    select: SelectDep,
) -> dict[str, Any]:
    """List the top-level comments on a post or note, newest first, with replies.

    Commenter ``ip`` and ``agent`` stay hidden unless the master asks for them.
    """
    page = await service.list_for_target(ref_id, window, select)
    return page.to_dict()


@router.get("/{comment_id}", response_model=CommentResponse)
async def get_comment(comment_id: str, service: CommentServiceDep) -> Comment:
    """Get a comment with its parent and direct replies."""
    return await service.get_comment(comment_id)


@router.post("/reply/{comment_id}", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def reply_to_comment(
    comment_id: str,
    body: CommentCreate,
    request: Request,
    service: CommentServiceDep,
    is_master: IsMasterDep,
    ip: IpDep,
) -> Comment:
    """Reply to a comment; the reply inherits the comment's target."""
    return await service.reply_to(comment_id, _guest_payload(body, request, ip), is_master=is_master)


@router.post(
    "/master/comment/{ref_id}",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[RequireMaster],
)
async def comment_as_master(
    ref_id: str,
    body: TextOnly,
    request: Request,
    service: CommentServiceDep,
    ip: IpDep,
    ref: CommentRefType = Query(CommentRefType.POST),
) -> Comment:
    """Comment as the site owner; identity comes from the master settings."""
    return await service.create_comment(ref_id, ref, _master_payload(body, request, ip), is_master=True)


@router.post(
    "/master/reply/{comment_id}",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[RequireMaster],
)
async def reply_as_master(
    comment_id: str,
    body: TextOnly,
    request: Request,
    service: CommentServiceDep,
    ip: IpDep,
) -> Comment:
    return await service.reply_to(comment_id, _master_payload(body, request, ip), is_master=True)


@router.post("/{ref_id}", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    ref_id: str,
    body: CommentCreate,
    request: Request,
    service: CommentServiceDep,
    is_master: IsMasterDep,
    ip: IpDep,
    ref: CommentRefType = Query(CommentRefType.POST, description="Type of the commented content"),
) -> Comment:
    """Comment on a post or note.

    Raises:
        NotFoundError: If the target does not exist
        ForbiddenError: If comments are closed on the target
        BadInputError: If a guest uses the site owner's name
    """
    return await service.create_comment(ref_id, ref, _guest_payload(body, request, ip), is_master=is_master)


@router.patch("/{comment_id}", response_model=CommentResponse, dependencies=[RequireMaster])
async def change_comment_state(
    comment_id: str,
    body: CommentStateUpdate,
    service: CommentServiceDep,
) -> Comment:
    """Move a comment between unread, read and junk."""
    return await service.moderate(comment_id, body.state)


@router.delete("/{comment_id}", response_model=DeleteResponse, dependencies=[RequireMaster])
async def delete_comment(comment_id: str, service: CommentServiceDep) -> DeleteResponse:
    """Delete a comment and every reply below it."""
    result = await service.delete(comment_id, cascade=True)
    return DeleteResponse(deleted_count=result.deleted_count)
