# src/mx_space/api/v1/endpoints/posts.py
"""Post management endpoints for the mx-space API."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from mx_space.api.v1.dependencies import (
    BroadcasterDep,
    IpDep,
    IsMasterDep,
    PageWindowDep,
    RecordAccess,
    RequireMaster,
    RunnerDep,
    SelectDep,
    SessionFactoryDep,
    TrackerDep,
)
from mx_space.core.errors import BadInputError, NotFoundError
from mx_space.db.ids import generate_id
from mx_space.models.content import Post
from mx_space.repositories.base import PageRequest
from mx_space.repositories.category_repo import CategoryRepository
from mx_space.repositories.comment_repo import CommentRepository
from mx_space.repositories.post_repo import PostRepository, keyword_criteria
from mx_space.schemas.common import DeleteResponse, MessageResponse
from mx_space.schemas.post import PostCreate, PostResponse, PostUpdate
from mx_space.services.content import (
    MAX_YEAR,
    ContentService,
    ensure_readable,
    unhidden_criteria,
    visibility_criteria,
    year_criteria,
)
from mx_space.services.notifications import EventType

router = APIRouter(prefix="/posts", tags=["posts"])


def get_post_repository(session_factory: SessionFactoryDep) -> PostRepository:
    return PostRepository(session_factory)


PostRepoDep = Annotated[PostRepository, Depends(get_post_repository)]


def get_post_content_service(repository: PostRepoDep, tracker: TrackerDep) -> ContentService:
    return ContentService(repository, tracker)


ContentServiceDep = Annotated[ContentService, Depends(get_post_content_service)]


@router.get("", dependencies=[RecordAccess])
async def list_posts(
    repository: PostRepoDep,
    is_master: IsMasterDep,
    window: PageWindowDep,
    select: SelectDep,
    year: int | None = Query(None, ge=1, le=MAX_YEAR, description="Only posts created in this year"),
    sort_by: str | None = Query(None, description="Field to sort by"),
    sort_order: int = Query(-1, description="1 ascending, -1 descending"),
) -> dict[str, Any]:
    """List posts newest first with their category.

    Hidden and password protected posts are only listed for the master.
    """
    criteria = [*visibility_criteria(Post, is_master), *year_criteria(Post, year)]
    page = await repository.find_with_paginator(
        None,
        *criteria,
        options=PageRequest.from_window(
            window,
            sort={sort_by: sort_order} if sort_by else {"created": -1},
            select=select,
            populate="category",
        ),
    )
    return page.to_dict()


@router.get("/search")
async def search_posts(
    repository: PostRepoDep,
    is_master: IsMasterDep,
    window: PageWindowDep,
    keyword: str = Query(..., min_length=1),
) -> dict[str, Any]:
    """Substring search over title and text; no ranking."""
    page = await repository.find_with_paginator(
        None,
        keyword_criteria(Post, keyword),
        *visibility_criteria(Post, is_master),
        options=PageRequest.from_window(
            window,
            sort={"created": -1},
            select="id title created modified category_id",
            populate="category",
        ),
    )
    return page.to_dict()


@router.get("/_thumbs-up", response_model=MessageResponse)
async def like_post(
    repository: PostRepoDep,
    content: ContentServiceDep,
    ip: IpDep,
    post_id: str = Query(..., alias="id"),
) -> MessageResponse:
    """Like a post; each IP may like a given post once per day.

    Raises:
        HTTPException: 422 when this IP already liked the post today
    """
    await repository.get_by_id(post_id)
    if not await content.record_like(post_id, ip):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="You already liked this post today",
        )
    return MessageResponse(message="OK")


@router.get("/{category_slug}/{slug}", response_model=PostResponse, dependencies=[RecordAccess])
async def get_post_by_slug(
    category_slug: str,
    slug: str,
    repository: PostRepoDep,
    content: ContentServiceDep,
    runner: RunnerDep,
    is_master: IsMasterDep,
    ip: IpDep,
    password: str | None = Query(None),
) -> Post:
    """Get a post by its category slug and its own slug."""
    post = await repository.find_by_slug(category_slug, slug, *unhidden_criteria(Post, is_master))
    if post is None:
        raise NotFoundError("Post not found")
    ensure_readable(post, password, is_master=is_master)
    runner.spawn(content.record_read(post.id, ip), name=f"post-read-{post.id}")
    return post


@router.get("/{post_id}", response_model=PostResponse, dependencies=[RecordAccess])
async def get_post(
    post_id: str,
    repository: PostRepoDep,
    content: ContentServiceDep,
    runner: RunnerDep,
    is_master: IsMasterDep,
    ip: IpDep,
    password: str | None = Query(None),
) -> Post:
    """Get a specific post by ID.

    Raises:
        NotFoundError: If the post does not exist or is hidden from guests
        ForbiddenError: If the post is password protected and no valid password was given
    """
    post = await repository.find_one(
        None,
        Post.id == post_id,
        *unhidden_criteria(Post, is_master),
        populate="category",
    )
    if post is None:
        raise NotFoundError("Post not found")
    ensure_readable(post, password, is_master=is_master)
    runner.spawn(content.record_read(post.id, ip), name=f"post-read-{post.id}")
    return post


async def _ensure_category(session_factory: SessionFactoryDep, category_id: str) -> None:
    if await CategoryRepository(session_factory).find_by_id(category_id) is None:
        raise NotFoundError("Category not found")


async def _ensure_unique_slug(repository: PostRepository, category_id: str, slug: str, exclude_id: str | None = None) -> None:
    existing = await repository.find_one({"category_id": category_id, "slug": slug})
    if existing is not None and existing.id != exclude_id:
        raise BadInputError(f"Slug '{slug}' is already used in this category")


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED, dependencies=[RequireMaster])
async def create_post(
    body: PostCreate,
    session_factory: SessionFactoryDep,
    repository: PostRepoDep,
    broadcaster: BroadcasterDep,
    runner: RunnerDep,
) -> Post:
    """Create a new post and announce it on the public gateway."""
    await _ensure_category(session_factory, body.category_id)
    data = body.model_dump()
    post_id = generate_id()
    data["id"] = post_id
    data["slug"] = data["slug"] or post_id
    await _ensure_unique_slug(repository, body.category_id, data["slug"])

    await repository.create_new(data)
    post = await repository.get_by_id(post_id, populate="category")
    runner.spawn(
        broadcaster.broadcast(EventType.POST_CREATE, repository.snapshot(post, populate="category")),
        name=f"broadcast-post-create-{post_id}",
    )
    return post


@router.put("/{post_id}", response_model=PostResponse, dependencies=[RequireMaster])
async def update_post(
    post_id: str,
    body: PostUpdate,
    session_factory: SessionFactoryDep,
    repository: PostRepoDep,
    broadcaster: BroadcasterDep,
    runner: RunnerDep,
) -> Post:
    """Apply a partial update to a post."""
    current = await repository.get_by_id(post_id)
    patch = body.model_dump(exclude_unset=True)
    if patch.get("category_id"):
        await _ensure_category(session_factory, patch["category_id"])
    if "slug" in patch or "category_id" in patch:
        await _ensure_unique_slug(
            repository,
            patch.get("category_id") or current.category_id,
            patch.get("slug") or current.slug,
            exclude_id=post_id,
        )

    await repository.update_by_id(post_id, patch)
    post = await repository.get_by_id(post_id, populate="category")
    runner.spawn(
        broadcaster.broadcast(EventType.POST_UPDATE, repository.snapshot(post, populate="category")),
        name=f"broadcast-post-update-{post_id}",
    )
    return post


@router.delete("/{post_id}", response_model=DeleteResponse, dependencies=[RequireMaster])
async def delete_post(
    post_id: str,
    session_factory: SessionFactoryDep,
    repository: PostRepoDep,
    broadcaster: BroadcasterDep,
    runner: RunnerDep,
) -> DeleteResponse:
    """Delete a post together with every comment attached to it."""
    await repository.get_by_id(post_id)
    result = await repository.delete_by_id(post_id)
    await CommentRepository(session_factory).delete_for_target(post_id)
    runner.spawn(
        broadcaster.broadcast(EventType.POST_DELETE, {"id": post_id}),
        name=f"broadcast-post-delete-{post_id}",
    )
    return DeleteResponse(deleted_count=result.deleted_count)
