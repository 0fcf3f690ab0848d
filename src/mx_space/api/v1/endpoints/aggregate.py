# src/mx_space/api/v1/endpoints/aggregate.py
"""Aggregate endpoints: site overview, latest activity and the archive timeline."""

from __future__ import annotations

import asyncio
from enum import IntEnum
from typing import Any
from urllib.parse import quote

from fastapi import APIRouter, Query

from mx_space.api.v1.dependencies import IsMasterDep, SessionFactoryDep
from mx_space.core.settings import settings
from mx_space.models.content import Note, Post
from mx_space.repositories.base import PageRequest
from mx_space.repositories.category_repo import CategoryRepository
from mx_space.repositories.note_repo import NoteRepository
from mx_space.repositories.post_repo import PostRepository
from mx_space.services.content import MAX_YEAR, visibility_criteria, year_criteria
from mx_space.services.pager import MAX_PAGE_SIZE

router = APIRouter(prefix="/aggregate", tags=["aggregate"])

SUMMARY_LENGTH = 150
DEFAULT_TOP_SIZE = 6


class TimelineType(IntEnum):
    POST = 0
    NOTE = 1


def summarize(post: Post) -> str:
    """Return the post's own summary, else its text cut to ``SUMMARY_LENGTH`` characters."""
    if post.summary is not None:
        return post.summary
    if len(post.text) > SUMMARY_LENGTH:
        return post.text[:SUMMARY_LENGTH] + "..."
    return post.text


def post_url(post: Post) -> str:
    return quote(f"/posts/{post.category.slug}/{post.slug}")


@router.get("")
async def get_aggregate(session_factory: SessionFactoryDep) -> dict[str, Any]:
    """Site owner, site metadata and every category in one call."""
    repository = CategoryRepository(session_factory)
    categories = await repository.find(options=PageRequest(sort={"created": 1}))
    return {
        "user": {
            "username": settings.master_username,
            "name": settings.master_name,
            "url": settings.master_url,
        },
        "site": {"name": settings.app_name, "version": settings.app_version},
        "categories": [repository.snapshot(category) for category in categories],
    }


@router.get("/top")
async def get_top_activity(
    session_factory: SessionFactoryDep,
    is_master: IsMasterDep,
    size: int = Query(DEFAULT_TOP_SIZE, ge=1, le=MAX_PAGE_SIZE),
) -> dict[str, Any]:
    """Latest posts and notes; hidden and locked ones only for the master."""
    posts = PostRepository(session_factory)
    notes = NoteRepository(session_factory)
    latest_posts, latest_notes = await asyncio.gather(
        posts.find(
            None,
            *visibility_criteria(Post, is_master),
            options=PageRequest(limit=size, sort={"created": -1}, populate="category"),
        ),
        notes.find(
            None,
            *visibility_criteria(Note, is_master),
            options=PageRequest(limit=size, sort={"created": -1}),
        ),
    )
    return {
        "posts": [
            posts.snapshot(post, select="id title slug created category_id", populate="category")
            for post in latest_posts
        ],
        "notes": [notes.snapshot(note, select="id nid title created") for note in latest_notes],
    }


@router.get("/timeline")
async def get_timeline(
    session_factory: SessionFactoryDep,
    year: int | None = Query(None, ge=1, le=MAX_YEAR),
    sort: int = Query(1, description="1 oldest first, -1 newest first"),
    type_: int | None = Query(None, alias="type", ge=0, le=1, description="0 posts only, 1 notes only"),
) -> dict[str, Any]:
    """Public posts and notes of one year (or all years) in creation order.

    Posts carry a summary and their site URL. Hidden and password protected
    items never appear, even for the master.
    """
    order = {"created": -1 if sort < 0 else 1}
    data: dict[str, list[dict[str, Any]]] = {}

    if type_ is None or type_ == TimelineType.POST:
        posts = PostRepository(session_factory)
        found = await posts.find(
            None,
            *visibility_criteria(Post, False),
            *year_criteria(Post, year),
            options=PageRequest(sort=order, populate="category"),
        )
        data["posts"] = [
            {
                **posts.snapshot(post, select="id title slug created", populate="category"),
                "summary": summarize(post),
                "url": post_url(post),
            }
            for post in found
        ]

    if type_ is None or type_ == TimelineType.NOTE:
        notes = NoteRepository(session_factory)
        found_notes = await notes.find(
            None,
            *visibility_criteria(Note, False),
            *year_criteria(Note, year),
            options=PageRequest(sort=order),
        )
        data["notes"] = [notes.snapshot(note, select="id nid title weather mood created") for note in found_notes]

    return {"data": data}
