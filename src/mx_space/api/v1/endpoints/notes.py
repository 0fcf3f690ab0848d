# src/mx_space/api/v1/endpoints/notes.py
"""Note endpoints for the mx-space API."""

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
from mx_space.core.errors import NotFoundError
from mx_space.models.content import Note
from mx_space.repositories.base import PageRequest
from mx_space.repositories.comment_repo import CommentRepository
from mx_space.repositories.note_repo import NoteRepository
from mx_space.repositories.post_repo import keyword_criteria
from mx_space.schemas.common import DeleteResponse, MessageResponse
from mx_space.schemas.note import NoteCreate, NoteDetail, NoteResponse, NoteSummary, NoteUpdate
from mx_space.services.content import (
    MAX_YEAR,
    ContentService,
    ensure_readable,
    unhidden_criteria,
    visibility_criteria,
    year_criteria,
)
from mx_space.services.notifications import EventType

router = APIRouter(prefix="/notes", tags=["notes"])


def get_note_repository(session_factory: SessionFactoryDep) -> NoteRepository:
    return NoteRepository(session_factory)


NoteRepoDep = Annotated[NoteRepository, Depends(get_note_repository)]


def get_note_content_service(repository: NoteRepoDep, tracker: TrackerDep) -> ContentService:
    return ContentService(repository, tracker)


ContentServiceDep = Annotated[ContentService, Depends(get_note_content_service)]


def _summary(note: Note | None) -> NoteSummary | None:
    return NoteSummary.model_validate(note) if note is not None else None


@router.get("", dependencies=[RecordAccess])
async def list_notes(
    repository: NoteRepoDep,
    is_master: IsMasterDep,
    window: PageWindowDep,
    select: SelectDep,
    year: int | None = Query(None, ge=1, le=MAX_YEAR),
    sort_by: str | None = Query(None),
    sort_order: int = Query(-1),
) -> dict[str, Any]:
    """List notes newest first."""
    page = await repository.find_with_paginator(
        None,
        *visibility_criteria(Note, is_master),
        *year_criteria(Note, year),
        options=PageRequest.from_window(
            window,
            sort={sort_by: sort_order} if sort_by else {"created": -1},
            select=select,
        ),
    )
    return page.to_dict()


@router.get("/latest", response_model=NoteDetail, dependencies=[RecordAccess])
async def get_latest_note(
    repository: NoteRepoDep,
    content: ContentServiceDep,
    runner: RunnerDep,
    is_master: IsMasterDep,
    ip: IpDep,
) -> NoteDetail:
    """Return the most recent visible note and the one before it."""
    criteria = visibility_criteria(Note, is_master)
    latest = await repository.latest(*criteria)
    if latest is None:
        raise NotFoundError("No notes yet")
    _, older = await repository.neighbours(latest, *criteria)
    runner.spawn(content.record_read(latest.id, ip), name=f"note-read-{latest.id}")
    return NoteDetail(data=NoteResponse.model_validate(latest), next=_summary(older))


@router.get("/search")
async def search_notes(
    repository: NoteRepoDep,
    is_master: IsMasterDep,
    window: PageWindowDep,
    keyword: str = Query(..., min_length=1),
) -> dict[str, Any]:
    """Substring search over title and text; no ranking."""
    page = await repository.find_with_paginator(
        None,
        keyword_criteria(Note, keyword),
        *visibility_criteria(Note, is_master),
        options=PageRequest.from_window(
            window,
            sort={"created": -1},
            select="id title created modified nid",
        ),
    )
    return page.to_dict()


@router.get("/like/{note_id}", response_model=MessageResponse)
async def like_note(
    note_id: str,
    repository: NoteRepoDep,
    content: ContentServiceDep,
    ip: IpDep,
) -> MessageResponse:
    """Like a note once per IP per day.

    Raises:
        HTTPException: 422 when this IP already liked the note today
    """
    await repository.get_by_id(note_id)
    if not await content.record_like(note_id, ip):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="You already liked this note today",
        )
    return MessageResponse(message="OK")


async def _note_detail(
    note: Note | None,
    repository: NoteRepository,
    content: ContentService,
    runner: RunnerDep,
    *,
    is_master: bool,
    password: str | None,
    ip: str | None,
) -> NoteDetail:
    if note is None:
        raise NotFoundError("Note not found")
    ensure_readable(note, password, is_master=is_master)
    runner.spawn(content.record_read(note.id, ip), name=f"note-read-{note.id}")
    prev, next_ = await repository.neighbours(note, *visibility_criteria(Note, is_master))
    return NoteDetail(data=NoteResponse.model_validate(note), prev=_summary(prev), next=_summary(next_))


@router.get("/nid/{nid}", response_model=NoteDetail, dependencies=[RecordAccess])
async def get_note_by_nid(
    nid: int,
    repository: NoteRepoDep,
    content: ContentServiceDep,
    runner: RunnerDep,
    is_master: IsMasterDep,
    ip: IpDep,
    password: str | None = Query(None),
) -> NoteDetail:
    """Get a note by its public sequential number."""
    note = await repository.find_by_nid(nid, *unhidden_criteria(Note, is_master))
    return await _note_detail(note, repository, content, runner, is_master=is_master, password=password, ip=ip)


@router.get("/{note_id}", response_model=NoteDetail, dependencies=[RecordAccess])
async def get_note(
    note_id: str,
    repository: NoteRepoDep,
    content: ContentServiceDep,
    runner: RunnerDep,
    is_master: IsMasterDep,
    ip: IpDep,
    password: str | None = Query(None),
) -> NoteDetail:
    """Get a note with its newer (``prev``) and older (``next``) neighbours.

    Raises:
        NotFoundError: If the note does not exist or is hidden from guests
        ForbiddenError: If the note is password protected and the password is wrong
    """
    note = await repository.find_one(None, Note.id == note_id, *unhidden_criteria(Note, is_master))
    return await _note_detail(note, repository, content, runner, is_master=is_master, password=password, ip=ip)


@router.post("", response_model=NoteResponse, status_code=status.HTTP_201_CREATED, dependencies=[RequireMaster])
async def create_note(
    body: NoteCreate,
    repository: NoteRepoDep,
    broadcaster: BroadcasterDep,
    runner: RunnerDep,
) -> Note:
    """Create a note with the next free ``nid``."""
    data = body.model_dump()
    data["nid"] = await repository.next_nid()
    note = await repository.create_new(data)
    runner.spawn(
        broadcaster.broadcast(EventType.NOTE_CREATE, repository.snapshot(note)),
        name=f"broadcast-note-create-{note.id}",
    )
    return note


@router.put("/{note_id}", response_model=NoteResponse, dependencies=[RequireMaster])
async def update_note(
    note_id: str,
    body: NoteUpdate,
    repository: NoteRepoDep,
    broadcaster: BroadcasterDep,
    runner: RunnerDep,
) -> Note:
    """Apply a partial update to a note."""
    await repository.get_by_id(note_id)
    await repository.update_by_id(note_id, body.model_dump(exclude_unset=True))
    note = await repository.get_by_id(note_id)
    runner.spawn(
        broadcaster.broadcast(EventType.NOTE_UPDATE, repository.snapshot(note)),
        name=f"broadcast-note-update-{note_id}",
    )
    return note


@router.delete("/{note_id}", response_model=DeleteResponse, dependencies=[RequireMaster])
async def delete_note(
    note_id: str,
    session_factory: SessionFactoryDep,
    repository: NoteRepoDep,
    broadcaster: BroadcasterDep,
    runner: RunnerDep,
) -> DeleteResponse:
    """Delete a note together with every comment attached to it."""
    await repository.get_by_id(note_id)
    result = await repository.delete_by_id(note_id)
    await CommentRepository(session_factory).delete_for_target(note_id)
    runner.spawn(
        broadcaster.broadcast(EventType.NOTE_DELETE, {"id": note_id}),
        name=f"broadcast-note-delete-{note_id}",
    )
    return DeleteResponse(deleted_count=result.deleted_count)
