"""Data access helpers for working with notes."""
from __future__ import annotations

from sqlalchemy import ColumnElement, func, select

from mx_space.models.content import Note
from mx_space.repositories.base import PageRequest, Repository

__all__ = ["NoteRepository"]


class NoteRepository(Repository[Note]):
    """Gateway for notes addressed publicly by their sequential ``nid``."""

    model = Note
    hidden_fields = frozenset({"password"})

    async def next_nid(self) -> int:
        """Return the ``nid`` the next created note should receive."""
        async with self.session_factory() as session:
            current = await session.scalar(select(func.max(Note.nid)))
        return (current or 0) + 1

    async def find_by_nid(self, nid: int, *criteria: ColumnElement[bool]) -> Note | None:
        return await self.find_one({"nid": nid}, *criteria)

    async def neighbours(
        self,
        note: Note,
        *criteria: ColumnElement[bool],
    ) -> tuple[Note | None, Note | None]:
        """Return ``(prev, next)``: the adjacent newer and older notes."""
        prev = await self.find_one(None, Note.created > note.created, *criteria, sort={"created": 1})
        next_ = await self.find_one(None, Note.created < note.created, *criteria, sort={"created": -1})
        return prev, next_

    async def latest(self, *criteria: ColumnElement[bool]) -> Note | None:
        rows = await self.find(None, *criteria, options=PageRequest(limit=1, sort={"created": -1}))
        return rows[0] if rows else None
