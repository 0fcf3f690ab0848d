"""Data access helpers for comments."""
from __future__ import annotations

from sqlalchemy import func, select

from mx_space.models.comment import Comment
from mx_space.repositories.base import DeleteResult, Repository

__all__ = ["CommentRepository"]


class CommentRepository(Repository[Comment]):
    model = Comment
    # Client address and user agent are only listed for the master.
    hidden_fields = frozenset({"ip", "agent"})

    async def count_by_state(self) -> dict[int, int]:
        """Return ``{state: count}`` for every state present in the table."""
        stmt = select(Comment.state, func.count()).group_by(Comment.state)
        async with self.session_factory() as session:
            rows = (await session.execute(stmt)).all()
        return {int(state): int(count) for state, count in rows}

    async def delete_for_target(self, ref_id: str) -> DeleteResult:
        """Remove every comment attached to a post or note."""
        return await self.delete_many({"ref_id": ref_id})
