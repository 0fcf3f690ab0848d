"""Threaded comments attached to posts and notes.

Every comment carries a ``key`` encoding its path from the thread root: a
root's key is its own id and a reply's key is ``{parent.key}#{n}`` where ``n``
is the parent's ``comments_index`` before the reply was accepted. The counter
bump and the child insert happen in one transaction so siblings always get
distinct, increasing suffixes.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mx_space.core.errors import BadInputError, ForbiddenError, NotFoundError
from mx_space.core.settings import settings
from mx_space.db.ids import generate_id
from mx_space.models.comment import Comment, CommentRefType, CommentState
from mx_space.models.content import Note, Post
from mx_space.repositories.base import DeleteResult, FieldNames, PageRequest, PageResult
from mx_space.repositories.comment_repo import CommentRepository
from mx_space.services.background import BackgroundTaskRunner
from mx_space.services.notifications import CommentNotifier, ReplyMailType
from mx_space.services.pager import PageWindow
from mx_space.services.spam import SpamChecker

__all__ = ["CommentService", "CommentTargets"]

logger = logging.getLogger(__name__)

# Client-supplied comment fields; everything else is assigned by the service.
_WRITABLE_FIELDS = ("author", "mail", "url", "text", "ip", "agent")

_REF_MODELS: dict[CommentRefType, type[Post] | type[Note]] = {
    CommentRefType.POST: Post,
    CommentRefType.NOTE: Note,
}


def _ref_type(value: str | CommentRefType) -> CommentRefType:
    try:
        return CommentRefType(value)
    except ValueError as exc:
        raise BadInputError(f"Unknown comment target type '{value}'") from exc


class CommentTargets:
    """Resolves the post or note a comment is attached to."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    @staticmethod
    def model_for(ref_type: str | CommentRefType) -> type[Post] | type[Note]:
        return _REF_MODELS[_ref_type(ref_type)]

    async def get(self, target_id: str, ref_type: str | CommentRefType) -> Post | Note | None:
        async with self.session_factory() as session:
            return await session.get(self.model_for(ref_type), target_id)

    async def exists(self, target_id: str, ref_type: str | CommentRefType) -> bool:
        return await self.get(target_id, ref_type) is not None

    async def allows_comments(self, target_id: str, ref_type: str | CommentRefType) -> bool:
        target = await self.get(target_id, ref_type)
        return target is not None and target.allow_comment

    async def summaries(self, refs: Mapping[CommentRefType, set[str]]) -> dict[str, dict[str, Any]]:
        """Return ``{id: {id, title, ...}}`` for the referenced targets."""
        found: dict[str, dict[str, Any]] = {}
        async with self.session_factory() as session:
            for ref_type, ids in refs.items():
                if not ids:
                    continue
                model = self.model_for(ref_type)
                columns = [model.id, model.title]
                if model is Post:
                    columns.append(Post.slug)
                else:
                    columns.append(Note.nid)
                rows = (await session.execute(select(*columns).where(model.id.in_(ids)))).all()
                for row in rows:
                    found[row.id] = dict(row._mapping)
        return found


class CommentService:
    """Comment creation, replies, moderation and listing.

    Side effects (spam classification, mail, admin broadcasts) run on the
    background runner; their failures are logged and never reach the caller.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        notifier: CommentNotifier,
        spam_checker: SpamChecker,
        runner: BackgroundTaskRunner,
        targets: CommentTargets | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.comments = CommentRepository(session_factory)
        self.targets = targets or CommentTargets(session_factory)
        self.notifier = notifier
        self.spam_checker = spam_checker
        self.runner = runner

    @staticmethod
    def _fields(payload: Mapping[str, Any]) -> dict[str, Any]:
        data = {name: payload.get(name) for name in _WRITABLE_FIELDS}
        if not data["author"] or not data["text"]:
            raise BadInputError("Comment author and text are required")
        return data

    @staticmethod
    def validate_author_name(author: str | None) -> None:
        """Reject guests impersonating the site owner.

        Raises:
            BadInputError: If ``author`` equals the master's username or display name.
        """
        if not author:
            return
        reserved = {settings.master_username.strip().lower(), settings.master_name.strip().lower()}
        if author.strip().lower() in reserved:
            raise BadInputError("That name is reserved for the site owner")

    # --- writes ---------------------------------------------------------------------
    async def create_comment(
        self,
        target_id: str,
        ref_type: str | CommentRefType,
        payload: Mapping[str, Any],
        *,
        is_master: bool = False,
    ) -> Comment:
        """Attach a new top-level comment to a post or note.

        Raises:
            NotFoundError: If the target does not exist.
            ForbiddenError: If the target has comments disabled and the caller is a guest.
            BadInputError: On a reserved author name or an unknown target type.
        """
        ref = _ref_type(ref_type)
        model = _REF_MODELS[ref]
        data = self._fields(payload)
        if not is_master:
            self.validate_author_name(data["author"])

        comment_id = generate_id()
        comment = Comment(
            id=comment_id,
            ref_type=ref.value,
            ref_id=target_id,
            parent_id=None,
            position=None,
            comments_index=0,
            key=comment_id,
            state=CommentState.READ if is_master else CommentState.UNREAD,
            **data,
        )
        async with self.session_factory.begin() as session:
            target = await session.get(model, target_id)
            if target is None:
                raise NotFoundError(f"{ref.value} not found")
            if not target.allow_comment and not is_master:
                raise ForbiddenError("Comments are closed for this content")
            await session.execute(
                update(model)
                .where(model.id == target_id)
                .values(comments_index=model.comments_index + 1, modified=model.modified)
                .execution_options(synchronize_session=False)
            )
            session.add(comment)

        logger.info("Comment %s created on %s %s", comment.id, ref.value, target_id)
        self.runner.spawn(self._after_create(comment, is_master), name=f"comment-created-{comment.id}")
        return comment

    async def reply_to(
        self,
        parent_id: str,
        payload: Mapping[str, Any],
        *,
        is_master: bool = False,
    ) -> Comment:
        """Reply to an existing comment.

        The parent's counter is bumped with a single ``UPDATE ... RETURNING``
        and the child inserted in the same transaction. ``ref_type``/``ref_id``
        are inherited from the parent.

        Raises:
            NotFoundError: If the parent does not exist; nothing is written.
        """
        data = self._fields(payload)
        if not is_master:
            self.validate_author_name(data["author"])
        state = CommentState.READ if is_master else CommentState.UNREAD

        values: dict[str, Any] = {"comments_index": Comment.comments_index + 1}
        if state is CommentState.READ:
            values["state"] = CommentState.READ
        stmt = (
            update(Comment)
            .where(Comment.id == parent_id)
            .values(**values)
            .returning(Comment.comments_index, Comment.key, Comment.ref_id, Comment.ref_type)
            .execution_options(synchronize_session=False)
        )
        async with self.session_factory.begin() as session:
            row = (await session.execute(stmt)).one_or_none()
            if row is None:
                raise NotFoundError("Comment not found")
            index = row.comments_index - 1
            child = Comment(
                id=generate_id(),
                ref_type=row.ref_type,
                ref_id=row.ref_id,
                parent_id=parent_id,
                position=index,
                comments_index=0,
                key=f"{row.key}#{index}",
                state=state,
                **data,
            )
            session.add(child)

        logger.info("Reply %s attached to %s at position %d", child.id, parent_id, index)
        self.runner.spawn(self._after_reply(child, is_master), name=f"comment-reply-{child.id}")
        return await self.comments.get_by_id(child.id, populate="children")

    async def moderate(self, comment_id: str, state: CommentState | int) -> Comment:
        """Move a comment to ``state``; every transition is allowed."""
        new_state = CommentState(state)
        result = await self.comments.update_by_id(comment_id, {"state": new_state})
        if not result.modified_count:
            raise NotFoundError("Comment not found")
        logger.info("Comment %s moved to %s", comment_id, new_state.name)
        return await self.comments.get_by_id(comment_id)

    async def delete(self, comment_id: str, *, cascade: bool = False) -> DeleteResult:
        """Delete a comment, optionally with its whole reply subtree.

        Without ``cascade`` replies stay behind with a dangling parent id.
        """
        comment = await self.comments.get_by_id(comment_id)
        if not cascade:
            return await self.comments.delete_by_id(comment_id)
        subtree = Comment.key.like(f"{_escape_like(comment.key)}#%", escape="\\")
        result = await self.comments.delete_many(None, or_(Comment.id == comment_id, subtree))
        logger.info("Deleted comment %s and %d replies", comment_id, result.deleted_count - 1)
        return result

    # --- reads ----------------------------------------------------------------------
    async def get_comment(self, comment_id: str, populate: FieldNames = "parent children") -> Comment:
        return await self.comments.get_by_id(comment_id, populate=populate)

    async def list_for_target(
        self,
        ref_id: str,
        window: PageWindow,
        select_: FieldNames = None,
    ) -> PageResult[dict[str, Any]]:
        """Top-level, non-junk comments on a target, newest first, with replies."""
        return await self.comments.find_with_paginator(
            {"ref_id": ref_id, "parent_id": None},
            Comment.state != CommentState.JUNK,
            options=PageRequest.from_window(
                window,
                sort={"created": -1},
                select=select_,
                populate="children",
            ),
        )

    async def list_recent(self, window: PageWindow, state: CommentState | int = CommentState.UNREAD) -> PageResult[dict[str, Any]]:
        """Admin listing of comments in ``state`` with a ``ref`` summary attached."""
        page = await self.comments.find_with_paginator(
            {"state": int(state)},
            options=PageRequest.from_window(
                window,
                sort={"created": -1},
                select="+ip +agent",
                populate="parent",
            ),
        )
        refs: dict[CommentRefType, set[str]] = {ref: set() for ref in CommentRefType}
        for item in page.data:
            try:
                refs[CommentRefType(item["ref_type"])].add(item["ref_id"])
            except ValueError:
                logger.warning("Comment %s has unknown ref type %r", item["id"], item["ref_type"])
        summaries = await self.targets.summaries(refs)
        for item in page.data:
            item["ref"] = summaries.get(item["ref_id"])
        return page

    async def count_by_state(self) -> dict[str, int]:
        counts = await self.comments.count_by_state()
        return {
            "passed": counts.get(CommentState.READ, 0),
            "gomi": counts.get(CommentState.JUNK, 0),
            "need_checked": counts.get(CommentState.UNREAD, 0),
        }

    # --- side effects ---------------------------------------------------------------
    async def _after_create(self, comment: Comment, is_master: bool) -> None:
        if not is_master and await self.spam_checker.is_spam(comment):
            await self.comments.update_by_id(comment.id, {"state": CommentState.JUNK})
            logger.info("Comment %s classified as spam", comment.id)
            return
        if not is_master:
            await self.notifier.notify_new_comment(comment, ReplyMailType.OWNER)

    async def _after_reply(self, child: Comment, is_master: bool) -> None:
        if is_master:
            parent = await self.comments.find_by_id(child.parent_id) if child.parent_id else None
            await self.notifier.notify_new_comment(child, ReplyMailType.GUEST, parent)
            return
        await self.notifier.notify_new_comment(child, ReplyMailType.OWNER)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

