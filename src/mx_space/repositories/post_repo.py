"""Data access helpers for working with posts."""
from __future__ import annotations

from typing import Any

from sqlalchemy import ColumnElement, or_, select

from mx_space.models.content import Category, Post
from mx_space.repositories.base import FieldNames, Repository

__all__ = ["PostRepository", "keyword_criteria"]


def keyword_criteria(model: Any, keyword: str) -> ColumnElement[bool]:
    """Match any whitespace separated keyword against title or text.

    Plain case-insensitive substring matching; no relevance ranking.
    """
    terms = [term for term in keyword.split() if term]
    clauses = []
    for term in terms:
        pattern = f"%{term}%"
        clauses.append(model.title.ilike(pattern))
        clauses.append(model.text.ilike(pattern))
    return or_(*clauses) if clauses else model.id.is_not(None)


class PostRepository(Repository[Post]):
    """Gateway for posts; ``password`` stays out of snapshots by default."""

    model = Post
    hidden_fields = frozenset({"password"})

    async def find_by_slug(
        self,
        category_slug: str,
        slug: str,
        *criteria: ColumnElement[bool],
        populate: FieldNames = "category",
    ) -> Post | None:
        """Return the post filed under ``category_slug`` with ``slug``."""
        category_ids = select(Category.id).where(Category.slug == category_slug)
        return await self.find_one(
            {"slug": slug},
            Post.category_id.in_(category_ids),
            *criteria,
            populate=populate,
        )
