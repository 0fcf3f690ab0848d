"""Data access helpers for categories."""
from __future__ import annotations

import logging

from mx_space.models.content import CATEGORY_TYPE_CATEGORY, Category
from mx_space.repositories.base import Repository

__all__ = ["DEFAULT_CATEGORY", "CategoryRepository"]

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = {"name": "默认分类", "slug": "default", "type": CATEGORY_TYPE_CATEGORY}


class CategoryRepository(Repository[Category]):
    model = Category

    async def find_by_id_or_slug(self, query: str) -> Category | None:
        """Resolve ``query`` as an id first, then as a slug."""
        category = await self.find_by_id(query)
        if category is None:
            category = await self.find_one({"slug": query})
        return category

    async def ensure_default(self) -> Category | None:
        """Create the default category when the table is empty.

        Returns the created category, or ``None`` if categories already exist.
        """
        if await self.count_documents() > 0:
            return None
        logger.info("No categories left; recreating the default category")
        return await self.create_new(DEFAULT_CATEGORY)
