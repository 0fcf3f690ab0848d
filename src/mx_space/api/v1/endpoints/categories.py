# src/mx_space/api/v1/endpoints/categories.py
"""Category endpoints for the mx-space API."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status

from mx_space.api.v1.dependencies import IsMasterDep, RequireMaster, SessionFactoryDep
from mx_space.core.errors import BadInputError, NotFoundError
from mx_space.models.content import Category, Post
from mx_space.repositories.base import PageRequest
from mx_space.repositories.category_repo import CategoryRepository
from mx_space.repositories.post_repo import PostRepository
from mx_space.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from mx_space.schemas.common import DeleteResponse
from mx_space.services.content import visibility_criteria

router = APIRouter(prefix="/categories", tags=["categories"])


def get_category_repository(session_factory: SessionFactoryDep) -> CategoryRepository:
    return CategoryRepository(session_factory)


CategoryRepoDep = Annotated[CategoryRepository, Depends(get_category_repository)]


async def _ensure_unique(
    repository: CategoryRepository,
    name: str | None,
    slug: str | None,
    exclude_id: str | None = None,
) -> None:
    for field, value in (("name", name), ("slug", slug)):
        if value is None:
            continue
        existing = await repository.find_one({field: value})
        if existing is not None and existing.id != exclude_id:
            raise BadInputError(f"A category with {field} '{value}' already exists")


@router.get("", response_model=list[CategoryResponse])
async def list_categories(repository: CategoryRepoDep) -> list[Category]:
    """List every category and tag, oldest first."""
    return await repository.find(options=PageRequest(sort={"created": 1}))


@router.get("/{query}")
async def get_category(
    query: str,
    repository: CategoryRepoDep,
    session_factory: SessionFactoryDep,
    is_master: IsMasterDep,
) -> dict[str, Any]:
    """Get a category by id or slug together with its posts, newest first."""
    category = await repository.find_by_id_or_slug(query)
    if category is None:
        raise NotFoundError("Category not found")
    posts = PostRepository(session_factory)
    children = await posts.find(
        {"category_id": category.id},
        *visibility_criteria(Post, is_master),
        options=PageRequest(sort={"created": -1}),
    )
    data = repository.snapshot(category)
    data["children"] = [posts.snapshot(post, select="id title slug created modified") for post in children]
    return {"data": data}


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED, dependencies=[RequireMaster])
async def create_category(body: CategoryCreate, repository: CategoryRepoDep) -> Category:
    """Create a category; the slug defaults to the name."""
    slug = body.slug or body.name
    await _ensure_unique(repository, body.name, slug)
    return await repository.create_new({"name": body.name, "slug": slug, "type": body.type})


@router.put("/{category_id}", response_model=CategoryResponse, dependencies=[RequireMaster])
async def update_category(category_id: str, body: CategoryUpdate, repository: CategoryRepoDep) -> Category:
    await repository.get_by_id(category_id)
    patch = body.model_dump(exclude_unset=True, exclude_none=True)
    await _ensure_unique(repository, patch.get("name"), patch.get("slug"), exclude_id=category_id)
    await repository.update_by_id(category_id, patch)
    return await repository.get_by_id(category_id)


@router.delete("/{category_id}", response_model=DeleteResponse, dependencies=[RequireMaster])
async def delete_category(
    category_id: str,
    repository: CategoryRepoDep,
    session_factory: SessionFactoryDep,
) -> DeleteResponse:
    """Delete an empty category.

    Raises:
        HTTPException: 422 while the category still holds posts
    """
    await repository.get_by_id(category_id)
    if await PostRepository(session_factory).count_documents({"category_id": category_id}):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="The category still contains posts and cannot be deleted",
        )
    result = await repository.delete_by_id(category_id)
    await repository.ensure_default()
    return DeleteResponse(deleted_count=result.deleted_count)
