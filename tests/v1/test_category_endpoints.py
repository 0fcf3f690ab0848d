# tests/v1/test_category_endpoints.py
"""Tests for category endpoints."""

import pytest
from fastapi import status

from mx_space.repositories.category_repo import DEFAULT_CATEGORY, CategoryRepository
from mx_space.repositories.post_repo import PostRepository


@pytest.mark.asyncio
async def test_list_categories(client, category) -> None:
    response = await client.get("/api/v1/categories")
    assert response.status_code == status.HTTP_200_OK
    assert [(item["name"], item["slug"]) for item in response.json()] == [("Tech", "tech")]


@pytest.mark.asyncio
async def test_category_detail_lists_visible_posts(client, session_factory, category, post) -> None:
    await PostRepository(session_factory).create_new(
        {"title": "Draft", "text": "Soon", "slug": "draft", "category_id": category.id, "hide": True}
    )

    by_slug = await client.get("/api/v1/categories/tech")
    by_id = await client.get(f"/api/v1/categories/{category.id}")

    assert by_slug.status_code == status.HTTP_200_OK
    assert by_slug.json() == by_id.json()
    data = by_slug.json()["data"]
    assert data["name"] == "Tech"
    assert [child["slug"] for child in data["children"]] == ["hello-world"]
    assert "text" not in data["children"][0]

    assert (await client.get("/api/v1/categories/nope")).status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
async def test_create_category_defaults_slug_to_name(client, master_headers) -> None:
    response = await client.post("/api/v1/categories", json={"name": "life"}, headers=master_headers)
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["slug"] == "life"
    assert response.json()["type"] == 0

    duplicate = await client.post("/api/v1/categories", json={"name": "life"}, headers=master_headers)
    assert duplicate.status_code == status.HTTP_400_BAD_REQUEST

    anonymous = await client.post("/api/v1/categories", json={"name": "other"})
    assert anonymous.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_update_category(client, category, master_headers) -> None:
    response = await client.put(
        f"/api/v1/categories/{category.id}",
        json={"name": "Technology", "type": 1},
        headers=master_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["name"] == "Technology"
    assert response.json()["slug"] == "tech"
    assert response.json()["type"] == 1


@pytest.mark.asyncio
async def test_category_with_posts_cannot_be_deleted(client, category, post, master_headers) -> None:
    response = await client.delete(f"/api/v1/categories/{category.id}", headers=master_headers)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_deleting_last_category_recreates_default(client, session_factory, category, master_headers) -> None:
    response = await client.delete(f"/api/v1/categories/{category.id}", headers=master_headers)
    assert response.json() == {"deleted_count": 1}

    remaining = await CategoryRepository(session_factory).find()
    assert [(item.name, item.slug) for item in remaining] == [(DEFAULT_CATEGORY["name"], DEFAULT_CATEGORY["slug"])]
