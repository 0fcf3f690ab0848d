# tests/test_health.py
from typing import Any

import pytest


@pytest.mark.asyncio
async def test_health_check(client: Any) -> None:
    """The health endpoint answers without touching the database."""
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_root_describes_service(client: Any) -> None:
    r = await client.get("/")
    assert r.status_code == 200
    assert r.json()["docs"] == "/docs"
