# tests/v1/test_analytics_endpoints.py
"""Tests for access analytics endpoints."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi import status

from mx_space.repositories.analytics_repo import AccessRecordRepository
from mx_space.services.analytics import AnalyticsService


def _millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


@pytest.fixture()
def analytics(session_factory, tracker) -> AnalyticsService:
    return AnalyticsService(session_factory, tracker)


@pytest.mark.asyncio
async def test_analytics_requires_master(client) -> None:
    assert (await client.get("/api/v1/analyze")).status_code == status.HTTP_401_UNAUTHORIZED
    assert (await client.delete("/api/v1/analyze")).status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.asyncio
async def test_list_access_records_in_range(client, session_factory, analytics, master_headers) -> None:
    await AccessRecordRepository(session_factory).create_new(
        {"path": "/old", "ip": "198.51.100.1", "created": datetime.now(UTC) - timedelta(days=10)}
    )
    await analytics.record("/api/v1/posts", "203.0.113.5", "pytest-agent")

    everything = (await client.get("/api/v1/analyze", headers=master_headers)).json()
    assert [item["path"] for item in everything["data"]] == ["/api/v1/posts", "/old"]
    assert everything["total"] == 2
    assert everything["today_ips"] == ["203.0.113.5"]
    assert everything["pagination"]["size"] == 50

    since = _millis(datetime.now(UTC) - timedelta(days=2))
    recent = (await client.get("/api/v1/analyze", params={"from": since}, headers=master_headers)).json()
    assert [item["path"] for item in recent["data"]] == ["/api/v1/posts"]


@pytest.mark.asyncio
async def test_today_and_week_views(client, session_factory, analytics, master_headers) -> None:
    await AccessRecordRepository(session_factory).create_new(
        {"path": "/old", "created": datetime.now(UTC) - timedelta(days=10)}
    )
    await analytics.record("/api/v1/notes", None, None)

    today = (await client.get("/api/v1/analyze/today", headers=master_headers)).json()
    week = (await client.get("/api/v1/analyze/week", headers=master_headers)).json()

    assert [item["path"] for item in today["data"]] == ["/api/v1/notes"]
    assert [item["path"] for item in week["data"]] == ["/api/v1/notes"]


@pytest.mark.asyncio
async def test_clear_access_records_before_cutoff(client, session_factory, analytics, master_headers) -> None:
    repository = AccessRecordRepository(session_factory)
    await repository.create_new({"path": "/old", "created": datetime.now(UTC) - timedelta(days=10)})
    await analytics.record("/fresh", None, None)

    cutoff = _millis(datetime.now(UTC) - timedelta(days=5))
    response = await client.delete("/api/v1/analyze", params={"to": cutoff}, headers=master_headers)

    assert response.json() == {"deleted_count": 1}
    assert [record.path for record in await repository.find()] == ["/fresh"]
