# src/mx_space/api/v1/endpoints/analytics.py
"""Access analytics endpoints; master only."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from mx_space.api.v1.dependencies import AnalyticsServiceDep, RequireMaster, analytics_page_window
from mx_space.schemas.common import DeleteResponse
from mx_space.services.pager import PageWindow

router = APIRouter(prefix="/analyze", tags=["analytics"], dependencies=[RequireMaster])

AnalyticsWindowDep = Annotated[PageWindow, Depends(analytics_page_window)]


def _from_millis(value: int | None) -> datetime | None:
    """Convert epoch milliseconds to an aware UTC datetime."""
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=UTC)


@router.get("")
async def get_access_records(
    analytics: AnalyticsServiceDep,
    window: AnalyticsWindowDep,
    from_: int | None = Query(None, alias="from", description="Epoch milliseconds"),
    to: int | None = Query(None, description="Epoch milliseconds; defaults to now"),
) -> dict[str, Any]:
    """List access records in a time range, plus totals and today's visitor IPs."""
    end = _from_millis(to) or datetime.now(UTC)
    page = await analytics.list_range(_from_millis(from_), end, window)
    return {
        **page.to_dict(),
        "total": await analytics.total(),
        "today_ips": await analytics.today_ips(),
    }


@router.get("/today")
async def get_today_access_records(analytics: AnalyticsServiceDep, window: AnalyticsWindowDep) -> dict[str, Any]:
    page = await analytics.list_today(window)
    return page.to_dict()


@router.get("/week")
async def get_week_access_records(analytics: AnalyticsServiceDep, window: AnalyticsWindowDep) -> dict[str, Any]:
    page = await analytics.list_week(window)
    return page.to_dict()


@router.delete("", response_model=DeleteResponse)
async def clear_access_records(
    analytics: AnalyticsServiceDep,
    from_: int | None = Query(None, alias="from"),
    to: int | None = Query(None),
) -> DeleteResponse:
    """Delete access records in a time range; an open range clears everything up to now."""
    result = await analytics.clean_range(_from_millis(from_), _from_millis(to) or datetime.now(UTC))
    return DeleteResponse(deleted_count=result.deleted_count)
