"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mx_space.core.security import is_master_token
from mx_space.core.settings import settings
from mx_space.db.session import get_sessionmaker
from mx_space.repositories.base import FieldNames, strip_forced
from mx_space.services.analytics import AnalyticsService
from mx_space.services.background import BackgroundTaskRunner, get_background_runner
from mx_space.services.comments import CommentService
from mx_space.services.interactions import InteractionTracker, get_interaction_tracker
from mx_space.services.notifications import (
    CommentNotifier,
    EventBroadcaster,
    get_broadcaster,
    get_notifier,
)
from mx_space.services.pager import PageWindow, paginate
from mx_space.services.spam import KeywordSpamChecker, SpamChecker
from mx_space.services.uploads import UploadStore
from mx_space.utils.ip import get_ip

# HTTP Bearer scheme; guests simply send no credentials
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for the session factory dependency
SessionFactoryDep = Annotated[async_sessionmaker[AsyncSession], Depends(get_sessionmaker)]


def get_is_master(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> bool:
    """Return True when the request carries a valid master token."""
    return credentials is not None and is_master_token(credentials.credentials)


IsMasterDep = Annotated[bool, Depends(get_is_master)]


def require_master(is_master: IsMasterDep) -> None:
    """Reject requests that are not authenticated as the site owner.

    Raises:
        HTTPException: 401 when the bearer token is missing or invalid
    """
    if not is_master:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


RequireMaster = Depends(require_master)


def get_select(
    is_master: IsMasterDep,
    select: str | None = Query(None, description="Projection, e.g. 'title created' or '-text'"),
) -> FieldNames:
    """Projection query parameter; only the master may force hidden fields in with "+name"."""
    return select if is_master else strip_forced(select)


SelectDep = Annotated[FieldNames, Depends(get_select)]


def get_client_ip(request: Request) -> str | None:
    return get_ip(request)


IpDep = Annotated[str | None, Depends(get_client_ip)]


def get_runner() -> BackgroundTaskRunner:
    return get_background_runner()


def get_tracker() -> InteractionTracker:
    return get_interaction_tracker()


def get_event_broadcaster() -> EventBroadcaster:
    return get_broadcaster()


def get_comment_notifier() -> CommentNotifier:
    return get_notifier()


def get_spam_checker() -> SpamChecker:
    return KeywordSpamChecker(
        settings.comment_spam_keywords,
        settings.comment_block_ips,
        enabled=settings.comment_spam_check,
    )


RunnerDep = Annotated[BackgroundTaskRunner, Depends(get_runner)]
TrackerDep = Annotated[InteractionTracker, Depends(get_tracker)]
BroadcasterDep = Annotated[EventBroadcaster, Depends(get_event_broadcaster)]


def get_comment_service(
    session_factory: SessionFactoryDep,
    runner: RunnerDep,
    notifier: Annotated[CommentNotifier, Depends(get_comment_notifier)],
    spam_checker: Annotated[SpamChecker, Depends(get_spam_checker)],
) -> CommentService:
    return CommentService(
        session_factory,
        notifier=notifier,
        spam_checker=spam_checker,
        runner=runner,
    )


CommentServiceDep = Annotated[CommentService, Depends(get_comment_service)]


def get_analytics_service(session_factory: SessionFactoryDep, tracker: TrackerDep) -> AnalyticsService:
    return AnalyticsService(session_factory, tracker)


AnalyticsServiceDep = Annotated[AnalyticsService, Depends(get_analytics_service)]


def get_upload_store() -> UploadStore:
    return UploadStore()


UploadStoreDep = Annotated[UploadStore, Depends(get_upload_store)]


def page_window(page: int = 1, size: int | None = None) -> PageWindow:
    """Pagination query parameters; out-of-range values are clamped."""
    return paginate(page, size)


def analytics_page_window(page: int = 1, size: int | None = None) -> PageWindow:
    return paginate(page, size, default_size=50)


PageWindowDep = Annotated[PageWindow, Depends(page_window)]


async def record_access(
    request: Request,
    analytics: AnalyticsServiceDep,
    runner: RunnerDep,
    is_master: IsMasterDep,
) -> None:
    """Record a public page view without delaying the response."""
    if is_master:
        return
    runner.spawn(
        analytics.record(request.url.path, get_ip(request), request.headers.get("user-agent")),
        name="record-access",
    )


RecordAccess = Depends(record_access)
