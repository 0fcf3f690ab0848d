# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import AsyncIterator
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-mx-space")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("MAINTENANCE_ENABLED", "false")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

from mx_space.api.v1.dependencies import (  # noqa: E402
    get_comment_notifier,
    get_event_broadcaster,
    get_runner,
    get_spam_checker,
    get_tracker,
)
from mx_space.core.security import create_access_token, hash_password  # noqa: E402
from mx_space.core.settings import settings  # noqa: E402
from mx_space.db.session import build_engine, build_sessionmaker, create_tables, get_sessionmaker  # noqa: E402
from mx_space.main import app as fastapi_app  # noqa: E402
from mx_space.models import Category, Note, Post  # noqa: E402
from mx_space.repositories.category_repo import CategoryRepository  # noqa: E402
from mx_space.repositories.note_repo import NoteRepository  # noqa: E402
from mx_space.repositories.post_repo import PostRepository  # noqa: E402
from mx_space.services.background import BackgroundTaskRunner  # noqa: E402
from mx_space.services.comments import CommentService  # noqa: E402
from mx_space.services.interactions import InteractionTracker  # noqa: E402
from mx_space.services.notifications import CommentNotifier, EventBroadcaster, MailSender  # noqa: E402
from mx_space.services.spam import KeywordSpamChecker  # noqa: E402

MASTER_PASSWORD = "correct horse battery staple"
SPAM_KEYWORD = "cheap-casino"
BLOCKED_IP = "10.66.6.6"


@pytest_asyncio.fixture()
async def engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """A fresh SQLite file database per test."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'mx-space-test.db'}")
    await create_tables(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_sessionmaker(engine)


@pytest_asyncio.fixture()
async def runner() -> AsyncIterator[BackgroundTaskRunner]:
    runner = BackgroundTaskRunner()
    yield runner
    await runner.drain()


@pytest.fixture()
def tracker() -> InteractionTracker:
    return InteractionTracker()


@pytest.fixture()
def broadcaster() -> EventBroadcaster:
    return EventBroadcaster()


@pytest.fixture()
def mailer() -> AsyncMock:
    return AsyncMock(spec=MailSender)


@pytest.fixture()
def notifier(mailer: AsyncMock, broadcaster: EventBroadcaster) -> CommentNotifier:
    return CommentNotifier(mailer, broadcaster)


@pytest.fixture()
def spam_checker() -> KeywordSpamChecker:
    return KeywordSpamChecker([SPAM_KEYWORD], [BLOCKED_IP])


@pytest.fixture()
def comment_service(
    session_factory: async_sessionmaker[AsyncSession],
    notifier: CommentNotifier,
    spam_checker: KeywordSpamChecker,
    runner: BackgroundTaskRunner,
) -> CommentService:
    return CommentService(
        session_factory,
        notifier=notifier,
        spam_checker=spam_checker,
        runner=runner,
    )


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest_asyncio.fixture()
async def client(
    app: FastAPI,
    session_factory: async_sessionmaker[AsyncSession],
    runner: BackgroundTaskRunner,
    tracker: InteractionTracker,
    broadcaster: EventBroadcaster,
    notifier: CommentNotifier,
    spam_checker: KeywordSpamChecker,
) -> AsyncIterator[AsyncClient]:
    overrides = {
        get_sessionmaker: lambda: session_factory,
        get_runner: lambda: runner,
        get_tracker: lambda: tracker,
        get_event_broadcaster: lambda: broadcaster,
        get_comment_notifier: lambda: notifier,
        get_spam_checker: lambda: spam_checker,
    }
    app.dependency_overrides.update(overrides)
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
            yield test_client
        await runner.drain()
    finally:
        for dependency in overrides:
            app.dependency_overrides.pop(dependency, None)


@pytest.fixture()
def master_headers(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    monkeypatch.setattr(settings, "master_password_hash", hash_password(MASTER_PASSWORD))
    return {"Authorization": f"Bearer {create_access_token()}"}


@pytest_asyncio.fixture()
async def category(session_factory: async_sessionmaker[AsyncSession]) -> Category:
    return await CategoryRepository(session_factory).create_new({"name": "Tech", "slug": "tech"})


@pytest_asyncio.fixture()
async def post(session_factory: async_sessionmaker[AsyncSession], category: Category) -> Post:
    return await PostRepository(session_factory).create_new(
        {
            "title": "Hello world",
            "text": "The very first post.",
            "slug": "hello-world",
            "category_id": category.id,
        }
    )


@pytest_asyncio.fixture()
async def note(session_factory: async_sessionmaker[AsyncSession]) -> Note:
    return await NoteRepository(session_factory).create_new(
        {"title": "Monday", "text": "Rainy day.", "nid": 1, "mood": "calm"}
    )
