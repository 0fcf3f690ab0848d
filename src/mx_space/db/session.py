"""Database session configuration."""

from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from mx_space.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import mx_space.models  # noqa: E402,F401


def use_immediate_transactions(engine: AsyncEngine) -> None:
    """Make every SQLite transaction start with ``BEGIN IMMEDIATE``.

    Concurrent writers then wait on the database lock (up to the driver's busy
    timeout) instead of failing with ``database is locked`` when a reader tries
    to upgrade its lock mid-transaction.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record) -> None:  # pragma: no cover
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn) -> None:  # pragma: no cover
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine for ``url`` with the project's dialect tweaks."""
    engine = create_async_engine(url, echo=echo, pool_pre_ping=True)
    if engine.dialect.name == "sqlite":
        use_immediate_transactions(engine)
    return engine


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Return a session factory whose objects survive commit."""
    return async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


engine = build_engine(settings.effective_database_url, echo=settings.sql_debug)

SessionLocal = build_sessionmaker(engine)


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Return the session factory for dependency injection.

    Repositories open one short session per operation, so the dependency hands
    out the factory rather than a single request-bound session.
    """
    return SessionLocal


async def create_tables(bind: AsyncEngine | None = None) -> None:
    """Create all database tables."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
