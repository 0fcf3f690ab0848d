# src/mx_space/main.py
"""Main entry point for the mx-space application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from mx_space.api.v1 import (
    aggregate_router,
    analytics_router,
    auth_router,
    categories_router,
    comments_router,
    gateway_router,
    notes_router,
    posts_router,
    uploads_router,
)
from mx_space.core.errors import BadInputError, ForbiddenError, NotFoundError, SpaceError
from mx_space.core.logging import configure_logging
from mx_space.core.settings import settings
from mx_space.db.session import create_tables, engine, get_sessionmaker
from mx_space.repositories.category_repo import CategoryRepository
from mx_space.services.background import get_background_runner
from mx_space.services.interactions import get_interaction_tracker
from mx_space.services.maintenance import MaintenanceWorker

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="mx-space API",
    description="Blog and personal space backend",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(posts_router, prefix="/api/v1")
app.include_router(notes_router, prefix="/api/v1")
app.include_router(categories_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(analytics_router, prefix="/api/v1")
app.include_router(aggregate_router, prefix="/api/v1")
app.include_router(uploads_router, prefix="/api/v1")
app.include_router(gateway_router)

_ERROR_STATUS: dict[type[SpaceError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    BadInputError: status.HTTP_400_BAD_REQUEST,
}


@app.exception_handler(SpaceError)
async def handle_space_error(request: Request, exc: SpaceError) -> JSONResponse:
    """Translate domain errors raised below the routers into HTTP responses."""
    status_code = next(
        (code for error_type, code in _ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    if settings.auto_create_tables:
        await create_tables()
        await CategoryRepository(get_sessionmaker()).ensure_default()
    if settings.maintenance_enabled:
        worker = MaintenanceWorker(get_sessionmaker(), get_interaction_tracker())
        await worker.start()
        app.state.maintenance_worker = worker
    else:
        app.state.maintenance_worker = None
    logger.info("%s %s started", settings.app_name, settings.app_version)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    worker: MaintenanceWorker | None = getattr(app.state, "maintenance_worker", None)
    if worker:
        await worker.stop()
    await get_background_runner().drain()
    await engine.dispose()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Blog and personal space backend",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("mx_space.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
