# src/mx_space/api/v1/endpoints/uploads.py
"""Image upload endpoints for the mx-space API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, File, Query, UploadFile, status
from fastapi.responses import FileResponse

from mx_space.api.v1.dependencies import RequireMaster, UploadStoreDep
from mx_space.schemas.common import DeleteResponse
from mx_space.services.uploads import DEFAULT_FILE_TYPE

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("/image", status_code=status.HTTP_201_CREATED, dependencies=[RequireMaster])
async def upload_image(
    store: UploadStoreDep,
    file: UploadFile = File(...),
    file_type: str = Query(DEFAULT_FILE_TYPE, alias="type"),
) -> dict[str, Any]:
    """Store an image sent as multipart ``file``; returns its hashed name and URL."""
    # One byte past the limit is enough to reject oversized files.
    data = await file.read(store.max_bytes + 1)
    return store.save_image(data, file.filename, file_type)


@router.get("", dependencies=[RequireMaster])
async def list_uploads(
    store: UploadStoreDep,
    file_type: str | None = Query(None, alias="type"),
) -> list[dict[str, Any]]:
    """List stored uploads, newest first."""
    return [item.to_dict() for item in store.list_files(file_type)]


@router.get("/image/info/{hashname}")
async def get_upload_info(
    hashname: str,
    store: UploadStoreDep,
    file_type: str = Query(DEFAULT_FILE_TYPE, alias="type"),
) -> dict[str, Any]:
    return store.info(file_type, hashname).to_dict()


@router.get("/{file_type}/{hashname}")
async def get_upload(file_type: str, hashname: str, store: UploadStoreDep) -> FileResponse:
    """Serve a stored upload."""
    path = store.path_for(file_type, hashname)
    return FileResponse(path, media_type=store.info(file_type, hashname).mime)


@router.delete("/{file_type}/{hashname}", response_model=DeleteResponse, dependencies=[RequireMaster])
async def delete_upload(file_type: str, hashname: str, store: UploadStoreDep) -> dict[str, int]:
    store.delete(file_type, hashname)
    return {"deleted_count": 1}
