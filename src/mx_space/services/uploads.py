"""Image store on local disk.

Uploads are filed under one directory per upload type (``images``,
``avatars``...) and named by the MD5 of their bytes plus an extension sniffed
from the content, so storing the same image twice keeps a single file.
"""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from mx_space.core.errors import BadInputError, NotFoundError
from mx_space.core.settings import settings

logger = logging.getLogger(__name__)

FILE_TYPES: tuple[str, ...] = ("image", "avatar", "background", "photo")
DEFAULT_FILE_TYPE = "image"

_HASHNAME = re.compile(r"^[0-9a-f]{32}\.[a-z0-9]+$")
_SIGNATURES: tuple[tuple[bytes, str, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "png", "image/png"),
    (b"\xff\xd8\xff", "jpg", "image/jpeg"),
    (b"GIF87a", "gif", "image/gif"),
    (b"GIF89a", "gif", "image/gif"),
    (b"BM", "bmp", "image/bmp"),
)
_MIME_BY_EXT = {ext: mime for _, ext, mime in _SIGNATURES} | {"webp": "image/webp"}


def sniff_image(data: bytes) -> tuple[str, str] | None:
    """Return ``(extension, mime)`` for known image signatures, else ``None``."""
    for magic, ext, mime in _SIGNATURES:
        if data.startswith(magic):
            return ext, mime
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "webp", "image/webp"
    return None


@dataclass(frozen=True)
class StoredFile:
    name: str
    type: str
    size: int
    mime: str
    created: datetime

    @property
    def url(self) -> str:
        return f"/uploads/{self.type}/{self.name}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "size": self.size,
            "mime": self.mime,
            "created": self.created,
            "url": self.url,
        }


class UploadStore:
    """Save, list, locate and delete uploaded images under ``root``."""

    def __init__(self, root: str | Path | None = None, *, max_bytes: int | None = None) -> None:
        self.root = Path(root if root is not None else settings.upload_dir)
        self.max_bytes = max_bytes if max_bytes is not None else settings.upload_max_bytes

    def directory(self, file_type: str) -> Path:
        if file_type not in FILE_TYPES:
            raise NotFoundError(f"Unknown upload type '{file_type}'")
        return self.root / f"{file_type}s"

    def path_for(self, file_type: str, name: str) -> Path:
        """Return the on-disk path of an existing upload.

        Raises:
            NotFoundError: For unknown types, malformed names or missing files.
        """
        directory = self.directory(file_type)
        if not _HASHNAME.match(name):
            raise NotFoundError("File not found")
        path = directory / name
        if not path.is_file():
            raise NotFoundError("File not found")
        return path

    def save_image(self, data: bytes, filename: str | None = None, file_type: str = DEFAULT_FILE_TYPE) -> dict[str, Any]:
        """Store ``data`` if it is an image no larger than ``max_bytes``.

        Raises:
            BadInputError: Empty, oversized or non-image content.
            NotFoundError: Unknown ``file_type``.
        """
        directory = self.directory(file_type)
        if not data:
            raise BadInputError("The uploaded file is empty")
        if len(data) > self.max_bytes:
            raise BadInputError(f"Files may not exceed {self.max_bytes} bytes")
        sniffed = sniff_image(data)
        if sniffed is None:
            raise BadInputError("Only images can be stored")
        ext, mime = sniffed

        name = f"{hashlib.md5(data).hexdigest()}.{ext}"
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        if not path.exists():
            path.write_bytes(data)
            logger.info("Stored %s upload %s (%d bytes)", file_type, name, len(data))
        return {
            "ext": ext,
            "mime": mime,
            "hashname": name,
            "filename": filename,
            "url": f"/uploads/{file_type}/{name}",
        }

    def info(self, file_type: str, name: str) -> StoredFile:
        return self._describe(file_type, self.path_for(file_type, name))

    def list_files(self, file_type: str | None = None) -> list[StoredFile]:
        """Uploads of one type (or every type), newest first."""
        files: list[StoredFile] = []
        for current in (file_type,) if file_type else FILE_TYPES:
            directory = self.directory(current)
            if not directory.is_dir():
                continue
            files.extend(
                self._describe(current, path)
                for path in directory.iterdir()
                if path.is_file() and _HASHNAME.match(path.name)
            )
        return sorted(files, key=lambda item: item.created, reverse=True)

    def delete(self, file_type: str, name: str) -> None:
        self.path_for(file_type, name).unlink()
        logger.info("Deleted %s upload %s", file_type, name)

    def _describe(self, file_type: str, path: Path) -> StoredFile:
        stat = path.stat()
        return StoredFile(
            name=path.name,
            type=file_type,
            size=stat.st_size,
            mime=_MIME_BY_EXT.get(path.suffix.lstrip("."), "application/octet-stream"),
            created=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
        )
