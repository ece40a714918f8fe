# instabids/services/media_storage.py
# Object storage for bid card media and message attachments.

import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional

import aiofiles
import aiofiles.os
from fastapi import UploadFile

from instabids.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class MediaUpload:
    """A file received from the client, fully read into memory."""
    file_name: str
    content_type: str
    content: bytes

    @property
    def size_bytes(self) -> int:
        return len(self.content)

    @property
    def media_type(self) -> str:
        if self.content_type.startswith("image/"):
            return "photo"
        if self.content_type.startswith("video/"):
            return "video"
        return "document"

    @property
    def extension(self) -> str:
        _, ext = os.path.splitext(self.file_name)
        return ext.lower() or ".bin"

    @classmethod
    async def from_upload_file(cls, file: UploadFile) -> "MediaUpload":
        content = await file.read()
        return cls(
            file_name=file.filename or "upload",
            content_type=file.content_type or "application/octet-stream",
            content=content,
        )


def media_key(folder: str, upload: MediaUpload) -> str:
    return f"{folder}/{uuid.uuid4()}{upload.extension}"


class MediaStorage:
    """Interface of the storage collaborator."""

    async def upload(self, key: str, upload: MediaUpload) -> str:
        """Store the file under key and return a durable public URL."""
        raise NotImplementedError

    async def remove(self, keys: Iterable[str]) -> None:
        raise NotImplementedError


class LocalMediaStorage(MediaStorage):
    """Public-readable upload directory served under MEDIA_URL_PREFIX."""

    def __init__(self, root: Optional[str] = None, url_prefix: Optional[str] = None, max_bytes: Optional[int] = None):
        self.root = Path(root or settings.MEDIA_UPLOAD_DIR)
        self.url_prefix = (url_prefix or settings.MEDIA_URL_PREFIX).rstrip("/")
        self.max_bytes = max_bytes or settings.MEDIA_MAX_BYTES

    async def upload(self, key: str, upload: MediaUpload) -> str:
        if upload.size_bytes > self.max_bytes:
            raise OSError(f"{upload.file_name} exceeds the {self.max_bytes} byte limit")
        path = self.root / key
        await aiofiles.os.makedirs(path.parent, exist_ok=True)
        async with aiofiles.open(path, "wb") as f:
            await f.write(upload.content)
        logger.info(f"Stored media {key} ({upload.size_bytes} bytes)")
        return f"{self.url_prefix}/{key}"

    async def remove(self, keys: Iterable[str]) -> None:
        for key in keys:
            path = self.root / key
            if await aiofiles.os.path.exists(path):
                await aiofiles.os.remove(path)


class InMemoryMediaStorage(MediaStorage):
    """Storage double for the mock API and tests; contents vanish on restart."""

    def __init__(self, url_prefix: str = "memory://media"):
        self.url_prefix = url_prefix
        self.objects: Dict[str, bytes] = {}

    async def upload(self, key: str, upload: MediaUpload) -> str:
        self.objects[key] = upload.content
        return f"{self.url_prefix}/{key}"

    async def remove(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.objects.pop(key, None)


def get_media_storage() -> MediaStorage:
    """FastAPI dependency: the configured storage collaborator."""
    return LocalMediaStorage()
