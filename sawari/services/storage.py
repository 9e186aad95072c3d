from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import anyio
from fastapi import UploadFile

from sawari.config import settings
from sawari.services.errors import ValidationFailed

IMAGE_TYPES = {"image/jpeg": "jpeg", "image/png": "png", "image/webp": "webp"}
MB = 1024 * 1024


class FileStorage(ABC):
    @abstractmethod
    async def save(self, path: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``path`` and return a URL it can be fetched from."""

    @abstractmethod
    async def delete(self, path: str) -> None:
        ...

    @abstractmethod
    def path_from_url(self, url: str) -> Optional[str]:
        """The storage path behind a URL returned by ``save``, or None if it is not ours."""

    async def replace(self, old_url: Optional[str], path: str, data: bytes, content_type: str) -> str:
        """Save ``data`` and remove the previous file when it lived at another path."""
        url = await self.save(path, data, content_type)
        old_path = self.path_from_url(old_url) if old_url else None
        if old_path and old_path != path:
            await self.delete(old_path)
        return url


class LocalFileStorage(FileStorage):
    def __init__(self, root: Optional[str] = None, base_url: Optional[str] = None):
        self.root = Path(root or settings.MEDIA_ROOT)
        self.base_url = (base_url or settings.MEDIA_URL).rstrip("/")

    def _target(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise ValidationFailed("Invalid storage path.")
        return target

    async def save(self, path: str, data: bytes, content_type: str) -> str:
        target = self._target(path)
        await anyio.to_thread.run_sync(lambda: target.parent.mkdir(parents=True, exist_ok=True))
        await anyio.to_thread.run_sync(target.write_bytes, data)
        return f"{self.base_url}/{path}"

    async def delete(self, path: str) -> None:
        target = self._target(path)
        await anyio.to_thread.run_sync(lambda: target.unlink(missing_ok=True))

    def path_from_url(self, url: str) -> Optional[str]:
        prefix = self.base_url + "/"
        return url[len(prefix):] if url.startswith(prefix) else None


async def read_image(upload: UploadFile, max_bytes: int) -> tuple[bytes, str]:
    """Read an uploaded image, enforcing type and size. Returns (data, extension)."""
    if upload.content_type not in IMAGE_TYPES:
        raise ValidationFailed("Only .jpg, .png, and .webp formats are supported.")
    data = await upload.read()
    if not data:
        raise ValidationFailed("Image file cannot be empty.")
    if len(data) >= max_bytes:
        raise ValidationFailed(f"Image must be less than {max_bytes // MB}MB.")
    return data, IMAGE_TYPES[upload.content_type]


_storage: FileStorage = LocalFileStorage()


def get_storage() -> FileStorage:
    return _storage
