"""
Local file storage for profile images.

Files are written under UPLOAD_DIR and served by the app from
UPLOAD_URL_PREFIX.
"""
from pathlib import Path
import uuid

import aiofiles
import aiofiles.os
from fastapi import UploadFile

from alumnet.core.config import settings
from alumnet.core.exceptions import InvalidFileTypeError, FileTooLargeError
from alumnet.core.logging_config import logger

PROFILE_IMAGE_DIR = "profiles"
CHUNK_SIZE = 64 * 1024

# Stored extension comes from here, never from the client's filename
IMAGE_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


class StorageService:
    """Stores uploads on the local filesystem"""

    def __init__(self, base_dir: str = None, url_prefix: str = None):
        self.base_dir = Path(base_dir or settings.UPLOAD_DIR)
        self.url_prefix = (url_prefix or settings.UPLOAD_URL_PREFIX).rstrip("/")

    def _extension(self, upload: UploadFile) -> str:
        content_type = (upload.content_type or "").split(";")[0].strip().lower()
        extension = IMAGE_EXTENSIONS.get(content_type)
        if extension is None:
            raise InvalidFileTypeError(content_type or "unknown", allowed=", ".join(sorted(set(IMAGE_EXTENSIONS))))
        return extension

    async def save_profile_image(self, user_id: str, upload: UploadFile,
                                 max_bytes: int = None) -> str:
        """
        Validate and persist a profile image. Returns its public URL.

        Only PNG, JPEG, GIF and WebP are accepted; anything else (SVG and HTML
        included) raises InvalidFileTypeError. FileTooLargeError is raised when
        the upload exceeds `max_bytes`.
        """
        max_bytes = max_bytes or settings.MAX_PROFILE_IMAGE_SIZE
        extension = self._extension(upload)

        target_dir = self.base_dir / PROFILE_IMAGE_DIR
        target_dir.mkdir(parents=True, exist_ok=True)
        filename = f"{user_id}-{uuid.uuid4().hex[:12]}{extension}"
        target = target_dir / filename

        written = 0
        async with aiofiles.open(target, "wb") as out:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    break
                await out.write(chunk)

        if written > max_bytes:
            await aiofiles.os.remove(target)
            raise FileTooLargeError(max_bytes)

        logger.info(f"[Storage] Saved profile image for {user_id} ({written} bytes)")
        return f"{self.url_prefix}/{PROFILE_IMAGE_DIR}/{filename}"

    async def delete(self, url: str) -> None:
        """Remove a previously stored file given its public URL"""
        if not url or not url.startswith(self.url_prefix + "/"):
            return
        path = self.base_dir / url[len(self.url_prefix) + 1:]
        if path.exists():
            await aiofiles.os.remove(path)


storage_service = StorageService()
