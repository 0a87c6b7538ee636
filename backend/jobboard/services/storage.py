"""
File storage for CVs, profile photos and company logos.

Objects live under `STORAGE_DIR/<bucket>/` and are keyed by owner id plus a
millisecond timestamp so two uploads never collide.
"""

import logging
import os
import time
from pathlib import Path
from typing import Optional

from jobboard.core.config import settings

logger = logging.getLogger("storage")

BUCKETS = {
    "cv": {".pdf", ".doc", ".docx"},
    "avatars": {".png", ".jpg", ".jpeg", ".webp", ".gif"},
    "company-logos": {".png", ".jpg", ".jpeg", ".webp", ".gif", ".svg"},
}

MAX_UPLOAD_BYTES = 5 * 1024 * 1024


class StorageError(ValueError):
    pass


class LocalStorage:
    def __init__(self, root: Optional[str] = None, public_url: Optional[str] = None):
        self.root = Path(root or settings.STORAGE_DIR)
        self.public_base = (public_url or settings.PUBLIC_FILES_URL).rstrip("/")

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise StorageError(f"Invalid storage key: {key}")
        return path

    def upload(self, bucket: str, user_id: str, filename: str, data: bytes) -> str:
        """
        Store a file and return its key.

        Raises:
            StorageError: Unknown bucket, disallowed extension or oversize file
        """
        if bucket not in BUCKETS:
            raise StorageError(f"Unknown bucket: {bucket}")

        ext = os.path.splitext(filename or "")[1].lower()
        if ext not in BUCKETS[bucket]:
            raise StorageError(
                f"File type {ext or '(none)'} is not accepted. Allowed: {', '.join(sorted(BUCKETS[bucket]))}"
            )
        if len(data) > MAX_UPLOAD_BYTES:
            raise StorageError("File is larger than 5 MB")

        stamp = int(time.time() * 1000)
        key = f"{bucket}/{user_id}-{stamp}{ext}"
        path = self._path(key)
        while path.exists():
            stamp += 1
            key = f"{bucket}/{user_id}-{stamp}{ext}"
            path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

        logger.info(f"Stored {key} ({len(data)} bytes)")
        return key

    def public_url(self, key: str) -> str:
        return f"{self.public_base}/{key}"

    def key_from_url(self, url: str) -> Optional[str]:
        prefix = f"{self.public_base}/"
        if url and url.startswith(prefix):
            return url[len(prefix):]
        return None

    def delete(self, key_or_url: str) -> bool:
        """Remove a stored file; returns False when it is not one of ours."""
        key = self.key_from_url(key_or_url) or key_or_url
        try:
            path = self._path(key)
        except StorageError:
            return False
        if not path.is_file():
            return False
        path.unlink()
        logger.info(f"Deleted {key}")
        return True


def get_storage() -> LocalStorage:
    """FastAPI dependency for the file store."""
    return LocalStorage()
