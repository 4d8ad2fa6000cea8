"""
Design Gallery - Object Storage
================================
Image validation, object key generation, and a filesystem-backed object store.
Routes and services receive the store through the get_storage() dependency.
"""

import io
import logging
import mimetypes
import os
import re
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from config.settings import (
    UPLOAD_DIR, PUBLIC_MEDIA_URL, ALLOWED_IMAGE_TYPES,
    ALLOWED_IMAGE_EXTENSIONS, MAX_FILE_SIZE,
)
from common.exceptions import ValidationError
from common.helpers import now_utc

logger = logging.getLogger("gallery.upload")

_CATEGORY_CLEAN = re.compile(r"[^a-z0-9_-]+")

_EXT_BY_TYPE = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


@dataclass(frozen=True)
class ImageInfo:
    content_type: str
    extension: str
    size: int
    width: int
    height: int


@dataclass(frozen=True)
class StoredObject:
    key: str
    size: int
    content_type: str
    uploaded_at: datetime
    url: str

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "size": self.size,
            "content_type": self.content_type,
            "uploaded_at": self.uploaded_at.isoformat(),
            "url": self.url,
        }


# ==========================================
# Validation & Keys
# ==========================================

def validate_image(
    filename: Optional[str],
    content_type: Optional[str],
    data: bytes,
    max_size: int = MAX_FILE_SIZE,
) -> ImageInfo:
    """
    Check type, size and that the bytes really are an image.
    Raises ValidationError with a client-facing message otherwise.
    """
    if not data:
        raise ValidationError("File is empty")

    if len(data) > max_size:
        raise ValidationError(f"File too large. Maximum size is {max_size // (1024 * 1024)}MB")

    content_type = (content_type or "").split(";")[0].strip().lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        allowed = ", ".join(sorted(t.split("/")[1] for t in ALLOWED_IMAGE_TYPES))
        raise ValidationError(f"Invalid file type. Allowed types: {allowed}")

    ext = os.path.splitext(filename or "")[1].lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        ext = _EXT_BY_TYPE[content_type]

    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        raise ValidationError("File is not a valid image")

    return ImageInfo(content_type=content_type, extension=ext, size=len(data), width=width, height=height)


def clean_category(category: Optional[str]) -> str:
    cleaned = _CATEGORY_CLEAN.sub("-", (category or "").strip().lower()).strip("-")
    return cleaned or "designs"


def generate_object_key(category: Optional[str], extension: str, now: Optional[datetime] = None) -> str:
    """`<category>/<YYYY>/<MM>/<YYYYMMDD_HHMMSS>_<8 hex><ext>`"""
    now = now or now_utc()
    ext = extension if extension.startswith(".") else f".{extension}"
    return (
        f"{clean_category(category)}/{now:%Y}/{now:%m}/"
        f"{now:%Y%m%d_%H%M%S}_{uuid.uuid4().hex[:8]}{ext.lower()}"
    )


# ==========================================
# Filesystem Object Store
# ==========================================

class LocalObjectStore:
    """Objects are files under `root`; the key is the relative path with forward slashes."""

    def __init__(self, root: str = UPLOAD_DIR, public_base_url: str = PUBLIC_MEDIA_URL):
        self.root = os.path.abspath(root)
        self.public_base_url = public_base_url.rstrip("/")

    def _path(self, key: str) -> str:
        if not key or key.startswith("/") or "\\" in key or "\x00" in key:
            raise ValidationError("Invalid object key")
        path = os.path.abspath(os.path.join(self.root, *key.split("/")))
        if os.path.commonpath([self.root, path]) != self.root or path == self.root:
            raise ValidationError("Invalid object key")
        return path

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    def put(self, key: str, data: bytes, content_type: str) -> StoredObject:
        path = self._path(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        tmp_path = f"{path}.{uuid.uuid4().hex[:6]}.part"
        with open(tmp_path, "wb") as fh:
            fh.write(data)
        os.replace(tmp_path, path)
        logger.info("Stored object %s (%d bytes)", key, len(data))
        return StoredObject(key, len(data), content_type, now_utc(), self.public_url(key))

    def head(self, key: str) -> Optional[StoredObject]:
        path = self._path(key)
        if not os.path.isfile(path):
            return None
        stat = os.stat(path)
        content_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
        uploaded_at = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
        return StoredObject(key, stat.st_size, content_type, uploaded_at, self.public_url(key))

    def exists(self, key: str) -> bool:
        try:
            return os.path.isfile(self._path(key))
        except ValidationError:
            return False

    def delete(self, key: str) -> bool:
        """Remove an object. Returns True if something was deleted."""
        path = self._path(key)
        if not os.path.isfile(path):
            return False
        os.remove(path)
        logger.info("Deleted object %s", key)
        return True

    def list(self, prefix: str = "", limit: int = 100) -> Tuple[List[StoredObject], bool]:
        """Objects whose key starts with `prefix`, sorted by key. Returns (objects, truncated)."""
        keys = []
        if os.path.isdir(self.root):
            for dirpath, _, filenames in os.walk(self.root):
                for name in filenames:
                    if name.endswith(".part"):
                        continue
                    rel = os.path.relpath(os.path.join(dirpath, name), self.root).replace(os.sep, "/")
                    if rel.startswith(prefix):
                        keys.append(rel)
        keys.sort()
        objects = [obj for obj in (self.head(k) for k in keys[:limit]) if obj]
        return objects, len(keys) > limit

    def ping(self) -> bool:
        os.makedirs(self.root, exist_ok=True)
        return os.access(self.root, os.W_OK)


_store: Optional[LocalObjectStore] = None


def get_storage() -> LocalObjectStore:
    """FastAPI dependency: the process-wide object store."""
    global _store
    if _store is None:
        _store = LocalObjectStore()
    return _store


@contextmanager
def compensating_writes(store: LocalObjectStore):
    """
    Pair object writes with the database work that references them.
    Keys appended to the yielded list are deleted again if the block raises.

    Usage:
        with compensating_writes(storage) as written:
            obj = storage.put(key, data, content_type)
            written.append(obj.key)
            ...insert rows...
            db.commit()
    """
    written: List[str] = []
    try:
        yield written
    except Exception:
        for key in written:
            try:
                store.delete(key)
                logger.info("Removed orphaned object %s", key)
            except (OSError, ValidationError) as e:
                logger.error("Could not remove orphaned object %s: %s", key, e)
        raise
