"""
Image storage backends.

Routes only ever see a string back from `save`: a Cloudinary URL or a
local /uploads path. Which backend is used comes from Settings.

Every upload is checked (type and size) before anything is written, so a
rejected batch leaves no files behind.
"""
import os
import re
import secrets
import time
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Tuple

import cloudinary
import cloudinary.uploader
from fastapi import UploadFile

from config import Settings, get_settings
from errors import StoreError, ValidationFailed
from logger import get_logger

log = get_logger("storage")

IMAGE_TYPES = re.compile(r"jpeg|jpg|png|webp|gif")
MAX_IMAGES_PER_PRODUCT = 5


def present(uploads: Optional[Iterable[UploadFile]]) -> List[UploadFile]:
    """Uploads that actually carry a file."""
    return [u for u in (uploads or []) if u is not None and u.filename]


class ImageStorage(ABC):
    def __init__(self, max_bytes: int):
        self.max_bytes = max_bytes

    @abstractmethod
    def _store(self, content: bytes, ext: str, field: str) -> str:
        """Persist already-checked bytes and return the public URL."""

    def save(self, upload: UploadFile, field: str = "image") -> str:
        content, ext = self._read_checked(upload)
        return self._store(content, ext, field)

    def save_all(self, uploads: Optional[Iterable[UploadFile]], field: str = "images") -> List[str]:
        checked = [self._read_checked(u) for u in present(uploads)]
        return [self._store(content, ext, field) for content, ext in checked]

    def _read_checked(self, upload: UploadFile) -> Tuple[bytes, str]:
        ext = os.path.splitext(upload.filename or "")[1].lower()
        mime = upload.content_type or ""
        if not (IMAGE_TYPES.search(ext) and IMAGE_TYPES.search(mime)):
            raise ValidationFailed("Images only")
        content = upload.file.read()
        if len(content) > self.max_bytes:
            raise ValidationFailed("Image too large")
        return content, ext


class LocalImageStorage(ImageStorage):
    def __init__(self, upload_dir: str, max_bytes: int, url_prefix: str = "/uploads"):
        super().__init__(max_bytes)
        self.upload_dir = upload_dir
        self.url_prefix = url_prefix.rstrip("/")

    def _store(self, content: bytes, ext: str, field: str) -> str:
        name = f"{field}-{int(time.time() * 1000)}-{secrets.token_hex(3)}{ext}"
        os.makedirs(self.upload_dir, exist_ok=True)
        with open(os.path.join(self.upload_dir, name), "wb") as fh:
            fh.write(content)
        return f"{self.url_prefix}/{name}"


class CloudinaryImageStorage(ImageStorage):
    def __init__(self, settings: Settings):
        super().__init__(settings.max_upload_bytes)
        self.folder = settings.cloudinary_folder
        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=True,
        )

    def _store(self, content: bytes, ext: str, field: str) -> str:
        try:
            result = cloudinary.uploader.upload(
                content,
                folder=self.folder,
                resource_type="image",
                transformation=[{"width": 1000, "height": 1000, "crop": "limit"}],
            )
        except Exception as e:
            log.error(f"Cloudinary upload failed: {e}")
            raise StoreError("Image upload failed")
        return result["secure_url"]


def build_storage(settings: Settings) -> ImageStorage:
    if settings.cloudinary_configured:
        log.info("Using Cloudinary image storage")
        return CloudinaryImageStorage(settings)
    log.warning("Cloudinary credentials missing. Falling back to local disk storage.")
    return LocalImageStorage(settings.upload_dir, settings.max_upload_bytes)


_storage: Optional[ImageStorage] = None


def get_storage() -> ImageStorage:
    global _storage
    if _storage is None:
        _storage = build_storage(get_settings())
    return _storage
