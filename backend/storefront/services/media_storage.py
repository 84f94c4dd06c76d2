"""Local-disk storage for uploaded product media."""

from __future__ import annotations

import logging
from pathlib import Path
from uuid import uuid4

from storefront.core.config import settings
from storefront.models.enums import MediaType

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
VIDEO_EXTENSIONS = {".mp4", ".webm", ".mov"}


def allowed_extensions(media_type: MediaType) -> set[str]:
    if media_type == MediaType.video:
        return VIDEO_EXTENSIONS
    return IMAGE_EXTENSIONS


def upload_root() -> Path:
    return Path(settings.UPLOAD_DIR)


def store_media_file(data: bytes, suggested_name: str, media_type: MediaType) -> str:
    """Write ``data`` under a fresh name and return its public URL.

    Raises ``ValueError`` with ``empty_file``, ``file_too_large`` or
    ``unsupported_file_type``.
    """
    if not data:
        raise ValueError("empty_file")
    if len(data) > settings.UPLOAD_MAX_BYTES:
        raise ValueError("file_too_large")
    suffix = Path(suggested_name or "").suffix.lower()
    if suffix not in allowed_extensions(media_type):
        raise ValueError("unsupported_file_type")

    root = upload_root()
    root.mkdir(parents=True, exist_ok=True)
    filename = f"{uuid4().hex}{suffix}"
    (root / filename).write_bytes(data)
    logger.info("Media stored: %s (%d bytes)", filename, len(data))
    return f"{settings.UPLOAD_URL_PREFIX.rstrip('/')}/{filename}"


def remove_media_file(file_url: str | None) -> bool:
    """Delete a previously stored file; URLs outside the upload prefix are left alone."""
    if not file_url:
        return False
    prefix = settings.UPLOAD_URL_PREFIX.rstrip("/") + "/"
    if not file_url.startswith(prefix):
        return False

    root = upload_root().resolve()
    path = (root / file_url[len(prefix):]).resolve()
    try:
        path.relative_to(root)
    except ValueError:
        logger.warning("Refusing to remove media outside upload dir: %s", file_url)
        return False
    if not path.is_file():
        return False
    path.unlink()
    logger.info("Media file removed: %s", path.name)
    return True
