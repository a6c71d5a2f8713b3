"""Image gallery naming rules."""

from __future__ import annotations

import re
from collections.abc import Iterable

from salesdesk.domain.models import ImageAsset

JPEG_MIME_MARKERS = ("jpeg", "jpg")
MAX_UPLOAD_BYTES = 5 * 1024 * 1024
DEFAULT_FOLDER = "product-images"

_NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")
_RENAME_DISALLOWED_RUN = re.compile(r"[^a-z0-9\-_]+")
_HYPHEN_RUN = re.compile(r"-+")
_JPEG_SUFFIX = re.compile(r"\.(jpg|jpeg)$", re.IGNORECASE)


def sanitize_name(name: str) -> str:
    """Lower-case *name* and collapse every run of non-alphanumerics into one hyphen."""
    return _NON_ALNUM_RUN.sub("-", name.lower())


def upload_public_name(file_name: str, timestamp_ms: int) -> str:
    """Build the public name for a freshly uploaded file: ``{sanitized-stem}-{ms}``."""
    stem = _JPEG_SUFFIX.sub("", file_name.lower())
    return f"{sanitize_name(stem)}-{timestamp_ms}"


def rename_target(new_name: str) -> str:
    """Sanitise a user-supplied rename; returns ``""`` when nothing usable is left."""
    cleaned = _RENAME_DISALLOWED_RUN.sub("-", new_name.strip().lower())
    return _HYPHEN_RUN.sub("-", cleaned).strip("-")


def is_jpeg(content_type: str) -> bool:
    return any(marker in content_type for marker in JPEG_MIME_MARKERS)


def search_images(images: Iterable[ImageAsset], query: str) -> list[ImageAsset]:
    needle = query.lower()
    return [img for img in images if needle in img.name.lower()]
