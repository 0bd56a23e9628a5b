"""Format detection for user supplied image files."""

from __future__ import annotations

from enum import Enum

from dreamhouse.imgproc.models import UploadedImage

STANDARD_MIME_TYPES = frozenset({"image/jpeg", "image/png", "image/webp"})
LEGACY_MIME_TYPES = frozenset({"image/heic", "image/heif"})

STANDARD_EXTENSIONS = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
}
LEGACY_EXTENSIONS = (".heic", ".heif")


class FormatTag(str, Enum):
    """Classification of an uploaded file before any decoding happens."""

    STANDARD = "standard"
    LEGACY_CONTAINER = "legacy_container"
    UNSUPPORTED = "unsupported"


def _content_type(file: UploadedImage) -> str:
    return (file.content_type or "").lower().split(";", 1)[0].strip()


def detect_format(file: UploadedImage) -> FormatTag:
    """Classify ``file`` using both its declared content type and its extension.

    Browsers report HEIC inconsistently (empty type, ``application/octet-stream``
    or even ``image/jpeg``), so the extension is checked as well and a HEIC
    signal from either source wins.
    """

    content_type = _content_type(file)
    name = (file.filename or "").lower()

    if content_type in LEGACY_MIME_TYPES or name.endswith(LEGACY_EXTENSIONS):
        return FormatTag.LEGACY_CONTAINER
    if content_type in STANDARD_MIME_TYPES or name.endswith(tuple(STANDARD_EXTENSIONS)):
        return FormatTag.STANDARD
    return FormatTag.UNSUPPORTED


def standard_mime_type(file: UploadedImage) -> str:
    """Return the standard MIME type of ``file``, inferring it from the extension if needed."""

    content_type = _content_type(file)
    if content_type in STANDARD_MIME_TYPES:
        return content_type
    name = (file.filename or "").lower()
    for extension, mime_type in STANDARD_EXTENSIONS.items():
        if name.endswith(extension):
            return mime_type
    return "image/jpeg"
