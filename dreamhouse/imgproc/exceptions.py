"""Errors raised by the image normalisation pipeline."""

from __future__ import annotations


class NormalizationError(Exception):
    """Base class for failures while preparing an upload."""


class UnsupportedFormatError(NormalizationError):
    """Raised when neither the content type nor the extension names an image."""

    def __init__(self, filename: str, content_type: str) -> None:
        self.filename = filename
        self.content_type = content_type
        super().__init__(
            f"Unsupported image format for {filename!r} (content type {content_type or 'unknown'!r})."
        )


class FileTooLargeError(NormalizationError):
    """Raised when the declared size already exceeds the hard upload limit."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"File is {size} bytes; the maximum accepted size is {limit} bytes.")


class TranscodeError(NormalizationError):
    """Raised when a HEIC/HEIF file cannot be converted to JPEG."""


class CompressionError(NormalizationError):
    """Raised internally when recompression fails; never leaves the normaliser."""


class NormalizationAborted(NormalizationError):
    """Raised when the user declines to continue after a failed transcode."""
