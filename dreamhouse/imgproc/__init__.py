"""Upload normalisation: format detection, HEIC transcoding and compression."""

from .exceptions import (
    CompressionError,
    FileTooLargeError,
    NormalizationAborted,
    NormalizationError,
    TranscodeError,
    UnsupportedFormatError,
)
from .formats import FormatTag, detect_format
from .models import ImageAsset, UploadedImage
from .normalize import Decision, ImageNormalizer

__all__ = [
    "CompressionError",
    "Decision",
    "FileTooLargeError",
    "FormatTag",
    "ImageAsset",
    "ImageNormalizer",
    "NormalizationAborted",
    "NormalizationError",
    "TranscodeError",
    "UnsupportedFormatError",
    "UploadedImage",
    "detect_format",
]
