"""Image normalisation helpers.

Turns an arbitrary user selected photo into a payload the generation API
accepts: HEIC/HEIF is converted to JPEG, and anything above the compression
target is downscaled and re-encoded until it fits or the quality floor is hit.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from enum import Enum
from io import BytesIO
from pathlib import PurePath
from typing import Awaitable, Callable, Union

from PIL import Image, ImageOps
from pillow_heif import register_heif_opener

from dreamhouse.imgproc.exceptions import (
    CompressionError,
    FileTooLargeError,
    NormalizationAborted,
    TranscodeError,
    UnsupportedFormatError,
)
from dreamhouse.imgproc.formats import (
    LEGACY_MIME_TYPES,
    FormatTag,
    detect_format,
    standard_mime_type,
)
from dreamhouse.imgproc.models import ImageAsset, UploadedImage

logger = logging.getLogger(__name__)

register_heif_opener()

MIB = 1024 * 1024
MAX_UPLOAD_BYTES = 6 * MIB
TARGET_MAX_BYTES = 3 * MIB
MAX_DIMENSION = 1600
INITIAL_QUALITY = 0.85
TRANSCODE_QUALITY = 0.8
QUALITY_FLOOR = 0.55
QUALITY_STEP = 0.1
MAX_QUALITY_STEPS = 4
MAX_TRANSCODE_RETRIES = 2


class Decision(str, Enum):
    """User answer after a HEIC conversion failure."""

    PROCEED = "proceed"
    ABORT = "abort"
    RETRY = "retry"


DecisionCallback = Callable[[TranscodeError], Union[Decision, Awaitable[Decision]]]
HeifDecoder = Callable[[bytes], Image.Image]


def _decode_heif(data: bytes) -> Image.Image:
    with Image.open(BytesIO(data)) as img:
        img.load()
        return img.copy()


def _percent(quality: float) -> int:
    return int(round(quality * 100))


def _jpeg_name(filename: str) -> str:
    return PurePath(filename or "image").with_suffix(".jpg").name


def _legacy_mime_type(file: UploadedImage) -> str:
    content_type = (file.content_type or "").lower()
    if content_type in LEGACY_MIME_TYPES:
        return content_type
    return "image/heif" if file.filename.lower().endswith(".heif") else "image/heic"


def _to_rgb(image: Image.Image) -> Image.Image:
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image.convert("RGB")


def _encode_jpeg(image: Image.Image, quality: int) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


class ImageNormalizer:
    """Ensures uploads are in a standard format and within the size limits."""

    def __init__(
        self,
        *,
        heif_decoder: HeifDecoder | None = _decode_heif,
        max_upload_bytes: int = MAX_UPLOAD_BYTES,
        target_max_bytes: int = TARGET_MAX_BYTES,
        max_dimension: int = MAX_DIMENSION,
        max_transcode_retries: int = MAX_TRANSCODE_RETRIES,
    ) -> None:
        self._heif_decoder = heif_decoder
        self.max_upload_bytes = max_upload_bytes
        self.target_max_bytes = target_max_bytes
        self.max_dimension = max_dimension
        self.max_transcode_retries = max_transcode_retries

    async def normalize(
        self,
        file: UploadedImage,
        decide: DecisionCallback | None = None,
    ) -> ImageAsset:
        """Run detection, transcoding and compression for a single upload.

        ``decide`` is consulted when a HEIC/HEIF conversion fails. Without a
        callback the pipeline aborts, since continuing with unconverted bytes
        must be an explicit choice.

        Raises:
            UnsupportedFormatError: The file is not a recognised image.
            FileTooLargeError: The declared size exceeds ``max_upload_bytes``.
            NormalizationAborted: The user declined the transcode fallback.
        """

        tag = detect_format(file)
        if tag is FormatTag.UNSUPPORTED:
            raise UnsupportedFormatError(file.filename, file.content_type)
        if file.size > self.max_upload_bytes:
            raise FileTooLargeError(file.size, self.max_upload_bytes)

        if tag is FormatTag.LEGACY_CONTAINER:
            asset = await self._transcode_with_fallback(file, decide)
            if asset.mime_type in LEGACY_MIME_TYPES:
                return asset
        else:
            asset = await asyncio.to_thread(self.load, file)

        if asset.size > self.target_max_bytes:
            logger.info("Compressing large image %s (%d bytes)", asset.filename, asset.size)
            asset = await asyncio.to_thread(self.compress, asset)
            logger.info("Compressed image size: %d bytes", asset.size)
        return asset

    def load(self, file: UploadedImage) -> ImageAsset:
        """Wrap a standard-format upload, probing its dimensions when possible."""

        width = height = None
        try:
            with Image.open(BytesIO(file.data)) as img:
                width, height = img.size
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            logger.warning("Could not read dimensions of %s: %s", file.filename, exc)
        return ImageAsset(
            data=file.data,
            mime_type=standard_mime_type(file),
            width=width,
            height=height,
            filename=file.filename,
        )

    def transcode(self, file: UploadedImage) -> ImageAsset:
        """Convert a HEIC/HEIF upload to JPEG at a fixed quality."""

        if self._heif_decoder is None:
            raise TranscodeError("HEIC decoder is not available.")
        try:
            image = self._heif_decoder(file.data)
            image = _to_rgb(ImageOps.exif_transpose(image))
            data = _encode_jpeg(image, _percent(TRANSCODE_QUALITY))
        except Exception as exc:
            raise TranscodeError(f"HEIC conversion failed: {exc}") from exc

        logger.info("Converted %s to JPEG (%d -> %d bytes)", file.filename, file.size, len(data))
        return ImageAsset(
            data=data,
            mime_type="image/jpeg",
            width=image.width,
            height=image.height,
            filename=_jpeg_name(file.filename),
        )

    def compress(
        self,
        asset: ImageAsset,
        max_dimension: int | None = None,
        target_max_bytes: int | None = None,
        initial_quality: float = INITIAL_QUALITY,
    ) -> ImageAsset:
        """Downscale and re-encode ``asset`` as JPEG, best effort.

        Assets already at or under the target are returned untouched, as is the
        input whenever recompression fails or would not make it smaller.
        """

        max_dimension = max_dimension or self.max_dimension
        target_max_bytes = target_max_bytes or self.target_max_bytes
        if asset.size <= target_max_bytes:
            return asset

        try:
            result = self._recompress(asset, max_dimension, target_max_bytes, initial_quality)
        except CompressionError as exc:
            logger.warning("Image compression skipped due to error: %s", exc)
            return asset

        if result.size >= asset.size:
            return asset
        return result

    def _recompress(
        self,
        asset: ImageAsset,
        max_dimension: int,
        target_max_bytes: int,
        initial_quality: float,
    ) -> ImageAsset:
        try:
            with Image.open(BytesIO(asset.data)) as source:
                image = _to_rgb(ImageOps.exif_transpose(source))
            scale = min(1.0, max_dimension / max(image.width, image.height))
            width = max(1, round(image.width * scale))
            height = max(1, round(image.height * scale))
            if (width, height) != image.size:
                image = image.resize((width, height), Image.Resampling.LANCZOS)

            quality = _percent(initial_quality)
            floor = _percent(QUALITY_FLOOR)
            step = _percent(QUALITY_STEP)
            data = _encode_jpeg(image, quality)
            steps = 0
            while len(data) > target_max_bytes and quality > floor and steps < MAX_QUALITY_STEPS:
                quality -= step
                steps += 1
                data = _encode_jpeg(image, quality)
        except Exception as exc:
            raise CompressionError(str(exc)) from exc

        return ImageAsset(
            data=data,
            mime_type="image/jpeg",
            width=width,
            height=height,
            filename=_jpeg_name(asset.filename),
        )

    async def _transcode_with_fallback(
        self,
        file: UploadedImage,
        decide: DecisionCallback | None,
    ) -> ImageAsset:
        retries = 0
        while True:
            try:
                return await asyncio.to_thread(self.transcode, file)
            except TranscodeError as exc:
                logger.warning("HEIC conversion failed for %s: %s", file.filename, exc)
                decision = Decision.ABORT
                if decide is not None:
                    decision = decide(exc)
                    if inspect.isawaitable(decision):
                        decision = await decision

                if decision is Decision.PROCEED:
                    logger.info("Continuing with unconverted file %s", file.filename)
                    return ImageAsset(
                        data=file.data,
                        mime_type=_legacy_mime_type(file),
                        width=None,
                        height=None,
                        filename=file.filename,
                    )
                if decision is Decision.RETRY and retries < self.max_transcode_retries:
                    retries += 1
                    continue
                raise NormalizationAborted(f"Upload of {file.filename} was cancelled.") from exc
