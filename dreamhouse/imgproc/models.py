"""Value objects flowing through the normalisation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class UploadedImage:
    """Raw file handle as received from the form layer."""

    filename: str
    content_type: str
    data: bytes
    size: int = field(default=-1)

    def __post_init__(self) -> None:
        if self.size < 0:
            self.size = len(self.data)


@dataclass(frozen=True, slots=True)
class ImageAsset:
    """Upload-ready image bytes with their MIME type and pixel dimensions."""

    data: bytes
    mime_type: str
    width: int | None
    height: int | None
    filename: str = "image"

    @property
    def size(self) -> int:
        return len(self.data)
