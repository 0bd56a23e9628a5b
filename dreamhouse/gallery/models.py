"""Persistence model and value object for saved generations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import BigInteger, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for ORM models."""


class GalleryRecord(Base):
    """Row of the ``gallery_items`` table keyed by item id."""

    __tablename__ = "gallery_items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    theme: Mapped[str] = mapped_column(String(120), nullable=False)
    vibe: Mapped[str] = mapped_column(String(32), nullable=False)
    pose: Mapped[str] = mapped_column(String(32), nullable=False)
    # milliseconds since the epoch, UTC
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)


def to_millis(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(round(moment.timestamp() * 1000))


def from_millis(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


@dataclass(frozen=True, slots=True)
class GalleryItem:
    """Immutable view of a saved generation."""

    id: str
    url: str
    theme: str
    vibe: str
    pose: str
    created_at: datetime

    @classmethod
    def from_record(cls, record: GalleryRecord) -> "GalleryItem":
        return cls(
            id=record.id,
            url=record.url,
            theme=record.theme,
            vibe=record.vibe,
            pose=record.pose,
            created_at=from_millis(record.created_at),
        )
