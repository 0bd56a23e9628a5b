"""SQLite-backed gallery of the most recent generations."""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from dreamhouse.db.session import create_engine, create_session_factory
from dreamhouse.gallery.models import Base, GalleryItem, GalleryRecord, to_millis

logger = logging.getLogger(__name__)

MAX_GALLERY_ITEMS = 6


class StorageError(RuntimeError):
    """Raised when the gallery database cannot be read or written."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class GalleryStore:
    """Keeps at most ``max_items`` saved generations, evicting the oldest first.

    Mutations are serialised per instance and each insert runs together with
    its eviction pass in a single transaction, so a failed write leaves the
    table as it was.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        max_items: int = MAX_GALLERY_ITEMS,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._engine = engine
        self._session_factory = create_session_factory(engine)
        self._lock = asyncio.Lock()
        self._schema_ready = False
        self._clock = clock
        self._id_factory = id_factory
        self.max_items = max_items

    @classmethod
    def from_url(cls, database_url: str, **kwargs) -> "GalleryStore":
        """Build a store with its own engine for ``database_url``."""

        return cls(create_engine(database_url), **kwargs)

    async def close(self) -> None:
        """Dispose the underlying engine."""

        await self._engine.dispose()

    async def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            raise StorageError("Gallery storage is unavailable.") from exc
        self._schema_ready = True

    async def insert(self, theme: str, vibe: str, pose: str, url: str) -> GalleryItem:
        """Persist a new item and trim the gallery back to ``max_items``."""

        async with self._lock:
            await self._ensure_schema()
            record = GalleryRecord(
                id=self._id_factory(),
                url=url,
                theme=theme,
                vibe=vibe,
                pose=pose,
                created_at=to_millis(self._clock()),
            )
            try:
                async with self._session_factory() as session:
                    async with session.begin():
                        last = await session.scalar(select(func.max(GalleryRecord.sequence)))
                        record.sequence = (last or 0) + 1
                        session.add(record)
                        await session.flush()
                        evicted = await self._evict_excess(session)
            except SQLAlchemyError as exc:
                logger.error("Failed to save gallery item: %s", exc)
                raise StorageError("Failed to save gallery item.") from exc

        if evicted:
            logger.info("Evicted %d old gallery item(s)", evicted)
        return GalleryItem.from_record(record)

    async def list_recent(self) -> list[GalleryItem]:
        """Return saved items, newest first."""

        await self._ensure_schema()
        statement = (
            select(GalleryRecord)
            .order_by(GalleryRecord.created_at.desc(), GalleryRecord.sequence.desc())
            .limit(self.max_items)
        )
        try:
            async with self._session_factory() as session:
                records = (await session.scalars(statement)).all()
        except SQLAlchemyError as exc:
            raise StorageError("Failed to load the gallery.") from exc
        return [GalleryItem.from_record(record) for record in records]

    async def clear_all(self) -> None:
        """Remove every saved item."""

        async with self._lock:
            await self._ensure_schema()
            try:
                async with self._session_factory() as session:
                    async with session.begin():
                        await session.execute(delete(GalleryRecord))
            except SQLAlchemyError as exc:
                logger.error("Failed to clear gallery: %s", exc)
                raise StorageError("Failed to clear the gallery.") from exc

    async def _evict_excess(self, session: AsyncSession) -> int:
        count = await session.scalar(select(func.count()).select_from(GalleryRecord)) or 0
        excess = count - self.max_items
        if excess <= 0:
            return 0

        stale_ids = (
            await session.scalars(
                select(GalleryRecord.id)
                .order_by(GalleryRecord.created_at.asc(), GalleryRecord.sequence.asc())
                .limit(excess)
            )
        ).all()
        await session.execute(delete(GalleryRecord).where(GalleryRecord.id.in_(stale_ids)))
        return len(stale_ids)
