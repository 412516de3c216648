from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tubely.core.errors import NotFound, StoreError
from tubely.domain import VideoRecord

from .models import Video


@dataclass(slots=True)
class CreateVideoParams:
    title: str
    description: str = ""


class VideoRepository:
    """Metadata store for video records.

    Rows never leave this class: callers get immutable ``VideoRecord`` values,
    so rewriting a record for a response cannot leak back into the database.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, video_id: UUID) -> VideoRecord:
        row = await self.session.get(Video, str(video_id))
        if row is None:
            raise NotFound(f"Video not found: {video_id}")
        return _to_record(row)

    async def create(self, user_id: UUID, params: CreateVideoParams) -> VideoRecord:
        now = datetime.now(timezone.utc)
        row = Video(
            user_id=str(user_id),
            title=params.title,
            description=params.description,
            created_at=now,
            updated_at=now,
        )
        self.session.add(row)
        await self._commit("create")
        await self.session.refresh(row)
        return _to_record(row)

    async def update(self, record: VideoRecord) -> VideoRecord:
        row = await self.session.get(Video, str(record.id))
        if row is None:
            raise NotFound(f"Video not found: {record.id}")
        row.title = record.title
        row.description = record.description
        row.thumbnail_url = record.thumbnail_url
        row.video_url = record.video_url
        row.updated_at = record.updated_at
        await self._commit("update")
        return _to_record(row)

    async def delete(self, video_id: UUID) -> None:
        row = await self.session.get(Video, str(video_id))
        if row is None:
            raise NotFound(f"Video not found: {video_id}")
        await self.session.delete(row)
        await self._commit("delete")

    async def list_by_owner(self, user_id: UUID) -> list[VideoRecord]:
        stmt = select(Video).where(Video.user_id == str(user_id)).order_by(Video.created_at.desc())
        rows = (await self.session.execute(stmt)).scalars().all()
        return [_to_record(row) for row in rows]

    async def _commit(self, operation: str) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise StoreError(f"Couldn't {operation} video", cause=exc) from exc


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back out.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_record(row: Video) -> VideoRecord:
    return VideoRecord(
        id=UUID(row.id),
        user_id=UUID(row.user_id),
        title=row.title,
        description=row.description,
        thumbnail_url=row.thumbnail_url,
        video_url=row.video_url,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


__all__ = ["CreateVideoParams", "VideoRepository"]
