from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from tubely.domain import VideoRecord


class HealthResponse(BaseModel):
    status: str = Field(default="ok", description="Health status indicator.")
    version: str
    storage_backend: str = Field(..., description="Active object store implementation.")
    time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EnvCheckResponse(BaseModel):
    ffmpeg: bool
    ffprobe: bool


class CreateVideoRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255, json_schema_extra={"example": "Boots on the ground"})
    description: str = Field(default="", json_schema_extra={"example": "A short clip."})


class VideoResponse(BaseModel):
    id: UUID
    user_id: UUID
    title: str
    description: str
    thumbnail_url: Optional[str] = Field(default=None, description="Plain URL of the static thumbnail.")
    video_url: Optional[str] = Field(default=None, description="Time-limited signed playback URL.")
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: VideoRecord) -> "VideoResponse":
        return cls(
            id=record.id,
            user_id=record.user_id,
            title=record.title,
            description=record.description,
            thumbnail_url=record.thumbnail_url,
            video_url=record.video_url,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Stable machine-readable error code.")
    message: str = Field(..., description="Human-readable explanation.")
