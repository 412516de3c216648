from __future__ import annotations

import enum
import secrets
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional
from uuid import UUID

from tubely.core.errors import InvalidReferenceFormat

REFERENCE_DELIMITER = ","
OBJECT_NAME_BYTES = 32


class AspectRatio(str, enum.Enum):
    landscape = "landscape"
    portrait = "portrait"
    other = "other"


@dataclass(frozen=True, slots=True)
class ObjectReference:
    """A (bucket, key) pair identifying an object store entry."""

    bucket: str
    key: str

    def encode(self) -> str:
        """Return the persisted ``bucket,key`` form stored in the metadata store."""
        return f"{self.bucket}{REFERENCE_DELIMITER}{self.key}"

    @classmethod
    def decode(cls, raw: str) -> "ObjectReference":
        parts = raw.split(REFERENCE_DELIMITER)
        if len(parts) != 2 or not all(parts):
            raise InvalidReferenceFormat(f"invalid bucket/key format: {raw!r}")
        bucket, key = parts
        return cls(bucket=bucket, key=key)


@dataclass(frozen=True, slots=True)
class VideoRecord:
    id: UUID
    user_id: UUID
    title: str
    description: str
    thumbnail_url: Optional[str]
    video_url: Optional[str]
    created_at: datetime
    updated_at: datetime

    def with_thumbnail(self, url: str, at: datetime) -> "VideoRecord":
        return replace(self, thumbnail_url=url, updated_at=at)

    def with_video_reference(self, reference: ObjectReference, at: datetime) -> "VideoRecord":
        return replace(self, video_url=reference.encode(), updated_at=at)


def new_object_name() -> str:
    """Return 32 random bytes as unpadded URL-safe base64."""
    return secrets.token_urlsafe(OBJECT_NAME_BYTES)


__all__ = [
    "AspectRatio",
    "ObjectReference",
    "VideoRecord",
    "new_object_name",
    "REFERENCE_DELIMITER",
]
