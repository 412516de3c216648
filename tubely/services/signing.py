from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from tubely.core.storage import ObjectStore
from tubely.domain import ObjectReference, VideoRecord

PLAYBACK_URL_TTL_SECONDS = 15 * 60


class SignedURLResolver:
    """Swaps a record's stored ``bucket,key`` reference for a short-lived playback URL.

    Only the returned copy changes; the stored reference is never rewritten.
    """

    def __init__(self, store: ObjectStore, *, expires_s: int = PLAYBACK_URL_TTL_SECONDS):
        self.store = store
        self.expires_s = expires_s

    def resolve(self, record: VideoRecord) -> VideoRecord:
        if not record.video_url:
            return record
        reference = ObjectReference.decode(record.video_url)
        presigned = self.store.presign_get(reference.bucket, reference.key, expires_s=self.expires_s)
        return replace(record, video_url=presigned.url)

    def resolve_many(self, records: Iterable[VideoRecord]) -> list[VideoRecord]:
        return [self.resolve(record) for record in records]


__all__ = ["SignedURLResolver", "PLAYBACK_URL_TTL_SECONDS"]
