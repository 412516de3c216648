from __future__ import annotations

import time
from typing import BinaryIO, Callable, Optional

from tubely.core.errors import StoreError, UploadFailure
from tubely.core.logging import get_logger
from tubely.core.storage import ObjectStore
from tubely.domain import ObjectReference

MAX_ATTEMPTS = 3


class DurableUploader:
    """Uploads a local stream to the object store with bounded, linear retry.

    Attempt ``n`` is preceded by a sleep of ``n - 1`` seconds and by rewinding
    the stream, so a half-consumed body from a failed attempt is never sent.
    """

    def __init__(
        self,
        store: ObjectStore,
        *,
        max_attempts: int = MAX_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.max_attempts = max_attempts
        self._sleep = sleep
        self.logger = get_logger(component="durable_uploader")

    def upload(self, stream: BinaryIO, reference: ObjectReference, *, content_type: str) -> ObjectReference:
        last_error: Optional[StoreError] = None
        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                self._sleep(attempt - 1)
            try:
                stream.seek(0)
            except (OSError, ValueError) as exc:
                raise UploadFailure("could not rewind upload stream", cause=exc) from exc

            try:
                self.store.put_object(reference.bucket, reference.key, stream, content_type=content_type)
            except StoreError as exc:
                last_error = exc
                self.logger.warning(
                    "upload_attempt_failed",
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    bucket=reference.bucket,
                    key=reference.key,
                    error=str(exc.cause or exc),
                )
                continue

            self.logger.info("upload_succeeded", attempt=attempt, bucket=reference.bucket, key=reference.key)
            return reference

        raise UploadFailure(
            f"upload to {reference.bucket}/{reference.key} failed after {self.max_attempts} attempts",
            cause=last_error,
        )


__all__ = ["DurableUploader", "MAX_ATTEMPTS"]
