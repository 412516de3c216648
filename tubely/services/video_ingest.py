from __future__ import annotations

import asyncio
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

from starlette.datastructures import UploadFile

from tubely.core.auth import JWTAuthenticator
from tubely.core.config import Settings
from tubely.core.errors import TubelyError, UnsupportedMediaType
from tubely.core.logging import get_logger
from tubely.db.repository import VideoRepository
from tubely.domain import ObjectReference, VideoRecord, new_object_name
from tubely.media.faststart import MediaRewriter, output_path_for
from tubely.media.probe import MediaProber

from .access import load_owned_video, media_type_of, require_file
from .signing import SignedURLResolver
from .uploader import DurableUploader

VIDEO_CONTENT_TYPE = "video/mp4"
STAGING_PREFIX = "tubely-upload-"
CHUNK_SIZE = 1024 * 1024


class VideoIngestPipeline:
    """Stage, fast-start, classify, upload and publish a single MP4 upload.

    The steps run strictly in order and every failure is terminal for the
    request. Staged files are removed on every exit path.
    """

    def __init__(
        self,
        settings: Settings,
        repository: VideoRepository,
        authenticator: JWTAuthenticator,
        rewriter: MediaRewriter,
        prober: MediaProber,
        uploader: DurableUploader,
        resolver: SignedURLResolver,
    ):
        self.settings = settings
        self.repository = repository
        self.authenticator = authenticator
        self.rewriter = rewriter
        self.prober = prober
        self.uploader = uploader
        self.resolver = resolver
        self.logger = get_logger(component="video_ingest")

    async def authorize(self, raw_video_id: str, authorization: Optional[str]) -> VideoRecord:
        return await load_owned_video(self.repository, self.authenticator, raw_video_id, authorization)

    async def ingest(self, video: VideoRecord, part: Any) -> VideoRecord:
        upload = require_file(part, "video")
        if media_type_of(upload) != VIDEO_CONTENT_TYPE:
            raise UnsupportedMediaType("Only MP4 videos are allowed")

        log = self.logger.bind(video_id=str(video.id), user_id=str(video.user_id))
        staged: List[Path] = []
        try:
            source = await self._stage(upload, staged)
            log.info("video_ingest_staged", path=str(source), size_bytes=source.stat().st_size)

            # The rewrite target is discarded even when the rewrite fails.
            staged.append(output_path_for(source))
            processed = await asyncio.to_thread(self.rewriter.rewrite, source)
            if processed not in staged:
                staged.append(processed)

            aspect_ratio = await asyncio.to_thread(self.prober.aspect_ratio, processed)
            reference = ObjectReference(
                bucket=self.settings.s3_bucket,
                key=f"{aspect_ratio.value}/{new_object_name()}.mp4",
            )
            await asyncio.to_thread(self._upload, processed, reference)
        finally:
            self._discard(staged)

        stored = await self.repository.update(
            video.with_video_reference(reference, datetime.now(timezone.utc))
        )
        log.info("video_ingest_published", bucket=reference.bucket, key=reference.key)
        return self.resolver.resolve(stored)

    async def _stage(self, upload: UploadFile, staged: List[Path]) -> Path:
        staging_dir = self.settings.staging_dir
        if staging_dir is not None:
            Path(staging_dir).mkdir(parents=True, exist_ok=True)
        try:
            with tempfile.NamedTemporaryFile(
                prefix=STAGING_PREFIX,
                suffix=".mp4",
                dir=staging_dir,
                delete=False,
            ) as handle:
                path = Path(handle.name)
                staged.append(path)
                while chunk := await upload.read(CHUNK_SIZE):
                    handle.write(chunk)
        except OSError as exc:
            raise TubelyError("Failed to save video to temp file", cause=exc) from exc
        finally:
            await upload.close()
        return path

    def _upload(self, path: Path, reference: ObjectReference) -> None:
        with path.open("rb") as handle:
            self.uploader.upload(handle, reference, content_type=VIDEO_CONTENT_TYPE)

    def _discard(self, paths: List[Path]) -> None:
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                self.logger.warning("video_ingest_cleanup_failed", path=str(path), error=str(exc))


__all__ = ["VideoIngestPipeline", "VIDEO_CONTENT_TYPE", "STAGING_PREFIX"]
