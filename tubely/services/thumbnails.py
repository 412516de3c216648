from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from tubely.core.auth import JWTAuthenticator
from tubely.core.config import Settings
from tubely.core.errors import TubelyError, UnsupportedMediaType
from tubely.core.logging import get_logger
from tubely.db.repository import VideoRepository
from tubely.domain import VideoRecord, new_object_name

from .access import load_owned_video, media_type_of, require_file
from .signing import SignedURLResolver

THUMBNAIL_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
}
CHUNK_SIZE = 1024 * 1024


class ThumbnailIngest:
    """Stores an uploaded thumbnail under the static assets directory."""

    def __init__(
        self,
        settings: Settings,
        repository: VideoRepository,
        authenticator: JWTAuthenticator,
        resolver: SignedURLResolver,
    ):
        self.settings = settings
        self.repository = repository
        self.authenticator = authenticator
        self.resolver = resolver
        self.logger = get_logger(component="thumbnail_ingest")

    async def authorize(self, raw_video_id: str, authorization: Optional[str]) -> VideoRecord:
        return await load_owned_video(self.repository, self.authenticator, raw_video_id, authorization)

    async def ingest(self, video: VideoRecord, part: Any) -> VideoRecord:
        upload = require_file(part, "thumbnail")
        media_type = media_type_of(upload)
        extension = THUMBNAIL_EXTENSIONS.get(media_type)
        if extension is None:
            raise UnsupportedMediaType("Only JPEG and PNG images are allowed")

        assets_root = Path(self.settings.assets_root)
        assets_root.mkdir(parents=True, exist_ok=True)
        filename = f"{new_object_name()}{extension}"
        target = assets_root / filename
        log = self.logger.bind(video_id=str(video.id), filename=filename)

        try:
            try:
                with target.open("xb") as handle:
                    while chunk := await upload.read(CHUNK_SIZE):
                        handle.write(chunk)
            except OSError as exc:
                raise TubelyError("Failed to save file", cause=exc) from exc
            finally:
                await upload.close()

            thumbnail_url = f"{self.settings.assets_base_url.rstrip('/')}/{filename}"
            stored = await self.repository.update(
                video.with_thumbnail(thumbnail_url, datetime.now(timezone.utc))
            )
        except Exception:
            target.unlink(missing_ok=True)
            log.warning("thumbnail_ingest_rolled_back")
            raise

        log.info("thumbnail_ingest_published", media_type=media_type)
        return self.resolver.resolve(stored)


__all__ = ["ThumbnailIngest", "THUMBNAIL_EXTENSIONS"]
