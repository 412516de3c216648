from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from starlette.datastructures import UploadFile

from tubely.core.auth import JWTAuthenticator
from tubely.core.errors import Forbidden, ValidationFailure
from tubely.db.repository import VideoRepository
from tubely.domain import VideoRecord


def parse_video_id(raw: str) -> UUID:
    try:
        return UUID(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationFailure("Invalid ID", cause=exc) from exc


async def load_owned_video(
    repository: VideoRepository,
    authenticator: JWTAuthenticator,
    raw_video_id: str,
    authorization: Optional[str],
) -> VideoRecord:
    """Resolve, authenticate and authorise in that order; touches no local files."""
    video_id = parse_video_id(raw_video_id)
    user_id = authenticator.validate_bearer_token(authorization)
    video = await repository.get(video_id)
    if video.user_id != user_id:
        raise Forbidden("User is not the video owner")
    return video


def require_file(part: Any, field: str) -> UploadFile:
    if not isinstance(part, UploadFile):
        raise ValidationFailure(f"Unable to get form file '{field}'")
    return part


def media_type_of(upload: UploadFile) -> str:
    """Return the bare, lower-cased media type declared for an uploaded part."""
    declared = (upload.content_type or "").split(";", 1)[0].strip().lower()
    kind, _, subtype = declared.partition("/")
    if not kind or not subtype:
        raise ValidationFailure(f"Invalid content type: {upload.content_type!r}")
    return declared


__all__ = ["parse_video_id", "load_owned_video", "require_file", "media_type_of"]
