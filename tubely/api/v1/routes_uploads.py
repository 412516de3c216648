from __future__ import annotations

from fastapi import APIRouter, Request

from tubely.api import deps
from tubely.api.forms import read_limited_form

from . import schemas


router = APIRouter(tags=["uploads"])


@router.post("/thumbnail_upload/{video_id}", response_model=schemas.VideoResponse)
async def upload_thumbnail(
    video_id: str,
    request: Request,
    service: deps.ThumbnailService,
    settings: deps.AppSettings,
) -> schemas.VideoResponse:
    video = await service.authorize(video_id, request.headers.get("Authorization"))
    form = await read_limited_form(request, settings.max_thumbnail_upload_bytes)
    try:
        record = await service.ingest(video, form.get("thumbnail"))
    finally:
        await form.close()
    return schemas.VideoResponse.from_record(record)


@router.post("/video_upload/{video_id}", response_model=schemas.VideoResponse)
async def upload_video(
    video_id: str,
    request: Request,
    pipeline: deps.VideoPipeline,
    settings: deps.AppSettings,
) -> schemas.VideoResponse:
    video = await pipeline.authorize(video_id, request.headers.get("Authorization"))
    form = await read_limited_form(request, settings.max_video_upload_bytes)
    try:
        record = await pipeline.ingest(video, form.get("video"))
    finally:
        await form.close()
    return schemas.VideoResponse.from_record(record)


__all__ = ["router"]
