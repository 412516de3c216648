from __future__ import annotations

from fastapi import APIRouter, Response, status

from tubely.api import deps
from tubely.core.errors import Forbidden
from tubely.db.repository import CreateVideoParams
from tubely.services.access import parse_video_id

from . import schemas


router = APIRouter(prefix="/videos", tags=["videos"])


@router.post("", response_model=schemas.VideoResponse, status_code=status.HTTP_201_CREATED)
async def create_video(
    payload: schemas.CreateVideoRequest,
    user_id: deps.CurrentUser,
    repository: deps.Repository,
) -> schemas.VideoResponse:
    record = await repository.create(
        user_id,
        CreateVideoParams(title=payload.title, description=payload.description),
    )
    return schemas.VideoResponse.from_record(record)


@router.get("", response_model=list[schemas.VideoResponse])
async def list_videos(
    user_id: deps.CurrentUser,
    repository: deps.Repository,
    resolver: deps.Resolver,
) -> list[schemas.VideoResponse]:
    records = await repository.list_by_owner(user_id)
    return [schemas.VideoResponse.from_record(record) for record in resolver.resolve_many(records)]


@router.get("/{video_id}", response_model=schemas.VideoResponse)
async def get_video(
    video_id: str,
    repository: deps.Repository,
    resolver: deps.Resolver,
) -> schemas.VideoResponse:
    record = await repository.get(parse_video_id(video_id))
    return schemas.VideoResponse.from_record(resolver.resolve(record))


@router.delete("/{video_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_video(
    video_id: str,
    user_id: deps.CurrentUser,
    repository: deps.Repository,
) -> Response:
    record = await repository.get(parse_video_id(video_id))
    if record.user_id != user_id:
        raise Forbidden("You can't delete this video")
    # Objects in the store are left in place.
    await repository.delete(record.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
