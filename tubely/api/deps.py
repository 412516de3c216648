from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tubely.core.auth import JWTAuthenticator
from tubely.core.config import Settings
from tubely.core.storage import ObjectStore
from tubely.db.repository import VideoRepository
from tubely.media.faststart import MediaRewriter
from tubely.media.probe import MediaInspector, MediaProber
from tubely.services.signing import SignedURLResolver
from tubely.services.thumbnails import ThumbnailIngest
from tubely.services.uploader import DurableUploader
from tubely.services.video_ingest import VideoIngestPipeline


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    session_factory = request.app.state.session_factory
    if not isinstance(session_factory, async_sessionmaker):  # pragma: no cover
        raise RuntimeError("session_factory_not_configured")
    async with session_factory() as session:
        yield session


def get_app_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def get_object_store(request: Request) -> ObjectStore:
    store: ObjectStore = request.app.state.object_store
    return store


def get_authenticator(request: Request) -> JWTAuthenticator:
    authenticator: JWTAuthenticator = request.app.state.authenticator
    return authenticator


def get_media_inspector(request: Request) -> MediaInspector:
    inspector: MediaInspector = request.app.state.media_inspector
    return inspector


def get_media_rewriter(request: Request) -> MediaRewriter:
    rewriter: MediaRewriter = request.app.state.media_rewriter
    return rewriter


def get_repository(session: AsyncSession = Depends(get_session)) -> VideoRepository:
    return VideoRepository(session)


def get_uploader(store: ObjectStore = Depends(get_object_store)) -> DurableUploader:
    return DurableUploader(store)


def get_resolver(store: ObjectStore = Depends(get_object_store)) -> SignedURLResolver:
    return SignedURLResolver(store)


def get_video_pipeline(
    settings: Settings = Depends(get_app_settings),
    repository: VideoRepository = Depends(get_repository),
    authenticator: JWTAuthenticator = Depends(get_authenticator),
    rewriter: MediaRewriter = Depends(get_media_rewriter),
    inspector: MediaInspector = Depends(get_media_inspector),
    uploader: DurableUploader = Depends(get_uploader),
    resolver: SignedURLResolver = Depends(get_resolver),
) -> VideoIngestPipeline:
    return VideoIngestPipeline(
        settings,
        repository,
        authenticator,
        rewriter,
        MediaProber(inspector),
        uploader,
        resolver,
    )


def get_thumbnail_ingest(
    settings: Settings = Depends(get_app_settings),
    repository: VideoRepository = Depends(get_repository),
    authenticator: JWTAuthenticator = Depends(get_authenticator),
    resolver: SignedURLResolver = Depends(get_resolver),
) -> ThumbnailIngest:
    return ThumbnailIngest(settings, repository, authenticator, resolver)


def get_current_user_id(
    request: Request,
    authenticator: JWTAuthenticator = Depends(get_authenticator),
) -> UUID:
    return authenticator.validate_bearer_token(request.headers.get("Authorization"))


Repository = Annotated[VideoRepository, Depends(get_repository)]
Resolver = Annotated[SignedURLResolver, Depends(get_resolver)]
CurrentUser = Annotated[UUID, Depends(get_current_user_id)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
VideoPipeline = Annotated[VideoIngestPipeline, Depends(get_video_pipeline)]
ThumbnailService = Annotated[ThumbnailIngest, Depends(get_thumbnail_ingest)]


__all__ = [
    "get_session",
    "get_app_settings",
    "get_object_store",
    "get_authenticator",
    "get_media_inspector",
    "get_media_rewriter",
    "get_repository",
    "get_uploader",
    "get_resolver",
    "get_video_pipeline",
    "get_thumbnail_ingest",
    "get_current_user_id",
    "Repository",
    "Resolver",
    "CurrentUser",
    "AppSettings",
    "VideoPipeline",
    "ThumbnailService",
]
