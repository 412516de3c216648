from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from tubely.api import objects
from tubely.api.v1 import get_api_router
from tubely.core.auth import JWTAuthenticator
from tubely.core.config import get_settings
from tubely.core.db import create_engine, create_schema, create_session_factory
from tubely.core.errors import TubelyError
from tubely.core.logging import configure_logging, get_logger
from tubely.core.storage import get_object_store
from tubely.media.faststart import FastStartRewriter
from tubely.media.probe import FFprobeInspector

logger = get_logger(component="api")


async def handle_tubely_error(request: Request, exc: TubelyError) -> JSONResponse:
    log = logger.bind(path=request.url.path, method=request.method, code=exc.code, status=exc.status_code)
    if exc.status_code >= 500:
        log.error("request_failed", message=exc.message, cause=repr(exc.cause) if exc.cause else None)
    else:
        log.info("request_rejected", message=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.code, "message": exc.message})


def create_app() -> FastAPI:
    settings = get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    configure_logging(level=log_level)

    object_store = get_object_store(settings)
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)
    assets_root = Path(settings.assets_root)
    assets_root.mkdir(parents=True, exist_ok=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await create_schema(engine)
        try:
            yield
        finally:
            await engine.dispose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        lifespan=lifespan,
        openapi_url="/openapi.json",
        docs_url="/docs",
    )

    # Collaborators are built once here and reached through tubely.api.deps.
    app.state.settings = settings
    app.state.object_store = object_store
    app.state.authenticator = JWTAuthenticator(settings)
    app.state.media_inspector = FFprobeInspector(settings.ffprobe_binary)
    app.state.media_rewriter = FastStartRewriter(settings.ffmpeg_binary)
    app.state.engine = engine
    app.state.session_factory = session_factory

    app.add_exception_handler(TubelyError, handle_tubely_error)
    app.include_router(get_api_router())
    if settings.storage_backend == "local":
        app.include_router(objects.router)
    app.mount("/assets", StaticFiles(directory=assets_root), name="assets")
    return app


__all__ = ["create_app"]
