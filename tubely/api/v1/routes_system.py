from __future__ import annotations

from fastapi import APIRouter

from tubely.api import deps

from .schemas import HealthResponse


router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
async def health(settings: deps.AppSettings) -> HealthResponse:
    return HealthResponse(version=settings.version, storage_backend=settings.storage_backend)


__all__ = ["router"]
