from __future__ import annotations

import subprocess
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from tubely.api import deps
from tubely.core.auth import JWTAuthenticator

from .schemas import EnvCheckResponse


router = APIRouter(prefix="/admin", tags=["admin"])


class DevTokenRequest(BaseModel):
    user_id: UUID | None = Field(default=None, examples=["2b1f6a0e-5d7c-4c3e-9a57-8f2d1c3b4a5e"])


class DevTokenResponse(BaseModel):
    user_id: UUID
    token: str


def _probe_binary(command: list[str]) -> bool:
    try:
        subprocess.run(command, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, check=True)
    except (OSError, subprocess.CalledProcessError):
        return False
    return True


@router.get("/env-check", response_model=EnvCheckResponse, summary="Validate ffmpeg toolchain")
async def env_check(_: deps.CurrentUser, settings: deps.AppSettings) -> EnvCheckResponse:
    return EnvCheckResponse(
        ffmpeg=_probe_binary([settings.ffmpeg_binary, "-version"]),
        ffprobe=_probe_binary([settings.ffprobe_binary, "-version"]),
    )


@router.post("/dev-token", response_model=DevTokenResponse, summary="Mint development JWT")
async def mint_dev_token(
    payload: DevTokenRequest,
    settings: deps.AppSettings,
    authenticator: JWTAuthenticator = Depends(deps.get_authenticator),
) -> DevTokenResponse:
    if settings.environment_lower not in {"development", "dev"}:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="dev_token_disabled")

    user_id = payload.user_id or uuid4()
    return DevTokenResponse(user_id=user_id, token=authenticator.issue_token(user_id))


__all__ = ["router"]
