from __future__ import annotations

import asyncio
import io
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

import pytest
from starlette.datastructures import Headers, UploadFile

from tubely.core.auth import JWTAuthenticator
from tubely.core.config import get_settings
from tubely.core.errors import StoreError
from tubely.core.storage import get_object_store
from tubely.domain import VideoRecord
from tubely.services.signing import SignedURLResolver
from tubely.services.thumbnails import ThumbnailIngest
from tests.conftest import auth_headers

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64


def _asset_files(assets_dir: Path) -> list[Path]:
    if not assets_dir.exists():
        return []
    return [path for path in assets_dir.iterdir() if path.is_file()]


def _upload_thumbnail(client, video_id, headers, *, content=PNG_BYTES, content_type="image/png", filename="thumb.png"):
    return client.post(
        f"/v1/thumbnail_upload/{video_id}",
        files={"thumbnail": (filename, content, content_type)},
        headers=headers,
    )


def test_png_thumbnail_is_served_from_assets(client, owner_headers, video, assets_dir):
    resp = _upload_thumbnail(client, video["id"], owner_headers)
    assert resp.status_code == 200, resp.text

    thumbnail_url = resp.json()["thumbnail_url"]
    assert thumbnail_url.startswith("http://testserver/assets/")
    assert thumbnail_url.endswith(".png")

    files = _asset_files(assets_dir)
    assert [path.name for path in files] == [thumbnail_url.rsplit("/", 1)[-1]]

    served = client.get(thumbnail_url)
    assert served.status_code == 200
    assert served.content == PNG_BYTES

    assert client.get(f"/v1/videos/{video['id']}").json()["thumbnail_url"] == thumbnail_url


def test_jpeg_thumbnail_uses_jpg_extension(client, owner_headers, video):
    resp = _upload_thumbnail(
        client,
        video["id"],
        owner_headers,
        content=JPEG_BYTES,
        content_type="image/jpeg",
        filename="thumb.jpeg",
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["thumbnail_url"].endswith(".jpg")


def test_replacing_a_thumbnail_uses_a_fresh_name(client, owner_headers, video, assets_dir):
    first = _upload_thumbnail(client, video["id"], owner_headers).json()["thumbnail_url"]
    second = _upload_thumbnail(client, video["id"], owner_headers).json()["thumbnail_url"]
    assert first != second
    assert len(_asset_files(assets_dir)) == 2


@pytest.mark.parametrize("content_type", ["image/gif", "text/plain"])
def test_unsupported_thumbnail_type_writes_nothing(client, owner_headers, video, assets_dir, content_type):
    resp = _upload_thumbnail(client, video["id"], owner_headers, content=b"GIF89a", content_type=content_type)
    assert resp.status_code == 415
    assert _asset_files(assets_dir) == []
    assert client.get(f"/v1/videos/{video['id']}").json()["thumbnail_url"] is None


def test_thumbnail_by_non_owner_is_forbidden(client, video, assets_dir):
    resp = _upload_thumbnail(client, video["id"], auth_headers(uuid4()))
    assert resp.status_code == 403
    assert _asset_files(assets_dir) == []


def test_thumbnail_requires_thumbnail_part(client, owner_headers, video):
    resp = client.post(
        f"/v1/thumbnail_upload/{video['id']}",
        files={"image": ("thumb.png", PNG_BYTES, "image/png")},
        headers=owner_headers,
    )
    assert resp.status_code == 400


def test_thumbnail_over_limit_is_rejected(client, owner_headers, video, assets_dir, monkeypatch):
    settings = client.app.state.settings
    monkeypatch.setattr(settings, "max_thumbnail_upload_bytes", 32)
    resp = _upload_thumbnail(client, video["id"], owner_headers)
    assert resp.status_code == 413
    assert _asset_files(assets_dir) == []


class BrokenRepository:
    async def update(self, record):
        raise StoreError("database is locked")


def test_failed_metadata_update_removes_written_file(assets_dir):
    settings = get_settings()
    ingest = ThumbnailIngest(
        settings,
        BrokenRepository(),
        JWTAuthenticator(settings),
        SignedURLResolver(get_object_store(settings)),
    )
    now = datetime.now(timezone.utc)
    video = VideoRecord(
        id=uuid4(),
        user_id=uuid4(),
        title="t",
        description="",
        thumbnail_url=None,
        video_url=None,
        created_at=now,
        updated_at=now,
    )
    upload = UploadFile(
        file=io.BytesIO(PNG_BYTES),
        filename="thumb.png",
        headers=Headers({"content-type": "image/png"}),
    )

    with pytest.raises(StoreError):
        asyncio.run(ingest.ingest(video, upload))

    assert _asset_files(assets_dir) == []
