import shutil
from pathlib import Path
from uuid import UUID, uuid4

import jwt
import pytest
from fastapi.testclient import TestClient

from tubely.api import deps
from tubely.core.config import get_settings
from tubely.main import create_app
from tubely.media.faststart import output_path_for


class FakeInspector:
    """Stands in for ffprobe with a fixed stream report."""

    def __init__(self, width: int = 1280, height: int = 720):
        self.width = width
        self.height = height
        self.calls: list[Path] = []

    def inspect(self, path: Path) -> dict:
        self.calls.append(path)
        return {"streams": [{"index": 0, "codec_type": "video", "width": self.width, "height": self.height}]}


class FakeRewriter:
    """Stands in for ffmpeg by copying the input to the fast-start sibling path."""

    def __init__(self):
        self.outputs: list[Path] = []

    def rewrite(self, path: Path) -> Path:
        target = output_path_for(path)
        shutil.copyfile(path, target)
        self.outputs.append(target)
        return target


@pytest.fixture(autouse=True)
def configure_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("TUBELY_ENV", "test")
    monkeypatch.setenv("TUBELY_LOG_LEVEL", "debug")
    monkeypatch.setenv("TUBELY_DB_URL", f"sqlite+aiosqlite:///{tmp_path / 'tubely_test.db'}")
    monkeypatch.setenv("TUBELY_STORAGE_BACKEND", "local")
    monkeypatch.setenv("TUBELY_S3_BUCKET", "tubely-test")
    monkeypatch.setenv("TUBELY_LOCAL_STORAGE_BASE_PATH", str(tmp_path / "objects"))
    monkeypatch.setenv("TUBELY_LOCAL_STORAGE_PUBLIC_URL", "http://testserver/objects")
    monkeypatch.setenv("TUBELY_ASSETS_ROOT", str(tmp_path / "assets"))
    monkeypatch.setenv("TUBELY_ASSETS_BASE_URL", "http://testserver/assets")
    monkeypatch.setenv("TUBELY_STAGING_DIR", str(tmp_path / "staging"))
    monkeypatch.setenv("TUBELY_JWT_SECRET", "test-secret")
    monkeypatch.setenv("TUBELY_URL_SIGNING_SECRET", "test-signing-secret")

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def inspector() -> FakeInspector:
    return FakeInspector()


@pytest.fixture()
def rewriter() -> FakeRewriter:
    return FakeRewriter()


@pytest.fixture()
def app(inspector, rewriter):
    app = create_app()
    app.dependency_overrides[deps.get_media_inspector] = lambda: inspector
    app.dependency_overrides[deps.get_media_rewriter] = lambda: rewriter
    return app


@pytest.fixture()
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture()
def staging_dir(tmp_path) -> Path:
    return tmp_path / "staging"


@pytest.fixture()
def assets_dir(tmp_path) -> Path:
    return tmp_path / "assets"


def build_token(user_id: UUID, *, secret: str = "test-secret") -> str:
    return jwt.encode({"sub": str(user_id)}, secret, algorithm="HS256")


def auth_headers(user_id: UUID) -> dict[str, str]:
    return {"Authorization": f"Bearer {build_token(user_id)}"}


@pytest.fixture()
def owner_id() -> UUID:
    return uuid4()


@pytest.fixture()
def owner_headers(owner_id) -> dict[str, str]:
    return auth_headers(owner_id)


@pytest.fixture()
def video(client, owner_headers) -> dict:
    resp = client.post("/v1/videos", json={"title": "Boots", "description": "demo"}, headers=owner_headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def staged_files(directory: Path) -> list[Path]:
    if not directory.exists():
        return []
    return [path for path in directory.iterdir()]
