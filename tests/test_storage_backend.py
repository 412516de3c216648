from __future__ import annotations

import io
from pathlib import Path
from urllib.parse import parse_qs, urlparse

import boto3
import pytest
from botocore.config import Config
from botocore.stub import Stubber

from tubely.core.config import get_settings
from tubely.core.errors import NotFound, StoreError
from tubely.core.storage import LocalObjectStore, S3ObjectStore, get_object_store


@pytest.fixture()
def local_store(tmp_path: Path) -> LocalObjectStore:
    return LocalObjectStore(tmp_path / "objects", public_url="http://testserver/objects/", signing_secret="s3cr3t")


@pytest.fixture()
def s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        config=Config(signature_version="s3v4"),
    )


def test_default_backend_is_local():
    settings = get_settings()
    assert isinstance(get_object_store(settings), LocalObjectStore)


def test_selecting_s3_returns_s3_store(monkeypatch):
    monkeypatch.setenv("TUBELY_STORAGE_BACKEND", "s3")
    get_settings.cache_clear()
    store = get_object_store(get_settings())
    assert isinstance(store, S3ObjectStore)
    assert store.client.meta.region_name == "us-east-1"


def test_local_put_writes_object_atomically(local_store: LocalObjectStore):
    local_store.put_object("bucket", "landscape/a.mp4", io.BytesIO(b"movie"), content_type="video/mp4")

    path = local_store.resolve("bucket", "landscape/a.mp4")
    assert path.read_bytes() == b"movie"
    assert [p.name for p in path.parent.iterdir()] == ["a.mp4"]


def test_local_presign_round_trips_through_verify(local_store: LocalObjectStore):
    presigned = local_store.presign_get("bucket", "landscape/a.mp4", expires_s=900)

    parsed = urlparse(presigned.url)
    query = parse_qs(parsed.query)
    assert presigned.url.startswith("http://testserver/objects/bucket/landscape/a.mp4?")
    assert int(query["expires"][0]) == presigned.expires_at
    assert local_store.verify("bucket", "landscape/a.mp4", expires=presigned.expires_at, signature=query["signature"][0])
    assert not local_store.verify("bucket", "other.mp4", expires=presigned.expires_at, signature=query["signature"][0])
    assert not local_store.verify("bucket", "landscape/a.mp4", expires=presigned.expires_at + 1, signature=query["signature"][0])


def test_local_verify_rejects_expired_urls(local_store: LocalObjectStore):
    presigned = local_store.presign_get("bucket", "a.mp4", expires_s=-5)
    signature = parse_qs(urlparse(presigned.url).query)["signature"][0]
    assert not local_store.verify("bucket", "a.mp4", expires=presigned.expires_at, signature=signature)


def test_local_resolve_refuses_keys_outside_bucket(local_store: LocalObjectStore):
    with pytest.raises(NotFound):
        local_store.resolve("bucket", "../other-bucket/secret.mp4")


def test_s3_presign_get_carries_expiry(s3_client):
    store = S3ObjectStore(s3_client)
    presigned = store.presign_get("tubely-videos", "portrait/abc.mp4", expires_s=900)

    parsed = urlparse(presigned.url)
    assert parsed.path.endswith("portrait/abc.mp4")
    assert parse_qs(parsed.query)["X-Amz-Expires"] == ["900"]


def test_s3_put_object_sends_content_type(s3_client):
    store = S3ObjectStore(s3_client)
    body = io.BytesIO(b"movie")
    with Stubber(s3_client) as stubber:
        stubber.add_response(
            "put_object",
            {},
            expected_params={"Bucket": "tubely-videos", "Key": "other/abc.mp4", "Body": body, "ContentType": "video/mp4"},
        )
        store.put_object("tubely-videos", "other/abc.mp4", body, content_type="video/mp4")
        stubber.assert_no_pending_responses()


def test_s3_put_object_errors_become_store_errors(s3_client):
    store = S3ObjectStore(s3_client)
    with Stubber(s3_client) as stubber:
        stubber.add_client_error("put_object", service_error_code="SlowDown", http_status_code=503)
        with pytest.raises(StoreError) as excinfo:
            store.put_object("tubely-videos", "other/abc.mp4", io.BytesIO(b"movie"), content_type="video/mp4")
    assert "SlowDown" in str(excinfo.value.cause)
