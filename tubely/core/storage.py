from __future__ import annotations

import hashlib
import hmac
import os
import shutil
import tempfile
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO
from urllib.parse import quote, urlencode

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .config import Settings
from .errors import NotFound, SigningFailure, StoreError


@dataclass(slots=True)
class PresignedURL:
    url: str
    expires_at: int
    method: str = "GET"


class ObjectStore(ABC):
    @abstractmethod
    def put_object(self, bucket: str, key: str, body: BinaryIO, *, content_type: str) -> None: ...

    @abstractmethod
    def presign_get(self, bucket: str, key: str, *, expires_s: int) -> PresignedURL: ...


class LocalObjectStore(ObjectStore):
    """Filesystem-backed object store suitable for development and tests."""

    def __init__(self, base_path: Path, *, public_url: str, signing_secret: str):
        self.base_path = base_path.resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.public_url = public_url.rstrip("/")
        self._signing_secret = signing_secret.encode("utf-8")

    def resolve(self, bucket: str, key: str) -> Path:
        path = (self.base_path / bucket / key).resolve()
        if not path.is_relative_to(self.base_path / bucket):
            raise NotFound(f"object key escapes bucket: {key}")
        return path

    def put_object(self, bucket: str, key: str, body: BinaryIO, *, content_type: str) -> None:
        target = self.resolve(bucket, key)
        partial: Path | None = None
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            # Write beside the target and rename so readers never see a partial object.
            with tempfile.NamedTemporaryFile(dir=target.parent, prefix=".partial-", delete=False) as handle:
                partial = Path(handle.name)
                shutil.copyfileobj(body, handle)
            os.replace(partial, target)
        except OSError as exc:
            if partial is not None:
                partial.unlink(missing_ok=True)
            raise StoreError(f"failed to store {bucket}/{key}", cause=exc) from exc

    def presign_get(self, bucket: str, key: str, *, expires_s: int) -> PresignedURL:
        expires_at = int(time.time()) + expires_s
        query = urlencode({"expires": expires_at, "signature": self._sign(bucket, key, expires_at)})
        url = f"{self.public_url}/{quote(bucket)}/{quote(key)}?{query}"
        return PresignedURL(url=url, expires_at=expires_at)

    def verify(self, bucket: str, key: str, *, expires: int, signature: str) -> bool:
        if expires < int(time.time()):
            return False
        return hmac.compare_digest(self._sign(bucket, key, expires), signature)

    def _sign(self, bucket: str, key: str, expires_at: int) -> str:
        message = f"GET\n{bucket}\n{key}\n{expires_at}".encode("utf-8")
        return hmac.new(self._signing_secret, message, hashlib.sha256).hexdigest()


class S3ObjectStore(ObjectStore):
    """S3 (or S3 compatible) object store backed by a boto3 client."""

    def __init__(self, client):
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3ObjectStore":
        # One botocore attempt per call: retries are owned by DurableUploader.
        config = Config(signature_version="s3v4", retries={"max_attempts": 1, "mode": "standard"})
        client = boto3.client(
            "s3",
            region_name=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            config=config,
        )
        return cls(client)

    def put_object(self, bucket: str, key: str, body: BinaryIO, *, content_type: str) -> None:
        try:
            self.client.put_object(Bucket=bucket, Key=key, Body=body, ContentType=content_type)
        except (BotoCoreError, ClientError) as exc:
            raise StoreError(f"failed to put s3://{bucket}/{key}", cause=exc) from exc

    def presign_get(self, bucket: str, key: str, *, expires_s: int) -> PresignedURL:
        try:
            url = self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=expires_s,
            )
        except (BotoCoreError, ClientError) as exc:
            raise SigningFailure(f"failed to presign s3://{bucket}/{key}", cause=exc) from exc
        return PresignedURL(url=url, expires_at=int(time.time()) + expires_s)


def get_object_store(settings: Settings) -> ObjectStore:
    if settings.storage_backend == "local":
        return LocalObjectStore(
            Path(settings.local_storage_base_path),
            public_url=settings.local_storage_public_url,
            signing_secret=settings.secrets.url_signing_secret,
        )
    if settings.storage_backend == "s3":
        return S3ObjectStore.from_settings(settings)
    raise ValueError(f"Unsupported storage backend: {settings.storage_backend}")


__all__ = [
    "ObjectStore",
    "LocalObjectStore",
    "S3ObjectStore",
    "PresignedURL",
    "get_object_store",
]
