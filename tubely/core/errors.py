"""Failure taxonomy shared by the ingest pipelines and their collaborators.

Each error carries the HTTP status category it maps to and a stable ``code``
that is rendered to clients. The wrapped ``cause`` is kept for operator logs
only.
"""

from __future__ import annotations

from typing import Optional


class TubelyError(Exception):
    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class Unauthenticated(TubelyError):
    status_code = 401
    code = "unauthenticated"


class Forbidden(TubelyError):
    status_code = 403
    code = "forbidden"


class NotFound(TubelyError):
    status_code = 404
    code = "not_found"


class ValidationFailure(TubelyError):
    status_code = 400
    code = "validation_failed"


class UnsupportedMediaType(ValidationFailure):
    status_code = 415
    code = "unsupported_media_type"


class PayloadTooLarge(ValidationFailure):
    status_code = 413
    code = "payload_too_large"


class ProbeFailure(TubelyError):
    code = "probe_failed"


class RemuxFailure(TubelyError):
    code = "remux_failed"


class UploadFailure(TubelyError):
    code = "upload_failed"


class InvalidReferenceFormat(TubelyError):
    code = "invalid_reference_format"


class SigningFailure(TubelyError):
    code = "signing_failed"


class StoreError(TubelyError):
    code = "store_error"


__all__ = [
    "TubelyError",
    "Unauthenticated",
    "Forbidden",
    "NotFound",
    "ValidationFailure",
    "UnsupportedMediaType",
    "PayloadTooLarge",
    "ProbeFailure",
    "RemuxFailure",
    "UploadFailure",
    "InvalidReferenceFormat",
    "SigningFailure",
    "StoreError",
]
