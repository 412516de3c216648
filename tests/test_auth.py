from __future__ import annotations

from uuid import uuid4

import jwt
import pytest

from tubely.core.auth import JWTAuthenticator
from tubely.core.config import get_settings
from tubely.core.errors import Unauthenticated
from tests.conftest import build_token


@pytest.fixture()
def authenticator() -> JWTAuthenticator:
    return JWTAuthenticator(get_settings())


def test_valid_token_yields_user_id(authenticator):
    user_id = uuid4()
    assert authenticator.validate_bearer_token(f"Bearer {build_token(user_id)}") == user_id


def test_issued_tokens_validate(authenticator):
    user_id = uuid4()
    token = authenticator.issue_token(user_id)
    assert authenticator.validate_bearer_token(f"bearer {token}") == user_id


@pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer   ", "Basic dXNlcjpwYXNz", "token-without-scheme"])
def test_missing_or_malformed_header(authenticator, header):
    with pytest.raises(Unauthenticated):
        authenticator.validate_bearer_token(header)


def test_wrong_secret_is_rejected(authenticator):
    token = build_token(uuid4(), secret="someone-else")
    with pytest.raises(Unauthenticated) as excinfo:
        authenticator.validate_bearer_token(f"Bearer {token}")
    assert isinstance(excinfo.value.cause, jwt.PyJWTError)


def test_expired_token_is_rejected(authenticator):
    token = authenticator.issue_token(uuid4(), expires_in=-60)
    with pytest.raises(Unauthenticated):
        authenticator.validate_bearer_token(f"Bearer {token}")


@pytest.mark.parametrize("claims", [{}, {"sub": "not-a-uuid"}])
def test_subject_must_be_a_user_id(authenticator, claims):
    token = jwt.encode(claims, "test-secret", algorithm="HS256")
    with pytest.raises(Unauthenticated):
        authenticator.validate_bearer_token(f"Bearer {token}")


def test_audience_is_enforced_when_configured(monkeypatch):
    monkeypatch.setenv("TUBELY_JWT_AUDIENCE", "tubely")
    get_settings.cache_clear()
    authenticator = JWTAuthenticator(get_settings())

    with pytest.raises(Unauthenticated):
        authenticator.validate_bearer_token(f"Bearer {build_token(uuid4())}")

    user_id = uuid4()
    assert authenticator.validate_bearer_token(f"Bearer {authenticator.issue_token(user_id)}") == user_id
