from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import jwt

from .config import Settings
from .errors import Unauthenticated


class JWTAuthenticator:
    """Validates ``Authorization: Bearer`` headers and yields the caller's user id."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def validate_bearer_token(self, header_value: Optional[str]) -> UUID:
        token = self._extract_token(header_value)
        payload = self._decode_token(token)

        subject = payload.get("sub")
        if not subject:
            raise Unauthenticated("Token carries no subject")
        try:
            return UUID(str(subject))
        except ValueError as exc:
            raise Unauthenticated("Token subject is not a user id", cause=exc) from exc

    def issue_token(self, user_id: UUID, *, expires_in: Optional[int] = None) -> str:
        issued_at = datetime.now(timezone.utc)
        ttl = expires_in if expires_in is not None else self.settings.jwt_ttl_seconds
        claims: dict[str, object] = {
            "sub": str(user_id),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + timedelta(seconds=ttl)).timestamp()),
        }
        if self.settings.jwt_issuer:
            claims["iss"] = self.settings.jwt_issuer
        if self.settings.jwt_audience:
            claims["aud"] = self.settings.jwt_audience
        return jwt.encode(claims, self.settings.secrets.jwt_secret, algorithm=self.settings.jwt_algorithm)

    @staticmethod
    def _extract_token(header_value: Optional[str]) -> str:
        if not header_value:
            raise Unauthenticated("Couldn't find JWT")
        scheme, _, token = header_value.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise Unauthenticated("Malformed authorization header")
        return token.strip()

    def _decode_token(self, token: str) -> dict:
        try:
            return jwt.decode(
                token,
                self.settings.secrets.jwt_secret,
                algorithms=[self.settings.jwt_algorithm],
                audience=self.settings.jwt_audience,
                issuer=self.settings.jwt_issuer,
                options={"verify_aud": self.settings.jwt_audience is not None},
            )
        except jwt.PyJWTError as exc:
            raise Unauthenticated("Couldn't validate JWT", cause=exc) from exc


__all__ = ["JWTAuthenticator"]
