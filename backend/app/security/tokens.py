import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt

from ..config import settings


class InvalidTokenError(Exception):
    """Raised when a token cannot be parsed or is malformed."""


class ExpiredTokenError(InvalidTokenError):
    """Raised when a token has expired."""


class JwtTokenSigner:
    """Session tokens: HMAC-signed JWTs carrying the user id in ``sub``."""

    def __init__(self, secret_key: str | None = None, algorithm: str | None = None) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm

    @property
    def secret_key(self) -> str:
        return self._secret_key or settings.secret_key

    @property
    def algorithm(self) -> str:
        return self._algorithm or settings.algorithm

    def sign(self, user_id: uuid.UUID, ttl: timedelta) -> str:
        issued_at = datetime.now(timezone.utc)
        payload = {"sub": str(user_id), "iat": issued_at, "exp": issued_at + ttl}
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def _parse_payload(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError as exc:
            raise ExpiredTokenError from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError from exc

    def verify(self, token: str) -> uuid.UUID:
        if not token:
            raise InvalidTokenError()
        payload = self._parse_payload(token)
        subject = payload.get("sub")
        if not isinstance(subject, str):
            raise InvalidTokenError()
        try:
            return uuid.UUID(subject)
        except ValueError:
            raise InvalidTokenError() from None
