from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
import uuid
from typing import Protocol


@dataclass(frozen=True)
class StoredImage:
    url: str
    public_id: str


class PasswordHasher(Protocol):
    async def hash(self, raw: str) -> str:
        ...

    async def verify(self, raw: str, hashed: str) -> bool:
        ...


class TokenSigner(Protocol):
    def sign(self, user_id: uuid.UUID, ttl: timedelta) -> str:
        ...

    def verify(self, token: str) -> uuid.UUID:
        """Return the encoded user id or raise ``InvalidTokenError``."""
        ...


class ImageStore(Protocol):
    async def upload(
        self, folder: str, content: bytes, owner_id: uuid.UUID
    ) -> StoredImage:
        ...

    async def delete(self, public_id: str) -> None:
        ...


class EmailSender(Protocol):
    async def send(self, recipient: str, subject: str, html_body: str) -> None:
        ...
