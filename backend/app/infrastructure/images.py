"""Cloudinary-backed avatar storage.

Uploads and deletions go through Cloudinary's signed REST API. Any transport
or API failure surfaces as ``DependencyFailureError`` so callers never see
httpx exceptions.
"""
from __future__ import annotations

import hashlib
import logging
import time
import uuid
from collections.abc import Mapping

import httpx

from ..config import settings
from ..domain.ports.services import StoredImage
from ..errors import DependencyFailureError

logger = logging.getLogger("rbac.images")

CLOUDINARY_API_BASE = "https://api.cloudinary.com/v1_1"


def sign_params(params: Mapping[str, str], api_secret: str) -> str:
    """Cloudinary request signature: sha1 over sorted ``k=v`` pairs plus secret."""
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryImageStore:
    def __init__(
        self,
        *,
        cloud_name: str | None = None,
        api_key: str | None = None,
        api_secret: str | None = None,
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._cloud_name = cloud_name or settings.cloudinary_cloud_name
        self._api_key = api_key or settings.cloudinary_api_key
        self._api_secret = api_secret or settings.cloudinary_api_secret
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    def _ensure_configured(self) -> None:
        if not (self._cloud_name and self._api_key and self._api_secret):
            raise DependencyFailureError("Image storage is not configured")

    def _endpoint(self, action: str) -> str:
        return f"{CLOUDINARY_API_BASE}/{self._cloud_name}/image/{action}"

    def _signed(self, params: dict[str, str]) -> dict[str, str]:
        api_key, api_secret = self._api_key, self._api_secret
        if not (api_key and api_secret):
            raise DependencyFailureError("Image storage is not configured")
        params["timestamp"] = str(int(time.time()))
        return {
            **params,
            "api_key": api_key,
            "signature": sign_params(params, api_secret),
        }

    async def _post(
        self, action: str, data: dict[str, str], files: dict | None = None
    ) -> dict:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(
                    self._endpoint(action), data=data, files=files
                )
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as exc:
            logger.error("image_store_request_failed action=%s error=%s", action, exc)
            raise DependencyFailureError("Image storage is unavailable") from exc

    async def upload(
        self, folder: str, content: bytes, owner_id: uuid.UUID
    ) -> StoredImage:
        self._ensure_configured()
        public_id = f"{owner_id}-{uuid.uuid4().hex[:12]}"
        data = self._signed({"folder": folder, "public_id": public_id})
        body = await self._post(
            "upload", data, files={"file": (public_id, content)}
        )
        try:
            return StoredImage(url=body["secure_url"], public_id=body["public_id"])
        except KeyError as exc:
            logger.error("image_store_bad_response keys=%s", sorted(body))
            raise DependencyFailureError("Image storage returned an invalid response") from exc

    async def delete(self, public_id: str) -> None:
        self._ensure_configured()
        data = self._signed({"public_id": public_id})
        body = await self._post("destroy", data)
        result = body.get("result")
        if result not in {"ok", "not found"}:
            logger.error(
                "image_store_delete_failed public_id=%s result=%s", public_id, result
            )
            raise DependencyFailureError("Image could not be removed")
