"""Supabase Storage URL signer."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx

from docurl.shared.exceptions import SigningError
from docurl.shared.storage_keys import DOCUMENTS_BUCKET, to_object_path

if TYPE_CHECKING:
    from docurl.config import Settings

logger = logging.getLogger(__name__)


class StorageSigner:
    """Signs object URLs through the Supabase Storage REST API.

    Implements the ``UrlSigner`` protocol.

    Strategy:
    1. Validate and normalize the storage key into an object path.
    2. ``POST /object/sign/{bucket}/{path}`` with the requested lifetime.
    3. Join the returned relative ``signedURL`` onto the storage API base.
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        *,
        bucket: str = DOCUMENTS_BUCKET,
        preview_expires_in: int = 300,
        download_expires_in: int = 3600,
        timeout: int = 15,
        concurrency: int = 8,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._service_key = service_key
        self._bucket = bucket
        self._preview_expires_in = preview_expires_in
        self._download_expires_in = download_expires_in
        self._timeout = timeout
        self._sem = asyncio.Semaphore(concurrency)
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> StorageSigner:
        return cls(
            settings.storage_api_url,
            settings.storage_service_key,
            bucket=settings.documents_bucket,
            preview_expires_in=settings.preview_expires_in,
            download_expires_in=settings.download_expires_in,
            timeout=settings.signer_timeout_seconds,
            concurrency=settings.signer_concurrency,
        )

    async def start(self) -> None:
        """Initialize the persistent HTTP client."""
        if self._client is None:
            headers = {}
            if self._service_key:
                headers = {
                    "Authorization": f"Bearer {self._service_key}",
                    "apikey": self._service_key,
                }
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers=headers,
                limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
            )

    async def close(self) -> None:
        """Close the persistent HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def preview(self, key: str) -> str:
        """Sign a URL for rendering the document inline."""
        return await self.sign(key, self._preview_expires_in)

    async def download(self, key: str) -> str:
        """Sign a URL that is served as an attachment."""
        url = await self.sign(key, self._download_expires_in)
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}download="

    async def sign(self, key: str, expires_in: int) -> str:
        """Sign *key* for *expires_in* seconds.

        Args:
            key: Storage key, with or without the bucket prefix.
            expires_in: Requested URL lifetime in seconds.

        Returns:
            Absolute signed URL.

        Raises:
            StorageKeyError: If the key does not name an object.
            SigningError: If the storage service rejects or fails the request.
        """
        object_path = to_object_path(key, self._bucket)
        endpoint = f"{self._base_url}/object/sign/{quote(self._bucket)}/{quote(object_path)}"

        if self._client is None:
            await self.start()

        async with self._sem:
            try:
                if self._client is None:
                    raise SigningError("signer HTTP client is not initialized")
                resp = await self._client.post(endpoint, json={"expiresIn": expires_in})
                resp.raise_for_status()
                data = resp.json()
            except httpx.HTTPStatusError as exc:
                raise SigningError(
                    f"storage returned {exc.response.status_code} signing {object_path}: {exc.response.text[:200]}"
                ) from exc
            except httpx.HTTPError as exc:
                raise SigningError(f"failed to reach storage signing endpoint: {exc!r}") from exc
            except ValueError as exc:
                raise SigningError(f"storage returned invalid JSON signing {object_path}") from exc

        signed_path = None
        if isinstance(data, dict):
            signed_path = data.get("signedURL") or data.get("signedUrl")
        if not isinstance(signed_path, str) or not signed_path:
            raise SigningError(f"no signed URL in storage response for {object_path}")

        if signed_path.startswith(("http://", "https://")):
            signed_url = signed_path
        else:
            signed_url = f"{self._base_url}/{signed_path.lstrip('/')}"
        logger.info("signed %s/%s for %ds", self._bucket, object_path, expires_in)
        return signed_url
