"""In-memory signed URL cache with in-flight request coalescing."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum, unique
from typing import TYPE_CHECKING

from docurl.shared.storage_keys import DOCUMENTS_BUCKET, normalize_storage_key
from docurl.signed_url.interfaces import Clock, UrlFetcher, UrlSigner

if TYPE_CHECKING:
    from docurl.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_EXPIRES_IN = 5 * 60
DEFAULT_PREVIEW_BUFFER_SECONDS = 30
DEFAULT_DOWNLOAD_EXPIRES_IN = 60 * 60
DEFAULT_DOWNLOAD_BUFFER_SECONDS = 120

# Floor for expires_in - buffer_seconds.
_MIN_LIFETIME_SECONDS = 1


@unique
class UrlKind(str, Enum):
    """Kind of signed URL; each kind is cached in its own namespace."""

    PREVIEW = "preview"
    DOWNLOAD = "download"


@dataclass(frozen=True)
class CacheEntry:
    url: str
    expires_at_ms: float


def _wall_clock_ms() -> float:
    return time.time() * 1000


class UrlNamespace:
    """Keyed TTL cache for one kind of signed URL.

    Concurrent lookups for a key that is neither cached nor fresh share a
    single fetcher call. The pending task is registered before the first
    ``await``, so every caller that runs before the fetch settles awaits the
    same task.
    """

    def __init__(
        self,
        name: str,
        fetcher: UrlFetcher,
        *,
        expires_in: float,
        buffer_seconds: float,
        now: Clock = _wall_clock_ms,
        bucket: str = DOCUMENTS_BUCKET,
    ) -> None:
        self.name = name
        self._fetcher = fetcher
        self._now = now
        self._bucket = bucket
        self.expires_in = expires_in
        self.buffer_seconds = buffer_seconds
        self._entries: dict[str, CacheEntry] = {}
        self._pending: dict[str, asyncio.Task[str]] = {}

    @property
    def lifetime_ms(self) -> float:
        """How long a fetched URL is served from the cache."""
        return max(self.expires_in - self.buffer_seconds, _MIN_LIFETIME_SECONDS) * 1000

    def normalize(self, raw_key: str) -> str:
        return normalize_storage_key(raw_key, self._bucket)

    async def get(self, raw_key: str) -> str:
        """Return a fresh URL for *raw_key*, fetching one only when needed.

        Raises:
            Exception: Whatever the fetcher raised, unchanged.
        """
        key = self.normalize(raw_key)

        entry = self._entries.get(key)
        if entry is not None and self._now() < entry.expires_at_ms:
            logger.debug("%s cache hit for %s", self.name, key)
            return entry.url

        task = self._pending.get(key)
        if task is None:
            logger.debug("%s cache miss for %s, fetching", self.name, key)
            task = asyncio.ensure_future(self._fetch(key))
            task.add_done_callback(self._log_failure)
            self._pending[key] = task
        else:
            logger.debug("%s joining in-flight fetch for %s", self.name, key)

        # A cancelled waiter must not cancel the fetch other callers share.
        return await asyncio.shield(task)

    async def _fetch(self, key: str) -> str:
        task = asyncio.current_task()
        try:
            url = await self._fetcher(key)
        finally:
            current = self._pending.get(key)
            if current is task:
                del self._pending[key]

        if current is task:
            self._entries[key] = CacheEntry(url=url, expires_at_ms=self._now() + self.lifetime_ms)
        else:
            logger.debug("%s fetch for %s was invalidated, result not cached", self.name, key)
        return url

    def _log_failure(self, task: asyncio.Task[str]) -> None:
        # Retrieving the exception also keeps asyncio from reporting it when
        # every waiter has gone away.
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("%s URL signing failed: %s", self.name, exc)

    def peek(self, raw_key: str) -> CacheEntry | None:
        """Return the stored entry for *raw_key*, fresh or stale."""
        return self._entries.get(self.normalize(raw_key))

    def is_pending(self, raw_key: str) -> bool:
        return self.normalize(raw_key) in self._pending

    def invalidate(self, raw_key: str) -> None:
        """Forget *raw_key*.

        An in-flight fetch is detached, not cancelled: its current waiters
        still get its outcome, but the result is not cached.
        """
        key = self.normalize(raw_key)
        self._entries.pop(key, None)
        self._pending.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
        self._pending.clear()

    def __len__(self) -> int:
        return len(self._entries)


class SignedUrlCache:
    """Signed URL cache with separate preview and download namespaces.

    Args:
        preview: Fetcher returning a signed preview URL for a normalized key.
        download: Fetcher returning a signed download URL for a normalized key.
        preview_expires_in: Nominal preview URL lifetime in seconds.
        preview_buffer_seconds: Seconds subtracted from the preview lifetime.
        download_expires_in: Nominal download URL lifetime in seconds.
        download_buffer_seconds: Seconds subtracted from the download lifetime.
        now: Clock returning milliseconds; defaults to the wall clock.
        bucket: Bucket prefix stripped from raw keys.
    """

    def __init__(
        self,
        preview: UrlFetcher,
        download: UrlFetcher,
        *,
        preview_expires_in: float = DEFAULT_PREVIEW_EXPIRES_IN,
        preview_buffer_seconds: float = DEFAULT_PREVIEW_BUFFER_SECONDS,
        download_expires_in: float = DEFAULT_DOWNLOAD_EXPIRES_IN,
        download_buffer_seconds: float = DEFAULT_DOWNLOAD_BUFFER_SECONDS,
        now: Clock | None = None,
        bucket: str = DOCUMENTS_BUCKET,
    ) -> None:
        clock = now if now is not None else _wall_clock_ms
        self._namespaces: dict[UrlKind, UrlNamespace] = {
            UrlKind.PREVIEW: UrlNamespace(
                UrlKind.PREVIEW.value,
                preview,
                expires_in=preview_expires_in,
                buffer_seconds=preview_buffer_seconds,
                now=clock,
                bucket=bucket,
            ),
            UrlKind.DOWNLOAD: UrlNamespace(
                UrlKind.DOWNLOAD.value,
                download,
                expires_in=download_expires_in,
                buffer_seconds=download_buffer_seconds,
                now=clock,
                bucket=bucket,
            ),
        }

    @classmethod
    def from_settings(cls, signer: UrlSigner, settings: Settings, *, now: Clock | None = None) -> SignedUrlCache:
        """Build a cache around *signer* using the configured lifetimes."""
        return cls(
            signer.preview,
            signer.download,
            preview_expires_in=settings.preview_expires_in,
            preview_buffer_seconds=settings.preview_buffer_seconds,
            download_expires_in=settings.download_expires_in,
            download_buffer_seconds=settings.download_buffer_seconds,
            now=now,
            bucket=settings.documents_bucket,
        )

    def namespace(self, kind: UrlKind | str) -> UrlNamespace:
        return self._namespaces[UrlKind(kind)]

    async def get_preview_url(self, raw_key: str) -> str:
        return await self._namespaces[UrlKind.PREVIEW].get(raw_key)

    async def get_download_url(self, raw_key: str) -> str:
        return await self._namespaces[UrlKind.DOWNLOAD].get(raw_key)

    async def get_url(self, kind: UrlKind | str, raw_key: str) -> str:
        return await self.namespace(kind).get(raw_key)

    def invalidate(self, raw_key: str, kind: UrlKind | str | None = None) -> None:
        """Drop *raw_key* from one namespace, or from both when *kind* is None."""
        if kind is not None:
            self.namespace(kind).invalidate(raw_key)
            return
        for ns in self._namespaces.values():
            ns.invalidate(raw_key)

    def clear(self) -> None:
        for ns in self._namespaces.values():
            ns.clear()
