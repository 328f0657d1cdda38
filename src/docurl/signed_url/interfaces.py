"""Interfaces for the signed URL module."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

UrlFetcher = Callable[[str], Awaitable[str]]
Clock = Callable[[], float]


@runtime_checkable
class UrlSigner(Protocol):
    """Protocol for upstream URL-signing backends."""

    async def preview(self, key: str) -> str:
        """Sign a short-lived URL for viewing the object inline.

        Args:
            key: Normalized storage key.

        Returns:
            Signed preview URL.
        """
        ...

    async def download(self, key: str) -> str:
        """Sign a URL that makes the browser save the object.

        Args:
            key: Normalized storage key.

        Returns:
            Signed download URL.
        """
        ...
