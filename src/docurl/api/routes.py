"""API routes for docurl."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, Request, Response
from fastapi.responses import RedirectResponse

from docurl.shared.exceptions import SigningError, StorageKeyError
from docurl.signed_url.cache import SignedUrlCache, UrlKind

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_cache(request: Request) -> SignedUrlCache:
    cache = getattr(request.app.state, "cache", None)
    if cache is None:
        raise HTTPException(status_code=503, detail="signed URL cache unavailable")
    return cache


async def _signed_url(request: Request, kind: UrlKind, key: str) -> str:
    cache = _get_cache(request)
    try:
        return await cache.get_url(kind, key)
    except StorageKeyError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except SigningError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.get("/documents/preview")
async def preview_url(request: Request, key: str = Query(...)) -> dict[str, str]:
    """Return a signed URL for viewing the document inline."""
    url = await _signed_url(request, UrlKind.PREVIEW, key)
    return {"key": key, "kind": UrlKind.PREVIEW.value, "url": url}


@router.get("/documents/download")
async def download_url(request: Request, key: str = Query(...)) -> dict[str, str]:
    """Return a signed URL for downloading the document."""
    url = await _signed_url(request, UrlKind.DOWNLOAD, key)
    return {"key": key, "kind": UrlKind.DOWNLOAD.value, "url": url}


@router.get("/documents/download/redirect")
async def download_redirect(request: Request, key: str = Query(...)) -> RedirectResponse:
    """Sign then redirect to the download URL."""
    url = await _signed_url(request, UrlKind.DOWNLOAD, key)
    return RedirectResponse(url=url, status_code=302)


@router.delete("/documents/cache", status_code=204)
async def invalidate(request: Request, key: str = Query(...), kind: UrlKind | None = None) -> Response:
    """Forget cached URLs for a document, e.g. after it was replaced."""
    _get_cache(request).invalidate(key, kind)
    logger.info("invalidated %s URLs for %s", kind.value if kind else "all", key)
    return Response(status_code=204)


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint.

    Returns:
        Status dictionary
    """
    return {"status": "ok"}
