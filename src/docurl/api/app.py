"""FastAPI application factory for docurl."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from docurl.api.middleware import AccessLogMiddleware, setup_cors
from docurl.api.routes import router
from docurl.config import Settings, get_settings
from docurl.signed_url.cache import SignedUrlCache
from docurl.signed_url.interfaces import Clock, UrlSigner
from docurl.signed_url.signer import StorageSigner

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open and close the signer's HTTP client."""
    signer = app.state.signer
    start = getattr(signer, "start", None)
    if start is not None:
        await start()
    logger.info("docurl API ready (bucket=%s)", app.state.settings.documents_bucket)
    try:
        yield
    finally:
        close = getattr(signer, "close", None)
        if close is not None:
            await close()
        app.state.cache.clear()


def create_app(
    settings: Settings | None = None,
    *,
    signer: UrlSigner | None = None,
    now: Clock | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    signer = signer or StorageSigner.from_settings(settings)

    app = FastAPI(title="docurl", lifespan=lifespan)
    app.state.settings = settings
    app.state.signer = signer
    app.state.cache = SignedUrlCache.from_settings(signer, settings, now=now)
    setup_cors(app)
    app.add_middleware(AccessLogMiddleware)
    app.include_router(router)
    return app
