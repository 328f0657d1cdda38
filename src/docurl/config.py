"""Centralised configuration via Pydantic Settings."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide configuration loaded from environment variables."""

    model_config = {"env_prefix": "DOCURL_", "frozen": True}

    # Object storage (Supabase Storage REST API)
    storage_url: str = "http://localhost:54321"
    storage_service_key: str = ""
    documents_bucket: str = "insurance-documents"

    # Signed URL lifetimes (seconds).
    # The buffer is subtracted from the lifetime when caching, so a cached URL
    # is refreshed before the storage service stops accepting it.
    preview_expires_in: int = Field(default=300, gt=0)
    preview_buffer_seconds: int = Field(default=30, ge=0)
    download_expires_in: int = Field(default=3600, gt=0)
    download_buffer_seconds: int = Field(default=120, ge=0)

    # Signer HTTP client
    signer_timeout_seconds: int = 15
    signer_concurrency: int = 8

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    @property
    def storage_api_url(self) -> str:
        return f"{self.storage_url.rstrip('/')}/storage/v1"


def get_settings() -> Settings:
    """Factory — allows overriding in tests."""
    return Settings()
