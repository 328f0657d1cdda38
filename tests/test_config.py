"""Tests for Settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from docurl.config import Settings, get_settings


def test_defaults() -> None:
    settings = Settings()
    assert settings.documents_bucket == "insurance-documents"
    assert settings.preview_expires_in == 300
    assert settings.preview_buffer_seconds == 30
    assert settings.download_expires_in == 3600
    assert settings.download_buffer_seconds == 120


def test_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DOCURL_PREVIEW_EXPIRES_IN", "60")
    monkeypatch.setenv("DOCURL_DOCUMENTS_BUCKET", "claims")
    settings = get_settings()
    assert settings.preview_expires_in == 60
    assert settings.documents_bucket == "claims"


def test_storage_api_url(settings: Settings) -> None:
    assert settings.storage_api_url == "https://storage.test/storage/v1"


def test_rejects_non_positive_lifetime() -> None:
    with pytest.raises(ValidationError):
        Settings(preview_expires_in=0)
    with pytest.raises(ValidationError):
        Settings(download_buffer_seconds=-1)


def test_settings_are_frozen(settings: Settings) -> None:
    with pytest.raises(ValidationError):
        settings.preview_expires_in = 1  # type: ignore[misc]
