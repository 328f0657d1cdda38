"""Shared pytest fixtures for the docurl test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from docurl.config import Settings


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: float = 0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture()
def settings() -> Settings:
    """Return a Settings instance with test defaults."""
    return Settings(
        storage_url="https://storage.test",
        storage_service_key="service-key",
        documents_bucket="insurance-documents",
        preview_expires_in=10,
        preview_buffer_seconds=2,
        download_expires_in=10,
        download_buffer_seconds=1,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def mock_signer() -> AsyncMock:
    """Mock UrlSigner returning deterministic URLs."""
    signer = AsyncMock()
    signer.preview.side_effect = lambda key: f"https://cdn.test/preview/{key}"
    signer.download.side_effect = lambda key: f"https://cdn.test/download/{key}"
    return signer
