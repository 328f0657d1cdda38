"""Hierarchical exception types for docurl."""

from __future__ import annotations


class DocurlError(Exception):
    """Base exception for all docurl errors."""


# ── Signing ────────────────────────────────────────────────────


class SigningError(DocurlError):
    """The storage service could not produce a signed URL."""


class StorageKeyError(SigningError):
    """The storage key does not name an object in the documents bucket."""
