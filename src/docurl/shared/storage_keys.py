"""Storage key normalization for the documents bucket.

Keys reach us in two shapes: bucket-relative (``user/policy.pdf``) and, from
older records, prefixed with the bucket name (``insurance-documents/user/policy.pdf``).
Both must address the same object and the same cache slot.
"""

from __future__ import annotations

from docurl.shared.exceptions import StorageKeyError

DOCUMENTS_BUCKET = "insurance-documents"


def normalize_storage_key(raw_key: str, bucket: str = DOCUMENTS_BUCKET) -> str:
    """Return the bucket-relative form of *raw_key*.

    Leading slashes and any number of ``<bucket>/`` prefixes are removed.
    The function is idempotent and never raises; an empty result is
    returned as-is and left for the signer to reject.

    Args:
        raw_key: Storage key as stored on the document record.
        bucket: Bucket name to strip.

    Returns:
        Normalized object path.
    """
    prefix = f"{bucket}/"
    key = raw_key.lstrip("/")
    while key.startswith(prefix):
        key = key[len(prefix) :].lstrip("/")
    return key


def to_object_path(raw_key: str, bucket: str = DOCUMENTS_BUCKET) -> str:
    """Normalize *raw_key* and make sure it still names an object.

    Raises:
        StorageKeyError: If nothing is left after normalization.
    """
    if not isinstance(raw_key, str):
        raise StorageKeyError(f"storage key must be a string, got {type(raw_key).__name__}")
    object_path = normalize_storage_key(raw_key, bucket)
    if not object_path.strip() or object_path.endswith("/"):
        raise StorageKeyError(f"storage key does not name an object: {raw_key!r}")
    return object_path
