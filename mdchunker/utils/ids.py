"""Content fingerprints for chunks. Deterministic for identical content."""

import hashlib


def compute_content_hash(content: str) -> str:
    """Chunk hash = SHA-256 hex digest of the final chunk content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def short_hash(content: str, length: int = 12) -> str:
    """Return the first `length` hex chars of the content hash, for log lines."""
    return compute_content_hash(content)[:length]
