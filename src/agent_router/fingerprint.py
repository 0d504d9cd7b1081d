"""
fingerprint.py - Canonical catalog fingerprints and cache keys

Derives the content-addressed cache key ("build id") for an embedding bundle:

    canonical = canonicalize(catalog_document)
    fingerprint = sha256(canonical)
    build_id = sha256(model_id + "\\n" + chunking_id + "\\n" + fingerprint)

canonicalize() sorts object keys recursively (by their quoted JSON form) and
emits no insignificant whitespace, so documents that differ only in key order
or formatting produce byte-identical output. Sequence order is preserved.
"""

from __future__ import annotations

import hashlib
import json
import re
from collections.abc import Mapping
from typing import Any

# SHA-256, lowercase hex
BUILD_ID_LENGTH = 64
_BUILD_ID_RE = re.compile(r"[0-9a-f]{64}")


def _encode_scalar(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, allow_nan=False)


def canonicalize(value: Any) -> str:
    """Serialize a JSON-compatible value deterministically.

    Raises:
        TypeError: if the value (or a nested key) is not JSON-compatible.
        ValueError: for NaN or infinite floats.
    """
    if isinstance(value, Mapping):
        pairs: list[tuple[str, Any]] = []
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"Object keys must be strings, got {type(key).__name__}")
            pairs.append((_encode_scalar(key), item))
        pairs.sort(key=lambda pair: pair[0])
        return "{" + ",".join(f"{k}:{canonicalize(v)}" for k, v in pairs) + "}"

    if isinstance(value, (list, tuple)):
        return "[" + ",".join(canonicalize(item) for item in value) + "]"

    if value is None or isinstance(value, (str, bool, int, float)):
        return _encode_scalar(value)

    raise TypeError(f"Value of type {type(value).__name__} is not JSON serializable")


def sha256_hex(text: str) -> str:
    """SHA-256 of the UTF-8 encoding of text, as lowercase hex."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def fingerprint(canonical: str | bytes) -> str:
    """Content fingerprint of canonical catalog bytes."""
    if isinstance(canonical, bytes):
        return hashlib.sha256(canonical).hexdigest()
    return sha256_hex(canonical)


def build_id(model_id: str, chunking_id: str, content_fingerprint: str) -> str:
    """Cache key for a bundle: changes iff model, chunking or content changes."""
    return sha256_hex(f"{model_id}\n{chunking_id}\n{content_fingerprint}")


def catalog_build_id(document: Any, model_id: str, chunking_id: str) -> tuple[str, str]:
    """Canonicalize a catalog document and return (fingerprint, build_id)."""
    content_fingerprint = fingerprint(canonicalize(document))
    return content_fingerprint, build_id(model_id, chunking_id, content_fingerprint)


def is_build_id(value: Any) -> bool:
    """True when value is a 64-character lowercase hex digest."""
    return isinstance(value, str) and _BUILD_ID_RE.fullmatch(value) is not None


__all__ = [
    "BUILD_ID_LENGTH",
    "build_id",
    "canonicalize",
    "catalog_build_id",
    "fingerprint",
    "is_build_id",
    "sha256_hex",
]
