"""
agent_router.cache - Content-addressed embedding cache.

- bundle: EmbeddingBundle wire model and float32 base64 codec
- store: CacheStore protocol, admission rules, memory/file stores
- http: remote store client
- client: validating EmbeddingCacheClient (get/put)
- server: reference store server (aiohttp)
"""

from __future__ import annotations

from .bundle import (
    DTYPE_FLOAT32,
    Chunk,
    ChunkMeta,
    EmbeddingBundle,
    assemble_bundle,
    decode_vector,
    encode_vector,
    validate_bundle,
)
from .client import CachedBundle, CacheStats, EmbeddingCacheClient
from .http import HttpCacheStore
from .server import CacheStoreServer, create_store_app
from .store import CacheStore, FileCacheStore, MemoryCacheStore, check_admission


def create_cache_store(backend: str | None = None, expected_dims: int | None = None) -> CacheStore:
    """Build the configured cache store (``cache.backend``: http | file | memory)."""
    from agent_router.config.dirs import PRJ_CACHE
    from agent_router.config.settings import get_setting

    backend = backend or get_setting("cache.backend", "http")
    dims = expected_dims or int(get_setting("router.dims", 384))

    if backend == "http":
        return HttpCacheStore(
            get_setting("cache.base_url", "http://127.0.0.1:3001"),
            timeout=float(get_setting("cache.timeout", 10)),
        )
    if backend == "file":
        directory = get_setting("cache.directory") or PRJ_CACHE("agent-router", "embeddings")
        return FileCacheStore(directory, expected_dims=dims)
    if backend == "memory":
        return MemoryCacheStore(expected_dims=dims)
    raise ValueError(f"Unknown cache backend: {backend!r}")


__all__ = [
    "DTYPE_FLOAT32",
    "CacheStats",
    "CachedBundle",
    "CacheStore",
    "CacheStoreServer",
    "Chunk",
    "ChunkMeta",
    "EmbeddingBundle",
    "EmbeddingCacheClient",
    "FileCacheStore",
    "HttpCacheStore",
    "MemoryCacheStore",
    "assemble_bundle",
    "check_admission",
    "create_cache_store",
    "create_store_app",
    "decode_vector",
    "encode_vector",
    "validate_bundle",
]
