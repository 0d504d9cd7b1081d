"""
client.py - Embedding Cache Client

Validating front-end over a CacheStore.

get(build_id):
    fetch -> parse -> validate (build_id, dims, dtype, model, vectors)
    A hit carries the bundle and its decoded vector matrix.
    Any read fault or validation failure is logged and reported as a miss.

put(build_id, bundle):
    Best-effort. The bundle is re-validated locally first so an incomplete
    bundle is never sent; store faults and rejections are logged and
    reported as False.

A malformed build id is a caller bug and raises InvalidBuildIdError.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import NamedTuple

import numpy as np

from agent_router.config.logging import get_logger
from agent_router.errors import CacheValidationError, InvalidBuildIdError, RouterError

from .bundle import EmbeddingBundle, validate_bundle
from .store import CacheStore, require_build_id

logger = get_logger("agent_router.cache.client")


class CachedBundle(NamedTuple):
    """A validated cache hit: the bundle and its vectors, one row per chunk."""

    bundle: EmbeddingBundle
    vectors: np.ndarray


@dataclass
class CacheStats:
    """Counters for cache traffic."""

    reads: int = 0
    hits: int = 0
    misses: int = 0
    rejected: int = 0
    writes: int = 0
    write_failures: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


class EmbeddingCacheClient:
    """
    [Embedding Cache Client]

    Usage:
        client = EmbeddingCacheClient(HttpCacheStore(url), expected_dims=384)
        hit = await client.get(build_id)      # CachedBundle | None
        await client.put(build_id, bundle)    # True if persisted
    """

    def __init__(
        self,
        store: CacheStore,
        expected_dims: int,
        expected_model_id: str | None = None,
    ):
        self._store = store
        self._expected_dims = expected_dims
        self._expected_model_id = expected_model_id
        self.stats = CacheStats()

    @property
    def store(self) -> CacheStore:
        return self._store

    async def get(self, build_id: str) -> CachedBundle | None:
        """Fetch and validate the bundle stored under build_id.

        Returns:
            The bundle with its decoded vectors, or None on miss, read failure
            or validation failure.
        """
        require_build_id(build_id)
        self.stats.reads += 1

        try:
            payload = await self._store.fetch(build_id)
        except InvalidBuildIdError:
            raise
        except Exception as e:
            self.stats.misses += 1
            logger.warning("Cache read failed, treating as miss", build_id=build_id, error=str(e))
            return None

        if payload is None:
            self.stats.misses += 1
            logger.debug("Cache miss", build_id=build_id)
            return None

        try:
            bundle = EmbeddingBundle.from_payload(payload)
            vectors = validate_bundle(
                bundle, build_id, self._expected_dims, self._expected_model_id
            )
        except CacheValidationError as e:
            self.stats.rejected += 1
            self.stats.misses += 1
            logger.warning(
                "Cached bundle rejected, treating as miss",
                build_id=build_id,
                reason=e.message,
            )
            return None

        self.stats.hits += 1
        logger.debug("Cache hit", build_id=build_id, chunks=len(bundle.chunks))
        return CachedBundle(bundle, vectors)

    async def put(self, build_id: str, bundle: EmbeddingBundle) -> bool:
        """Persist a bundle under build_id.

        Returns:
            True if the store accepted the bundle, False otherwise.
        """
        require_build_id(build_id)

        try:
            validate_bundle(bundle, build_id, self._expected_dims, self._expected_model_id)
        except CacheValidationError as e:
            self.stats.write_failures += 1
            logger.warning("Refusing to store invalid bundle", build_id=build_id, reason=e.message)
            return False

        try:
            await self._store.store(build_id, bundle.to_payload())
        except InvalidBuildIdError:
            raise
        except Exception as e:
            self.stats.write_failures += 1
            error = str(e) if isinstance(e, RouterError) else repr(e)
            logger.warning("Cache write failed", build_id=build_id, error=error)
            return False

        self.stats.writes += 1
        logger.info("Bundle cached", build_id=build_id, chunks=len(bundle.chunks))
        return True


__all__ = ["CacheStats", "CachedBundle", "EmbeddingCacheClient"]
