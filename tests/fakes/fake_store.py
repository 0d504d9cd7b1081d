"""
Recording cache store.

Wraps MemoryCacheStore and counts traffic; can be told to fail reads or writes.
"""

from __future__ import annotations

from typing import Any

from agent_router.cache.store import MemoryCacheStore
from agent_router.errors import CacheReadError, CacheWriteError


class RecordingCacheStore:
    def __init__(self, expected_dims: int = 384):
        self.inner = MemoryCacheStore(expected_dims)
        self.fetches: list[str] = []
        self.stores: list[str] = []
        self.fail_fetch = False
        self.fail_store = False

    async def fetch(self, build_id: str) -> dict[str, Any] | None:
        self.fetches.append(build_id)
        if self.fail_fetch:
            raise CacheReadError("store offline", build_id=build_id)
        return await self.inner.fetch(build_id)

    async def store(self, build_id: str, payload: dict[str, Any]) -> None:
        self.stores.append(build_id)
        if self.fail_store:
            raise CacheWriteError("store offline", build_id=build_id)
        await self.inner.store(build_id, payload)

    def reset_counters(self) -> None:
        self.fetches.clear()
        self.stores.clear()
