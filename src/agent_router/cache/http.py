"""
agent_router.cache.http - Remote cache store client

Talks to a cache store server:
- GET /embeddings/{build_id}  -> 200 bundle JSON | 404 not found
- PUT /embeddings/{build_id}  -> 200 ok | 400 rejected (build_id/dims mismatch)

No retries: one round trip per direction. I/O failures surface as
CacheReadError / CacheWriteError for the cache client to absorb.
"""

from __future__ import annotations

from typing import Any

import aiohttp

from agent_router.config.logging import get_logger
from agent_router.errors import CacheReadError, CacheStoreRejectedError, CacheWriteError

from .store import require_build_id

logger = get_logger("agent_router.cache.http")

_REJECTION_STATUSES = frozenset({400, 409, 413, 422})


class HttpCacheStore:
    """CacheStore backed by a remote store server."""

    def __init__(self, base_url: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    def url_for(self, build_id: str) -> str:
        return f"{self.base_url}/embeddings/{require_build_id(build_id)}"

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )
        return self._session

    async def fetch(self, build_id: str) -> dict[str, Any] | None:
        url = self.url_for(build_id)
        session = await self._get_session()
        try:
            async with session.get(url) as response:
                if response.status == 404:
                    return None
                if response.status != 200:
                    error = await response.text()
                    raise CacheReadError(
                        f"Cache store returned HTTP {response.status}",
                        build_id=build_id,
                        body=error[:200],
                    )
                return await response.json(content_type=None)
        except (aiohttp.ClientError, TimeoutError) as e:
            raise CacheReadError(f"Cache store unreachable: {e!r}", build_id=build_id) from e
        except ValueError as e:
            raise CacheReadError(f"Cache store sent invalid JSON: {e}", build_id=build_id) from e

    async def store(self, build_id: str, payload: dict[str, Any]) -> None:
        url = self.url_for(build_id)
        session = await self._get_session()
        try:
            async with session.put(url, json=payload) as response:
                if response.status in (200, 201, 204):
                    return
                error = await response.text()
                if response.status in _REJECTION_STATUSES:
                    raise CacheStoreRejectedError(
                        f"Cache store rejected bundle (HTTP {response.status})",
                        build_id=build_id,
                        body=error[:200],
                    )
                raise CacheWriteError(
                    f"Cache store returned HTTP {response.status}",
                    build_id=build_id,
                    body=error[:200],
                )
        except (aiohttp.ClientError, TimeoutError) as e:
            raise CacheWriteError(f"Cache store unreachable: {e!r}", build_id=build_id) from e

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def __repr__(self) -> str:
        return f"HttpCacheStore(base_url={self.base_url!r})"


__all__ = ["HttpCacheStore"]
