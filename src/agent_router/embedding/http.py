"""
agent_router.embedding.http - Embedding HTTP Provider

Client for an embedding HTTP server that owns the model:
- POST /embed/single {"text": ...}   -> {"vector": [...]}
- POST /embed/batch  {"texts": [...]} -> {"vectors": [[...], ...]}
- GET  /health

The router never loads a model itself; this provider is the default
capability handed to EmbeddingEngine by the CLI.
"""

from __future__ import annotations

from typing import Any

import aiohttp

from agent_router.config.logging import get_logger
from agent_router.config.settings import get_setting
from agent_router.errors import EmbeddingError

logger = get_logger("agent_router.embedding.http")


class HttpEmbeddingProvider:
    """HTTP client for a remote embedding service."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        """Initialize the client.

        Args:
            base_url: Embedding server URL (default: settings embedding.client_url)
            timeout: Request timeout in seconds (default: settings embedding.timeout)
        """
        self.base_url = (base_url or get_setting("embedding.client_url")).rstrip("/")
        if timeout is None:
            timeout = float(get_setting("embedding.timeout", 60))
        self._timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )
        return self._session

    async def embed(self, text: str) -> list[float]:
        """Embed a single (already prefixed) text."""
        data = await self._post("/embed/single", {"text": text})
        vector = data.get("vector")
        if not isinstance(vector, list):
            raise EmbeddingError("Embedding server response has no 'vector'")
        return vector

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts in one request."""
        data = await self._post("/embed/batch", {"texts": texts})
        vectors = data.get("vectors")
        if not isinstance(vectors, list) or len(vectors) != len(texts):
            raise EmbeddingError("Embedding server returned a malformed batch")
        return vectors

    async def health_check(self) -> dict[str, Any]:
        """Check embedding server health."""
        session = await self._get_session()
        try:
            async with session.get(
                f"{self.base_url}/health", timeout=aiohttp.ClientTimeout(total=5)
            ) as response:
                if response.status == 200:
                    data = await response.json(content_type=None)
                    return {"status": "healthy", "server_url": self.base_url, **data}
                return {
                    "status": "unhealthy",
                    "server_url": self.base_url,
                    "code": response.status,
                    "error": await response.text(),
                }
        except aiohttp.ClientError as e:
            logger.warning("Embedding server unreachable", url=self.base_url, error=str(e))
            return {"status": "unreachable", "server_url": self.base_url, "error": str(e)}

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        session = await self._get_session()
        try:
            async with session.post(f"{self.base_url}{path}", json=payload) as response:
                if response.status != 200:
                    error = await response.text()
                    raise EmbeddingError(
                        f"Embedding server error (HTTP {response.status}): {error[:200]}"
                    )
                return await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise EmbeddingError(f"Failed to connect to embedding server: {e}") from e


__all__ = ["HttpEmbeddingProvider"]
