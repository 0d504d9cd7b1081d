"""
engine.py - Embedding Engine

Adapter over a supplied embedding capability ``embed(text) -> vector``.

Roles are structural: catalog entries go through embed_passage(), incoming
requests through embed_query(). Each role gets the prefix of the configured
PrefixScheme, so asymmetric models (E5, BGE) always see the right instruction.

Every vector leaving the engine is a float32 array of length ``dims`` with
unit L2 norm. Provider failures surface as EmbeddingError.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from enum import StrEnum
from typing import Any, Protocol

import numpy as np

from agent_router.config.logging import get_logger
from agent_router.errors import EmbeddingError

logger = get_logger("agent_router.embedding.engine")

# Thread pool for blocking providers (keeps the event loop responsive)
_EMBEDDING_EXECUTOR = ThreadPoolExecutor(max_workers=4, thread_name_prefix="embedding")


class EmbeddingRole(StrEnum):
    """What a text is, from the model's point of view."""

    QUERY = "query"
    PASSAGE = "passage"


class PrefixScheme(StrEnum):
    """Instruction prefixes for asymmetric embedding models."""

    NONE = "none"
    E5 = "e5"
    BGE = "bge"


_PREFIXES: dict[PrefixScheme, dict[EmbeddingRole, str]] = {
    PrefixScheme.NONE: {EmbeddingRole.QUERY: "", EmbeddingRole.PASSAGE: ""},
    PrefixScheme.E5: {EmbeddingRole.QUERY: "query: ", EmbeddingRole.PASSAGE: "passage: "},
    PrefixScheme.BGE: {
        EmbeddingRole.QUERY: "Represent this sentence for searching relevant passages: ",
        EmbeddingRole.PASSAGE: "",
    },
}


def role_prefix(scheme: PrefixScheme | str, role: EmbeddingRole) -> str:
    """Prefix applied to a text of the given role."""
    return _PREFIXES[PrefixScheme(scheme)][role]


class EmbeddingProvider(Protocol):
    """The external embedding capability. ``embed`` may be sync or async."""

    def embed(self, text: str) -> Any: ...


def normalize_vector(raw: Any, dims: int, role: str | None = None) -> np.ndarray:
    """Validate a provider vector and return it unit-normalized as float32.

    Accepts a flat sequence or a single-row batch (``[[...]]``).
    """
    try:
        vector = np.asarray(raw, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise EmbeddingError(f"Embedding is not numeric: {e}", role=role) from e

    if vector.ndim == 2 and vector.shape[0] == 1:
        vector = vector[0]
    if vector.ndim != 1 or vector.shape[0] != dims:
        raise EmbeddingError(
            f"Embedding has shape {vector.shape}, expected ({dims},)",
            role=role,
            dims=dims,
        )
    if not np.all(np.isfinite(vector)):
        raise EmbeddingError("Embedding contains NaN or infinite values", role=role)

    norm = float(np.linalg.norm(vector))
    if norm == 0.0:
        raise EmbeddingError("Embedding is the zero vector", role=role)

    return (vector / norm).astype(np.float32)


class EmbeddingEngine:
    """
    [Embedding Engine]

    Wraps an EmbeddingProvider with role prefixing, validation and
    normalization. Sync providers run on a worker thread; async providers
    are awaited directly.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        dims: int,
        prefix_scheme: PrefixScheme | str = PrefixScheme.NONE,
        concurrency: int = 4,
    ):
        if dims <= 0:
            raise ValueError("dims must be positive")
        self._provider = provider
        self._dims = dims
        self._scheme = PrefixScheme(prefix_scheme)
        self._concurrency = max(1, concurrency)

    @property
    def dims(self) -> int:
        return self._dims

    @property
    def prefix_scheme(self) -> PrefixScheme:
        return self._scheme

    async def embed_query(self, text: str) -> np.ndarray:
        """Embed an incoming request."""
        return await self._embed(text, EmbeddingRole.QUERY)

    async def embed_passage(self, text: str) -> np.ndarray:
        """Embed a catalog entry."""
        return await self._embed(text, EmbeddingRole.PASSAGE)

    async def embed_passages(
        self,
        texts: Sequence[str],
        on_progress: Callable[[int, int], None] | None = None,
    ) -> np.ndarray:
        """Embed catalog entries, preserving order.

        Args:
            texts: Passage texts in catalog order
            on_progress: Called with (completed, total) after each embedding

        Returns:
            float32 matrix of shape (len(texts), dims)
        """
        total = len(texts)
        if total == 0:
            return np.empty((0, self._dims), dtype=np.float32)

        semaphore = asyncio.Semaphore(self._concurrency)
        completed = 0

        async def _embed_one(text: str) -> np.ndarray:
            nonlocal completed
            async with semaphore:
                vector = await self.embed_passage(text)
            completed += 1
            if on_progress is not None:
                on_progress(completed, total)
            return vector

        tasks = [asyncio.ensure_future(_embed_one(text)) for text in texts]
        try:
            vectors = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

        return np.vstack(vectors)

    async def _embed(self, text: str, role: EmbeddingRole) -> np.ndarray:
        prefixed = role_prefix(self._scheme, role) + text
        try:
            raw = await self._call_provider(prefixed)
        except EmbeddingError:
            raise
        except Exception as e:
            logger.warning("Embedding provider failed", role=role.value, error=str(e))
            raise EmbeddingError(f"Embedding provider failed: {e}", role=role.value) from e
        return normalize_vector(raw, self._dims, role=role.value)

    async def _call_provider(self, text: str) -> Any:
        embed = self._provider.embed
        if inspect.iscoroutinefunction(embed):
            return await embed(text)

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(_EMBEDDING_EXECUTOR, embed, text)
        if inspect.isawaitable(result):
            return await result
        return result


__all__ = [
    "EmbeddingEngine",
    "EmbeddingProvider",
    "EmbeddingRole",
    "PrefixScheme",
    "normalize_vector",
    "role_prefix",
]
