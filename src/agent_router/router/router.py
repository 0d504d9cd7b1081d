"""
router.py - The Agent Router

Orchestrates catalog loading, build-id derivation, the embedding cache, the
embedding engine and the vector index.

initialize():
    load catalog -> canonicalize -> fingerprint -> build_id
    -> cache get -> hit: index from bundle vectors
                 -> miss: embed every agent, assemble bundle, cache put (best-effort)
    -> swap in the new index -> ready

route(query):
    embed query (query role) -> top_k -> confidence -> RouteDecision

Usage:
    router = AgentRouter(FileCatalogSource("agents.json"), engine, cache_client)
    report = await router.initialize()
    decision = await router.route("find me a french dictionary")
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Sequence
from typing import Any

from agent_router.cache.bundle import assemble_bundle
from agent_router.cache.client import EmbeddingCacheClient
from agent_router.catalog.models import AgentCatalog
from agent_router.catalog.source import CatalogSource
from agent_router.config.logging import get_logger
from agent_router.embedding.engine import EmbeddingEngine
from agent_router.errors import (
    CatalogLoadError,
    EmptyIndexError,
    NotReadyError,
    RouterError,
    RouterErrorCode,
)
from agent_router.fingerprint import catalog_build_id
from agent_router.index import VectorIndex, VectorIndexEntry

from .config import RouterConfig, load_router_config
from .models import (
    InitializeReport,
    RankedMatch,
    RouteDecision,
    RouterState,
    RouterStatus,
    score_to_confidence,
)

logger = get_logger("agent_router.router")

StatusListener = Callable[[RouterStatus], None]


class AgentRouter:
    """
    [Agent Router]

    Routes free-text requests to the best matching catalog agent.

    Concurrency:
        - Concurrent initialize() calls share one in-flight build.
        - route() calls run concurrently; each reads one index snapshot.
        - route() answers only in READY. A refresh moves the router to
          INITIALIZING and swaps the index by reference once it is complete.
    """

    def __init__(
        self,
        catalog_source: CatalogSource,
        engine: EmbeddingEngine,
        cache_client: EmbeddingCacheClient,
        config: RouterConfig | None = None,
        on_status: StatusListener | None = None,
    ):
        self._config = config or load_router_config()
        if engine.dims != self._config.dims:
            raise ValueError(
                f"Embedding engine dims {engine.dims} != router dims {self._config.dims}"
            )
        if engine.prefix_scheme != self._config.prefix_scheme:
            raise ValueError(
                f"Embedding engine prefix scheme {engine.prefix_scheme.value!r} "
                f"!= router prefix scheme {self._config.prefix_scheme.value!r}"
            )

        self._catalog_source = catalog_source
        self._engine = engine
        self._cache = cache_client
        self._on_status = on_status

        self._state = RouterState.UNINITIALIZED
        self._index: VectorIndex | None = None
        self._build_id: str | None = None
        self._init_task: asyncio.Task[InitializeReport] | None = None
        self._last_report: InitializeReport | None = None
        self._last_error: str | None = None

    @property
    def state(self) -> RouterState:
        return self._state

    @property
    def config(self) -> RouterConfig:
        return self._config

    @property
    def build_id(self) -> str | None:
        """Build id of the index currently served."""
        return self._build_id

    @property
    def is_ready(self) -> bool:
        return self._state == RouterState.READY

    # =========================================================================
    # Initialization
    # =========================================================================

    async def initialize(self) -> InitializeReport:
        """Load the catalog and build the vector index.

        Concurrent callers share the same in-flight initialization.

        Raises:
            CatalogLoadError: the catalog could not be loaded or canonicalized.
            EmbeddingError: embedding a catalog entry failed.
        """
        if self._init_task is None or self._init_task.done():
            self._init_task = asyncio.create_task(self._run_initialize())
        else:
            logger.debug("Joining in-flight initialization")
        return await asyncio.shield(self._init_task)

    async def _run_initialize(self) -> InitializeReport:
        self._state = RouterState.INITIALIZING
        started = time.perf_counter()
        try:
            report = await self._build(started)
        except Exception as e:
            self._fail(e)
            raise
        except asyncio.CancelledError as e:
            self._fail(e)
            raise

        self._state = RouterState.READY
        self._last_report = report
        self._last_error = None
        self._emit("ready", f"Router ready with {report.agent_count} agents", 100)
        logger.info(
            "Router ready",
            agents=report.agent_count,
            build_id=report.build_id,
            cache_hit=report.cache_hit,
            duration_ms=report.duration_ms,
        )
        return report

    def _fail(self, error: BaseException) -> None:
        self._state = RouterState.FAILED
        self._index = None
        self._build_id = None
        self._last_error = str(error) or type(error).__name__
        logger.error("Router initialization failed", error=self._last_error)

    async def _build(self, started: float) -> InitializeReport:
        config = self._config

        self._emit("loading_catalog", "Loading agent catalog", 0)
        catalog = await self._catalog_source.load()

        self._emit("computing_key", "Computing build id", 10)
        try:
            content_fingerprint, build_id = catalog_build_id(
                catalog.document, config.model_id, config.effective_chunking_id
            )
        except (TypeError, ValueError) as e:
            raise CatalogLoadError(f"Catalog is not canonicalizable: {e}") from e
        logger.debug("Build id computed", build_id=build_id, agents=len(catalog))

        self._emit("checking_cache", "Checking embedding cache", 20)
        vectors = await self._cached_vectors(build_id, catalog)
        cache_hit = vectors is not None
        cache_written = False
        embeddings_computed = 0

        if vectors is None:
            vectors = await self._embed_catalog(catalog)
            embeddings_computed = len(catalog)
            bundle = assemble_bundle(
                build_id=build_id,
                model_id=config.model_id,
                chunking_id=config.effective_chunking_id,
                file_fingerprint=content_fingerprint,
                dims=config.dims,
                agent_names=catalog.names,
                source_texts=[agent.search_text for agent in catalog.agents],
                vectors=vectors,
            )
            self._emit("caching", "Storing embeddings", 85)
            cache_written = await self._cache.put(build_id, bundle)

        self._emit("building_index", "Building vector index", 90)
        index = VectorIndex(config.dims)
        index.build(
            [VectorIndexEntry(agent, vectors[i]) for i, agent in enumerate(catalog.agents)]
        )
        self._index = index
        self._build_id = build_id

        return InitializeReport(
            build_id=build_id,
            fingerprint=content_fingerprint,
            agent_count=len(catalog),
            cache_hit=cache_hit,
            cache_written=cache_written,
            embeddings_computed=embeddings_computed,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )

    async def _cached_vectors(self, build_id: str, catalog: AgentCatalog) -> Any:
        hit = await self._cache.get(build_id)
        if hit is None:
            return None

        if hit.bundle.agent_names != catalog.names:
            logger.warning(
                "Cached bundle does not match catalog agents, recomputing",
                build_id=build_id,
            )
            return None
        return hit.vectors

    async def _embed_catalog(self, catalog: AgentCatalog) -> Any:
        total = len(catalog)
        logger.info("Embedding catalog", agents=total)

        def _progress(done: int, count: int) -> None:
            self._emit("embedding", f"Embedding agents {done}/{count}", 30 + (50 * done) // count)

        self._emit("embedding", f"Embedding agents 0/{total}", 30)
        return await self._engine.embed_passages(
            [agent.search_text for agent in catalog.agents], on_progress=_progress
        )

    def _emit(self, stage: str, message: str, progress: int) -> None:
        if self._on_status is None:
            return
        try:
            self._on_status(RouterStatus(stage=stage, message=message, progress=progress))
        except Exception as e:
            logger.warning("Status listener failed", stage=stage, error=str(e))

    # =========================================================================
    # Routing
    # =========================================================================

    async def route(self, query: str) -> RouteDecision:
        """Route a query to the best matching agent.

        Raises:
            NotReadyError: the router is not READY, including while a refresh runs.
            EmptyIndexError: the catalog has no agents.
            EmbeddingError: embedding the query failed (the index is unaffected).
        """
        index = self._index
        if self._state is not RouterState.READY or index is None:
            raise NotReadyError(self._state.value)
        if not isinstance(query, str) or not query.strip():
            raise RouterError(
                "Query must be a non-empty string", code=RouterErrorCode.INVALID_ARGUMENT
            )
        if len(index) == 0:
            raise EmptyIndexError()

        vector = await self._engine.embed_query(query)
        ranked = index.top_k(vector, self._config.search_depth)

        best_name, best_score = ranked[0]
        agent = index.get(best_name)
        confidence, label = score_to_confidence(best_score, self._config.confidence)

        logger.debug("Routed query", agent=best_name, score=round(best_score, 4))
        return RouteDecision(
            agent_name=best_name,
            description=agent.description if agent else "",
            confidence=confidence,
            confidence_label=label,
            ranked_matches=tuple(RankedMatch(agent_name=n, score=s) for n, s in ranked),
        )

    async def route_batch(self, queries: Sequence[str]) -> list[RouteDecision]:
        """Route several queries concurrently, preserving input order.

        The first failing query fails the whole batch with its own error.
        """
        if self._state is not RouterState.READY:
            raise NotReadyError(self._state.value)

        try:
            async with asyncio.TaskGroup() as tg:
                tasks = [tg.create_task(self.route(query)) for query in queries]
        except ExceptionGroup as eg:
            raise eg.exceptions[0] from None
        return [task.result() for task in tasks]

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def stats(self) -> dict[str, Any]:
        """Router state, index size and cache counters."""
        index = self._index
        return {
            "state": self._state.value,
            "build_id": self._build_id,
            "agent_count": len(index) if index is not None else 0,
            "model_id": self._config.model_id,
            "chunking_id": self._config.effective_chunking_id,
            "dims": self._config.dims,
            "cache": self._cache.stats.to_dict(),
            "last_report": self._last_report.model_dump() if self._last_report else None,
            "last_error": self._last_error,
        }

    def __repr__(self) -> str:
        return f"AgentRouter(state={self._state.value}, agents={len(self._index or ())})"


__all__ = ["AgentRouter"]
