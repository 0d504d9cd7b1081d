"""
agent_router.cache.server - Cache Store HTTP Server

Reference implementation of the cache store protocol, plus the catalog
endpoint the router reads agents from:

- GET /api/health
- GET /api/agents              -> catalog file contents ({"agents": []} if absent)
- GET /embeddings/{build_id}   -> bundle JSON | 404
- PUT /embeddings/{build_id}   -> {"status": "ok"} | 400 on malformed id/body or rejection

Configuration (settings.yaml):
- store_server.host / store_server.port
- cache.directory (default: $PRJ_CACHE_HOME/agent-router/embeddings)
"""

from __future__ import annotations

import json
from pathlib import Path

from aiohttp import web

from agent_router.config.logging import get_logger
from agent_router.errors import CacheReadError, CacheStoreRejectedError, CacheWriteError
from agent_router.fingerprint import is_build_id

from .store import CacheStore

logger = get_logger("agent_router.cache.server")


def create_store_app(store: CacheStore, catalog_path: str | Path | None = None) -> web.Application:
    """Build the aiohttp application serving ``store``."""
    catalog_file = Path(catalog_path) if catalog_path else None

    async def health(request: web.Request) -> web.Response:
        return web.json_response({"status": "ok"})

    async def agents(request: web.Request) -> web.Response:
        if catalog_file is None or not catalog_file.exists():
            return web.json_response({"agents": []})
        try:
            document = json.loads(catalog_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Catalog file unreadable", path=str(catalog_file), error=str(e))
            return web.json_response({"error": "Catalog unavailable"}, status=500)
        return web.json_response(document)

    async def get_bundle(request: web.Request) -> web.Response:
        build_id = request.match_info["build_id"]
        if not is_build_id(build_id):
            return web.json_response({"error": "Malformed build id"}, status=400)
        try:
            payload = await store.fetch(build_id)
        except CacheReadError as e:
            logger.error("Bundle read failed", build_id=build_id, error=str(e))
            return web.json_response({"error": "Bundle unreadable"}, status=500)
        if payload is None:
            return web.json_response({"error": "Bundle not found"}, status=404)
        return web.json_response(payload)

    async def put_bundle(request: web.Request) -> web.Response:
        build_id = request.match_info["build_id"]
        if not is_build_id(build_id):
            return web.json_response({"error": "Malformed build id"}, status=400)
        try:
            payload = await request.json()
        except ValueError:
            return web.json_response({"error": "Body is not JSON"}, status=400)

        try:
            await store.store(build_id, payload)
        except CacheStoreRejectedError as e:
            logger.info("Bundle rejected", build_id=build_id, reason=e.message)
            return web.json_response({"error": e.message}, status=400)
        except CacheWriteError as e:
            logger.error("Bundle write failed", build_id=build_id, error=str(e))
            return web.json_response({"error": "Bundle not stored"}, status=500)

        logger.info("Bundle stored", build_id=build_id)
        return web.json_response({"status": "ok", "build_id": build_id})

    app = web.Application()
    app.router.add_get("/api/health", health)
    app.router.add_get("/api/agents", agents)
    app.router.add_get("/embeddings/{build_id}", get_bundle)
    app.router.add_put("/embeddings/{build_id}", put_bundle)
    return app


class CacheStoreServer:
    """Runs the cache store application on a TCP port."""

    def __init__(
        self,
        store: CacheStore,
        host: str = "127.0.0.1",
        port: int = 3001,
        catalog_path: str | Path | None = None,
    ):
        self.store = store
        self.host = host
        self.port = port
        self._catalog_path = catalog_path
        self._runner: web.AppRunner | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start serving."""
        if self._running:
            logger.warning("Cache store server already running")
            return

        app = create_store_app(self.store, self._catalog_path)
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()

        self._running = True
        logger.info("Cache store server started", host=self.host, port=self.port)

    async def stop(self) -> None:
        """Stop serving."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._running = False
            logger.info("Cache store server stopped")


__all__ = ["CacheStoreServer", "create_store_app"]
