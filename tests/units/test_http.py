"""HTTP round-trips: cache store server, HttpCacheStore, HttpCatalogSource and
HttpEmbeddingProvider."""

from __future__ import annotations

import contextlib
import json

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer, unused_port

from agent_router.cache import (
    CacheStoreServer,
    HttpCacheStore,
    MemoryCacheStore,
    create_store_app,
)
from agent_router.catalog import HttpCatalogSource
from agent_router.embedding import HttpEmbeddingProvider
from agent_router.errors import (
    CacheReadError,
    CacheStoreRejectedError,
    CacheWriteError,
    EmbeddingError,
)

BUILD_ID = "9c" * 32


def _payload(build_id: str = BUILD_ID, dims: int = 384) -> dict:
    return {"build_id": build_id, "dims": dims, "dtype": "float32", "chunks": []}


@contextlib.asynccontextmanager
async def running_store(catalog_path=None):
    store = MemoryCacheStore(384)
    server = TestServer(create_store_app(store, catalog_path=catalog_path))
    await server.start_server()
    try:
        yield store, str(server.make_url("/"))
    finally:
        await server.close()


class TestStoreServer:
    @pytest.mark.asyncio
    async def test_health(self):
        async with running_store() as (_, base_url):
            async with aiohttp.ClientSession() as session:
                async with session.get(f"{base_url}api/health") as response:
                    assert response.status == 200
                    assert await response.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_missing_bundle_is_404(self):
        async with running_store() as (_, base_url):
            async with aiohttp.ClientSession() as session:
                async with session.get(f"{base_url}embeddings/{BUILD_ID}") as response:
                    assert response.status == 404
                    assert await response.json() == {"error": "Bundle not found"}

    @pytest.mark.asyncio
    async def test_malformed_id_and_body_are_400(self):
        async with running_store() as (store, base_url):
            async with aiohttp.ClientSession() as session:
                async with session.get(f"{base_url}embeddings/ABC") as response:
                    assert response.status == 400
                async with session.put(
                    f"{base_url}embeddings/{BUILD_ID}", data=b"{not json"
                ) as response:
                    assert response.status == 400
            assert len(store) == 0

    @pytest.mark.asyncio
    async def test_server_lifecycle(self):
        server = CacheStoreServer(MemoryCacheStore(384), host="127.0.0.1", port=unused_port())
        await server.start()
        try:
            assert server.running
            client = HttpCacheStore(f"http://127.0.0.1:{server.port}", timeout=5)
            try:
                await client.store(BUILD_ID, _payload())
                assert await client.fetch(BUILD_ID) == _payload()
            finally:
                await client.close()
        finally:
            await server.stop()
        assert not server.running


class TestHttpCacheStore:
    @pytest.mark.asyncio
    async def test_round_trip(self):
        async with running_store() as (store, base_url):
            client = HttpCacheStore(base_url, timeout=5)
            try:
                assert await client.fetch(BUILD_ID) is None
                await client.store(BUILD_ID, _payload())
                assert await client.fetch(BUILD_ID) == _payload()
            finally:
                await client.close()
            assert BUILD_ID in store

    @pytest.mark.asyncio
    async def test_server_rejects_wrong_dims(self):
        async with running_store() as (_, base_url):
            client = HttpCacheStore(base_url, timeout=5)
            try:
                with pytest.raises(CacheStoreRejectedError):
                    await client.store(BUILD_ID, _payload(dims=256))
            finally:
                await client.close()

    @pytest.mark.asyncio
    async def test_server_rejects_build_id_mismatch(self):
        async with running_store() as (_, base_url):
            client = HttpCacheStore(base_url, timeout=5)
            try:
                with pytest.raises(CacheStoreRejectedError):
                    await client.store(BUILD_ID, _payload(build_id="1d" * 32))
            finally:
                await client.close()

    @pytest.mark.asyncio
    async def test_unreachable_store(self):
        client = HttpCacheStore("http://127.0.0.1:9", timeout=2)
        try:
            with pytest.raises(CacheReadError):
                await client.fetch(BUILD_ID)
            with pytest.raises(CacheWriteError):
                await client.store(BUILD_ID, _payload())
        finally:
            await client.close()

    def test_url_for(self):
        client = HttpCacheStore("http://store:3001/")
        assert client.url_for(BUILD_ID) == f"http://store:3001/embeddings/{BUILD_ID}"


class TestHttpCatalogSource:
    @pytest.mark.asyncio
    async def test_serves_catalog_file(self, tmp_path, scenario_catalog):
        path = tmp_path / "agents.json"
        path.write_text(json.dumps({"agents": scenario_catalog}), encoding="utf-8")

        async with running_store(catalog_path=path) as (_, base_url):
            catalog = await HttpCatalogSource(base_url, timeout=5).load()

        assert catalog.names == ["search", "translate"]

    @pytest.mark.asyncio
    async def test_missing_catalog_is_empty(self, tmp_path):
        async with running_store(catalog_path=tmp_path / "absent.json") as (_, base_url):
            catalog = await HttpCatalogSource(base_url, timeout=5).load()

        assert len(catalog) == 0


def _embedding_app(healthy: bool = True) -> web.Application:
    async def single(request: web.Request) -> web.Response:
        body = await request.json()
        if body["text"] == "boom":
            return web.Response(status=500, text="model crashed")
        return web.json_response({"vector": [float(len(body["text"])), 1.0]})

    async def batch(request: web.Request) -> web.Response:
        body = await request.json()
        texts = body["texts"]
        if "short" in texts:
            return web.json_response({"vectors": [[1.0, 0.0]]})
        return web.json_response({"vectors": [[float(len(t)), 1.0] for t in texts]})

    async def health(request: web.Request) -> web.Response:
        if not healthy:
            return web.Response(status=503, text="loading")
        return web.json_response({"model": "fake-minilm"})

    app = web.Application()
    app.router.add_post("/embed/single", single)
    app.router.add_post("/embed/batch", batch)
    app.router.add_get("/health", health)
    return app


@contextlib.asynccontextmanager
async def embedding_server(healthy: bool = True):
    server = TestServer(_embedding_app(healthy))
    await server.start_server()
    provider = HttpEmbeddingProvider(str(server.make_url("/")), timeout=5)
    try:
        yield provider
    finally:
        await provider.close()
        await server.close()


class TestHttpEmbeddingProvider:
    @pytest.mark.asyncio
    async def test_embed_single(self):
        async with embedding_server() as provider:
            assert await provider.embed("hello") == [5.0, 1.0]

    @pytest.mark.asyncio
    async def test_embed_batch(self):
        async with embedding_server() as provider:
            vectors = await provider.embed_batch(["a", "abc"])

        assert vectors == [[1.0, 1.0], [3.0, 1.0]]

    @pytest.mark.asyncio
    async def test_batch_length_mismatch(self):
        async with embedding_server() as provider:
            with pytest.raises(EmbeddingError, match="malformed batch"):
                await provider.embed_batch(["short", "other"])

    @pytest.mark.asyncio
    async def test_server_error(self):
        async with embedding_server() as provider:
            with pytest.raises(EmbeddingError, match="HTTP 500"):
                await provider.embed("boom")

    @pytest.mark.asyncio
    async def test_unreachable_server(self):
        provider = HttpEmbeddingProvider("http://127.0.0.1:9", timeout=2)
        try:
            with pytest.raises(EmbeddingError, match="connect"):
                await provider.embed("hello")
            health = await provider.health_check()
        finally:
            await provider.close()

        assert health["status"] == "unreachable"

    @pytest.mark.asyncio
    async def test_health_check(self):
        async with embedding_server() as provider:
            health = await provider.health_check()

        assert health["status"] == "healthy"
        assert health["model"] == "fake-minilm"

    @pytest.mark.asyncio
    async def test_health_check_unhealthy(self):
        async with embedding_server(healthy=False) as provider:
            health = await provider.health_check()

        assert health["status"] == "unhealthy"
        assert health["code"] == 503
        assert health["error"] == "loading"
