"""Tests for agent_router.cache.client.EmbeddingCacheClient."""

from __future__ import annotations

import numpy as np
import pytest
from fakes import RecordingCacheStore

from agent_router.cache import EmbeddingCacheClient, assemble_bundle
from agent_router.errors import InvalidBuildIdError

BUILD_ID = "5a" * 32
MODEL = "Xenova/paraphrase-multilingual-MiniLM-L12-v2"


def _bundle(dims: int = 384, build_id: str = BUILD_ID, vectors=None):
    if vectors is None:
        vectors = np.zeros((2, dims), dtype=np.float32)
        vectors[0, 0] = 1.0
        vectors[1, 1] = 1.0
    return assemble_bundle(
        build_id=build_id,
        model_id=MODEL,
        chunking_id="agents:v1",
        file_fingerprint="77" * 32,
        dims=dims,
        agent_names=["search", "translate"],
        source_texts=["search: ...", "translate: ..."],
        vectors=vectors,
    )


class TestGet:
    @pytest.mark.asyncio
    async def test_round_trip(self, store):
        client = EmbeddingCacheClient(store, 384, expected_model_id=MODEL)
        bundle = _bundle()

        assert await client.put(BUILD_ID, bundle) is True
        hit = await client.get(BUILD_ID)

        assert hit.bundle == bundle
        assert hit.vectors.shape == (2, 384)
        assert hit.vectors[1, 1] == 1.0
        assert client.stats.to_dict() == {
            "reads": 1,
            "hits": 1,
            "misses": 0,
            "rejected": 0,
            "writes": 1,
            "write_failures": 0,
        }

    @pytest.mark.asyncio
    async def test_miss(self, store):
        client = EmbeddingCacheClient(store, 384)
        assert await client.get(BUILD_ID) is None
        assert client.stats.misses == 1

    @pytest.mark.asyncio
    async def test_dims_256_bundle_is_a_miss(self):
        # a store configured for 256 dims holding a 256-dim bundle
        store = RecordingCacheStore(expected_dims=256)
        await store.store(BUILD_ID, _bundle(dims=256).to_payload())
        client = EmbeddingCacheClient(store, 384)

        assert await client.get(BUILD_ID) is None
        assert client.stats.rejected == 1
        assert client.stats.misses == 1

    @pytest.mark.asyncio
    async def test_mismatched_build_id_is_a_miss(self, store):
        other = "6b" * 32
        store.inner._bundles[BUILD_ID] = _bundle(build_id=other).model_dump_json(by_alias=True)
        client = EmbeddingCacheClient(store, 384)

        assert await client.get(BUILD_ID) is None
        assert client.stats.rejected == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_value", [0.0, float("nan"), float("inf")])
    async def test_unusable_vectors_are_a_miss(self, store, bad_value):
        vectors = np.eye(2, 384, dtype=np.float32)
        vectors[1, :] = bad_value
        poisoned = _bundle(vectors=vectors)
        store.inner._bundles[BUILD_ID] = poisoned.model_dump_json(by_alias=True)
        client = EmbeddingCacheClient(store, 384)

        assert await client.get(BUILD_ID) is None
        assert client.stats.rejected == 1
        assert client.stats.hits == 0

    @pytest.mark.asyncio
    async def test_read_failure_is_a_miss(self, store):
        store.fail_fetch = True
        client = EmbeddingCacheClient(store, 384)

        assert await client.get(BUILD_ID) is None
        assert client.stats.misses == 1
        assert client.stats.rejected == 0

    @pytest.mark.asyncio
    async def test_malformed_build_id_raises(self, store):
        client = EmbeddingCacheClient(store, 384)
        with pytest.raises(InvalidBuildIdError):
            await client.get("not-a-digest")
        assert store.fetches == []


class TestPut:
    @pytest.mark.asyncio
    async def test_write_failure_returns_false(self, store):
        store.fail_store = True
        client = EmbeddingCacheClient(store, 384)

        assert await client.put(BUILD_ID, _bundle()) is False
        assert client.stats.write_failures == 1

    @pytest.mark.asyncio
    async def test_store_rejection_returns_false(self):
        store = RecordingCacheStore(expected_dims=256)
        client = EmbeddingCacheClient(store, 384)

        assert await client.put(BUILD_ID, _bundle()) is False
        assert store.stores == [BUILD_ID]
        assert len(store.inner) == 0

    @pytest.mark.asyncio
    async def test_invalid_bundle_never_sent(self, store):
        client = EmbeddingCacheClient(store, 384)

        assert await client.put(BUILD_ID, _bundle(build_id="6b" * 32)) is False
        assert store.stores == []

    @pytest.mark.asyncio
    async def test_malformed_build_id_raises(self, store):
        client = EmbeddingCacheClient(store, 384)
        with pytest.raises(InvalidBuildIdError):
            await client.put("xyz", _bundle())
