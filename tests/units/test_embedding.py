"""Tests for agent_router.embedding.engine."""

from __future__ import annotations

import numpy as np
import pytest
from fakes import FakeEmbeddingProvider, SyncFakeEmbeddingProvider

from agent_router.embedding import (
    EmbeddingEngine,
    EmbeddingRole,
    PrefixScheme,
    normalize_vector,
    role_prefix,
)
from agent_router.errors import EmbeddingError


class TestRolePrefix:
    def test_none_scheme_adds_nothing(self):
        assert role_prefix("none", EmbeddingRole.QUERY) == ""
        assert role_prefix(PrefixScheme.NONE, EmbeddingRole.PASSAGE) == ""

    def test_e5_scheme(self):
        assert role_prefix("e5", EmbeddingRole.QUERY) == "query: "
        assert role_prefix("e5", EmbeddingRole.PASSAGE) == "passage: "

    def test_bge_prefixes_queries_only(self):
        assert role_prefix("bge", EmbeddingRole.QUERY).startswith("Represent this sentence")
        assert role_prefix("bge", EmbeddingRole.PASSAGE) == ""


class TestNormalizeVector:
    def test_unit_norm_float32(self):
        vector = normalize_vector([3.0, 4.0], dims=2)
        assert vector.dtype == np.float32
        assert vector.tolist() == pytest.approx([0.6, 0.8])

    def test_accepts_single_row_batch(self):
        assert normalize_vector([[0.0, 2.0]], dims=2).tolist() == pytest.approx([0.0, 1.0])

    @pytest.mark.parametrize(
        "raw",
        [[1.0, 2.0, 3.0], [0.0, 0.0], [float("nan"), 1.0], [float("inf"), 1.0], ["a", "b"]],
    )
    def test_rejects_invalid(self, raw):
        with pytest.raises(EmbeddingError):
            normalize_vector(raw, dims=2)


class TestEmbeddingEngine:
    @pytest.mark.asyncio
    async def test_roles_get_scheme_prefixes(self):
        provider = FakeEmbeddingProvider()
        engine = EmbeddingEngine(provider, dims=384, prefix_scheme="e5")

        await engine.embed_query("find laptops")
        await engine.embed_passage("search: search products Skills: lookup")

        assert provider.calls == [
            "query: find laptops",
            "passage: search: search products Skills: lookup",
        ]

    @pytest.mark.asyncio
    async def test_output_is_normalized(self):
        engine = EmbeddingEngine(FakeEmbeddingProvider(), dims=384)
        vector = await engine.embed_query("search products")
        assert vector.shape == (384,)
        assert float(np.linalg.norm(vector)) == pytest.approx(1.0, abs=1e-6)

    @pytest.mark.asyncio
    async def test_sync_provider_runs_in_executor(self):
        provider = SyncFakeEmbeddingProvider()
        engine = EmbeddingEngine(provider, dims=384)

        vector = await engine.embed_passage("translate text")

        assert provider.calls == ["translate text"]
        assert float(np.linalg.norm(vector)) == pytest.approx(1.0, abs=1e-6)

    @pytest.mark.asyncio
    async def test_embed_passages_keeps_order_and_reports_progress(self):
        provider = FakeEmbeddingProvider()
        engine = EmbeddingEngine(provider, dims=384, concurrency=2)
        progress: list[tuple[int, int]] = []

        matrix = await engine.embed_passages(
            ["search products", "translate text", "lookup"],
            on_progress=lambda done, total: progress.append((done, total)),
        )

        assert matrix.shape == (3, 384)
        assert matrix[0][0] > matrix[0][1]
        assert matrix[1][1] > matrix[1][0]
        assert sorted(progress) == [(1, 3), (2, 3), (3, 3)]

    @pytest.mark.asyncio
    async def test_embed_passages_empty(self):
        engine = EmbeddingEngine(FakeEmbeddingProvider(), dims=384)
        matrix = await engine.embed_passages([])
        assert matrix.shape == (0, 384)

    @pytest.mark.asyncio
    async def test_provider_failure_becomes_embedding_error(self):
        engine = EmbeddingEngine(FakeEmbeddingProvider(fail_on="boom"), dims=384)
        with pytest.raises(EmbeddingError, match="provider failed") as exc_info:
            await engine.embed_passages(["ok", "boom", "fine"])
        assert exc_info.value.details["role"] == "passage"

    @pytest.mark.asyncio
    async def test_wrong_dims_from_provider(self):
        engine = EmbeddingEngine(FakeEmbeddingProvider(dims=256), dims=384)
        with pytest.raises(EmbeddingError, match="shape"):
            await engine.embed_query("search")

    def test_rejects_non_positive_dims(self):
        with pytest.raises(ValueError):
            EmbeddingEngine(FakeEmbeddingProvider(), dims=0)
