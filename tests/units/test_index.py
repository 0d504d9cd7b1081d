"""Tests for agent_router.index.VectorIndex."""

from __future__ import annotations

import numpy as np
import pytest

from agent_router.catalog import AgentDescriptor
from agent_router.index import VectorIndex, VectorIndexEntry


def _entries(*rows: tuple[str, list[float]]) -> list[VectorIndexEntry]:
    return [VectorIndexEntry(AgentDescriptor(name=name), vector) for name, vector in rows]


class TestTopK:
    def test_ranks_by_dot_product(self):
        index = VectorIndex(dims=3)
        index.build(
            _entries(
                ("a", [1.0, 0.0, 0.0]),
                ("b", [0.6, 0.8, 0.0]),
                ("c", [0.0, 1.0, 0.0]),
            )
        )

        ranked = index.top_k([1.0, 0.0, 0.0], 2)

        assert [name for name, _ in ranked] == ["a", "b"]
        assert [score for _, score in ranked] == pytest.approx([1.0, 0.6])

    def test_ties_keep_insertion_order(self):
        index = VectorIndex(dims=2)
        index.build(_entries(("second", [0.0, 1.0]), ("first", [0.0, 1.0]), ("other", [1.0, 0.0])))

        assert [name for name, _ in index.top_k([0.0, 1.0], 3)] == ["second", "first", "other"]

    def test_k_larger_than_index(self):
        index = VectorIndex(dims=2)
        index.build(_entries(("a", [1.0, 0.0])))
        assert len(index.top_k([1.0, 0.0], 5)) == 1

    def test_empty_index_returns_empty(self):
        assert VectorIndex(dims=2).top_k([1.0, 0.0], 5) == []

    def test_rows_are_normalized(self):
        index = VectorIndex(dims=2)
        index.build(_entries(("a", [3.0, 4.0])))
        ((_, score),) = index.top_k([0.6, 0.8], 1)
        assert score == pytest.approx(1.0)

    def test_query_dims_checked(self):
        index = VectorIndex(dims=2)
        index.build(_entries(("a", [1.0, 0.0])))
        with pytest.raises(ValueError):
            index.top_k([1.0, 0.0, 0.0], 1)


class TestBuild:
    def test_rebuild_replaces_everything(self):
        index = VectorIndex(dims=2)
        index.build(_entries(("a", [1.0, 0.0])))
        index.build(_entries(("b", [0.0, 1.0])))

        assert [agent.name for agent in index.agents] == ["b"]
        assert index.get("a") is None
        assert index.get("b").name == "b"

    def test_failed_build_keeps_previous_index(self):
        index = VectorIndex(dims=2)
        index.build(_entries(("a", [1.0, 0.0])))

        with pytest.raises(ValueError):
            index.build(_entries(("b", [0.0, 1.0]), ("c", [0.0, 0.0])))
        with pytest.raises(ValueError):
            index.build(_entries(("b", [0.0, 1.0, 0.0])))

        assert len(index) == 1
        assert index.get("a") is not None

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError, match="Duplicate"):
            VectorIndex(dims=2).build(_entries(("a", [1.0, 0.0]), ("a", [0.0, 1.0])))

    def test_snapshot_is_read_only(self):
        index = VectorIndex(dims=2)
        index.build(_entries(("a", [1.0, 0.0])))
        with pytest.raises(ValueError):
            index._snapshot.matrix[0, 0] = 5.0

    def test_accepts_numpy_rows(self):
        index = VectorIndex(dims=2)
        index.build(_entries(("a", np.array([0.0, 2.0], dtype=np.float32))))
        assert index.top_k(np.array([0.0, 1.0]), 1)[0][0] == "a"
