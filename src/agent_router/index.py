"""
index.py - In-memory vector index

One unit-normalized float32 row per agent, ranked by dot product.

The index holds an immutable snapshot (agents + matrix). build() assembles a
complete new snapshot and then swaps the reference, so a reader sees either
the old index or the new one, never a partially built one.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, NamedTuple

import numpy as np

from agent_router.catalog.models import AgentDescriptor


class VectorIndexEntry(NamedTuple):
    agent: AgentDescriptor
    vector: Any


class _Snapshot(NamedTuple):
    agents: tuple[AgentDescriptor, ...]
    positions: dict[str, int]
    matrix: np.ndarray


class VectorIndex:
    """
    [Vector Index]

    Usage:
        index = VectorIndex(dims=384)
        index.build([VectorIndexEntry(agent, vector), ...])
        index.top_k(query_vector, 5)  # [("translate", 0.83), ("search", 0.41)]
    """

    def __init__(self, dims: int):
        if dims <= 0:
            raise ValueError("dims must be positive")
        self._dims = dims
        self._snapshot = _Snapshot((), {}, np.empty((0, dims), dtype=np.float32))

    @property
    def dims(self) -> int:
        return self._dims

    def build(self, entries: Sequence[VectorIndexEntry]) -> None:
        """Replace the whole index with ``entries`` (catalog order).

        Raises:
            ValueError: wrong vector width, zero vector or duplicate agent name.
                The previous index stays in place.
        """
        agents = tuple(entry.agent for entry in entries)
        positions: dict[str, int] = {}
        for position, agent in enumerate(agents):
            if agent.name in positions:
                raise ValueError(f"Duplicate agent in index: {agent.name}")
            positions[agent.name] = position

        if entries:
            matrix = np.vstack([np.asarray(entry.vector, dtype=np.float32) for entry in entries])
        else:
            matrix = np.empty((0, self._dims), dtype=np.float32)
        if matrix.shape != (len(agents), self._dims):
            raise ValueError(f"Index vectors have shape {matrix.shape}, expected (n, {self._dims})")

        norms = np.linalg.norm(matrix, axis=1, keepdims=True)
        if np.any(norms == 0):
            raise ValueError("Index vectors must be non-zero")
        matrix = (matrix / norms).astype(np.float32)
        matrix.setflags(write=False)

        self._snapshot = _Snapshot(agents, positions, matrix)

    def top_k(self, query: Any, k: int) -> list[tuple[str, float]]:
        """Return up to k (agent_name, score) pairs, best first.

        Ties keep catalog order. An empty index yields an empty list.
        """
        snapshot = self._snapshot
        if k <= 0 or not snapshot.agents:
            return []

        vector = np.asarray(query, dtype=np.float32).reshape(-1)
        if vector.shape[0] != self._dims:
            raise ValueError(f"Query has {vector.shape[0]} dims, expected {self._dims}")

        scores = snapshot.matrix @ vector
        order = np.argsort(-scores, kind="stable")[:k]
        return [(snapshot.agents[i].name, float(scores[i])) for i in order]

    def get(self, name: str) -> AgentDescriptor | None:
        snapshot = self._snapshot
        position = snapshot.positions.get(name)
        return snapshot.agents[position] if position is not None else None

    @property
    def agents(self) -> tuple[AgentDescriptor, ...]:
        return self._snapshot.agents

    def __len__(self) -> int:
        return len(self._snapshot.agents)

    def __repr__(self) -> str:
        return f"VectorIndex(agents={len(self)}, dims={self._dims})"


__all__ = ["VectorIndex", "VectorIndexEntry"]
