"""Shared fixtures for agent_router tests."""

from __future__ import annotations

import pytest
from fakes import FakeEmbeddingProvider, RecordingCacheStore

from agent_router.cache import EmbeddingCacheClient
from agent_router.catalog import StaticCatalogSource
from agent_router.config.dirs import PRJ_DIRS
from agent_router.embedding import EmbeddingEngine
from agent_router.router import AgentRouter, RouterConfig

SCENARIO_CATALOG = [
    {"name": "search", "description": "search products", "skills": ["lookup"]},
    {
        "name": "translate",
        "description": "translate text between languages",
        "skills": ["i18n"],
    },
]


@pytest.fixture(autouse=True)
def isolated_project(tmp_path, monkeypatch):
    """Point PRJ_* directories at a temp project so user settings never leak in."""
    monkeypatch.setenv("PRJ_ROOT", str(tmp_path))
    PRJ_DIRS.clear_cache()
    yield tmp_path
    PRJ_DIRS.clear_cache()


@pytest.fixture
def scenario_catalog() -> list[dict]:
    return [dict(agent) for agent in SCENARIO_CATALOG]


@pytest.fixture
def router_config() -> RouterConfig:
    return RouterConfig()


@pytest.fixture
def provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def store() -> RecordingCacheStore:
    return RecordingCacheStore(expected_dims=384)


@pytest.fixture
def make_router(router_config, store):
    """Factory building an AgentRouter over the shared store."""

    def _make(document, provider, config: RouterConfig | None = None, on_status=None):
        config = config or router_config
        engine = EmbeddingEngine(provider, dims=config.dims, prefix_scheme=config.prefix_scheme)
        client = EmbeddingCacheClient(store, config.dims, expected_model_id=config.model_id)
        return AgentRouter(
            StaticCatalogSource(document),
            engine,
            client,
            config=config,
            on_status=on_status,
        )

    return _make
