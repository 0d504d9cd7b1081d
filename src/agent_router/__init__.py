"""
agent_router - Semantic agent router with a content-addressed embedding cache.

Usage:
    from agent_router import AgentRouter, EmbeddingEngine, EmbeddingCacheClient
"""

from .cache import EmbeddingCacheClient, FileCacheStore, HttpCacheStore, MemoryCacheStore
from .catalog import AgentDescriptor, FileCatalogSource, HttpCatalogSource, StaticCatalogSource
from .embedding import EmbeddingEngine, HttpEmbeddingProvider, PrefixScheme
from .errors import RouterError, RouterErrorCode
from .index import VectorIndex
from .router import AgentRouter, RouteDecision, RouterConfig, RouterState

__version__ = "0.1.0"

__all__ = [
    "AgentDescriptor",
    "AgentRouter",
    "EmbeddingCacheClient",
    "EmbeddingEngine",
    "FileCacheStore",
    "FileCatalogSource",
    "HttpCacheStore",
    "HttpCatalogSource",
    "HttpEmbeddingProvider",
    "MemoryCacheStore",
    "PrefixScheme",
    "RouteDecision",
    "RouterConfig",
    "RouterError",
    "RouterErrorCode",
    "RouterState",
    "StaticCatalogSource",
    "VectorIndex",
    "__version__",
]
