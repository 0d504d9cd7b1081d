"""
agent_router.embedding - Embedding engine and providers.
"""

from .engine import (
    EmbeddingEngine,
    EmbeddingProvider,
    EmbeddingRole,
    PrefixScheme,
    normalize_vector,
    role_prefix,
)
from .http import HttpEmbeddingProvider

__all__ = [
    "EmbeddingEngine",
    "EmbeddingProvider",
    "EmbeddingRole",
    "HttpEmbeddingProvider",
    "PrefixScheme",
    "normalize_vector",
    "role_prefix",
]
