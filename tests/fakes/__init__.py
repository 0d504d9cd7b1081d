"""Fakes for router tests: embedding providers and recording cache stores."""

from .fake_embedding import FakeEmbeddingProvider, SyncFakeEmbeddingProvider
from .fake_store import RecordingCacheStore

__all__ = ["FakeEmbeddingProvider", "RecordingCacheStore", "SyncFakeEmbeddingProvider"]
