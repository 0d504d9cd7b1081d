"""
bundle.py - Embedding bundle wire model

The cached artifact for one build id. Wire format (JSON):

    {
      "build_id": "<sha256 hex>",
      "model_id": "...",
      "dims": 384,
      "dtype": "float32",
      "chunking_id": "agents:v1",
      "file_fingerprint": "<sha256 hex>",
      "chunks": [
        {"i": 0, "meta": {"agent": "search"}, "text": "...", "emb_b64": "..."}
      ]
    }

``emb_b64`` is base64 of ``dims`` little-endian IEEE-754 float32 values, so
bundles stay readable by any implementation sharing the cache store.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Sequence
from typing import Any

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agent_router.errors import CacheValidationError

DTYPE_FLOAT32 = "float32"
_WIRE_DTYPE = np.dtype("<f4")


def encode_vector(vector: Any) -> str:
    """Encode a vector as base64 little-endian float32."""
    array = np.asarray(vector, dtype=_WIRE_DTYPE)
    return base64.b64encode(array.tobytes()).decode("ascii")


def decode_vector(encoded: str, dims: int) -> np.ndarray:
    """Decode a base64 float32 vector of exactly ``dims`` components.

    Raises:
        ValueError: malformed base64, wrong length, non-finite or zero vector.
    """
    try:
        raw = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"invalid base64 vector: {e}") from e

    expected = dims * _WIRE_DTYPE.itemsize
    if len(raw) != expected:
        raise ValueError(f"vector has {len(raw)} bytes, expected {expected}")
    vector = np.frombuffer(raw, dtype=_WIRE_DTYPE).astype(np.float32)
    if not np.all(np.isfinite(vector)):
        raise ValueError("vector has non-finite components")
    if not np.any(vector):
        raise ValueError("vector is all zeros")
    return vector


class ChunkMeta(BaseModel):
    """Per-chunk metadata."""

    model_config = ConfigDict(frozen=True, extra="allow")

    agent: str


class Chunk(BaseModel):
    """One embedded catalog entry."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    index: int = Field(..., alias="i", ge=0)
    meta: ChunkMeta
    source_text: str = Field(..., alias="text")
    vector: str = Field(..., alias="emb_b64")

    @property
    def agent_name(self) -> str:
        return self.meta.agent

    @classmethod
    def from_vector(cls, index: int, agent_name: str, source_text: str, vector: Any) -> Chunk:
        return cls(
            index=index,
            meta=ChunkMeta(agent=agent_name),
            source_text=source_text,
            vector=encode_vector(vector),
        )

    def decode(self, dims: int) -> np.ndarray:
        return decode_vector(self.vector, dims)


class EmbeddingBundle(BaseModel):
    """Per-agent vectors plus provenance, cached as one unit under ``build_id``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, protected_namespaces=())

    build_id: str
    model_id: str
    dims: int = Field(..., gt=0)
    dtype: str = DTYPE_FLOAT32
    chunking_id: str
    file_fingerprint: str
    chunks: tuple[Chunk, ...] = ()

    @classmethod
    def from_payload(cls, payload: Any) -> EmbeddingBundle:
        """Parse a wire payload.

        Raises:
            CacheValidationError: the payload is not a structurally valid bundle.
        """
        if not isinstance(payload, dict):
            raise CacheValidationError(
                f"Bundle payload must be an object, got {type(payload).__name__}"
            )
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            key = payload.get("build_id")
            raise CacheValidationError(
                f"Malformed bundle: {e.error_count()} validation error(s)",
                build_id=key if isinstance(key, str) else None,
                errors=e.errors(include_url=False, include_input=False),
            ) from e

    def to_payload(self) -> dict[str, Any]:
        """Wire representation (JSON-compatible dict)."""
        return self.model_dump(mode="json", by_alias=True)

    @property
    def agent_names(self) -> list[str]:
        return [chunk.agent_name for chunk in self.chunks]

    def decode_vectors(self) -> np.ndarray:
        """All chunk vectors as a float32 matrix of shape (len(chunks), dims).

        Raises:
            CacheValidationError: a vector is malformed, has the wrong length,
                or is not a usable (finite, non-zero) embedding.
        """
        if not self.chunks:
            return np.empty((0, self.dims), dtype=np.float32)
        rows = []
        for chunk in self.chunks:
            try:
                rows.append(chunk.decode(self.dims))
            except ValueError as e:
                raise CacheValidationError(
                    f"Chunk {chunk.index} ({chunk.agent_name}): {e}",
                    build_id=self.build_id,
                ) from e
        return np.vstack(rows)


def assemble_bundle(
    *,
    build_id: str,
    model_id: str,
    chunking_id: str,
    file_fingerprint: str,
    dims: int,
    agent_names: Sequence[str],
    source_texts: Sequence[str],
    vectors: np.ndarray,
) -> EmbeddingBundle:
    """Build a complete bundle from freshly computed vectors (one row per agent)."""
    if not (len(agent_names) == len(source_texts) == len(vectors)):
        raise ValueError("agent_names, source_texts and vectors must have equal length")
    if len(vectors) and vectors.shape[1:] != (dims,):
        raise ValueError(f"vectors have shape {vectors.shape}, expected (n, {dims})")

    chunks = tuple(
        Chunk.from_vector(i, name, text, vectors[i])
        for i, (name, text) in enumerate(zip(agent_names, source_texts, strict=True))
    )
    return EmbeddingBundle(
        build_id=build_id,
        model_id=model_id,
        dims=dims,
        dtype=DTYPE_FLOAT32,
        chunking_id=chunking_id,
        file_fingerprint=file_fingerprint,
        chunks=chunks,
    )


def validate_bundle(
    bundle: EmbeddingBundle,
    build_id: str,
    expected_dims: int,
    expected_model_id: str | None = None,
) -> np.ndarray:
    """Check a bundle is usable under ``build_id`` and return its decoded vectors.

    Raises:
        CacheValidationError: build id, dims, dtype, model, chunk order or vector mismatch.
    """
    if bundle.build_id != build_id:
        raise CacheValidationError(
            "Bundle build_id does not match its key",
            build_id=build_id,
            bundle_build_id=bundle.build_id,
        )
    if bundle.dims != expected_dims:
        raise CacheValidationError(
            f"Bundle dims {bundle.dims} != expected {expected_dims}",
            build_id=build_id,
        )
    if bundle.dtype != DTYPE_FLOAT32:
        raise CacheValidationError(f"Unsupported bundle dtype: {bundle.dtype}", build_id=build_id)
    if expected_model_id is not None and bundle.model_id != expected_model_id:
        raise CacheValidationError(
            f"Bundle model {bundle.model_id} != expected {expected_model_id}",
            build_id=build_id,
        )
    for position, chunk in enumerate(bundle.chunks):
        if chunk.index != position:
            raise CacheValidationError(
                f"Chunk at position {position} has index {chunk.index}",
                build_id=build_id,
            )
    return bundle.decode_vectors()


__all__ = [
    "DTYPE_FLOAT32",
    "Chunk",
    "ChunkMeta",
    "EmbeddingBundle",
    "assemble_bundle",
    "decode_vector",
    "encode_vector",
    "validate_bundle",
]
