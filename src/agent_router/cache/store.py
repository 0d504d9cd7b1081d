"""
store.py - Content-addressed bundle stores

A cache store keeps JSON bundle payloads keyed by build id. The store is
append-only: a build id names immutable content, so nothing is ever evicted.

Every store enforces the same admission rules on write:
- the payload's ``build_id`` must equal the key it is stored under
- the payload's ``dims`` must equal the store's expected embedding width

Stores:
- MemoryCacheStore: in-process, holds serialized JSON
- FileCacheStore: one ``<build_id>.json`` per bundle, written atomically
- HttpCacheStore (see http.py): remote store server
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from agent_router.config.logging import get_logger
from agent_router.errors import (
    CacheReadError,
    CacheStoreRejectedError,
    CacheWriteError,
    InvalidBuildIdError,
)
from agent_router.fingerprint import is_build_id

logger = get_logger("agent_router.cache.store")


@runtime_checkable
class CacheStore(Protocol):
    """Fetch/store of bundle payloads keyed by build id."""

    async def fetch(self, build_id: str) -> dict[str, Any] | None: ...

    async def store(self, build_id: str, payload: dict[str, Any]) -> None: ...


def require_build_id(build_id: Any) -> str:
    """Return build_id unchanged, or raise InvalidBuildIdError."""
    if not is_build_id(build_id):
        raise InvalidBuildIdError(build_id)
    return build_id


def check_admission(build_id: str, payload: Any, expected_dims: int) -> None:
    """Store-side validation of an incoming bundle payload.

    Raises:
        CacheStoreRejectedError: not an object, build id mismatch or dims mismatch.
    """
    if not isinstance(payload, dict):
        raise CacheStoreRejectedError("Bundle must be a JSON object", build_id=build_id)
    if payload.get("build_id") != build_id:
        raise CacheStoreRejectedError(
            "Invalid bundle or build_id mismatch",
            build_id=build_id,
            bundle_build_id=payload.get("build_id"),
        )
    dims = payload.get("dims")
    if isinstance(dims, bool) or not isinstance(dims, int) or dims != expected_dims:
        raise CacheStoreRejectedError(
            f"Invalid dims, expected {expected_dims}",
            build_id=build_id,
            dims=dims,
        )


class MemoryCacheStore:
    """In-process store. Payloads are kept as JSON text so reads return fresh copies."""

    def __init__(self, expected_dims: int):
        self.expected_dims = expected_dims
        self._bundles: dict[str, str] = {}

    async def fetch(self, build_id: str) -> dict[str, Any] | None:
        require_build_id(build_id)
        text = self._bundles.get(build_id)
        return json.loads(text) if text is not None else None

    async def store(self, build_id: str, payload: dict[str, Any]) -> None:
        require_build_id(build_id)
        check_admission(build_id, payload, self.expected_dims)
        self._bundles[build_id] = json.dumps(payload, ensure_ascii=False)

    def __contains__(self, build_id: object) -> bool:
        return build_id in self._bundles

    def __len__(self) -> int:
        return len(self._bundles)

    def __repr__(self) -> str:
        return f"MemoryCacheStore(bundles={len(self._bundles)}, dims={self.expected_dims})"


class FileCacheStore:
    """Directory of ``<build_id>.json`` files.

    Writes go to a temporary file in the same directory and are renamed into
    place, so a reader sees either the whole bundle or nothing.
    """

    def __init__(self, directory: str | Path, expected_dims: int):
        self.directory = Path(directory)
        self.expected_dims = expected_dims

    def path_for(self, build_id: str) -> Path:
        return self.directory / f"{require_build_id(build_id)}.json"

    async def fetch(self, build_id: str) -> dict[str, Any] | None:
        path = self.path_for(build_id)
        return await asyncio.to_thread(self._read, path, build_id)

    async def store(self, build_id: str, payload: dict[str, Any]) -> None:
        path = self.path_for(build_id)
        check_admission(build_id, payload, self.expected_dims)
        await asyncio.to_thread(self._write, path, build_id, payload)

    def _read(self, path: Path, build_id: str) -> dict[str, Any] | None:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheReadError(f"Cannot read bundle file: {e}", build_id=build_id) from e

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise CacheReadError(f"Bundle file is not JSON: {e}", build_id=build_id) from e

    def _write(self, path: Path, build_id: str, payload: dict[str, Any]) -> None:
        tmp_name: str | None = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.directory,
                prefix=f".{build_id}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                json.dump(payload, tmp, ensure_ascii=False)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise CacheWriteError(f"Cannot write bundle file: {e}", build_id=build_id) from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

        logger.debug("Bundle written", build_id=build_id, path=str(path))

    def __repr__(self) -> str:
        return f"FileCacheStore(directory={str(self.directory)!r}, dims={self.expected_dims})"


__all__ = [
    "CacheStore",
    "FileCacheStore",
    "MemoryCacheStore",
    "check_admission",
    "require_build_id",
]
