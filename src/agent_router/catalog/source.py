"""
Catalog Sources - Where the agent catalog comes from.

All sources implement ``async load() -> AgentCatalog`` and surface every I/O,
decode or shape failure as CatalogLoadError.

Usage:
    source = FileCatalogSource("agents.json")
    catalog = await source.load()
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import aiohttp
import yaml

from agent_router.config.logging import get_logger
from agent_router.errors import CatalogLoadError

from .models import AgentCatalog, parse_catalog

logger = get_logger("agent_router.catalog.source")


@runtime_checkable
class CatalogSource(Protocol):
    """Anything that can produce the current agent catalog."""

    async def load(self) -> AgentCatalog: ...


class StaticCatalogSource:
    """Catalog held in memory (tests, embedding the router in another service)."""

    def __init__(self, document: Any):
        self._document = document

    async def load(self) -> AgentCatalog:
        return parse_catalog(self._document, source="static")


class FileCatalogSource:
    """Catalog read from a local .json or .yaml/.yml file."""

    def __init__(self, path: str | Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> AgentCatalog:
        source = str(self._path)
        try:
            content = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise CatalogLoadError(f"Cannot read catalog file: {e}", source=source) from e

        try:
            if self._path.suffix.lower() in (".yaml", ".yml"):
                document = yaml.safe_load(content)
            else:
                document = json.loads(content)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise CatalogLoadError(f"Cannot decode catalog file: {e}", source=source) from e

        catalog = parse_catalog(document, source=source)
        logger.debug("Catalog loaded", source=source, agents=len(catalog))
        return catalog


class HttpCatalogSource:
    """Catalog served over HTTP (``GET <base_url>/api/agents``)."""

    AGENTS_PATH = "/api/agents"

    def __init__(self, base_url: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.AGENTS_PATH}"

    async def load(self) -> AgentCatalog:
        timeout = aiohttp.ClientTimeout(total=self._timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(self.url) as response:
                    if response.status != 200:
                        error = await response.text()
                        raise CatalogLoadError(
                            f"Catalog server returned HTTP {response.status}",
                            source=self.url,
                            body=error[:200],
                        )
                    document = await response.json(content_type=None)
        except (aiohttp.ClientError, TimeoutError) as e:
            raise CatalogLoadError(f"Failed to fetch catalog: {e}", source=self.url) from e
        except json.JSONDecodeError as e:
            raise CatalogLoadError(f"Catalog response is not JSON: {e}", source=self.url) from e

        return parse_catalog(document, source=self.url)


def create_catalog_source(path: str | None = None, url: str | None = None) -> CatalogSource:
    """Build a catalog source from settings (``catalog.url`` wins over ``catalog.path``)."""
    from agent_router.config.settings import get_setting

    url = url if url is not None else get_setting("catalog.url", "")
    if url:
        return HttpCatalogSource(url, timeout=float(get_setting("catalog.timeout", 10)))

    path = path if path is not None else get_setting("catalog.path", "agents.json")
    if not path:
        raise CatalogLoadError("Neither catalog.url nor catalog.path is configured")
    return FileCatalogSource(path)


__all__ = [
    "CatalogSource",
    "FileCatalogSource",
    "HttpCatalogSource",
    "StaticCatalogSource",
    "create_catalog_source",
]
