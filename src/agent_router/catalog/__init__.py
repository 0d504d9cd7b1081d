"""
agent_router.catalog - Agent catalog models and sources.
"""

from .models import AgentCatalog, AgentDescriptor, parse_catalog
from .source import (
    CatalogSource,
    FileCatalogSource,
    HttpCatalogSource,
    StaticCatalogSource,
    create_catalog_source,
)

__all__ = [
    "AgentCatalog",
    "AgentDescriptor",
    "CatalogSource",
    "FileCatalogSource",
    "HttpCatalogSource",
    "StaticCatalogSource",
    "create_catalog_source",
    "parse_catalog",
]
